"""Auto-stop scheduler package.

Modules:
- config: AutoStopConfig dataclass
- runner: Orchestrator (run_once, execute_stop)
- cli: CLI entry point (main)
"""

from .config import AutoStopConfig
from .runner import execute_stop, run_once
from .cli import main

__all__ = ["AutoStopConfig", "execute_stop", "run_once", "main"]
