"""CLI entry point for the auto-stop scheduler."""

from __future__ import annotations

import argparse
import logging
import time

from common.db import get_engine, get_session_factory
from common.schema import ensure_schema

from .config import AutoStopConfig
from .runner import run_once

logger = logging.getLogger(__name__)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    p = argparse.ArgumentParser(description="Auto-stop scheduler (duration-based irrigation stops)")
    p.add_argument("--sleep-seconds", type=float, default=15.0)
    p.add_argument("--batch-size", type=int, default=100)
    p.add_argument("--once", action="store_true", help="run a single iteration and exit")
    args = p.parse_args()

    cfg = AutoStopConfig(
        sleep_seconds=args.sleep_seconds,
        batch_size=args.batch_size,
        once=bool(args.once),
    )

    ensure_schema(get_engine())
    session_factory = get_session_factory()
    logger.info("Auto-stop scheduler started")
    logger.info("Config: sleep=%.1fs, batch_size=%d", cfg.sleep_seconds, cfg.batch_size)

    while True:
        try:
            stats = run_once(session_factory, cfg)
            if stats["due"]:
                logger.info(
                    "Iteración: due=%d done=%d cancelled=%d failed=%d",
                    stats["due"], stats["done"], stats["cancelled"], stats["failed"],
                )
            if cfg.once:
                return
            time.sleep(cfg.sleep_seconds)
        except Exception as e:
            logger.error("Error en iteración: %s", e)
            if cfg.once:
                raise
            logger.info("Continuando con siguiente iteración...")
            time.sleep(cfg.sleep_seconds)


if __name__ == "__main__":
    main()
