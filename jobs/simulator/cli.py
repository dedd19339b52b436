"""CLI entry point for the virtual IoT device."""

from __future__ import annotations

import argparse
import logging
import os
import time

from common.config import DEFAULT_DEVICE_ID

from .device import SimulatorConfig, VirtualDevice

logger = logging.getLogger(__name__)


def main() -> None:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s - %(levelname)s - %(message)s",
        handlers=[logging.StreamHandler()],
    )

    p = argparse.ArgumentParser(description="Virtual farm IoT device (telemetry + pump polling)")
    p.add_argument("--base-url", default=os.getenv("FARM_API_URL", "http://localhost:8000"))
    p.add_argument("--device-id", default=DEFAULT_DEVICE_ID)
    p.add_argument("--interval", type=float, default=5.0, help="seconds between cycles")
    p.add_argument("--cycles", type=int, default=0, help="0 = run forever")
    p.add_argument("--api-key", default=os.getenv("FARM_API_KEY"))
    args = p.parse_args()

    cfg = SimulatorConfig(
        base_url=args.base_url.rstrip("/"),
        device_id=args.device_id,
        interval_seconds=args.interval,
        cycles=args.cycles,
        api_key=args.api_key,
    )

    logger.info("=== Virtual IoT device started ===")
    logger.info("Target server=%s device=%s", cfg.base_url, cfg.device_id)

    device = VirtualDevice(cfg)
    done = 0
    try:
        while cfg.cycles == 0 or done < cfg.cycles:
            device.run_cycle()
            done += 1
            time.sleep(cfg.interval_seconds)
    except KeyboardInterrupt:
        logger.info("Simulator stopped after %d cycles", done)


if __name__ == "__main__":
    main()
