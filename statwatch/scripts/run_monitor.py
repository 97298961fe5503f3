"""
Run the stats monitor until interrupted.
"""
from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional

import yaml
from dotenv import load_dotenv
from loguru import logger

try:
    # When executed as a module: python -m statwatch.scripts.run_monitor
    from ..controllers.monitor_controller import MonitorConfig, MonitorController
except ImportError:
    # When executed directly: python statwatch/scripts/run_monitor.py
    current_file = Path(__file__).resolve()
    repo_root = current_file.parents[2]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))
    from statwatch.controllers.monitor_controller import MonitorConfig, MonitorController


def load_config(path: Optional[str]) -> MonitorConfig:
    data = {}
    if path:
        cfg_path = Path(path)
        if not cfg_path.exists():
            raise SystemExit(f"Config not found: {cfg_path}")
        with cfg_path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    env_url = os.getenv("STATWATCH_URL")
    if env_url:
        data["stats_url"] = env_url
    return MonitorConfig(**data)


def setup_logging(config: MonitorConfig) -> None:
    logger.remove()
    logger.add(sys.stderr, level=config.log_level.upper())
    try:
        logs_dir = Path(config.log_dir)
        logs_dir.mkdir(parents=True, exist_ok=True)
        log_path = logs_dir / "statwatch.log"
        logger.add(
            str(log_path),
            rotation="10 MB",
            retention="10 days",
            compression="zip",
            enqueue=True,
            backtrace=False,
            diagnose=False,
            level="DEBUG",
        )
        logger.info("File logging enabled: {}", log_path)
    except Exception as e:
        logger.warning("Failed to configure file logging: {}", e)


def main(argv: Optional[List[str]] = None) -> None:
    # Load environment variables from .env if present
    load_dotenv()
    parser = argparse.ArgumentParser(description="Poll a server stats endpoint and print threshold alerts.")
    parser.add_argument("--config", type=str, default=None, help="Path to YAML config")
    args = parser.parse_args(argv)

    config = load_config(args.config)
    setup_logging(config)

    controller = MonitorController(config)
    try:
        controller.run()
    except KeyboardInterrupt:
        logger.info("Stopping...")
    finally:
        controller.stop()


if __name__ == "__main__":
    main()
