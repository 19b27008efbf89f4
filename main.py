"""Rotating file logger demo: writes generated log lines and rotates them by size."""

import argparse
import logging
import random
import signal
import sys
import time
import uuid

from filerotation.config import load_config, load_yaml_config
from filerotation.delegate import LoggingDelegate
from filerotation.logger import FileRotationLogger

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s [filerotation] %(levelname)s %(message)s",
    stream=sys.stderr,
)
logger = logging.getLogger(__name__)

_running = True


def _signal_handler(sig, _frame):
    global _running
    logger.info("Shutdown signal received (signal %d), stopping...", sig)
    _running = False


LEVELS = ["INFO", "INFO", "INFO", "INFO", "DEBUG", "WARNING", "ERROR"]
SERVICES = ["auth-api", "order-svc", "payment-gw", "user-svc", "catalog-api"]
MESSAGES = {
    "INFO": [
        "Request processed successfully",
        "Health check passed",
        "Cache hit for user session",
        "Database query completed in 12ms",
    ],
    "DEBUG": [
        "Entering request handler",
        "Token validation started",
    ],
    "WARNING": [
        "Slow query detected (>500ms)",
        "Connection pool nearing capacity",
    ],
    "ERROR": [
        "Failed to connect to database",
        "Timeout waiting for upstream response",
    ],
}


def generate_entry() -> tuple[str, str]:
    level = random.choice(LEVELS)
    service = random.choice(SERVICES)
    req_id = uuid.uuid4().hex[:8]
    return level, f"[{service}] [{req_id}] {random.choice(MESSAGES[level])}"


def build_cli_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Size-rotating file logger demo")
    parser.add_argument(
        "--config", default=None,
        help="Path to YAML config file (env vars take precedence)",
    )
    parser.add_argument(
        "--count", type=int, default=0,
        help="Stop after N entries (default: run until interrupted)",
    )
    parser.add_argument(
        "--interval", type=float, default=0.05,
        help="Seconds between entries (default: 0.05)",
    )
    return parser


def main():
    signal.signal(signal.SIGINT, _signal_handler)
    signal.signal(signal.SIGTERM, _signal_handler)

    args = build_cli_parser().parse_args()
    config = load_config(load_yaml_config(args.config))
    rot = config.rotation
    logger.info(
        "Config: file=%s, permission=%s, scheme=%s, strategy=%s, max_size=%d bytes, max_archived=%d",
        config.file_path, config.file_permission, rot.suffix_scheme.value,
        rot.creation_strategy.value, rot.max_file_size_bytes, rot.max_archived_files,
    )

    # The engine only holds a weak reference to its delegate
    delegate = LoggingDelegate()
    file_logger = FileRotationLogger(config, delegate=delegate)
    logger.info("Writing to %s", file_logger.current_path)

    entries_written = 0
    try:
        while _running and (args.count <= 0 or entries_written < args.count):
            level, message = generate_entry()
            file_logger.log(level, message)
            entries_written += 1
            time.sleep(args.interval)
    except KeyboardInterrupt:
        pass

    file_logger.close()
    logger.info("Shut down cleanly. Total entries written: %d", entries_written)


if __name__ == "__main__":
    main()
