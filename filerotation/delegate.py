"""Notification sinks for archive and retention events."""

import logging

logger = logging.getLogger(__name__)


class RotationDelegate:
    """Receives best-effort notifications from a RotationEngine. Override what you need."""

    def on_archived(self, from_path: str, to_path: str):
        pass

    def on_archive_removed(self, path: str):
        pass


class LoggingDelegate(RotationDelegate):
    def on_archived(self, from_path: str, to_path: str):
        logger.info("Archived %s -> %s", from_path, to_path)

    def on_archive_removed(self, path: str):
        logger.info("Purged archive %s", path)
