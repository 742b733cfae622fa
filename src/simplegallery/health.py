"""
Health check functionality for simplegallery.

This module reports whether the directories the gallery depends on are usable.
"""

import os
import time
from typing import Any

from . import __version__
from .config import GallerySettings
from .logging_config import get_logger

logger = get_logger(__name__)


def check_photos_root_health(settings: GallerySettings) -> dict[str, Any]:
    """Check that the photos root is a readable directory."""
    root = settings.photos_root
    if root.is_dir() and os.access(root, os.R_OK | os.X_OK):
        return {"status": "healthy", "message": "Photos root is readable", "timestamp": time.time()}

    logger.error("photos_root_health_check_failed", path=str(root))
    return {"status": "unhealthy", "message": "Photos root is not a readable directory", "timestamp": time.time()}


def check_previews_root_health(settings: GallerySettings) -> dict[str, Any]:
    """Check that persisted previews can be written."""
    if not settings.persist_cache:
        return {"status": "healthy", "message": "Preview persistence disabled", "timestamp": time.time()}

    # The root is created on first write, so its nearest existing ancestor must be writable
    candidate = settings.previews_root
    while not candidate.exists() and candidate != candidate.parent:
        candidate = candidate.parent

    if candidate.is_dir() and os.access(candidate, os.W_OK | os.X_OK):
        return {"status": "healthy", "message": "Previews root is writable", "timestamp": time.time()}

    logger.error("previews_root_health_check_failed", path=str(settings.previews_root))
    return {"status": "unhealthy", "message": "Previews root is not writable", "timestamp": time.time()}


def get_health_status(settings: GallerySettings) -> dict[str, Any]:
    """
    Get overall application health status.

    Returns:
        dict: Overall status plus one entry per check
    """
    checks = {
        "photos_root": check_photos_root_health(settings),
        "previews_root": check_previews_root_health(settings),
    }
    healthy = all(check["status"] == "healthy" for check in checks.values())

    return {
        "status": "healthy" if healthy else "unhealthy",
        "version": __version__,
        "timestamp": time.time(),
        "checks": checks,
    }
