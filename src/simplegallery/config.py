"""Configuration management for simplegallery.

This module provides centralized configuration management using environment
variables. Settings are read once at startup into an immutable snapshot that is
handed to the HTTP application.
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .error_handling import ConfigurationError
from .logging_config import get_logger

logger = get_logger(__name__)

ACCESS_MATCH_MODES = ("substring", "prefix")


class Config:
    """Centralized configuration management using environment variables."""

    def __init__(self):
        """Initialize configuration."""
        self._cache = {}

    def get(self, key: str, default: Any = None, cast_type: type = str) -> Any:
        """Get configuration value from environment variables.

        Args:
            key: Configuration key
            default: Default value if not found
            cast_type: Type to cast the value to (str, int, bool, float)

        Returns:
            Configuration value cast to the specified type
        """
        cache_key = f"{key}:{cast_type.__name__}"
        if cache_key in self._cache:
            return self._cache[cache_key]

        value = os.getenv(key)

        if value is None or value == "":
            value = default

        if value is not None:
            try:
                if cast_type is bool:
                    if isinstance(value, str):
                        value = value.strip().lower() in ("true", "1", "yes", "on")
                    else:
                        value = bool(value)
                elif cast_type is not str:
                    value = cast_type(value)
            except (ValueError, TypeError) as e:
                logger.warning(f"Failed to cast config value '{key}' to {cast_type.__name__}: {e}")
                value = default

        self._cache[cache_key] = value
        return value


def normalize_url_base(url_base: str) -> str:
    """Return ``url_base`` with exactly one leading and one trailing slash."""
    stripped = url_base.strip().strip("/")
    return f"/{stripped}/" if stripped else "/"


@dataclass(frozen=True)
class GallerySettings:
    """Process-wide gallery settings, read once at startup."""

    photos_root: Path = Path("/photos")
    previews_root: Path = Path("/previews")
    persist_cache: bool = False
    preview_size: int = 150
    preview_quality: int = 85
    preview_workers: int = os.cpu_count() or 1
    html_url_base: str = "/gallery/"
    files_url_base: str = "/galleryfiles/"
    previews_url_base: str = "/gallerypreviews/"
    users_file: Path | None = None
    auth_realm: str = "simple-gallery"
    access_match_mode: str = "substring"
    log_level: str = "info"
    environment: str = "production"
    host: str = "0.0.0.0"  # nosec B104
    port: int = 80

    def __post_init__(self) -> None:
        object.__setattr__(self, "photos_root", Path(self.photos_root))
        object.__setattr__(self, "previews_root", Path(self.previews_root))
        if self.users_file is not None:
            object.__setattr__(self, "users_file", Path(self.users_file))
        for name in ("html_url_base", "files_url_base", "previews_url_base"):
            object.__setattr__(self, name, normalize_url_base(getattr(self, name)))

        if self.preview_size <= 0:
            raise ConfigurationError("PREVIEW_SIZE must be a positive integer", details={"value": self.preview_size})
        if self.preview_workers <= 0:
            raise ConfigurationError(
                "PREVIEW_WORKERS must be a positive integer", details={"value": self.preview_workers}
            )
        if not 1 <= self.preview_quality <= 100:
            raise ConfigurationError("PREVIEW_QUALITY must be between 1 and 100", details={"value": self.preview_quality})
        if self.access_match_mode not in ACCESS_MATCH_MODES:
            raise ConfigurationError(
                f"ACCESS_MATCH_MODE must be one of {', '.join(ACCESS_MATCH_MODES)}",
                details={"value": self.access_match_mode},
            )

    @property
    def auth_enabled(self) -> bool:
        return self.users_file is not None


# Global configuration instance
_config: Config | None = None


def get_config() -> Config:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = Config()
    return _config


def load_settings(config: Config | None = None) -> GallerySettings:
    """Build the settings snapshot from the environment.

    Args:
        config: Configuration source, defaults to the global instance

    Raises:
        ConfigurationError: If a value is out of range
    """
    config = config or get_config()
    users_file = config.get("BASIC_AUTH_USERS_FILE")

    settings = GallerySettings(
        photos_root=Path(config.get("PHOTOS_ROOT_PATH", "/photos")),
        previews_root=Path(config.get("PREVIEWS_ROOT_PATH", "/previews")),
        persist_cache=config.get("SAVE_PREVIEWS", False, bool),
        preview_size=config.get("PREVIEW_SIZE", 150, int),
        preview_quality=config.get("PREVIEW_QUALITY", 85, int),
        preview_workers=config.get("PREVIEW_WORKERS", os.cpu_count() or 1, int),
        html_url_base=config.get("HTML_URL_BASE", "/gallery/"),
        files_url_base=config.get("FILES_URL_BASE", "/galleryfiles/"),
        previews_url_base=config.get("PREVIEWS_URL_BASE", "/gallerypreviews/"),
        users_file=Path(users_file) if users_file else None,
        auth_realm=config.get("BASIC_AUTH_REALM", "simple-gallery"),
        access_match_mode=config.get("ACCESS_MATCH_MODE", "substring").lower(),
        log_level=config.get("LOG_LEVEL", "info").lower(),
        environment=config.get("ENVIRONMENT", "production").lower(),
        host=config.get("HOST", "0.0.0.0"),  # nosec B104
        port=config.get("PORT_NUMBER", 80, int),
    )

    logger.info(
        "settings_loaded",
        photos_root=str(settings.photos_root),
        previews_root=str(settings.previews_root),
        persist_cache=settings.persist_cache,
        preview_size=settings.preview_size,
        auth_enabled=settings.auth_enabled,
        access_match_mode=settings.access_match_mode,
    )
    return settings
