"""Small pure helpers shared by the services."""

from .media import MediaKind, classify_media, content_type_for, image_format_for
from .paths import normalize_resource_path, parent_path, resolve_under

__all__ = [
    "MediaKind",
    "classify_media",
    "content_type_for",
    "image_format_for",
    "normalize_resource_path",
    "parent_path",
    "resolve_under",
]
