"""Media classification by file extension."""

from enum import Enum
from pathlib import PurePosixPath


class MediaKind(str, Enum):
    """Kind of a directory entry as shown in a listing."""

    DIRECTORY = "directory"
    IMAGE = "image"
    VIDEO = "video"
    OTHER = "other"


IMAGE_EXTENSIONS = {".jpg", ".jpeg", ".png", ".gif"}
VIDEO_EXTENSIONS = {".mp4", ".mov", ".webm", ".mkv", ".avi", ".m4v"}

CONTENT_TYPES = {
    ".jpg": "image/jpeg",
    ".jpeg": "image/jpeg",
    ".png": "image/png",
    ".gif": "image/gif",
}

# Pillow encoder names keyed by extension
IMAGE_FORMATS = {
    ".jpg": "JPEG",
    ".jpeg": "JPEG",
    ".png": "PNG",
    ".gif": "GIF",
}


def extension_of(name: str) -> str:
    return PurePosixPath(name).suffix.lower()


def classify_media(name: str) -> MediaKind:
    """Classify a file name as image, video or other."""
    extension = extension_of(name)
    if extension in IMAGE_EXTENSIONS:
        return MediaKind.IMAGE
    if extension in VIDEO_EXTENSIONS:
        return MediaKind.VIDEO
    return MediaKind.OTHER


def content_type_for(name: str) -> str | None:
    """Content type for a served image, None when no override applies."""
    return CONTENT_TYPES.get(extension_of(name))


def image_format_for(name: str) -> str | None:
    """Pillow format used to re-encode a preview of ``name``."""
    return IMAGE_FORMATS.get(extension_of(name))
