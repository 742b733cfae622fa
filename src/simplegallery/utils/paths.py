"""Resource path normalization for the gallery root."""

import posixpath
from pathlib import Path

from ..error_handling import NotFoundError


def normalize_resource_path(raw_path: str) -> str:
    """
    Normalize a request path into a ResourcePath relative to the gallery root.

    Leading and trailing slashes are dropped, ``.`` segments and duplicate
    separators are collapsed. The empty string designates the root itself.

    Args:
        raw_path: Percent-decoded path as received from the router

    Returns:
        str: Slash-separated relative path without ``..`` segments

    Raises:
        NotFoundError: If the path escapes the gallery root
    """
    candidate = raw_path.replace("\\", "/").strip("/")
    if not candidate:
        return ""

    normalized = posixpath.normpath(candidate)
    if normalized == ".":
        return ""

    if normalized == ".." or normalized.startswith("../") or "\x00" in normalized:
        raise NotFoundError(
            "Path escapes the gallery root",
            code="path_outside_root",
            details={"path": raw_path},
        )

    return normalized


def resolve_under(root: Path, resource_path: str) -> Path:
    """Join a normalized ResourcePath onto a filesystem root."""
    if not resource_path:
        return root
    return root.joinpath(*resource_path.split("/"))


def parent_path(resource_path: str) -> str | None:
    """Return the parent ResourcePath, or None for the root."""
    if not resource_path:
        return None
    return posixpath.dirname(resource_path)
