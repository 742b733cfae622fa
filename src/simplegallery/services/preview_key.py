"""Parsing of ``<path>@<dimension>`` preview request identifiers."""

import re

from ..error_handling import InvalidDimensionError, MalformedKeyError
from ..models.preview import KEY_SEPARATOR, PreviewKey
from ..utils.paths import normalize_resource_path

_DIMENSION_PATTERN = re.compile(r"[0-9]+")


def parse_preview_key(request_id: str) -> PreviewKey:
    """
    Parse a preview request identifier.

    The identifier is split at its last ``@``: the prefix is the source
    ResourcePath, the suffix the bounding dimension in base 10.

    Args:
        request_id: Percent-decoded identifier, e.g. ``a/b/c.jpg@150``

    Returns:
        PreviewKey for the requested rendition

    Raises:
        MalformedKeyError: If there is no ``@`` or no source path
        InvalidDimensionError: If the suffix is not a positive integer
        NotFoundError: If the source path escapes the gallery root
    """
    source, separator, suffix = request_id.rpartition(KEY_SEPARATOR)

    if not separator:
        raise MalformedKeyError("Preview key has no '@' separator", details={"request_id": request_id})

    path = normalize_resource_path(source)
    if not path:
        raise MalformedKeyError("Preview key has no source path", details={"request_id": request_id})

    if not _DIMENSION_PATTERN.fullmatch(suffix) or int(suffix) <= 0:
        raise InvalidDimensionError(
            "Preview dimension must be a positive integer",
            details={"request_id": request_id, "dimension": suffix},
        )

    return PreviewKey(path=path, dimension=int(suffix))
