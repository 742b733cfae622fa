"""
Preview models for simplegallery.

A PreviewKey names one resized rendition of a source image; a
PreviewArtifact is the rendered result.
"""

from dataclasses import dataclass

KEY_SEPARATOR = "@"


@dataclass(frozen=True)
class PreviewKey:
    """Source image path plus the bounding dimension of the preview."""

    path: str
    dimension: int

    def to_request_id(self) -> str:
        """Serialize to the ``<path>@<dimension>`` form used in URLs and cache file names."""
        return f"{self.path}{KEY_SEPARATOR}{self.dimension}"

    def __str__(self) -> str:
        return self.to_request_id()


@dataclass(frozen=True)
class PreviewArtifact:
    """Rendered preview bytes and their content type."""

    key: PreviewKey
    data: bytes
    content_type: str | None

    @property
    def size(self) -> int:
        return len(self.data)
