"""Directory listing and original file resolution for the gallery."""

import os
from dataclasses import dataclass, field
from pathlib import Path
from urllib.parse import quote

from ..config import GallerySettings
from ..error_handling import AuthorizationError, NotFoundError
from ..logging_config import get_logger
from ..models.access import AccessProfile
from ..models.preview import PreviewKey
from ..utils.media import MediaKind, classify_media
from ..utils.paths import normalize_resource_path, parent_path, resolve_under
from .access_policy import PathPolicyEvaluator

logger = get_logger(__name__)


@dataclass(frozen=True)
class ListingEntry:
    """One visible item of a directory listing."""

    name: str
    path: str
    kind: MediaKind
    href: str
    preview_src: str | None = None

    @property
    def is_directory(self) -> bool:
        return self.kind == MediaKind.DIRECTORY


@dataclass(frozen=True)
class GalleryListing:
    """Everything needed to render one directory page."""

    path: str
    title: str
    parent_href: str | None
    entries: list[ListingEntry] = field(default_factory=list)


class GalleryService:
    """Builds directory listings and resolves original files under the photos root."""

    def __init__(self, settings: GallerySettings, evaluator: PathPolicyEvaluator) -> None:
        self.settings = settings
        self.evaluator = evaluator

    def listing_href(self, path: str) -> str:
        return self.settings.html_url_base + quote(path)

    def file_href(self, path: str) -> str:
        return self.settings.files_url_base + quote(path)

    def preview_src(self, path: str, dimension: int | None = None) -> str:
        # Only the separator stays literal, so names containing '@' still parse
        key = PreviewKey(path=path, dimension=dimension or self.settings.preview_size)
        return f"{self.settings.previews_url_base}{quote(key.path)}@{key.dimension}"

    def build_listing(self, route_path: str, profile: AccessProfile, identity: str | None = None) -> GalleryListing:
        """
        Build the listing of a gallery directory.

        Args:
            route_path: Percent-decoded path below the listing route
            profile: Access profile of the requester
            identity: Authenticated user name, for logging

        Returns:
            GalleryListing with directories first, then files, each sorted by name

        Raises:
            AuthorizationError: If the profile does not allow the directory
            NotFoundError: If the directory does not exist or is unreadable
        """
        path = normalize_resource_path(route_path)

        if not self.evaluator.is_allowed(profile, path):
            raise AuthorizationError(
                "Access denied to gallery path",
                details={"identity": identity, "path": path},
            )

        directory = resolve_under(self.settings.photos_root, path)
        if not directory.is_dir() or not os.access(directory, os.R_OK):
            raise NotFoundError("Route not found", details={"path": path})

        try:
            with os.scandir(directory) as scanner:
                dir_entries = [(entry.name, entry.is_dir()) for entry in scanner]
        except OSError as e:
            raise NotFoundError("Route not found", details={"path": path}, original_exception=e) from e

        dir_entries.sort(key=lambda item: (not item[1], item[0]))

        entries = []
        for name, is_dir in dir_entries:
            if name.startswith("."):
                continue

            entry_path = f"{path}/{name}" if path else name

            if is_dir:
                if not self.evaluator.is_allowed(profile, entry_path):
                    logger.debug("listing_entry_hidden", identity=identity, path=entry_path)
                    continue
                entries.append(
                    ListingEntry(
                        name=name,
                        path=entry_path,
                        kind=MediaKind.DIRECTORY,
                        href=self.listing_href(entry_path),
                    )
                )
                continue

            kind = classify_media(name)
            entries.append(
                ListingEntry(
                    name=name,
                    path=entry_path,
                    kind=kind,
                    href=self.file_href(entry_path),
                    preview_src=self.preview_src(entry_path) if kind == MediaKind.IMAGE else None,
                )
            )

        parent = parent_path(path)
        listing = GalleryListing(
            path=path,
            title=path or "Home",
            parent_href=self.listing_href(parent) if parent is not None else None,
            entries=entries,
        )

        logger.info("listing_built", identity=identity, path=path, entry_count=len(entries))
        return listing

    def resolve_original(self, route_path: str) -> Path:
        """
        Resolve a full-size file below the photos root.

        Args:
            route_path: Percent-decoded path below the files route

        Returns:
            Path: Existing, readable regular file

        Raises:
            NotFoundError: If the file does not exist or is unreadable
        """
        path = normalize_resource_path(route_path)
        target = resolve_under(self.settings.photos_root, path)

        if not path or not target.is_file() or not os.access(target, os.R_OK):
            raise NotFoundError("Route not found", details={"path": path})

        return target
