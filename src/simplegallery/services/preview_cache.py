"""
Preview cache for simplegallery.

Previews are produced on demand from the original files. In persistent mode
each rendition is written once under the previews root, mirroring the source
tree, and served from disk afterwards. In ephemeral mode every request renders
a fresh in-memory preview.
"""

import asyncio
import contextlib
import os
import tempfile
from concurrent.futures import Executor
from datetime import datetime
from pathlib import Path

from ..error_handling import SourceNotFoundError, StorageError
from ..logging_config import get_logger, log_performance
from ..models.preview import PreviewArtifact, PreviewKey
from ..utils.media import content_type_for, image_format_for
from ..utils.paths import resolve_under
from .image_processor import ImageResizer

logger = get_logger(__name__)


class PreviewCache:
    """
    Maps PreviewKeys to rendered previews, generating them on a miss.

    Concurrent requests for the same key share a single in-flight
    computation. Once finished, the key is dropped from the in-flight table
    and later requests go through the normal lookup again.
    """

    def __init__(
        self,
        photos_root: Path,
        previews_root: Path,
        persist: bool,
        resizer: ImageResizer,
        executor: Executor | None = None,
    ) -> None:
        """
        Initialize the preview cache.

        Args:
            photos_root: Directory holding the original files
            previews_root: Directory receiving persisted previews
            persist: Whether previews are written to ``previews_root``
            resizer: Resizer used on a cache miss
            executor: Pool running the resize step, defaults to the loop's executor
        """
        self.photos_root = Path(photos_root)
        self.previews_root = Path(previews_root)
        self.persist = persist
        self.resizer = resizer
        self.executor = executor
        self._in_flight: dict[PreviewKey, asyncio.Task] = {}

    def cache_path_for(self, key: PreviewKey) -> Path:
        """Location of the persisted artifact for ``key``."""
        return resolve_under(self.previews_root, key.to_request_id())

    def source_path_for(self, key: PreviewKey) -> Path:
        return resolve_under(self.photos_root, key.path)

    @property
    def in_flight_count(self) -> int:
        return len(self._in_flight)

    async def get_or_create(self, key: PreviewKey) -> PreviewArtifact:
        """
        Return the preview for ``key``, rendering it if needed.

        Args:
            key: Requested rendition

        Returns:
            PreviewArtifact with the preview bytes and content type

        Raises:
            SourceNotFoundError: If the original file is missing or unreadable
            DecodeError: If the original cannot be decoded or encoded
            StorageError: If the previews root cannot be written
        """
        task = self._in_flight.get(key)
        if task is None:
            task = asyncio.ensure_future(self._produce(key))
            self._in_flight[key] = task
            task.add_done_callback(lambda done: self._forget(key, done))
        else:
            logger.debug("preview_joined_in_flight", key=str(key))

        # A cancelled caller must not cancel the shared computation
        return await asyncio.shield(task)

    def _forget(self, key: PreviewKey, task: asyncio.Task) -> None:
        if self._in_flight.get(key) is task:
            del self._in_flight[key]
        # Mark the outcome as retrieved when every caller went away
        if not task.cancelled():
            task.exception()

    async def _produce(self, key: PreviewKey) -> PreviewArtifact:
        start_time = datetime.now()

        if self.persist:
            data = await self._produce_persistent(key)
        else:
            source_data = await self._read_source(key)
            data = await self._render(source_data, key)

        log_performance(
            "preview_get_or_create",
            (datetime.now() - start_time).total_seconds(),
            key=str(key),
            persist=self.persist,
            preview_file_size=len(data),
        )
        return PreviewArtifact(key=key, data=data, content_type=content_type_for(key.path))

    async def _produce_persistent(self, key: PreviewKey) -> bytes:
        target = self.cache_path_for(key)

        if await asyncio.to_thread(target.is_file):
            logger.debug("preview_cache_hit", key=str(key), path=str(target))
            return await self._read_artifact(target)

        logger.info("preview_cache_miss", key=str(key), path=str(target))
        source_data = await self._read_source(key)

        try:
            await asyncio.to_thread(target.parent.mkdir, parents=True, exist_ok=True)
        except OSError as e:
            raise StorageError(
                f"Failed to create preview directory: {e}",
                code="preview_directory_failed",
                details={"key": str(key)},
                original_exception=e,
            ) from e

        data = await self._render(source_data, key)

        try:
            await asyncio.to_thread(_write_atomic, target, data)
        except OSError as e:
            raise StorageError(
                f"Failed to write preview: {e}",
                code="preview_write_failed",
                details={"key": str(key)},
                original_exception=e,
            ) from e

        return await self._read_artifact(target)

    async def _read_source(self, key: PreviewKey) -> bytes:
        source = self.source_path_for(key)
        try:
            return await asyncio.to_thread(source.read_bytes)
        except OSError as e:
            raise SourceNotFoundError(
                "Preview source is missing or unreadable",
                details={"key": str(key)},
                original_exception=e,
            ) from e

    async def _read_artifact(self, target: Path) -> bytes:
        try:
            return await asyncio.to_thread(target.read_bytes)
        except OSError as e:
            raise StorageError(
                f"Failed to read preview: {e}",
                code="preview_read_failed",
                details={"path": str(target)},
                original_exception=e,
            ) from e

    async def _render(self, source_data: bytes, key: PreviewKey) -> bytes:
        loop = asyncio.get_running_loop()
        return await loop.run_in_executor(
            self.executor, self.resizer.resize, source_data, key.dimension, image_format_for(key.path)
        )


def _write_atomic(target: Path, data: bytes) -> None:
    """Write ``data`` to a sibling temp file, then rename it over ``target``."""
    fd, tmp_name = tempfile.mkstemp(dir=target.parent, prefix=".", suffix=".tmp")
    try:
        with os.fdopen(fd, "wb") as tmp_file:
            tmp_file.write(data)
        os.replace(tmp_name, target)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp_name)
        raise

