"""
Invoke tasks for running and maintaining the gallery.

Usage:
    invoke -c simplegallery.cli.tasks serve
    invoke -c simplegallery.cli.tasks warm-previews --directory holidays
"""

import asyncio
import os

import structlog
from dotenv import load_dotenv
from invoke import Context, task

from simplegallery.config import GallerySettings, load_settings
from simplegallery.error_handling import GalleryError, NotFoundError
from simplegallery.logging_config import configure_structured_logging
from simplegallery.models.preview import PreviewKey
from simplegallery.services.image_processor import ImageResizer
from simplegallery.services.preview_cache import PreviewCache
from simplegallery.utils.media import MediaKind, classify_media
from simplegallery.utils.paths import normalize_resource_path, resolve_under

logger = structlog.get_logger()


def _load_environment(env_file: str) -> GallerySettings:
    if os.path.exists(env_file):
        load_dotenv(dotenv_path=env_file)
    settings = load_settings()
    configure_structured_logging(settings.log_level, settings.environment)
    if not os.path.exists(env_file):
        logger.warning(f"Environment file not found at {env_file}. Using existing environment.")
    return settings


@task
def serve(c: Context, env_file: str = ".env"):
    """
    Start the gallery server.

    Args:
        c (Context): Invoke context.
        env_file (str): Path to the environment file. Default is '.env'.
    """
    if os.path.exists(env_file):
        load_dotenv(dotenv_path=env_file)

    from simplegallery.main import main

    main()


@task
def warm_previews(c: Context, directory: str = "", size: int = 0, env_file: str = ".env", concurrency: int = 4):
    """
    Generate persisted previews for every image below a gallery directory.

    Args:
        c (Context): Invoke context.
        directory (str): Gallery directory relative to PHOTOS_ROOT_PATH. Default is the root.
        size (int): Preview dimension. Default is PREVIEW_SIZE.
        env_file (str): Path to the environment file. Default is '.env'.
        concurrency (int): Number of previews generated at once. Default is 4.
    """
    settings = _load_environment(env_file)

    try:
        start = normalize_resource_path(directory)
    except NotFoundError:
        logger.error(f"Directory not found: {directory}")
        return
    start_dir = resolve_under(settings.photos_root, start)
    if not start_dir.is_dir():
        logger.error(f"Directory not found: {start_dir}")
        return

    dimension = size or settings.preview_size
    keys = []
    for root, dirs, files in os.walk(start_dir):
        dirs[:] = sorted(name for name in dirs if not name.startswith("."))
        relative_root = os.path.relpath(root, settings.photos_root).replace(os.sep, "/")
        for name in sorted(files):
            if name.startswith(".") or classify_media(name) != MediaKind.IMAGE:
                continue
            path = name if relative_root == "." else f"{relative_root}/{name}"
            keys.append(PreviewKey(path=path, dimension=dimension))

    logger.info("Starting preview warm-up", directory=str(start_dir), images=len(keys), dimension=dimension)

    cache = PreviewCache(
        photos_root=settings.photos_root,
        previews_root=settings.previews_root,
        persist=True,
        resizer=ImageResizer(quality=settings.preview_quality),
    )
    generated, failed = asyncio.run(_warm(cache, keys, max(1, concurrency)))

    logger.info("Preview warm-up finished", generated=generated, failed=failed)


async def _warm(cache: PreviewCache, keys: list[PreviewKey], concurrency: int) -> tuple[int, int]:
    semaphore = asyncio.Semaphore(concurrency)
    generated = 0
    failed = 0

    async def warm_one(key: PreviewKey) -> None:
        nonlocal generated, failed
        async with semaphore:
            try:
                await cache.get_or_create(key)
                generated += 1
            except GalleryError:
                failed += 1

    await asyncio.gather(*(warm_one(key) for key in keys))
    return generated, failed
