"""
Pytest configuration and fixtures for simplegallery tests.
"""

import io
import json
import tempfile
from collections.abc import Callable, Generator
from pathlib import Path
from typing import Any

import pytest
from PIL import Image

from simplegallery.config import GallerySettings


@pytest.fixture
def temp_dir() -> Generator[Path, None, None]:
    """Create a temporary directory for tests."""
    with tempfile.TemporaryDirectory() as tmp_dir:
        yield Path(tmp_dir)


@pytest.fixture(autouse=True)
def setup_test_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Set up test environment variables."""
    monkeypatch.setenv("ENVIRONMENT", "test")
    monkeypatch.setenv("LOG_LEVEL", "debug")


class TestDataFactory:
    """Factory class for creating test data objects."""

    __test__ = False

    @staticmethod
    def create_image_bytes(
        format_type: str = "JPEG",
        size: tuple[int, int] = (400, 300),
        mode: str = "RGB",
        color: Any = "red",
    ) -> bytes:
        """Create a test image in memory.

        Args:
            format_type: Pillow format name
            size: Image size as (width, height)
            mode: Pillow image mode
            color: Fill color

        Returns:
            Encoded image bytes
        """
        image = Image.new(mode, size, color=color)
        buffer = io.BytesIO()
        image.save(buffer, format=format_type)
        return buffer.getvalue()

    @staticmethod
    def create_user_entry(
        user_name: str = "alice",
        password: str = "wonderland",
        access_level: Any = "all",
    ) -> dict[str, Any]:
        """Create one users file entry."""
        entry: dict[str, Any] = {"userName": user_name, "password": password}
        if access_level is not None:
            entry["accessLevel"] = access_level
        return entry

    @staticmethod
    def write_users_file(directory: Path, entries: list[dict[str, Any]]) -> Path:
        """Write a users file and return its path."""
        users_file = directory / "users.json"
        users_file.write_text(json.dumps(entries), encoding="utf-8")
        return users_file

    @staticmethod
    def build_photo_tree(root: Path) -> Path:
        """Populate ``root`` with a small gallery.

        Layout::

            root.gif
            broken.jpg           (not an image)
            .secret/hidden.jpg
            vacation/notes.txt
            vacation/beach/sunset.jpg   (400x300)
            vacation/beach/.hidden.jpg
            vacation2/pic.png    (120x240)
            work/report.png
            work/clip.mp4
        """
        (root / ".secret").mkdir(parents=True)
        (root / "vacation" / "beach").mkdir(parents=True)
        (root / "vacation2").mkdir()
        (root / "work").mkdir()

        factory = TestDataFactory
        (root / "root.gif").write_bytes(factory.create_image_bytes("GIF", (50, 50), mode="P", color=1))
        (root / "broken.jpg").write_bytes(b"not an image but large enough" + b"x" * 200)
        (root / ".secret" / "hidden.jpg").write_bytes(factory.create_image_bytes())
        (root / "vacation" / "notes.txt").write_text("sunscreen", encoding="utf-8")
        (root / "vacation" / "beach" / "sunset.jpg").write_bytes(factory.create_image_bytes("JPEG", (400, 300)))
        (root / "vacation" / "beach" / ".hidden.jpg").write_bytes(factory.create_image_bytes())
        (root / "vacation2" / "pic.png").write_bytes(factory.create_image_bytes("PNG", (120, 240), mode="RGBA"))
        (root / "work" / "report.png").write_bytes(factory.create_image_bytes("PNG", (64, 64)))
        (root / "work" / "clip.mp4").write_bytes(b"\x00\x00\x00\x18ftypmp42")
        return root


@pytest.fixture
def test_data_factory() -> TestDataFactory:
    """Provide TestDataFactory instance for tests."""
    return TestDataFactory()


@pytest.fixture
def sample_image_data() -> bytes:
    """Provide sample JPEG image data for testing."""
    return TestDataFactory.create_image_bytes("JPEG", (400, 300))


@pytest.fixture
def photos_root(temp_dir: Path) -> Path:
    """Gallery root populated with the standard test tree."""
    return TestDataFactory.build_photo_tree(temp_dir / "photos")


@pytest.fixture
def previews_root(temp_dir: Path) -> Path:
    """Preview directory; not created up front."""
    return temp_dir / "previews"


@pytest.fixture
def make_settings(photos_root: Path, previews_root: Path) -> Callable[..., GallerySettings]:
    """Build GallerySettings pointing at the test directories."""

    def _make(**overrides: Any) -> GallerySettings:
        values: dict[str, Any] = {
            "photos_root": photos_root,
            "previews_root": previews_root,
            "preview_workers": 2,
        }
        values.update(overrides)
        return GallerySettings(**values)

    return _make
