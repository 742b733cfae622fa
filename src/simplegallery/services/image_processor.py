"""Image resizing service for simplegallery."""

import io
from datetime import datetime
from typing import Any

from PIL import Image, ImageOps

from ..error_handling import DecodeError
from ..logging_config import get_logger, log_performance

logger = get_logger(__name__)


class ImageResizer:
    """Service for producing fit-inside resized renditions of images."""

    # Modes each encoder accepts without conversion
    ENCODER_MODES = {
        "JPEG": ("RGB", "L"),
        "PNG": ("RGB", "RGBA", "L", "LA"),
        "GIF": ("RGB", "RGBA", "L", "P"),
    }

    def __init__(self, quality: int = 85) -> None:
        """
        Initialize the image resizer.

        Args:
            quality: JPEG encoder quality (1-100)
        """
        self.quality = quality

    def resize(self, image_data: bytes, max_dimension: int, image_format: str | None = None) -> bytes:
        """
        Resize an image so that it fits inside a ``max_dimension`` square.

        The aspect ratio is preserved, nothing is cropped and images already
        inside the box keep their size. Encoding is deterministic for a given
        Pillow version: the same input always yields the same bytes.

        Args:
            image_data: Raw source image bytes
            max_dimension: Bound for both width and height, in pixels
            image_format: Pillow format to encode with (``JPEG``, ``PNG``,
                ``GIF``); defaults to the decoded format of the source

        Returns:
            bytes: Encoded preview image

        Raises:
            DecodeError: If the source cannot be decoded or re-encoded
        """
        if max_dimension <= 0:
            raise ValueError("max_dimension must be positive")

        start_time = datetime.now()

        try:
            with Image.open(io.BytesIO(image_data)) as image:
                output_format = (image_format or image.format or "PNG").upper()

                # Apply EXIF orientation to correct rotation
                image = ImageOps.exif_transpose(image)
                original_size = image.size
                original_mode = image.mode

                target_size = self._calculate_fit_size(original_size, max_dimension)

                if image.mode == "P" and output_format != "GIF":
                    image = image.convert("RGBA")
                if image.mode not in self.ENCODER_MODES.get(output_format, (image.mode,)):
                    image = image.convert("RGB")

                resized_image = image.resize(target_size, Image.Resampling.LANCZOS)

                buffer = io.BytesIO()
                resized_image.save(buffer, **self._save_options(output_format))
                preview_data = buffer.getvalue()

        except Exception as e:
            raise DecodeError(
                f"Failed to resize image: {e}",
                code="preview_generation_failed",
                details={
                    "source_file_size": len(image_data),
                    "max_dimension": max_dimension,
                    "format": image_format,
                    "operation": "resize",
                },
                original_exception=e,
            ) from e

        duration = (datetime.now() - start_time).total_seconds()
        log_performance(
            "resize",
            duration,
            original_size=original_size,
            preview_size=target_size,
            original_mode=original_mode,
            source_file_size=len(image_data),
            preview_file_size=len(preview_data),
            format=output_format,
        )

        return preview_data

    def _save_options(self, output_format: str) -> dict[str, Any]:
        if output_format == "JPEG":
            return {"format": "JPEG", "quality": self.quality, "optimize": True}
        if output_format == "PNG":
            return {"format": "PNG", "optimize": True}
        return {"format": output_format}

    def _calculate_fit_size(self, original_size: tuple[int, int], max_dimension: int) -> tuple[int, int]:
        """
        Calculate the preview size for fit-inside scaling.

        Args:
            original_size: Original image size as (width, height)
            max_dimension: Bound for both width and height

        Returns:
            tuple: Preview size as (width, height), never larger than the original
        """
        original_width, original_height = original_size

        # Smaller ratio keeps both sides inside the box, 1.0 prevents upscaling
        scale_ratio = min(max_dimension / original_width, max_dimension / original_height, 1.0)

        new_width = max(1, min(max_dimension, round(original_width * scale_ratio)))
        new_height = max(1, min(max_dimension, round(original_height * scale_ratio)))

        return (new_width, new_height)
