"""
Services module for simplegallery.

This module contains the service classes that handle business logic:
- PathPolicyEvaluator: path-based access decisions
- parse_preview_key: preview identifier parsing
- ImageResizer: fit-inside image resizing
- PreviewCache: preview lookup and on-demand generation
- UserRegistry: users file and credential checks
- GalleryService: directory listings and original file resolution
"""

from .access_policy import PathPolicyEvaluator
from .auth import UserRecord, UserRegistry
from .gallery import GalleryListing, GalleryService, ListingEntry
from .image_processor import ImageResizer
from .preview_cache import PreviewCache
from .preview_key import parse_preview_key

__all__ = [
    "PathPolicyEvaluator",
    "UserRecord",
    "UserRegistry",
    "GalleryListing",
    "GalleryService",
    "ListingEntry",
    "ImageResizer",
    "PreviewCache",
    "parse_preview_key",
]
