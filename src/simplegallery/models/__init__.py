"""
Models module for simplegallery.

This module contains the data types shared by the services:
- AccessLevel / AccessPolicy: per-identity access profiles
- PreviewKey / PreviewArtifact: preview identifiers and rendered previews
"""

from .access import AccessLevel, AccessPolicy, AccessProfile, parse_access_level
from .preview import PreviewArtifact, PreviewKey

__all__ = [
    "AccessLevel",
    "AccessPolicy",
    "AccessProfile",
    "parse_access_level",
    "PreviewArtifact",
    "PreviewKey",
]
