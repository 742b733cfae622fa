"""
Access profile model for simplegallery.

This module contains the types describing what part of the gallery an
identity may browse: the unrestricted and empty sentinels, and the
structured allow/deny policy.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Any


class AccessLevel(str, Enum):
    """Sentinel access profiles."""

    ALL = "all"
    NONE = "none"


@dataclass(frozen=True)
class AccessPolicy:
    """
    Structured allow/deny policy.

    Entries are paths anchored at the gallery root. An empty allow set means
    everything not denied is visible.
    """

    allow: frozenset[str] = field(default_factory=frozenset)
    deny: frozenset[str] = field(default_factory=frozenset)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "AccessPolicy":
        """
        Create an AccessPolicy from a registry ``accessLevel`` object.

        Args:
            data: Mapping with optional ``allow`` and ``deny`` lists

        Returns:
            AccessPolicy instance

        Raises:
            ValueError: If ``allow`` or ``deny`` is not a list of strings
        """
        return cls(allow=_as_path_set(data.get("allow"), "allow"), deny=_as_path_set(data.get("deny"), "deny"))

    def to_dict(self) -> dict[str, list[str]]:
        return {"allow": sorted(self.allow), "deny": sorted(self.deny)}


AccessProfile = AccessLevel | AccessPolicy


def _as_path_set(value: Any, name: str) -> frozenset[str]:
    if value is None:
        return frozenset()
    if isinstance(value, str) or not isinstance(value, (list, tuple, set, frozenset)):
        raise ValueError(f"'{name}' must be a list of paths")
    if not all(isinstance(item, str) for item in value):
        raise ValueError(f"'{name}' entries must be strings")
    return frozenset(value)


def parse_access_level(raw: Any) -> AccessProfile:
    """
    Interpret a registry ``accessLevel`` value.

    ``"all"`` grants everything, an object is a structured policy, and any
    other value (including a missing one) grants nothing.

    Args:
        raw: Value of the ``accessLevel`` field

    Returns:
        AccessProfile for the record

    Raises:
        ValueError: If an object policy has malformed entries
    """
    if raw == AccessLevel.ALL.value:
        return AccessLevel.ALL
    if isinstance(raw, dict):
        return AccessPolicy.from_dict(raw)
    return AccessLevel.NONE
