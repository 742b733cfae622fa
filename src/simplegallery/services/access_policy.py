"""Path-based access policy evaluation for gallery listings."""

from urllib.parse import quote

from ..logging_config import get_logger
from ..models.access import AccessLevel, AccessPolicy, AccessProfile

logger = get_logger(__name__)

# Characters left unescaped, matching encodeURIComponent
_TOKEN_SAFE_CHARS = "!~*'()"


class PathPolicyEvaluator:
    """
    Decides whether a ResourcePath is visible under an AccessProfile.

    Two matching modes are supported:

    ``substring``
        Both the requested path and each policy entry are flattened into a
        single token (route base prepended, every ``/`` removed, the result
        percent-encoded) and an entry matches when its token is contained in
        the requested token. This mirrors the historical behaviour, including
        its collisions: a deny rule for ``vacation`` also hides ``vacation2``.

    ``prefix``
        Paths are compared segment by segment; an entry matches the path
        itself and everything below it. Directories above an allowed entry
        stay traversable so the allowed subtree can be reached from the root.

    In both modes deny entries take precedence over allow entries, and an
    empty allow set allows everything that is not denied.
    """

    def __init__(self, route_base: str = "/gallery/", match_mode: str = "substring") -> None:
        if match_mode not in ("substring", "prefix"):
            raise ValueError(f"Unknown match mode: {match_mode}")
        self.route_base = route_base
        self.match_mode = match_mode

    def is_allowed(self, profile: AccessProfile | None, path: str) -> bool:
        """
        Check whether ``path`` is visible under ``profile``.

        Args:
            profile: Access profile of the requesting identity
            path: ResourcePath relative to the gallery root

        Returns:
            bool: True if the path may be listed
        """
        if profile == AccessLevel.ALL:
            return True
        if not isinstance(profile, AccessPolicy):
            logger.debug("access_policy_no_profile", path=path, profile=str(profile))
            return False

        if self.match_mode == "prefix":
            allowed = self._is_allowed_by_prefix(profile, path)
        else:
            allowed = self._is_allowed_by_substring(profile, path)

        logger.debug("access_policy_evaluated", path=path, allowed=allowed, match_mode=self.match_mode)
        return allowed

    def path_token(self, path: str) -> str:
        """Flatten a path into the opaque token used for substring matching."""
        return quote((self.route_base + path).replace("/", ""), safe=_TOKEN_SAFE_CHARS)

    def _is_allowed_by_substring(self, policy: AccessPolicy, path: str) -> bool:
        requested = self.path_token(path)

        for entry in policy.deny:
            if self.path_token(entry) in requested:
                logger.debug("access_policy_deny_match", path=path, entry=entry)
                return False

        if not policy.allow:
            return True

        return any(self.path_token(entry) in requested for entry in policy.allow)

    def _is_allowed_by_prefix(self, policy: AccessPolicy, path: str) -> bool:
        requested = _segments(path)

        for entry in policy.deny:
            if _starts_with(requested, _segments(entry)):
                logger.debug("access_policy_deny_match", path=path, entry=entry)
                return False

        if not policy.allow:
            return True

        for entry in policy.allow:
            allowed_segments = _segments(entry)
            if _starts_with(requested, allowed_segments) or _starts_with(allowed_segments, requested):
                return True
        return False


def _segments(path: str) -> list[str]:
    return [segment for segment in path.split("/") if segment and segment != "."]


def _starts_with(segments: list[str], prefix: list[str]) -> bool:
    return segments[: len(prefix)] == prefix
