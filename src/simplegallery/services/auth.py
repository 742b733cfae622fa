"""Authentication service and user registry for simplegallery."""

import base64
import binascii
import json
import secrets
from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from pathlib import Path
from types import MappingProxyType
from typing import Any

from ..error_handling import AuthenticationError
from ..logging_config import get_logger, log_error, log_user_action
from ..models.access import AccessLevel, AccessProfile, parse_access_level

logger = get_logger(__name__)


def parse_basic_authorization(authorization: str | None) -> tuple[str, str] | None:
    """
    Extract the user name and password from an ``Authorization`` header.

    Credentials are base64-encoded UTF-8, split at the first ``:``.

    Args:
        authorization: Raw header value, None when the header is absent

    Returns:
        (user_name, password), or None when no Basic credentials were sent

    Raises:
        AuthenticationError: If the Basic credentials cannot be decoded
    """
    if not authorization:
        return None

    scheme, _, param = authorization.strip().partition(" ")
    if scheme.lower() != "basic":
        return None

    try:
        decoded = base64.b64decode(param.strip(), validate=True).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError) as e:
        raise AuthenticationError(
            "Malformed basic credentials",
            code="credentials_malformed",
            user_message="Credentials rejected",
        ) from e

    user_name, separator, password = decoded.partition(":")
    if not separator:
        raise AuthenticationError(
            "Basic credentials have no ':' separator",
            code="credentials_malformed",
            user_message="Credentials rejected",
        )
    return user_name, password


@dataclass(frozen=True)
class UserRecord:
    """One entry of the users file."""

    user_name: str
    password: str
    access_profile: AccessProfile

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> "UserRecord":
        """
        Create a UserRecord from a ``{userName, password, accessLevel}`` object.

        Raises:
            ValueError: If the name or password is missing or malformed
        """
        user_name = data.get("userName")
        password = data.get("password")

        if not isinstance(user_name, str) or not user_name:
            raise ValueError("userName must be a non-empty string")
        if not isinstance(password, str):
            raise ValueError(f"password for '{user_name}' must be a string")

        return cls(user_name=user_name, password=password, access_profile=parse_access_level(data.get("accessLevel")))

    def __repr__(self) -> str:
        return f"UserRecord(user_name={self.user_name!r}, access_profile={self.access_profile!r})"


class UserRegistry:
    """
    Immutable snapshot of the known users.

    Built once at startup and shared read-only by every request.
    """

    def __init__(self, records: Iterable[UserRecord] = ()) -> None:
        users: dict[str, UserRecord] = {}
        for record in records:
            if record.user_name in users:
                logger.warning("duplicate_user_ignored", user_name=record.user_name)
                continue
            users[record.user_name] = record
        self._users: Mapping[str, UserRecord] = MappingProxyType(users)

    @classmethod
    def from_file(cls, path: Path) -> "UserRegistry":
        """
        Load the registry from a JSON users file.

        A file that cannot be read or parsed is logged and yields an empty
        registry, so every login is rejected rather than the process failing.

        Args:
            path: JSON file holding a list of user objects

        Returns:
            UserRegistry snapshot
        """
        try:
            content = json.loads(Path(path).read_text(encoding="utf-8"))
            if not isinstance(content, list):
                raise ValueError("users file must contain a JSON list")
            records = [UserRecord.from_dict(entry) for entry in content]
        except (OSError, ValueError, AttributeError) as e:
            log_error(e, {"operation": "load_users_file", "path": str(path)})
            return cls()

        registry = cls(records)
        logger.info("users_loaded", path=str(path), user_count=len(registry))
        return registry

    def __len__(self) -> int:
        return len(self._users)

    def __contains__(self, user_name: object) -> bool:
        return user_name in self._users

    def authenticate(self, user_name: str | None, password: str | None) -> str:
        """
        Verify credentials.

        Args:
            user_name: Name sent by the client, None when no credentials were sent
            password: Password sent by the client

        Returns:
            str: The authenticated identity

        Raises:
            AuthenticationError: If credentials are missing or rejected
        """
        if user_name is None:
            raise AuthenticationError(
                "No credentials provided",
                code="credentials_missing",
                user_message="No credentials provided",
            )

        record = self._users.get(user_name)
        # Unknown users still go through a full comparison
        expected = record.password if record else secrets.token_hex(16)
        password_ok = secrets.compare_digest((password or "").encode("utf-8"), expected.encode("utf-8"))

        if record is None or not password_ok:
            raise AuthenticationError(
                "Credentials rejected",
                code="credentials_rejected",
                user_message="Credentials rejected",
                details={"user_name": user_name},
            )

        log_user_action(user_name, "authentication_success")
        return user_name

    def profile_for(self, identity: str | None) -> AccessProfile:
        """Access profile of ``identity``, ``none`` when the identity is unknown."""
        record = self._users.get(identity) if identity is not None else None
        if record is None:
            return AccessLevel.NONE
        return record.access_profile
