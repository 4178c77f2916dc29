"""Credential values and their environment export.

Both credential kinds are immutable.  Long-lived ``Credentials`` come straight
from the secret store; ``SessionCredentials`` are the temporary grant returned
by STS.  They share the ``environ()`` export rule so that the environment
mapper does not need to know which one it was given.
"""

from __future__ import annotations

import dataclasses
import datetime
from typing import Any


@dataclasses.dataclass(frozen=True)
class Credentials:
    """A long-lived access key pair."""

    access_key_id: str
    secret_access_key: str = dataclasses.field(repr=False)

    def environ(self) -> list[str]:
        return [
            f"AWS_ACCESS_KEY_ID={self.access_key_id}",
            f"AWS_SECRET_ACCESS_KEY={self.secret_access_key}",
        ]

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Credentials:
        return cls(
            access_key_id=data["access_key_id"],
            secret_access_key=data["secret_access_key"],
        )


@dataclasses.dataclass(frozen=True)
class SessionCredentials:
    """A temporary STS grant.

    Attributes:
        access_key_id:     Temporary access key id (``ASIA...``).
        secret_access_key: Temporary secret key.
        session_token:     Token that must accompany the temporary key pair.
        expiration:        Timezone-aware UTC expiry reported by STS.
    """

    access_key_id: str
    secret_access_key: str = dataclasses.field(repr=False)
    session_token: str = dataclasses.field(repr=False)
    expiration: datetime.datetime

    @property
    def is_expired(self) -> bool:
        return datetime.datetime.now(datetime.UTC) >= self.expiration

    def environ(self) -> list[str]:
        # AWS_SECURITY_TOKEN is still read by older SDKs.
        return [
            f"AWS_ACCESS_KEY_ID={self.access_key_id}",
            f"AWS_SECRET_ACCESS_KEY={self.secret_access_key}",
            f"AWS_SESSION_TOKEN={self.session_token}",
            f"AWS_SECURITY_TOKEN={self.session_token}",
        ]

    def to_dict(self) -> dict[str, str]:
        return {
            "access_key_id": self.access_key_id,
            "secret_access_key": self.secret_access_key,
            "session_token": self.session_token,
            "expiration": self.expiration.isoformat(),
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> SessionCredentials:
        expiration = datetime.datetime.fromisoformat(data["expiration"])
        if expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=datetime.UTC)
        return cls(
            access_key_id=data["access_key_id"],
            secret_access_key=data["secret_access_key"],
            session_token=data["session_token"],
            expiration=expiration,
        )

    @classmethod
    def from_sts(cls, response: dict[str, Any]) -> SessionCredentials:
        """Build from a ``get_session_token`` response."""
        creds = response["Credentials"]
        expiration = creds["Expiration"]
        if isinstance(expiration, str):
            expiration = datetime.datetime.fromisoformat(expiration)
        if expiration.tzinfo is None:
            expiration = expiration.replace(tzinfo=datetime.UTC)
        return cls(
            access_key_id=creds["AccessKeyId"],
            secret_access_key=creds["SecretAccessKey"],
            session_token=creds["SessionToken"],
            expiration=expiration,
        )

    def __str__(self) -> str:
        return f"SessionCredentials(access_key_id={self.access_key_id}, expired={self.is_expired})"
