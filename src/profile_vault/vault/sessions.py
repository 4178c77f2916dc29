"""Temporary STS sessions, cached in the secret store.

Pattern: Credential Brokering
------------------------------
The long-lived key pair for a profile is only ever used to call
``sts:GetSessionToken``.  What reaches the executed command is the temporary
grant, bounded by the requested duration.  When the profile declares an
``mfa_serial`` the request carries a one-time code obtained from the
``TokenAgent`` in the ``SessionConfig``.

A request asks the token agent at most once.  A wrong code comes back from STS
as an error and ends the invocation; there is no re-prompt loop.

Sessions are cached per profile so that consecutive invocations reuse one MFA
prompt.  ``refresh`` skips the cache and always mints a new session.
"""

from __future__ import annotations

import dataclasses
import datetime
import logging
from collections.abc import Callable
from typing import Any, Protocol

import boto3
from botocore.exceptions import BotoCoreError, ClientError

from profile_vault.auth.token_agent import InputError, TokenAgent, UserCancelledError
from profile_vault.config.profiles import Profile
from profile_vault.vault.credentials import Credentials, SessionCredentials
from profile_vault.vault.secret_store import CredentialWriteError, VaultSecretStore

logger = logging.getLogger(__name__)

StsClientFactory = Callable[[Credentials, str | None], Any]


class SessionRequestError(Exception):
    """Raised when a temporary session cannot be obtained."""


@dataclasses.dataclass(frozen=True)
class SessionConfig:
    """A single session request.

    Attributes:
        profile:     Profile the session is for.
        duration:    Requested session lifetime.
        token_agent: Supplies an MFA code if the profile needs one.
        refresh:     Ignore any cached session.
    """

    profile: Profile
    duration: datetime.timedelta
    token_agent: TokenAgent
    refresh: bool = False


class SessionProvider(Protocol):
    def session(self, conf: SessionConfig) -> SessionCredentials: ...


def _default_client_factory(creds: Credentials, region: str | None) -> Any:
    session = boto3.Session(
        aws_access_key_id=creds.access_key_id,
        aws_secret_access_key=creds.secret_access_key,
        region_name=region,
    )
    return session.client("sts")


class StsSessionProvider:
    """Mints STS sessions from credentials held in a ``VaultSecretStore``."""

    def __init__(
        self,
        secret_store: VaultSecretStore,
        region: str | None = None,
        client_factory: StsClientFactory | None = None,
    ) -> None:
        self._store = secret_store
        self._region = region
        self._client_factory = client_factory or _default_client_factory

    def session(self, conf: SessionConfig) -> SessionCredentials:
        """Return a session for ``conf.profile``, reusing a cached one if valid."""
        name = conf.profile.name

        if not conf.refresh:
            cached = self._store.read_session(name)
            if cached is not None and not cached.is_expired:
                logger.info("Using cached session for profile %s (expires %s)", name, cached.expiration)
                return cached

        base_creds = self._store.read(name)
        params: dict[str, Any] = {"DurationSeconds": int(conf.duration.total_seconds())}

        if conf.profile.mfa_serial:
            try:
                token = conf.token_agent.get_token(conf.profile.mfa_serial)
            except (UserCancelledError, InputError) as exc:
                raise SessionRequestError(f"MFA token prompt failed: {exc}") from exc
            params["SerialNumber"] = conf.profile.mfa_serial
            params["TokenCode"] = token

        logger.info(
            "Requesting STS session for profile %s (duration=%ss, mfa=%s)",
            name,
            params["DurationSeconds"],
            "SerialNumber" in params,
        )
        try:
            client = self._client_factory(base_creds, self._region)
            response = client.get_session_token(**params)
        except ClientError as exc:
            code = exc.response.get("Error", {}).get("Code", "Unknown")
            raise SessionRequestError(
                f"STS GetSessionToken failed for profile '{name}' ({code}): {exc}"
            ) from exc
        except BotoCoreError as exc:
            raise SessionRequestError(
                f"STS GetSessionToken failed for profile '{name}': {exc}"
            ) from exc

        session = SessionCredentials.from_sts(response)
        logger.info("Issued session %s for profile %s", session.access_key_id, name)

        try:
            self._store.write_session(name, session)
        except CredentialWriteError as exc:
            logger.warning("Could not cache session for profile %s: %s", name, exc)

        return session
