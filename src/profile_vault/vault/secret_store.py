"""Per-profile credential storage in HashiCorp Vault.

Pattern: Vault as Credential Store
-----------------------------------
Long-lived AWS access keys never touch the local disk.  They live in a KV v2
secrets engine, one secret per profile, and are read only for the duration of
a single ``exec`` invocation.  Temporary STS sessions are cached next to them
so that repeated invocations within the session lifetime do not prompt for a
new MFA code.

Layout under ``<mount>/<prefix>``::

    credentials/<profile>   access_key_id, secret_access_key
    sessions/<profile>      access_key_id, secret_access_key, session_token, expiration

Encryption at rest and access control are Vault's responsibility.
"""

from __future__ import annotations

import logging
from typing import Any

import hvac
import requests

from profile_vault.vault.credentials import Credentials, SessionCredentials

logger = logging.getLogger(__name__)


class CredentialReadError(Exception):
    """Raised when the store has no usable entry for a profile."""


class CredentialWriteError(Exception):
    """Raised when the store rejects a write."""


class VaultSecretStore:
    """Reads profile credentials and caches sessions in a Vault KV v2 engine."""

    def __init__(
        self,
        vault_addr: str,
        token: str | None = None,
        mount: str = "secret",
        path_prefix: str = "profile-vault",
        client: hvac.Client | None = None,
    ) -> None:
        self._vault_addr = vault_addr
        self._mount = mount
        self._prefix = path_prefix.strip("/")
        self._client = client if client is not None else hvac.Client(url=vault_addr, token=token)

    def read(self, profile_name: str) -> Credentials:
        """Return the long-lived credentials stored for *profile_name*.

        Raises ``CredentialReadError`` if there is no entry or it is malformed.
        """
        data = self._read(self._path("credentials", profile_name))
        if data is None:
            raise CredentialReadError(
                f"No credentials stored for profile '{profile_name}' at {self._vault_addr}"
            )
        try:
            creds = Credentials.from_dict(data)
        except KeyError as exc:
            raise CredentialReadError(
                f"Stored credentials for profile '{profile_name}' are missing {exc}"
            ) from exc
        logger.debug("Read credentials for profile %s (key=%s)", profile_name, creds.access_key_id)
        return creds

    def read_session(self, profile_name: str) -> SessionCredentials | None:
        """Return the cached session for *profile_name*, or ``None``.

        A malformed cache entry is treated as absent.
        """
        data = self._read(self._path("sessions", profile_name))
        if data is None:
            return None
        try:
            return SessionCredentials.from_dict(data)
        except (KeyError, ValueError) as exc:
            logger.warning("Ignoring malformed cached session for profile %s: %s", profile_name, exc)
            return None

    def write_session(self, profile_name: str, session: SessionCredentials) -> None:
        self._write(self._path("sessions", profile_name), session.to_dict())

    # -- private helpers -----------------------------------------------------

    def _path(self, kind: str, profile_name: str) -> str:
        parts = [self._prefix, kind, profile_name] if self._prefix else [kind, profile_name]
        return "/".join(parts)

    def _read(self, path: str) -> dict[str, Any] | None:
        try:
            response = self._client.secrets.kv.v2.read_secret_version(
                path=path,
                mount_point=self._mount,
                raise_on_deleted_version=True,
            )
        except hvac.exceptions.InvalidPath:
            logger.debug("No secret at %s/%s", self._mount, path)
            return None
        except hvac.exceptions.VaultError as exc:
            raise CredentialReadError(f"Vault read of {self._mount}/{path} failed: {exc}") from exc
        except requests.RequestException as exc:
            raise CredentialReadError(f"Cannot reach Vault at {self._vault_addr}: {exc}") from exc
        return response["data"]["data"]

    def _write(self, path: str, secret: dict[str, str]) -> None:
        try:
            self._client.secrets.kv.v2.create_or_update_secret(
                path=path,
                secret=secret,
                mount_point=self._mount,
            )
        except hvac.exceptions.VaultError as exc:
            raise CredentialWriteError(f"Vault write of {self._mount}/{path} failed: {exc}") from exc
        except requests.RequestException as exc:
            raise CredentialWriteError(f"Cannot reach Vault at {self._vault_addr}: {exc}") from exc
        logger.debug("Wrote secret to %s/%s", self._mount, path)
