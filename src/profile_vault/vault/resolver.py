"""Choose between a temporary session and the profile's direct credentials."""

from __future__ import annotations

import dataclasses
import datetime
import logging

from profile_vault.auth.token_agent import TokenAgent
from profile_vault.config.profiles import Profile
from profile_vault.config.settings import DEFAULT_SESSION_DURATION
from profile_vault.vault.credentials import Credentials, SessionCredentials
from profile_vault.vault.secret_store import VaultSecretStore
from profile_vault.vault.sessions import SessionConfig, SessionProvider

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class ResolvedCredentials:
    """Credentials ready for export, tagged with the path that produced them."""

    credentials: Credentials | SessionCredentials
    via_session: bool

    def environ(self) -> list[str]:
        return self.credentials.environ()


class SessionResolver:
    """Produces exportable credentials for a profile.

    The session provider and token agent are only touched on the session
    path; the direct path reads the secret store and nothing else.
    """

    def __init__(
        self,
        secret_store: VaultSecretStore,
        session_provider: SessionProvider,
        token_agent: TokenAgent,
    ) -> None:
        self._store = secret_store
        self._session_provider = session_provider
        self._token_agent = token_agent

    def resolve(
        self,
        profile: Profile,
        *,
        use_session: bool = True,
        no_session: bool = False,
        duration: datetime.timedelta = DEFAULT_SESSION_DURATION,
        refresh: bool = False,
    ) -> ResolvedCredentials:
        if use_session and not no_session:
            conf = SessionConfig(
                profile=profile,
                duration=duration,
                token_agent=self._token_agent,
                refresh=refresh,
            )
            creds = self._session_provider.session(conf)
            logger.debug("Resolved session credentials for profile %s", profile.name)
            return ResolvedCredentials(credentials=creds, via_session=True)

        creds = self._store.read(profile.name)
        logger.debug("Resolved direct credentials for profile %s", profile.name)
        return ResolvedCredentials(credentials=creds, via_session=False)
