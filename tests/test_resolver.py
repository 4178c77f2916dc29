"""Tests for the session-versus-direct credential decision."""

from __future__ import annotations

import datetime
from unittest.mock import MagicMock

import pytest

from profile_vault.config.profiles import Profile
from profile_vault.vault.credentials import Credentials, SessionCredentials
from profile_vault.vault.resolver import SessionResolver
from profile_vault.vault.secret_store import CredentialReadError
from profile_vault.vault.sessions import SessionConfig, SessionRequestError


@pytest.fixture
def session_provider(session_creds: SessionCredentials) -> MagicMock:
    provider = MagicMock()
    provider.session.return_value = session_creds
    return provider


@pytest.fixture
def resolver(
    secret_store: MagicMock, session_provider: MagicMock, token_agent: MagicMock
) -> SessionResolver:
    return SessionResolver(secret_store, session_provider, token_agent)


class TestDirectPath:
    @pytest.mark.parametrize(
        ("use_session", "no_session"),
        [(False, False), (True, True), (False, True)],
    )
    def test_session_collaborators_never_called(
        self,
        resolver: SessionResolver,
        session_provider: MagicMock,
        token_agent: MagicMock,
        secret_store: MagicMock,
        dev_profile: Profile,
        static_creds: Credentials,
        use_session: bool,
        no_session: bool,
    ) -> None:
        resolved = resolver.resolve(dev_profile, use_session=use_session, no_session=no_session)

        assert resolved.credentials is static_creds
        assert resolved.via_session is False
        assert session_provider.session.call_count == 0
        assert token_agent.get_token.call_count == 0
        secret_store.read.assert_called_once_with("dev")

    def test_missing_credentials_propagate(
        self, resolver: SessionResolver, secret_store: MagicMock, dev_profile: Profile
    ) -> None:
        secret_store.read.side_effect = CredentialReadError("No credentials stored")
        with pytest.raises(CredentialReadError):
            resolver.resolve(dev_profile, use_session=False)


class TestSessionPath:
    def test_exactly_one_session_request(
        self,
        resolver: SessionResolver,
        session_provider: MagicMock,
        secret_store: MagicMock,
        token_agent: MagicMock,
        mfa_profile: Profile,
        session_creds: SessionCredentials,
    ) -> None:
        resolved = resolver.resolve(
            mfa_profile,
            use_session=True,
            duration=datetime.timedelta(hours=2),
            refresh=True,
        )

        assert resolved.credentials is session_creds
        assert resolved.via_session is True
        session_provider.session.assert_called_once_with(
            SessionConfig(
                profile=mfa_profile,
                duration=datetime.timedelta(hours=2),
                token_agent=token_agent,
                refresh=True,
            )
        )
        secret_store.read.assert_not_called()

    def test_default_duration_is_ten_hours(
        self, resolver: SessionResolver, session_provider: MagicMock, dev_profile: Profile
    ) -> None:
        resolver.resolve(dev_profile)
        conf = session_provider.session.call_args.args[0]
        assert conf.duration == datetime.timedelta(hours=10)

    def test_provider_failure_propagates(
        self, resolver: SessionResolver, session_provider: MagicMock, dev_profile: Profile
    ) -> None:
        session_provider.session.side_effect = SessionRequestError("denied")
        with pytest.raises(SessionRequestError):
            resolver.resolve(dev_profile)

    def test_environ_delegates_to_credentials(
        self, resolver: SessionResolver, dev_profile: Profile, session_creds: SessionCredentials
    ) -> None:
        assert resolver.resolve(dev_profile).environ() == session_creds.environ()
