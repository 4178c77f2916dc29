"""Shared fixtures for tests."""

from __future__ import annotations

import datetime
import pathlib
from unittest.mock import MagicMock

import pytest

from profile_vault.config.profiles import Profile
from profile_vault.vault.credentials import Credentials, SessionCredentials
from profile_vault.vault.secret_store import VaultSecretStore

AWS_CONFIG = """\
[default]
region = us-east-1

[profile dev]
region = eu-west-1

[profile prod]
region = us-east-1
mfa_serial = arn:aws:iam::123456789012:mfa/alice
"""


@pytest.fixture
def aws_config_file(tmp_path: pathlib.Path) -> pathlib.Path:
    path = tmp_path / "config"
    path.write_text(AWS_CONFIG)
    return path


@pytest.fixture
def dev_profile() -> Profile:
    return Profile(name="dev")


@pytest.fixture
def mfa_profile() -> Profile:
    return Profile(name="prod", mfa_serial="arn:aws:iam::123456789012:mfa/alice")


@pytest.fixture
def static_creds() -> Credentials:
    return Credentials(access_key_id="AK", secret_access_key="SK")


@pytest.fixture
def session_creds() -> SessionCredentials:
    return SessionCredentials(
        access_key_id="ASIATEMP",
        secret_access_key="temp-secret",
        session_token="temp-token",
        expiration=datetime.datetime.now(datetime.UTC) + datetime.timedelta(hours=1),
    )


@pytest.fixture
def secret_store(static_creds: Credentials) -> MagicMock:
    store = MagicMock(spec=VaultSecretStore)
    store.read.return_value = static_creds
    store.read_session.return_value = None
    return store


@pytest.fixture
def token_agent() -> MagicMock:
    agent = MagicMock()
    agent.get_token.return_value = "123456"
    return agent
