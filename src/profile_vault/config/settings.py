"""Settings loaded from ``settings.yaml``.

The settings file is optional.  Every key has a default, and the handful of
values that operators usually export in their shell (``VAULT_ADDR``,
``VAULT_TOKEN``, ``AWS_CONFIG_FILE``) take precedence over the file so the same
settings can be shared across machines.

The environment mapping is passed in by the caller rather than read here.
"""

from __future__ import annotations

import dataclasses
import datetime
import logging
import pathlib
import re
from collections.abc import Mapping
from typing import Any

import yaml

logger = logging.getLogger(__name__)

DEFAULT_SETTINGS_PATH = pathlib.Path.home() / ".config" / "profile-vault" / "settings.yaml"
DEFAULT_SESSION_DURATION = datetime.timedelta(hours=10)

_DURATION_PART = re.compile(r"(\d+(?:\.\d+)?)(h|m|s)")
_UNIT_SECONDS = {"h": 3600, "m": 60, "s": 1}


class InvalidDurationError(ValueError):
    """Raised when a duration string cannot be parsed."""


class SettingsError(Exception):
    """Raised when the settings file is malformed."""


@dataclasses.dataclass(frozen=True)
class Settings:
    """Resolved runtime settings.

    Attributes:
        vault_address:    Vault server URL.
        vault_token:      Vault client token, or ``None`` to rely on hvac defaults.
        vault_mount:      Mount point of the KV v2 secrets engine.
        vault_path_prefix: Path under the mount where profile secrets live.
        use_session:      Whether ``exec`` requests an STS session by default.
        session_duration: Default STS session lifetime.
        aws_region:       Region for the STS endpoint (``None`` = botocore default).
        aws_config_file:  Path of the AWS shared config file holding profiles.
    """

    vault_address: str = "http://127.0.0.1:8200"
    vault_token: str | None = None
    vault_mount: str = "secret"
    vault_path_prefix: str = "profile-vault"
    use_session: bool = True
    session_duration: datetime.timedelta = DEFAULT_SESSION_DURATION
    aws_region: str | None = None
    aws_config_file: pathlib.Path = pathlib.Path.home() / ".aws" / "config"


def parse_duration(value: str | int | float) -> datetime.timedelta:
    """Parse a duration such as ``"10h"``, ``"1h30m"``, ``"900s"`` or ``3600``.

    Bare numbers are seconds.  Raises ``InvalidDurationError`` on anything else,
    including zero or negative durations.
    """
    if isinstance(value, bool) or not isinstance(value, (str, int, float)):
        raise InvalidDurationError(f"Invalid duration: {value!r}")
    if isinstance(value, (int, float)):
        seconds = float(value)
    else:
        text = value.strip()
        if re.fullmatch(r"\d+(?:\.\d+)?", text):
            seconds = float(text)
        else:
            pos = 0
            seconds = 0.0
            for match in _DURATION_PART.finditer(text):
                if match.start() != pos:
                    break
                seconds += float(match.group(1)) * _UNIT_SECONDS[match.group(2)]
                pos = match.end()
            if pos == 0 or pos != len(text):
                raise InvalidDurationError(f"Invalid duration: {value!r}")
    if seconds <= 0:
        raise InvalidDurationError(f"Duration must be positive: {value!r}")
    return datetime.timedelta(seconds=seconds)


def load_settings(
    path: str | pathlib.Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load settings from *path* (YAML), overlaying values from *environ*."""
    environ = environ or {}
    settings_path = pathlib.Path(path) if path is not None else DEFAULT_SETTINGS_PATH

    data: dict[str, Any] = {}
    if settings_path.exists():
        with open(settings_path) as fh:
            try:
                loaded = yaml.safe_load(fh)
            except yaml.YAMLError as exc:
                raise SettingsError(f"Cannot parse settings file {settings_path}: {exc}") from exc
        if loaded is not None and not isinstance(loaded, dict):
            raise SettingsError(f"Settings file must contain a mapping: {settings_path}")
        data = loaded or {}
        logger.debug("Loaded settings from %s", settings_path)
    else:
        logger.debug("No settings file at %s, using defaults", settings_path)

    vault_cfg = _section(data, "vault")
    exec_cfg = _section(data, "exec")
    aws_cfg = _section(data, "aws")
    defaults = Settings()

    config_file = environ.get("AWS_CONFIG_FILE") or aws_cfg.get("config_file")
    duration = exec_cfg.get("duration")
    use_session = exec_cfg.get("session", defaults.use_session)
    if not isinstance(use_session, bool):
        raise SettingsError(f"Settings key 'exec.session' must be true or false, got {use_session!r}")

    return Settings(
        vault_address=environ.get("VAULT_ADDR") or vault_cfg.get("address", defaults.vault_address),
        vault_token=environ.get("VAULT_TOKEN") or vault_cfg.get("token"),
        vault_mount=vault_cfg.get("mount", defaults.vault_mount),
        vault_path_prefix=vault_cfg.get("path_prefix", defaults.vault_path_prefix),
        use_session=use_session,
        session_duration=parse_duration(duration) if duration is not None else defaults.session_duration,
        aws_region=aws_cfg.get("region"),
        aws_config_file=(
            pathlib.Path(config_file).expanduser() if config_file else defaults.aws_config_file
        ),
    )


def _section(data: dict[str, Any], name: str) -> dict[str, Any]:
    block = data.get(name) or {}
    if not isinstance(block, dict):
        raise SettingsError(f"Settings section '{name}' must be a mapping")
    return block
