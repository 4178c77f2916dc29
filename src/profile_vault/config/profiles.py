"""Profile resolution from the AWS shared config file.

Only the pieces of ``~/.aws/config`` needed to request credentials are read:
the section for the profile and its ``mfa_serial``.  Region, output format and
the rest of the file are left to the AWS tooling that runs under ``exec``.

The default profile name is an explicit constructor argument.  Callers compute
it once from the process environment with ``profile_from_env``.
"""

from __future__ import annotations

import configparser
import dataclasses
import logging
import pathlib
from collections.abc import Mapping

logger = logging.getLogger(__name__)

DEFAULT_PROFILE = "default"


class ProfileResolutionError(Exception):
    """Raised when a profile cannot be found or the config file is unreadable."""


@dataclasses.dataclass(frozen=True)
class Profile:
    """A named credential configuration.

    Attributes:
        name:       Profile name, unique within the config file.
        mfa_serial: ARN or serial of the MFA device, if the profile requires one.
    """

    name: str
    mfa_serial: str | None = None


def profile_from_env(environ: Mapping[str, str]) -> str:
    """Return the profile selected by ``AWS_DEFAULT_PROFILE``, else ``default``."""
    return environ.get("AWS_DEFAULT_PROFILE") or DEFAULT_PROFILE


class ProfileConfig:
    """Resolves profile names against an AWS shared config file."""

    def __init__(self, config_path: str | pathlib.Path, default_profile: str = DEFAULT_PROFILE) -> None:
        self._config_path = pathlib.Path(config_path)
        self._default_profile = default_profile
        self._parser: configparser.ConfigParser | None = None

    def profile(self, name: str | None) -> Profile:
        """Return the ``Profile`` for *name*, or the default profile if empty.

        Raises ``ProfileResolutionError`` if the profile is not configured.  The
        ``default`` profile always resolves, since it is allowed to exist only
        in the credential store.
        """
        name = name or self._default_profile
        parser = self._load()

        section = self._section_name(name)
        if parser.has_section(section):
            mfa_serial = parser.get(section, "mfa_serial", fallback=None)
            logger.debug("Resolved profile %s from %s (mfa=%s)", name, self._config_path, bool(mfa_serial))
            return Profile(name=name, mfa_serial=mfa_serial or None)

        if name == DEFAULT_PROFILE:
            return Profile(name=name)

        available = ", ".join(self.list_profiles()) or "none"
        raise ProfileResolutionError(
            f"Profile '{name}' not found in {self._config_path} (available: {available})"
        )

    def list_profiles(self) -> list[str]:
        """Return all profile names defined in the config file."""
        names = []
        for section in self._load().sections():
            if section == DEFAULT_PROFILE:
                names.append(section)
            elif section.startswith("profile "):
                names.append(section[len("profile "):].strip())
        return names

    # -- private helpers -----------------------------------------------------

    def _load(self) -> configparser.ConfigParser:
        if self._parser is None:
            parser = configparser.ConfigParser(interpolation=None)
            if self._config_path.exists():
                try:
                    parser.read(self._config_path)
                except configparser.Error as exc:
                    raise ProfileResolutionError(
                        f"Cannot parse AWS config file {self._config_path}: {exc}"
                    ) from exc
            else:
                logger.debug("AWS config file %s does not exist", self._config_path)
            self._parser = parser
        return self._parser

    @staticmethod
    def _section_name(name: str) -> str:
        return DEFAULT_PROFILE if name == DEFAULT_PROFILE else f"profile {name}"
