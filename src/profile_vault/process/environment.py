"""Render resolved credentials into process-environment form.

The environment is an ordered list of ``NAME=VALUE`` strings: the inherited
environment first, then the profile indicator, then whatever the credential
value exports.  Nothing is removed or deduplicated here.  When a name is
repeated, the later entry wins once the list is handed to ``os.execve`` (see
``profile_vault.process.handoff.environ_mapping``).
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from typing import Protocol

DEFAULT_PROFILE_VAR = "AWS_DEFAULT_PROFILE"


class EnvironExporter(Protocol):
    def environ(self) -> list[str]: ...


def inherited_environment(environ: Mapping[str, str]) -> list[str]:
    """Return *environ* (e.g. ``os.environ``) as ordered assignments."""
    return [f"{name}={value}" for name, value in environ.items()]


def build_environment(
    inherited: Iterable[str],
    profile_name: str,
    credentials: EnvironExporter,
) -> list[str]:
    env = list(inherited)
    env.append(f"{DEFAULT_PROFILE_VAR}={profile_name}")
    env.extend(credentials.environ())
    return env
