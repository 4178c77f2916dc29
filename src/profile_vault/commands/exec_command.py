"""The ``exec`` command: run a program with a profile's credentials.

Pattern: Composition Root
--------------------------
``ExecCommand`` owns the fixed sequence

  1. resolve the profile,
  2. resolve credentials (STS session or direct, possibly prompting for MFA),
  3. build the environment,
  4. hand the process over to the target command.

Each step either succeeds or ends the invocation with one error line and exit
status 1.  Nothing is retried.  The environment is only built after
credentials resolved, and the handoff is only attempted with a complete
environment, so the target never sees partial credentials.

Collaborators are injected so the sequence can be exercised without Vault,
STS or a real ``execve``.
"""

from __future__ import annotations

import argparse
import logging
from collections.abc import Callable, Mapping
from typing import Any

from rich.console import Console
from rich.markup import escape

from profile_vault.auth.token_agent import ConsoleTokenAgent, TokenAgent
from profile_vault.config.profiles import ProfileConfig, ProfileResolutionError
from profile_vault.config.settings import Settings, parse_duration
from profile_vault.process.environment import build_environment, inherited_environment
from profile_vault.process.handoff import ExecError, ExecutableNotFoundError, exec_process
from profile_vault.vault.resolver import SessionResolver
from profile_vault.vault.secret_store import CredentialReadError, VaultSecretStore
from profile_vault.vault.sessions import SessionProvider, SessionRequestError, StsSessionProvider

logger = logging.getLogger(__name__)

SYNOPSIS = "Executes a command with the credentials from the given profile"

_FAILURES = (
    ProfileResolutionError,
    CredentialReadError,
    SessionRequestError,
    ExecutableNotFoundError,
    ExecError,
)


def add_arguments(parser: argparse.ArgumentParser, settings: Settings, default_profile: str) -> None:
    """Register the ``exec`` options on *parser*."""
    parser.add_argument(
        "--profile", "-p",
        default=default_profile,
        help="Which AWS profile to use (default: $AWS_DEFAULT_PROFILE or 'default')",
    )
    parser.add_argument(
        "--session",
        action="store_true",
        default=settings.use_session,
        help="Generate an STS session (default: %(default)s)",
    )
    parser.add_argument(
        "--no-session",
        action="store_true",
        help="Use the profile's long-lived credentials directly",
    )
    parser.add_argument(
        "--duration",
        type=parse_duration,
        default=settings.session_duration,
        help="Duration of the STS session, e.g. 1h or 90m (default: %(default)s)",
    )
    parser.add_argument(
        "--refresh",
        action="store_true",
        help="Establish a new session instead of reusing a cached one",
    )
    parser.add_argument(
        "command",
        nargs=argparse.REMAINDER,
        help="Command to execute, followed by its arguments",
    )


class ExecCommand:
    """Runs a command with credentials passed to it via the environment."""

    def __init__(
        self,
        profile_config: ProfileConfig,
        secret_store: VaultSecretStore,
        session_provider: SessionProvider,
        token_agent: TokenAgent | None = None,
        environ: Mapping[str, str] | None = None,
        console: Console | None = None,
        handoff: Callable[..., Any] = exec_process,
    ) -> None:
        self._console = console or Console(stderr=True)
        self._profile_config = profile_config
        self._secret_store = secret_store
        self._session_provider = session_provider
        self._token_agent = token_agent or ConsoleTokenAgent(self._console)
        self._environ = dict(environ) if environ is not None else {}
        self._handoff = handoff

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        environ: Mapping[str, str],
        default_profile: str,
        console: Console | None = None,
    ) -> ExecCommand:
        """Wire the command to Vault, STS and the AWS config file."""
        store = VaultSecretStore(
            vault_addr=settings.vault_address,
            token=settings.vault_token,
            mount=settings.vault_mount,
            path_prefix=settings.vault_path_prefix,
        )
        return cls(
            profile_config=ProfileConfig(settings.aws_config_file, default_profile=default_profile),
            secret_store=store,
            session_provider=StsSessionProvider(store, region=settings.aws_region),
            environ=environ,
            console=console,
        )

    def run(self, options: argparse.Namespace) -> int:
        """Execute ``options.command``.  Returns only on failure."""
        cmd_args = list(options.command)
        if cmd_args and cmd_args[0] == "--":
            cmd_args = cmd_args[1:]
        if not cmd_args:
            self._console.print("[red]Expected a command to execute.[/red]")
            self._console.print("Usage: profile-vault exec [options] [--] cmd [args...]")
            return 1

        try:
            self._exec(options, cmd_args)
        except _FAILURES as exc:
            logger.debug("exec failed", exc_info=True)
            self._console.print(f"[red]Error:[/red] {escape(str(exc))}")
            return 1
        return 0

    # -- private helpers -----------------------------------------------------

    def _exec(self, options: argparse.Namespace, cmd_args: list[str]) -> None:
        profile = self._profile_config.profile(options.profile)

        resolver = SessionResolver(self._secret_store, self._session_provider, self._token_agent)
        resolved = resolver.resolve(
            profile,
            use_session=options.session,
            no_session=options.no_session,
            duration=options.duration,
            refresh=options.refresh,
        )
        logger.info(
            "Resolved credentials for profile %s via %s",
            profile.name,
            "session" if resolved.via_session else "stored keys",
        )

        env = build_environment(inherited_environment(self._environ), profile.name, resolved)
        self._handoff(cmd_args, env, search_path=self._environ.get("PATH"))
