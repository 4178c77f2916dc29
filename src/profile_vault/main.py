"""CLI entry point: ties together settings, profile selection and the exec command."""

from __future__ import annotations

import argparse
import logging
import os
import sys

from rich.console import Console
from rich.markup import escape

from profile_vault.commands.exec_command import SYNOPSIS, ExecCommand, add_arguments
from profile_vault.config.profiles import profile_from_env
from profile_vault.config.settings import (
    DEFAULT_SETTINGS_PATH,
    InvalidDurationError,
    SettingsError,
    load_settings,
)


def _peek_global_options(argv: list[str]) -> argparse.Namespace:
    """Parse ``--config`` and ``--verbose`` before the full parser exists.

    The exec defaults come from the settings file, so it has to be loaded first.
    Only arguments before the subcommand are considered, so that options of the
    executed program are never mistaken for ours.
    """
    head = argv[:argv.index("exec")] if "exec" in argv else argv
    pre = argparse.ArgumentParser(add_help=False)
    pre.add_argument("--config", default=str(DEFAULT_SETTINGS_PATH))
    pre.add_argument("--verbose", "-v", action="store_true")
    options, _ = pre.parse_known_args(head)
    return options


def main(argv: list[str] | None = None) -> None:
    argv = sys.argv[1:] if argv is None else argv
    console = Console(stderr=True)
    environ = dict(os.environ)

    early = _peek_global_options(argv)
    logging.basicConfig(
        level=logging.DEBUG if early.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    try:
        settings = load_settings(early.config, environ)
    except (SettingsError, InvalidDurationError, OSError) as exc:
        console.print(f"[red]Error loading settings:[/red] {escape(str(exc))}")
        sys.exit(1)

    default_profile = profile_from_env(environ)

    parser = argparse.ArgumentParser(
        prog="profile-vault",
        description="Run commands with short-lived AWS credentials held in Vault",
    )
    parser.add_argument(
        "--config",
        default=str(DEFAULT_SETTINGS_PATH),
        help="Path to settings.yaml (default: %(default)s)",
    )
    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable debug logging",
    )
    subparsers = parser.add_subparsers(dest="subcommand", metavar="COMMAND")
    exec_parser = subparsers.add_parser("exec", help=SYNOPSIS, description=SYNOPSIS)
    add_arguments(exec_parser, settings, default_profile)

    args = parser.parse_args(argv)
    if args.subcommand is None:
        parser.print_help(sys.stderr)
        sys.exit(1)

    command = ExecCommand.from_settings(settings, environ, default_profile, console=console)
    sys.exit(command.run(args))


if __name__ == "__main__":
    main()
