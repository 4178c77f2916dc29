"""Interactive MFA token prompt.

The session provider calls ``get_token`` when STS needs a one-time code for an
MFA device.  The prompt is synchronous and blocks until the human answers.
The code is read with ``getpass`` so it is never echoed, and it is never
logged.  If the terminal cannot turn echo off the prompt fails instead of
falling back to an echoing read.
"""

from __future__ import annotations

import getpass
import logging
import warnings
from typing import Protocol

from rich.console import Console

logger = logging.getLogger(__name__)


class UserCancelledError(Exception):
    """Raised when the human aborts the prompt."""


class InputError(Exception):
    """Raised when no usable code could be read."""


class TokenAgent(Protocol):
    def get_token(self, serial: str) -> str: ...


class ConsoleTokenAgent:
    """Prompts on the controlling terminal for an MFA code."""

    def __init__(self, console: Console | None = None) -> None:
        self._console = console or Console(stderr=True)

    def get_token(self, serial: str) -> str:
        logger.debug("Prompting for MFA token for %s", serial)
        try:
            with warnings.catch_warnings():
                warnings.simplefilter("error", getpass.GetPassWarning)
                token = getpass.getpass(f"Enter token code for {serial!r}: ")
        except getpass.GetPassWarning as exc:
            raise InputError(f"Cannot read the MFA token without echo: {exc}") from exc
        except (KeyboardInterrupt, EOFError) as exc:
            self._console.print()
            raise UserCancelledError("MFA prompt cancelled") from exc
        except OSError as exc:
            raise InputError(f"Cannot open a prompt for the MFA token: {exc}") from exc

        token = token.strip()
        if not token:
            raise InputError("No MFA token code entered")
        return token
