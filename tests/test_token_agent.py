"""Tests for the interactive MFA token prompt."""

from __future__ import annotations

import getpass
import io
import warnings
from unittest.mock import patch

import pytest
from rich.console import Console

from profile_vault.auth.token_agent import ConsoleTokenAgent, InputError, UserCancelledError

SERIAL = "arn:aws:iam::123456789012:mfa/alice"


@pytest.fixture
def agent() -> ConsoleTokenAgent:
    return ConsoleTokenAgent(Console(file=io.StringIO()))


class TestConsoleTokenAgent:
    def test_returns_entered_code(self, agent: ConsoleTokenAgent) -> None:
        with patch("profile_vault.auth.token_agent.getpass.getpass", return_value=" 123456\n") as prompt:
            assert agent.get_token(SERIAL) == "123456"
        prompt.assert_called_once()
        assert SERIAL in prompt.call_args.args[0]

    def test_code_not_logged(self, agent: ConsoleTokenAgent, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level("DEBUG")
        with patch("profile_vault.auth.token_agent.getpass.getpass", return_value="987654"):
            agent.get_token(SERIAL)
        assert "987654" not in caplog.text

    def test_keyboard_interrupt_is_cancellation(self, agent: ConsoleTokenAgent) -> None:
        with patch("profile_vault.auth.token_agent.getpass.getpass", side_effect=KeyboardInterrupt):
            with pytest.raises(UserCancelledError):
                agent.get_token(SERIAL)

    def test_eof_is_cancellation(self, agent: ConsoleTokenAgent) -> None:
        with patch("profile_vault.auth.token_agent.getpass.getpass", side_effect=EOFError):
            with pytest.raises(UserCancelledError):
                agent.get_token(SERIAL)

    def test_empty_code_is_input_error(self, agent: ConsoleTokenAgent) -> None:
        with patch("profile_vault.auth.token_agent.getpass.getpass", return_value="   "):
            with pytest.raises(InputError, match="No MFA token"):
                agent.get_token(SERIAL)

    def test_unavailable_terminal_is_input_error(self, agent: ConsoleTokenAgent) -> None:
        with patch("profile_vault.auth.token_agent.getpass.getpass", side_effect=OSError("no tty")):
            with pytest.raises(InputError, match="no tty"):
                agent.get_token(SERIAL)

    def test_echoing_fallback_is_refused(self, agent: ConsoleTokenAgent) -> None:
        def echoing_prompt(prompt: str) -> str:
            warnings.warn("Can not control echo on the terminal.", getpass.GetPassWarning, stacklevel=2)
            return "123456"

        with patch("profile_vault.auth.token_agent.getpass.getpass", side_effect=echoing_prompt):
            with pytest.raises(InputError, match="without echo"):
                agent.get_token(SERIAL)
