"""Replace the current process with the target command.

Pattern: Tail Call into Another Program
----------------------------------------
``exec_process`` never returns on success.  ``os.execve`` swaps the process
image in place, so the target keeps this process's PID, parent, controlling
terminal and open file descriptors (apart from close-on-exec ones).  Signals,
job control and terminal ownership behave exactly as if the operator had run
the command directly.

On failure nothing has been replaced yet, so the caller gets a normal
exception and is expected to report it and exit non-zero.
"""

from __future__ import annotations

import logging
import os
import shutil
from collections.abc import Iterable, Sequence
from typing import NoReturn

logger = logging.getLogger(__name__)


class ExecutableNotFoundError(Exception):
    """Raised when the command cannot be resolved to an executable file."""


class ExecError(Exception):
    """Raised when the kernel refuses to execute the resolved file."""


def look_path(name: str, search_path: str | None = None) -> str:
    """Resolve *name* to an absolute executable path.

    Names containing a path separator are checked as given; bare names are
    looked up in *search_path* (``PATH`` when ``None``).
    """
    if not name:
        raise ExecutableNotFoundError("Empty command name")

    found = shutil.which(name, path=search_path)
    if found is None:
        if os.sep in name:
            raise ExecutableNotFoundError(f"{name}: not an executable file")
        raise ExecutableNotFoundError(f"{name}: executable file not found in $PATH")
    return os.path.abspath(found)


def environ_mapping(environment: Iterable[str]) -> dict[str, str]:
    """Convert ordered assignments to the mapping ``os.execve`` takes.

    Later assignments for the same name replace earlier ones.  An entry with
    no ``=`` is kept as a variable with an empty value.
    """
    env: dict[str, str] = {}
    for entry in environment:
        name, _, value = entry.partition("=")
        if name:
            env[name] = value
    return env


def exec_process(
    argv: Sequence[str],
    environment: Iterable[str],
    search_path: str | None = None,
) -> NoReturn:
    """Execute ``argv[0]`` with *argv* and *environment*, replacing this process.

    *search_path* is passed to ``look_path``.
    """
    if not argv:
        raise ExecutableNotFoundError("No command given")

    path = look_path(argv[0], search_path)
    env = environ_mapping(environment)

    logger.debug("Executing %s (argv0=%s, %d args)", path, argv[0], len(argv) - 1)
    try:
        os.execve(path, list(argv), env)
    except OSError as exc:
        raise ExecError(f"{path}: {exc.strerror or exc}") from exc
    raise ExecError(f"{path}: exec returned unexpectedly")
