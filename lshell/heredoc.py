"""Here-documents: reading ``<<`` input into temporary files."""

from __future__ import annotations

import contextlib
import itertools
import os
from typing import Callable, Optional

from lshell.environment import Environment
from lshell.expansion import expand_word
from lshell.tokenizer import Command

ReadLine = Callable[[str], Optional[str]]

HEREDOC_PREFIX = "<< "
PROMPT = "> "


class HeredocInterrupted(Exception):
    """Reading a here-document was interrupted by the user."""

    exit_status = 1


def _prompt(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


def make_heredoc_filename(directory: Optional[str] = None) -> str:
    """Return the first ``.heredoc_N`` path in ``directory`` that is not in use."""
    base = os.getcwd() if directory is None else os.fspath(directory)
    for index in itertools.count():
        path = os.path.join(base, f".heredoc_{index}")
        if not os.access(path, os.F_OK | os.R_OK | os.W_OK):
            return path
    raise AssertionError("unreachable")


def _fill(handle, delimiter: str, env: Environment, status: int, read_line: ReadLine) -> None:
    while True:
        line = read_line(PROMPT)
        if line is None or line == delimiter:
            return
        handle.write(expand_word(line, env, status))
        handle.write("\n")


def collect_heredocs(
    commands: list[Command],
    env: Environment,
    status: int,
    read_line: Optional[ReadLine] = None,
    directory: Optional[str] = None,
) -> list[str]:
    """Read every here-document into a file and point its redirection at it.

    Each ``"<< DELIM"`` redirection becomes ``"<< <file>"``. Lines are read
    with ``read_line`` until the delimiter or end of input, and variables in
    them are expanded. Returns the created file paths. If ``read_line``
    raises KeyboardInterrupt, the files created so far are removed and
    HeredocInterrupted is raised.
    """
    read_line = _prompt if read_line is None else read_line
    created: list[str] = []
    try:
        for command in commands:
            for index, redirection in enumerate(command.redirections):
                if not redirection.startswith(HEREDOC_PREFIX):
                    continue
                delimiter = redirection.partition(" ")[2]
                path = make_heredoc_filename(directory)
                fd = os.open(path, os.O_CREAT | os.O_WRONLY | os.O_TRUNC, 0o644)
                created.append(path)
                with os.fdopen(fd, "w") as handle:
                    _fill(handle, delimiter, env, status, read_line)
                command.redirections[index] = f"{HEREDOC_PREFIX}{path}"
    except KeyboardInterrupt:
        for path in created:
            with contextlib.suppress(FileNotFoundError):
                os.unlink(path)
        raise HeredocInterrupted() from None
    return created


def remove_heredocs(commands: list[Command]) -> list[str]:
    """Delete the files named by the commands' ``<<`` redirections; return their paths."""
    removed = []
    for command in commands:
        for redirection in command.redirections:
            if redirection.startswith(HEREDOC_PREFIX):
                path = redirection.partition(" ")[2]
                os.unlink(path)
                removed.append(path)
    return removed