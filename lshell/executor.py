"""Running pipelines: redirections, command lookup, processes and pipes."""

from __future__ import annotations

import os
import signal
import sys
from typing import Optional

from lshell.builtins import ShellExit, is_builtin, run_builtin
from lshell.environment import Environment, ShellState
from lshell.heredoc import HeredocInterrupted, ReadLine, collect_heredocs, remove_heredocs
from lshell.tokenizer import Command, find_next_word


class RedirectionError(Exception):
    """A redirection could not be set up."""

    exit_status = 1


class CommandNotFound(Exception):
    """No executable was found for a command name."""

    exit_status = 127

    def __init__(self, name: str, message: Optional[str] = None) -> None:
        super().__init__(message or f"{name}: command not found")
        self.name = name


def _target(redirection: str) -> str:
    return redirection[find_next_word(redirection, 0) + 1:]


def _check_ambiguous(redirection: str) -> None:
    if redirection.startswith("e"):
        raise RedirectionError(f"{redirection[2:]}: ambiguous redirect")


def input_flags(redirection: str) -> Optional[int]:
    """Open flags for an input redirection, or None for any other kind."""
    if redirection.startswith("< ") or redirection.startswith("<< "):
        return os.O_RDONLY
    _check_ambiguous(redirection)
    return None


def output_flags(redirection: str) -> Optional[int]:
    """Open flags for an output redirection, or None for any other kind."""
    if redirection.startswith("> "):
        return os.O_WRONLY | os.O_TRUNC | os.O_CREAT
    if redirection.startswith(">> "):
        return os.O_WRONLY | os.O_CREAT | os.O_APPEND
    _check_ambiguous(redirection)
    return None


def resolve_command(name: str, env: Environment) -> str:
    """Find the program for ``name`` on ``PATH``; builtins and paths are kept."""
    if is_builtin([name]) or "/" in name:
        return name
    path = next((entry[5:] for entry in env if entry.startswith("PATH=")), None)
    if path is None:
        raise CommandNotFound(name, f"{name}: No such file or directory")
    for directory in filter(None, path.split(":")):
        candidate = f"{directory}/{name}"
        if os.access(candidate, os.X_OK):
            return candidate
    raise CommandNotFound(name)


def _open_last(command: Command, flags_of, mode: int) -> Optional[int]:
    fd: Optional[int] = None
    for redirection in command.redirections:
        flags = flags_of(redirection)
        if flags is None:
            continue
        if fd is not None:
            os.close(fd)
            fd = None
        name = _target(redirection)
        try:
            fd = os.open(name, flags, mode)
        except OSError as exc:
            raise RedirectionError(f"{name}: {exc.strerror}") from exc
    return fd


def open_input(command: Command) -> Optional[int]:
    """Open the command's input redirections in order; return the last descriptor."""
    return _open_last(command, input_flags, 0)


def open_output(command: Command) -> Optional[int]:
    """Open the command's output redirections in order; return the last descriptor."""
    return _open_last(command, output_flags, 0o644)


def decode_wait_status(status: int) -> int:
    """Turn a raw wait status into a shell exit status."""
    if os.WIFEXITED(status):
        return os.WEXITSTATUS(status)
    if os.WIFSIGNALED(status):
        return os.WTERMSIG(status) + 128
    return status


def _report(message: str) -> None:
    os.write(2, f"{message}\n".encode())


def _close(fd: Optional[int]) -> None:
    if fd is not None:
        os.close(fd)


def _run_child(
    command: Command,
    state: ShellState,
    stdin_fd: Optional[int],
    stdout_fd: Optional[int],
    unused_fd: Optional[int],
) -> int:
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    _close(unused_fd)
    try:
        infile = open_input(command)
        outfile = open_output(command)
    except RedirectionError as exc:
        _report(str(exc))
        return exc.exit_status
    if infile is not None:
        _close(stdin_fd)
        stdin_fd = infile
    if outfile is not None:
        _close(stdout_fd)
        stdout_fd = outfile
    if not command.words:
        return 0
    words = list(command.words)
    try:
        words[0] = resolve_command(words[0], state.env)
    except CommandNotFound as exc:
        _report(str(exc))
        return exc.exit_status
    if stdin_fd is not None:
        os.dup2(stdin_fd, 0)
        os.close(stdin_fd)
    if stdout_fd is not None:
        os.dup2(stdout_fd, 1)
        os.close(stdout_fd)
    if is_builtin(words):
        with open(1, "w", closefd=False) as out, open(2, "w", closefd=False) as err:
            try:
                return run_builtin(words, state, out, err)
            except ShellExit as exc:
                return exc.status
    environ = dict(entry.split("=", 1) for entry in state.env.exported())
    try:
        os.execve(words[0], words, environ)
    except OSError as exc:
        _report(f"{words[0]}: {exc.strerror}")
    return 1


def _spawn(
    command: Command,
    state: ShellState,
    stdin_fd: Optional[int],
    stdout_fd: Optional[int],
    unused_fd: Optional[int],
) -> int:
    sys.stdout.flush()
    sys.stderr.flush()
    pid = os.fork()
    if pid > 0:
        return pid
    status = 1
    try:
        status = _run_child(command, state, stdin_fd, stdout_fd, unused_fd)
    finally:
        os._exit(status)


def _wait(pid: int) -> int:
    while True:
        try:
            return os.waitpid(pid, 0)[1]
        except KeyboardInterrupt:
            continue


def run_pipeline(commands: list[Command], state: ShellState) -> int:
    """Run the commands connected by pipes and return the last one's status.

    A single builtin without redirections runs in the shell itself, so that
    it can change the shell's state; everything else runs in child processes.
    """
    if len(commands) == 1 and is_builtin(commands[0].words) and not commands[0].redirections:
        return run_builtin(commands[0].words, state)
    pids = []
    previous_read: Optional[int] = None
    for index, command in enumerate(commands):
        if index < len(commands) - 1:
            read_end, write_end = os.pipe()
        else:
            read_end = write_end = None
        pids.append(_spawn(command, state, previous_read, write_end, read_end))
        _close(previous_read)
        _close(write_end)
        previous_read = read_end
    _close(previous_read)
    status = 0
    for pid in pids:
        raw = _wait(pid)
        if pid == pids[-1]:
            status = decode_wait_status(raw)
    state.exit_status = status
    return status


def execute(
    commands: list[Command],
    state: ShellState,
    read_line: Optional[ReadLine] = None,
) -> int:
    """Read here-documents, run the pipeline and clean up; return the exit status."""
    if not commands:
        return state.exit_status
    try:
        collect_heredocs(commands, state.env, state.exit_status, read_line)
    except HeredocInterrupted as exc:
        state.interrupt_count += 1
        state.exit_status = exc.exit_status
        return state.exit_status
    state.exit_status = 0
    try:
        return run_pipeline(commands, state)
    finally:
        remove_heredocs(commands)