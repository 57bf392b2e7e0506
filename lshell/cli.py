"""Interactive command loop of the shell."""

from __future__ import annotations

import os
import signal
import sys
from typing import Optional, Sequence

from lshell.builtins import ShellExit
from lshell.environment import Environment, ShellState
from lshell.executor import execute
from lshell.expansion import shell_expand
from lshell.heredoc import ReadLine
from lshell.tokenizer import ShellSyntaxError, tokenize

PROMPT = "\U0001F60Alsh$ "


def check_args(argv: Sequence[str]) -> None:
    """Reject command-line arguments: the shell takes none.

    ``argv`` holds the arguments after the program name.
    """
    if argv is None:
        raise ValueError("Invalid Argument : Argument is NULL")
    if len(argv) != 0:
        raise ValueError("Invalid Argument : too many Argument")


def _disable_echoctl() -> None:
    try:
        import termios
    except ImportError:
        return
    if not hasattr(termios, "ECHOCTL"):
        return
    try:
        if not sys.stdin.isatty():
            return
        fd = sys.stdin.fileno()
        attrs = termios.tcgetattr(fd)
        attrs[3] &= ~termios.ECHOCTL
        termios.tcsetattr(fd, termios.TCSANOW, attrs)
    except (AttributeError, ValueError, OSError, termios.error):
        return


def install_signal_handlers() -> None:
    """Make Ctrl-C interrupt the current read and ignore Ctrl-\\."""
    _disable_echoctl()
    signal.signal(signal.SIGINT, signal.default_int_handler)
    if hasattr(signal, "SIGQUIT"):
        signal.signal(signal.SIGQUIT, signal.SIG_IGN)


def run_line(line: str, state: ShellState, read_line: Optional[ReadLine] = None) -> int:
    """Tokenize, expand and run one command line; return the exit status.

    A syntax error is reported on standard error and sets the status to
    258. ShellExit raised by ``exit`` is passed on to the caller.
    """
    try:
        commands = tokenize(line)
    except ShellSyntaxError as exc:
        sys.stderr.write(f"{exc}\n")
        sys.stderr.flush()
        state.exit_status = exc.exit_status
        return state.exit_status
    if not commands:
        return state.exit_status
    commands = shell_expand(commands, state.env, state.exit_status)
    return execute(commands, state, read_line)


def _enable_line_editing() -> None:
    try:
        import readline  # noqa: F401
    except ImportError:
        return


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Run the interactive shell until end of input or ``exit``."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        check_args(args)
    except ValueError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1
    install_signal_handlers()
    _enable_line_editing()
    state = ShellState(env=Environment.from_envp(os.environ))
    while True:
        try:
            line = input(PROMPT)
        except KeyboardInterrupt:
            if state.interrupt_count == 0:
                sys.stdout.write("\n")
                sys.stdout.flush()
            state.interrupt_count += 1
            state.exit_status = 1
            continue
        except EOFError:
            break
        state.interrupt_count = 0
        if line == "":
            continue
        try:
            run_line(line, state)
        except ShellExit as exc:
            return exc.status
    return 0