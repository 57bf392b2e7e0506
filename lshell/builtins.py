"""Commands the shell runs itself: echo, cd, pwd, env, export, unset and exit."""

from __future__ import annotations

import os
import re
import sys
from typing import Optional, Sequence, TextIO

from lshell.environment import ShellState

BUILTIN_NAMES = frozenset({"cd", "pwd", "echo", "env", "export", "unset", "exit"})

_ATOI_SPACE = " \n\t\v\r\f"
_NUMERIC_ARGUMENT = re.compile(r"[\t\n\v\f\r]*[+-]?[0-9]*")
_INT_MASK = (1 << 64) - 1


class ShellExit(Exception):
    """Raised by ``exit`` to end the shell with ``status``."""

    def __init__(self, status: int) -> None:
        super().__init__(status)
        self.status = status


def _stream(stream: Optional[TextIO], default: TextIO) -> TextIO:
    return default if stream is None else stream


def _fail(state: ShellState, err: TextIO, message: str, status: int) -> int:
    err.write(message)
    state.exit_status = status
    return status


def atoi(text: str) -> int:
    """Parse a leading integer the way the shell's exit does, wrapping to 32 bits.

    Leading blanks are skipped and at most one sign is accepted; anything
    else before the digits yields 0.
    """
    pos = 0
    while pos < len(text) and text[pos] in _ATOI_SPACE:
        pos += 1
    sign = 1
    signs = 0
    while pos < len(text) and text[pos] not in _ATOI_SPACE:
        ch = text[pos]
        if "0" <= ch <= "9":
            end = pos
            while end < len(text) and "0" <= text[end] <= "9":
                end += 1
            value = (sign * int(text[pos:end])) & _INT_MASK
            value &= 0xFFFFFFFF
            return value - (1 << 32) if value >= 1 << 31 else value
        if ch not in "+-":
            return 0
        signs += 1
        if signs > 1:
            return 0
        if ch == "-":
            sign = -sign
        pos += 1
    return 0


def is_numeric_argument(text: str) -> bool:
    """Tell whether ``exit`` accepts ``text`` as its status argument."""
    return _NUMERIC_ARGUMENT.fullmatch(text) is not None


def is_builtin(argv: Sequence[str]) -> bool:
    """Tell whether the command names a builtin."""
    return bool(argv) and argv[0] in BUILTIN_NAMES


def run_builtin(
    argv: Sequence[str],
    state: ShellState,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Run the builtin named by ``argv[0]`` and return the exit status."""
    out = _stream(out, sys.stdout)
    err = _stream(err, sys.stderr)
    if not argv:
        return state.exit_status
    name = argv[0]
    if name == "cd":
        cd(argv, state, out, err)
    elif name == "pwd":
        pwd(state, out, err)
    elif name == "echo":
        echo(argv, state, out)
    elif name == "env":
        env_command(state, out)
    elif name == "export":
        export(argv, state, out, err)
    elif name == "unset":
        unset(argv, state, err)
    elif name == "exit":
        exit_command(argv, state, err)
    return state.exit_status


def _strip_n_options(args: list[str]) -> tuple[bool, list[str]]:
    newline = True
    index = 0
    while index < len(args) and args[index].startswith("-n"):
        if set(args[index][1:]) == {"n"}:
            newline = False
            index += 1
            continue
        return newline, args[index:]
    return False, args[index:]


def echo(argv: Sequence[str], state: ShellState, out: Optional[TextIO] = None) -> int:
    """Print the arguments separated by spaces; ``-n`` options drop the newline."""
    out = _stream(out, sys.stdout)
    if not argv or argv[0] != "echo":
        return 1
    args = list(argv[1:])
    newline = True
    if args and args[0].startswith("-n"):
        newline, args = _strip_n_options(args)
    pieces = []
    for index, arg in enumerate(args):
        if index > 0 and not (index == 1 and args[0] == ""):
            pieces.append(" ")
        pieces.append(arg)
    if newline:
        pieces.append("\n")
    out.write("".join(pieces))
    state.exit_status = 0
    return 0


def pwd(state: ShellState, out: Optional[TextIO] = None, err: Optional[TextIO] = None) -> int:
    """Print the current working directory."""
    out = _stream(out, sys.stdout)
    err = _stream(err, sys.stderr)
    try:
        path = os.getcwd()
    except OSError:
        return _fail(state, err, "getcwd: error\n", 1)
    out.write(f"{path}\n")
    state.exit_status = 0
    return 0


def env_command(state: ShellState, out: Optional[TextIO] = None) -> int:
    """Print every variable that has a value."""
    out = _stream(out, sys.stdout)
    for entry in state.env.exported():
        out.write(f"{entry}\n")
    state.exit_status = 0
    return 0


def _cd_home(state: ShellState, err: TextIO) -> int:
    try:
        current = os.getcwd()
    except OSError:
        return _fail(state, err, "getcwd: error\n", 1)
    state.env.replace(f"OLDPWD={current}", "OLDPWD")
    home = state.env.get("HOME")
    if home is None:
        return _fail(state, err, "getenv: error\n", 1)
    try:
        os.chdir(home)
    except OSError:
        return _fail(state, err, "chdir: error\n", 1)
    state.env.replace(f"PWD={home}", "PWD")
    state.exit_status = 0
    return 0


def _cd_oldpwd(state: ShellState, out: TextIO, err: TextIO) -> int:
    target = state.env.get("OLDPWD")
    if not target:
        return _fail(state, err, "cd: OLDPWD not set\n", 1)
    try:
        current = os.getcwd()
    except OSError:
        current = ""
    try:
        os.chdir(target)
    except OSError:
        return _fail(state, err, "chdir: error\n", 1)
    state.env.replace(f"OLDPWD={current}", "OLDPWD")
    state.env.replace(f"PWD={target}", "PWD")
    return pwd(state, out, err)


def _cd_path(target: str, state: ShellState, err: TextIO) -> int:
    if not os.access(target, os.F_OK):
        return _fail(state, err, f"cd: {target}: No such file or directory\n", 1)
    try:
        current = os.getcwd()
    except OSError:
        return _fail(state, err, "getcwd: error\n", 1)
    try:
        os.chdir(target)
    except OSError as exc:
        return _fail(state, err, f"cd: {target}: {exc.strerror}\n", 1)
    state.env.replace(f"OLDPWD={current}", "OLDPWD")
    try:
        new_path = os.getcwd()
    except OSError:
        return _fail(state, err, "getcwd: error\n", 1)
    state.env.replace(f"PWD={new_path}", "PWD")
    state.exit_status = 0
    return 0


def cd(
    argv: Sequence[str],
    state: ShellState,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Change directory, keeping ``PWD`` and ``OLDPWD`` up to date."""
    out = _stream(out, sys.stdout)
    err = _stream(err, sys.stderr)
    state.exit_status = 0
    args = list(argv[1:])
    if not args or args[0] == "" or (args[0] == "~" and len(args) == 1):
        return _cd_home(state, err)
    if args[0] == "--":
        args = args[1:]
        if not args:
            return _cd_home(state, err)
    target = args[0]
    if len(target) >= 3 and target.startswith("--"):
        return _fail(state, err, "cd: --: invalid option\n", 1)
    if target == "-":
        return _cd_oldpwd(state, out, err)
    if target.startswith("~"):
        home = state.env.get("HOME")
        if home is None:
            _fail(state, err, "getenv: error\n", 1)
        else:
            target = home + target[1:]
    return _cd_path(target, state, err)


def _is_export_identifier(arg: str) -> bool:
    if arg[:1] == "=" or "0" <= arg[:1] <= "9" and arg[:1] != "":
        return False
    name = arg.partition("=")[0]
    return all(ch == "_" or (ch.isascii() and ch.isalnum()) for ch in name)


def _add_export(arg: str, state: ShellState) -> None:
    if "=" not in arg:
        if not any(entry.startswith(arg) for entry in state.env):
            state.env.add(arg)
        return
    name = arg.partition("=")[0]
    if state.env.get(name) is not None:
        state.env.delete(name)
    state.env.add(arg)
    state.exit_status = 0


def _print_export(state: ShellState, out: TextIO) -> None:
    entries = sorted(state.env, key=lambda entry: ord(entry[0]) if entry else 0)
    for entry in entries:
        line = entry.replace("=", '="')
        out.write(line + ('"\n' if "=" in entry else "\n"))


def export(
    argv: Sequence[str],
    state: ShellState,
    out: Optional[TextIO] = None,
    err: Optional[TextIO] = None,
) -> int:
    """Set variables, or list them all when given no arguments."""
    out = _stream(out, sys.stdout)
    err = _stream(err, sys.stderr)
    state.exit_status = 0
    args = list(argv[1:])
    if not args:
        _print_export(state, out)
        return 0
    if args[0].startswith("-"):
        shown = []
        for ch in args[0]:
            if ch.isascii() and ch.isalnum():
                break
            shown.append(ch)
        return _fail(state, err, f"export: {''.join(shown)}: invalid option\n", 2)
    for arg in args:
        if _is_export_identifier(arg):
            state.exit_status = 0
            _add_export(arg, state)
        else:
            _fail(state, err, f"export: '{arg}': not a valid identifier\n", 1)
    return state.exit_status


def unset(argv: Sequence[str], state: ShellState, err: Optional[TextIO] = None) -> int:
    """Remove variables; names containing ``=`` are reported as invalid."""
    err = _stream(err, sys.stderr)
    args = list(argv[1:])
    if not args:
        return state.exit_status
    state.exit_status = 0
    invalid = 0
    for arg in args:
        if arg and "=" in arg:
            err.write(f"unset: '{arg}': not a valid identifier\n")
            invalid += 1
    for arg in args:
        while state.env.get(arg) is not None:
            if not state.env.delete(arg):
                break
    if invalid:
        state.exit_status = 1
    return state.exit_status


def exit_command(argv: Sequence[str], state: ShellState, err: Optional[TextIO] = None) -> None:
    """Announce the exit and raise ShellExit with the requested status."""
    err = _stream(err, sys.stderr)
    state.exit_status = 0
    err.write("exit\n")
    if len(argv) < 2:
        raise ShellExit(0)
    if is_numeric_argument(argv[1]):
        if len(argv) > 2:
            err.write("too many arguments\n")
            state.exit_status = 1
            raise ShellExit(1)
        status = atoi(argv[1]) & 0xFF
        state.exit_status = status
        raise ShellExit(status)
    err.write("numeric argument required\n")
    state.exit_status = 255
    raise ShellExit(255)