"""Environment variable list and the state shared by the shell."""

from __future__ import annotations

import sys
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional


def env_name_length(entry: str) -> int:
    """Return the length of the variable name in a ``NAME=value`` entry."""
    index = entry.find("=")
    return len(entry) if index < 0 else index


def _entry_name(entry: str) -> str:
    return entry[: env_name_length(entry)]


class Environment:
    """Ordered list of ``NAME=value`` (or bare ``NAME``) entries."""

    def __init__(self, entries: Iterable[str] = ()) -> None:
        self._entries = list(entries)

    @classmethod
    def from_envp(cls, envp: Iterable[str] | Mapping[str, str]) -> "Environment":
        """Build the shell's own environment from the process environment.

        Any inherited ``OLDPWD`` value is dropped, a bare ``OLDPWD`` is added
        when none exists, and ``SHELL`` is set to the value of ``PWD``.
        """
        if isinstance(envp, Mapping):
            source = [f"{name}={value}" for name, value in envp.items()]
        else:
            source = list(envp)
        entries = [
            "OLDPWD" if entry.startswith("OLDPWD") and entry[6:7] in ("", "=") else entry
            for entry in source
        ]
        env = cls(entries)
        if not any(entry.startswith("OLDPWD") for entry in source):
            env.add("OLDPWD")
        pwd = env.get("PWD")
        if pwd is None:
            sys.stderr.write("not set PWD\n")
        else:
            env.replace(f"SHELL={pwd}", "SHELL")
        return env

    def get(self, name: str) -> Optional[str]:
        """Return the value of ``name``, ``""`` for a bare name, or None."""
        for entry in reversed(self._entries):
            if _entry_name(entry) == name:
                _, sep, value = entry.partition("=")
                return value if sep else ""
        return None

    def add(self, entry: str) -> None:
        """Append an entry to the end of the list."""
        self._entries.append(entry)

    def delete(self, name: str) -> bool:
        """Remove the last entry called ``name``; return whether one was removed."""
        for index in range(len(self._entries) - 1, -1, -1):
            if _entry_name(self._entries[index]) == name:
                del self._entries[index]
                return True
        return False

    def replace(self, entry: str, name: str) -> None:
        """Remove the variable ``name`` and append ``entry``."""
        self.delete(name)
        self.add(entry)

    def has_prefix(self, prefix: str) -> bool:
        """Tell whether any entry starts with ``prefix``."""
        return any(entry.startswith(prefix) for entry in self._entries)

    def exported(self) -> list[str]:
        """Entries that carry a value, in order."""
        return [entry for entry in self._entries if "=" in entry]

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def __len__(self) -> int:
        return len(self._entries)

    def __repr__(self) -> str:
        return f"Environment({self._entries!r})"


@dataclass
class ShellState:
    """Mutable state of one running shell."""

    env: Environment = field(default_factory=Environment)
    exit_status: int = 0
    interrupt_count: int = 0