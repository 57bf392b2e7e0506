"""Splitting a command line into pipeline segments of redirections and words."""

from __future__ import annotations

from dataclasses import dataclass, field


class ShellSyntaxError(Exception):
    """The command line is not a valid pipeline."""

    exit_status = 258

    def __init__(self, message: str = "syntax error") -> None:
        super().__init__(message)


@dataclass
class Command:
    """One pipeline segment: redirections such as ``"< file"`` and plain words."""

    redirections: list[str] = field(default_factory=list)
    words: list[str] = field(default_factory=list)


def is_space(ch: str) -> bool:
    """Blank characters that separate words."""
    return ch in (" ", "\t") and ch != ""


def _at(text: str, pos: int) -> str:
    return text[pos] if pos < len(text) else ""


def _find_closing(text: str, pos: int, quote: str) -> int:
    close = text.find(quote, pos + 1)
    if close >= 0:
        return close
    end = pos
    while end < len(text) and not is_space(text[end]) and text[end] != "|":
        end += 1
    return end


def find_next_single_quote(text: str, pos: int) -> int:
    """Index of the quote closing the one at ``pos``, or of the word's end if unclosed."""
    return _find_closing(text, pos, "'")


def find_next_double_quote(text: str, pos: int) -> int:
    """Index of the quote closing the one at ``pos``, or of the word's end if unclosed."""
    return _find_closing(text, pos, '"')


def _skip_quote(text: str, pos: int) -> int:
    ch = text[pos]
    if ch == "'":
        return find_next_single_quote(text, pos)
    if ch == '"':
        return find_next_double_quote(text, pos)
    return pos


def find_next_pipe(text: str, pos: int) -> int:
    """Index just past the next unquoted ``|``, or the end of the text."""
    while pos < len(text) and text[pos] != "|":
        pos = min(_skip_quote(text, pos) + 1, len(text))
    if _at(text, pos) == "|":
        pos += 1
    return pos


def find_next_word(text: str, pos: int) -> int:
    """Index of the end of the word starting at ``pos``."""
    while pos < len(text) and not is_space(text[pos]) and text[pos] != "|":
        pos = min(_skip_quote(text, pos) + 1, len(text))
    return pos


def pass_space(text: str, pos: int) -> int:
    """Index of the first non-blank character at or after ``pos``."""
    while pos < len(text) and is_space(text[pos]):
        pos += 1
    return pos


def _operator_length(text: str, pos: int) -> int:
    if text.startswith(("<<", ">>"), pos):
        return 2
    if text.startswith(("<", ">"), pos):
        return 1
    return 0


def is_redirection(text: str, pos: int) -> bool:
    """Tell whether a redirection operator starts at ``pos``."""
    return _operator_length(text, pos) > 0


def split_operator(text: str, pos: int) -> tuple[str, int]:
    """Read a redirection at ``pos`` as ``"<op> <target>"``; return it and the next index."""
    length = _operator_length(text, pos)
    if length == 0:
        raise ValueError(f"no redirection at position {pos}")
    start = pass_space(text, pos + length)
    end = find_next_word(text, start)
    return f"{text[pos:pos + length]} {text[start:end]}", end


def split_word(text: str, pos: int) -> tuple[str, int]:
    """Read the word at ``pos``; return it and the next index."""
    end = find_next_word(text, pos)
    return text[pos:end], end


def count_operators_and_words(text: str, pos: int) -> tuple[int, int]:
    """Count redirections and words up to the next ``|`` or the end."""
    operators = words = 0
    while pos < len(text) and text[pos] != "|":
        length = _operator_length(text, pos)
        pos = find_next_word(text, pass_space(text, pos + length))
        if length:
            operators += 1
        else:
            words += 1
        pos = pass_space(text, pos)
    return operators, words


def split_segment(text: str, pos: int) -> Command:
    """Split the segment starting at ``pos`` into redirections and words."""
    command = Command()
    pos = pass_space(text, pos)
    while pos < len(text) and text[pos] != "|":
        if is_redirection(text, pos):
            item, pos = split_operator(text, pos)
            command.redirections.append(item)
        else:
            item, pos = split_word(text, pos)
            command.words.append(item)
        pos = pass_space(text, pos)
    return command


def check_tokens(commands: list[Command]) -> None:
    """Raise ShellSyntaxError on an empty segment or a redirection without a target."""
    for command in commands:
        if not command.words and not command.redirections:
            raise ShellSyntaxError()
        for redirection in command.redirections:
            target = redirection[find_next_word(redirection, 0) + 1:]
            if not target or target[0] in "<>":
                raise ShellSyntaxError()


def tokenize(line: str) -> list[Command]:
    """Split a command line into pipeline segments; blank lines give an empty list."""
    if pass_space(line, 0) == len(line):
        return []
    starts = [0]
    pos = find_next_pipe(line, 0)
    while pos < len(line):
        starts.append(pos)
        pos = find_next_pipe(line, pos)
    commands = [split_segment(line, start) for start in starts]
    check_tokens(commands)
    return commands