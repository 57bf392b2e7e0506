"""Variable expansion and quote removal for tokenized commands."""

from __future__ import annotations

from enum import IntEnum

from lshell.environment import Environment
from lshell.tokenizer import (
    Command,
    find_next_double_quote,
    find_next_single_quote,
    pass_space,
    split_word,
)

_NAME_STOP = "'\"$ "


class ExpandStage(IntEnum):
    """When a line expansion runs relative to re-splitting the words."""

    BEFORE_TOKENIZE = 0
    AFTER_TOKENIZE = 1


def expand_exit_status(text: str, status: int) -> str:
    """Replace the leading ``$?`` of ``text`` with the exit status."""
    return f"{status}{text[2:]}"


def _name_end(text: str, start: int) -> int:
    end = start + 1
    while end < len(text) and text[end] not in _NAME_STOP:
        end += 1
    return end


def _lookup(reference: str, env: Environment, status: int) -> str:
    if reference[1:2] == "?":
        return expand_exit_status(reference, status)
    value = env.get(reference[1:])
    return "" if value is None else value


def single_quote(text: str, offset: int) -> tuple[str, int]:
    """Remove the single quotes opening at ``offset``.

    Returns the new text and the index at which scanning resumes. An
    unclosed quote is left as it is.
    """
    close = text.find("'", offset + 1)
    if close < 0:
        return text, offset + 1
    content = text[offset + 1:close]
    return text[:offset] + content + text[close + 1:], offset + len(content)


def double_quote(text: str, offset: int, env: Environment, status: int) -> tuple[str, int]:
    """Remove the double quotes opening at ``offset`` and expand variables inside."""
    close = text.find('"', offset + 1)
    if close < 0:
        return text, offset + 1
    content = expand_word(text[offset + 1:close], env, status)
    return text[:offset] + content + text[close + 1:], offset + len(content)


def expand_word(text: str, env: Environment, status: int) -> str:
    """Expand every ``$NAME`` and ``$?`` in ``text``, ignoring quotes."""
    pos = 0
    while pos < len(text):
        if text[pos] != "$":
            pos += 1
            continue
        end = _name_end(text, pos)
        if end - pos == 1:
            pos += 2
            continue
        value = _lookup(text[pos:end], env, status)
        text = text[:pos] + value + text[end:]
        pos += len(value)
    return text


def _expand_dollar(
    text: str,
    pos: int,
    env: Environment,
    status: int,
    redirection: bool = False,
) -> tuple[str, int]:
    run_end = pos + 1
    while run_end < len(text) and text[run_end] == "$":
        run_end += 1
    if run_end - pos > 1:
        return text, run_end + 1
    end = _name_end(text, pos)
    if end - pos == 1:
        return text, pos + 2
    if redirection and text.startswith("<<"):
        return text, end
    value = _lookup(text[pos:end], env, status)
    if redirection:
        value = value.strip(" ")
        if " " in value:
            text = "e" + text[1:]
    return text[:pos] + value + text[end:], pos + len(value)


def expand_redirection(redirection: str, env: Environment, status: int) -> str:
    """Expand one ``"<op> <target>"`` redirection.

    Quotes are removed and variables expanded, except in a heredoc
    delimiter. When an unquoted variable expands to several words, the
    first character is replaced by ``e`` to mark an ambiguous redirect.
    """
    text = redirection
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if ch == "'":
            text, pos = single_quote(text, pos)
        elif ch == '"':
            text, pos = double_quote(text, pos, env, status)
        elif ch == "$":
            text, pos = _expand_dollar(text, pos, env, status, redirection=True)
        else:
            pos += 1
    return text


def line_expand(text: str, env: Environment, status: int, stage: ExpandStage) -> str:
    """Run one expansion stage over a word.

    Before re-splitting, unquoted variables are expanded and quoted parts
    are skipped; after it, quotes are removed and variables inside double
    quotes are expanded.
    """
    pos = 0
    while pos < len(text):
        ch = text[pos]
        if stage == ExpandStage.AFTER_TOKENIZE:
            if ch == "'":
                text, pos = single_quote(text, pos)
                continue
            if ch == '"':
                text, pos = double_quote(text, pos, env, status)
                continue
        else:
            if ch == "'":
                pos = find_next_single_quote(text, pos) + 1
                continue
            if ch == '"':
                pos = find_next_double_quote(text, pos) + 1
                continue
            if ch == "$":
                text, pos = _expand_dollar(text, pos, env, status)
                continue
        pos += 1
    return text


def join_all_words(words: list[str], env: Environment, status: int) -> str:
    """Expand each word's unquoted variables and join them, each after a space."""
    return "".join(
        " " + line_expand(word, env, status, ExpandStage.BEFORE_TOKENIZE) for word in words
    )


def _split_words(text: str) -> list[str]:
    words = []
    pos = pass_space(text, 0)
    while pos < len(text) and text[pos] != "|":
        word, pos = split_word(text, pos)
        words.append(word)
        pos = pass_space(text, pos)
    return words


def expand_command_words(words: list[str], env: Environment, status: int) -> list[str]:
    """Expand a command's words, re-split them, then remove quotes."""
    if not words:
        return []
    joined = join_all_words(words, env, status)
    return [
        line_expand(word, env, status, ExpandStage.AFTER_TOKENIZE)
        for word in _split_words(joined)
    ]


def shell_expand(commands: list[Command], env: Environment, status: int) -> list[Command]:
    """Return the commands with their redirections and words expanded."""
    return [
        Command(
            redirections=[
                expand_redirection(item, env, status) for item in command.redirections
            ],
            words=expand_command_words(command.words, env, status),
        )
        for command in commands
    ]