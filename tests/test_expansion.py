import pytest

from lshell.environment import Environment
from lshell.expansion import (
    ExpandStage,
    double_quote,
    expand_command_words,
    expand_exit_status,
    expand_redirection,
    expand_word,
    join_all_words,
    line_expand,
    shell_expand,
    single_quote,
)
from lshell.tokenizer import Command, tokenize

HOME = "/home/alice"


@pytest.fixture
def env():
    return Environment(
        [
            f"HOME={HOME}",
            "USER=alice",
            "FILE=out.txt",
            "SPACED=a b",
            "PADDED=  f  ",
            "PIPED=a|b",
            "OLDPWD",
        ]
    )


def test_expand_exit_status_replaces_prefix():
    assert expand_exit_status("$?", 42) == "42"
    assert expand_exit_status("$?x", 0) == "0x"


def test_single_quote_removes_quotes():
    assert single_quote("'ab'cd", 0) == ("abcd", 2)


def test_single_quote_unclosed_is_kept():
    assert single_quote("'ab", 0) == ("'ab", 1)


def test_double_quote_expands_inside(env):
    assert double_quote('"$USER"', 0, env, 0) == ("alice", 5)


def test_expand_word_known_and_missing(env):
    assert expand_word("$HOME", env, 0) == HOME
    assert expand_word("$NOPE", env, 0) == ""


def test_expand_word_bare_name_is_empty(env):
    assert expand_word("$OLDPWD", env, 0) == ""


def test_expand_word_double_dollar_untouched(env):
    assert expand_word("$$HOME", env, 0) == "$$HOME"


def test_expand_word_lone_dollar(env):
    assert expand_word("$", env, 0) == "$"


def test_expand_word_exit_status(env):
    assert expand_word("$?", env, 7) == "7"


@pytest.mark.parametrize("stage", list(ExpandStage))
@pytest.mark.parametrize("text", ["plain", "a-b_c", "x/y.z"])
def test_plain_text_unchanged(env, text, stage):
    assert line_expand(text, env, 0, stage) == text


def test_before_stage_skips_single_quotes(env):
    assert line_expand("'$HOME'", env, 0, ExpandStage.BEFORE_TOKENIZE) == "'$HOME'"


def test_before_stage_expands_unquoted(env):
    assert line_expand("x$HOME", env, 0, ExpandStage.BEFORE_TOKENIZE) == "x" + HOME


def test_after_stage_removes_quotes(env):
    assert line_expand("'a'\"b\"", env, 0, ExpandStage.AFTER_TOKENIZE) == "ab"


def test_after_stage_leaves_bare_variable(env):
    assert line_expand("$HOME", env, 0, ExpandStage.AFTER_TOKENIZE) == "$HOME"


def test_redirection_target_expanded(env):
    assert expand_redirection("> $FILE", env, 0) == "> out.txt"


def test_redirection_ambiguous_is_marked(env):
    assert expand_redirection("> $SPACED", env, 0) == "e a b"


def test_redirection_value_trimmed(env):
    assert expand_redirection("> $PADDED", env, 0) == "> f"


def test_heredoc_delimiter_not_expanded(env):
    assert expand_redirection("<< $FILE", env, 0) == "<< $FILE"


def test_redirection_quotes_removed(env):
    assert expand_redirection("< 'my file'", env, 0) == "< my file"


def test_join_all_words(env):
    assert join_all_words(["echo", "$HOME"], env, 0) == " echo " + HOME


def test_unquoted_value_is_split(env):
    assert expand_command_words(["echo", "$SPACED"], env, 0) == ["echo", "a", "b"]


def test_quoted_value_is_one_word(env):
    assert expand_command_words(["echo", '"$SPACED"'], env, 0) == ["echo", "a b"]


def test_pipe_in_value_ends_words(env):
    assert expand_command_words(["echo", "$PIPED"], env, 0) == ["echo", "a"]


def test_no_words(env):
    assert expand_command_words([], env, 0) == []


def test_quoted_exit_status(env):
    assert expand_command_words(['"$?"'], env, 3) == ["3"]


def test_shell_expand_pipeline(env):
    commands = tokenize("echo $HOME > $FILE | cat '$USER'")
    result = shell_expand(commands, env, 0)
    assert result == [
        Command(redirections=["> out.txt"], words=["echo", HOME]),
        Command(redirections=[], words=["cat", "$USER"]),
    ]
    assert commands[0].words == ["echo", "$HOME"]