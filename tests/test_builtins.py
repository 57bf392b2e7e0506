import io
import os

import pytest

from lshell.builtins import (
    ShellExit,
    atoi,
    cd,
    echo,
    env_command,
    exit_command,
    export,
    is_builtin,
    is_numeric_argument,
    pwd,
    run_builtin,
    unset,
)
from lshell.environment import Environment, ShellState


def make_state(*entries):
    return ShellState(env=Environment(list(entries)))


@pytest.mark.parametrize(
    "text, expected",
    [("42", 42), ("  -7", -7), ("+15", 15), ("12abc", 12), ("+-3", 0), ("abc", 0), ("", 0)],
)
def test_atoi(text, expected):
    assert atoi(text) == expected


def test_atoi_wraps_to_int32():
    assert atoi("2147483648") == -2147483648


@pytest.mark.parametrize(
    "text, expected",
    [("42", True), ("-1", True), ("\t+5", True), ("+", True), (" 5", False), ("4a", False)],
)
def test_is_numeric_argument(text, expected):
    assert is_numeric_argument(text) is expected


@pytest.mark.parametrize("name", ["cd", "pwd", "echo", "env", "export", "unset", "exit"])
def test_is_builtin_names(name):
    assert is_builtin([name, "x"]) is True


@pytest.mark.parametrize("argv", [[], ["ls"], ["echoo"], ["ec"]])
def test_is_builtin_rejects(argv):
    assert is_builtin(argv) is False


@pytest.mark.parametrize(
    "argv, expected",
    [
        (["echo", "hello", "world"], "hello world\n"),
        (["echo"], "\n"),
        (["echo", "-n", "hi"], "hi"),
        (["echo", "-nnn", "-n", "a"], "a"),
        (["echo", "-nx", "a"], "-nx a\n"),
        (["echo", "-n", "-nx", "a"], "-nx a"),
        (["echo", "", "a"], "a\n"),
        (["echo", "a", "", "b"], "a  b\n"),
    ],
)
def test_echo_output(argv, expected):
    state = make_state()
    state.exit_status = 5
    out = io.StringIO()
    assert echo(argv, state, out) == 0
    assert out.getvalue() == expected
    assert state.exit_status == 0


def test_run_builtin_dispatches_echo():
    state = make_state()
    out = io.StringIO()
    assert run_builtin(["echo", "x"], state, out, io.StringIO()) == 0
    assert out.getvalue() == "x\n"


def test_pwd_prints_cwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = make_state()
    out = io.StringIO()
    pwd(state, out, io.StringIO())
    assert out.getvalue() == os.getcwd() + "\n"
    assert state.exit_status == 0


def test_env_command_only_valued_entries():
    state = make_state("A=1", "OLDPWD", "B=")
    out = io.StringIO()
    env_command(state, out)
    assert out.getvalue() == "A=1\nB=\n"


def test_export_listing_format():
    state = make_state("B=2", "A=1", "C", "X=a=b")
    out = io.StringIO()
    export(["export"], state, out, io.StringIO())
    assert out.getvalue() == 'A="1"\nB="2"\nC\nX="a="b"\n'


def test_export_sets_and_replaces():
    state = make_state("FOO=old")
    export(["export", "FOO=bar", "NEW=1"], state, io.StringIO(), io.StringIO())
    assert state.env.get("FOO") == "bar"
    assert state.env.get("NEW") == "1"
    assert [entry for entry in state.env if entry.startswith("FOO")] == ["FOO=bar"]
    assert state.exit_status == 0


def test_export_name_only():
    state = make_state("A=1")
    export(["export", "NAME"], state, io.StringIO(), io.StringIO())
    assert "NAME" in list(state.env)
    assert state.env.get("NAME") == ""


def test_export_name_only_existing_prefix_not_added():
    state = make_state("PATH=/bin")
    export(["export", "PA"], state, io.StringIO(), io.StringIO())
    assert list(state.env) == ["PATH=/bin"]


def test_export_invalid_identifier():
    state = make_state()
    err = io.StringIO()
    export(["export", "1A=x"], state, io.StringIO(), err)
    assert err.getvalue() == "export: '1A=x': not a valid identifier\n"
    assert state.exit_status == 1
    assert state.env.get("1A") is None


def test_export_status_follows_last_argument():
    state = make_state()
    export(["export", "1bad", "GOOD=1"], state, io.StringIO(), io.StringIO())
    assert state.exit_status == 0
    assert state.env.get("GOOD") == "1"


def test_export_invalid_option():
    state = make_state()
    err = io.StringIO()
    export(["export", "-x"], state, io.StringIO(), err)
    assert err.getvalue() == "export: -: invalid option\n"
    assert state.exit_status == 2


def test_unset_removes_variable():
    state = make_state("A=1", "B=2")
    unset(["unset", "A"], state, io.StringIO())
    assert state.env.get("A") is None
    assert state.env.get("B") == "2"
    assert state.exit_status == 0


def test_unset_invalid_identifier():
    state = make_state("A=1")
    err = io.StringIO()
    unset(["unset", "A=1", "A"], state, err)
    assert err.getvalue() == "unset: 'A=1': not a valid identifier\n"
    assert state.exit_status == 1
    assert state.env.get("A") is None


def test_unset_without_arguments_keeps_status():
    state = make_state("A=1")
    state.exit_status = 7
    unset(["unset"], state, io.StringIO())
    assert state.exit_status == 7
    assert list(state.env) == ["A=1"]


def test_exit_without_argument():
    err = io.StringIO()
    with pytest.raises(ShellExit) as info:
        exit_command(["exit"], make_state(), err)
    assert info.value.status == 0
    assert err.getvalue() == "exit\n"


def test_exit_with_status():
    with pytest.raises(ShellExit) as info:
        exit_command(["exit", "42"], make_state(), io.StringIO())
    assert info.value.status == 42


def test_exit_negative_status_wraps():
    with pytest.raises(ShellExit) as info:
        exit_command(["exit", "-1"], make_state(), io.StringIO())
    assert info.value.status == 255


def test_exit_non_numeric():
    err = io.StringIO()
    with pytest.raises(ShellExit) as info:
        exit_command(["exit", "abc"], make_state(), err)
    assert info.value.status == 255
    assert err.getvalue() == "exit\nnumeric argument required\n"


def test_exit_too_many_arguments():
    err = io.StringIO()
    with pytest.raises(ShellExit) as info:
        exit_command(["exit", "1", "2"], make_state(), err)
    assert info.value.status == 1
    assert err.getvalue() == "exit\ntoo many arguments\n"


def test_cd_into_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    start = os.getcwd()
    sub = tmp_path / "sub"
    sub.mkdir()
    state = make_state("PWD=" + start, "OLDPWD")
    cd(["cd", "sub"], state, io.StringIO(), io.StringIO())
    assert state.exit_status == 0
    assert os.path.samefile(os.getcwd(), sub)
    assert os.path.samefile(state.env.get("PWD"), sub)
    assert state.env.get("OLDPWD") == start


def test_cd_missing_directory(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = make_state()
    err = io.StringIO()
    cd(["cd", "nope"], state, io.StringIO(), err)
    assert err.getvalue() == "cd: nope: No such file or directory\n"
    assert state.exit_status == 1


def test_cd_home(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    home = tmp_path / "home"
    home.mkdir()
    state = make_state(f"HOME={home}")
    cd(["cd"], state, io.StringIO(), io.StringIO())
    assert os.path.samefile(os.getcwd(), home)
    assert state.env.get("PWD") == str(home)
    assert state.exit_status == 0


def test_cd_tilde_prefix(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    docs = tmp_path / "docs"
    docs.mkdir()
    state = make_state(f"HOME={tmp_path}")
    err = io.StringIO()
    cd(["cd", "~/docs"], state, io.StringIO(), err)
    assert state.exit_status == 0
    assert err.getvalue() == ""
    assert os.path.samefile(os.getcwd(), docs)
    assert os.path.samefile(state.env.get("PWD"), docs)


def test_cd_home_unset(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = make_state()
    err = io.StringIO()
    cd(["cd"], state, io.StringIO(), err)
    assert err.getvalue() == "getenv: error\n"
    assert state.exit_status == 1


def test_cd_dash_without_oldpwd(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = make_state("OLDPWD")
    err = io.StringIO()
    cd(["cd", "-"], state, io.StringIO(), err)
    assert err.getvalue() == "cd: OLDPWD not set\n"
    assert state.exit_status == 1


def test_cd_dash_returns_and_prints(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    start = os.getcwd()
    (tmp_path / "sub").mkdir()
    state = make_state("OLDPWD")
    cd(["cd", "sub"], state, io.StringIO(), io.StringIO())
    out = io.StringIO()
    cd(["cd", "-"], state, out, io.StringIO())
    assert os.getcwd() == start
    assert out.getvalue() == start + "\n"
    assert state.env.get("PWD") == start


def test_cd_invalid_option(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    state = make_state()
    err = io.StringIO()
    cd(["cd", "--bad"], state, io.StringIO(), err)
    assert err.getvalue() == "cd: --: invalid option\n"
    assert state.exit_status == 1
    assert os.path.samefile(os.getcwd(), tmp_path)