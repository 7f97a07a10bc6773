import signal

import pytest

from minishell.builtins import ExitShell
from minishell.environment import Environment, ShellState
from minishell.executor import (
    execute_command,
    execute_external,
    find_in_path,
    run_pipeline,
)
from minishell.lexer import TokenType
from minishell.parser import Command, Redirect
from minishell.redirection import saved_stdio

READ_LINES = 'while read line; do echo "got:$line"; done'


def _script(directory, name, body):
    path = directory / name
    path.write_text("#!/bin/sh\n" + body + "\n")
    path.chmod(0o755)
    return path


def _state(tmp_path, **extra):
    entries = [("PATH", str(tmp_path))] + list(extra.items())
    return ShellState(Environment(entries))


def test_find_in_path_returns_first_executable(tmp_path):
    _script(tmp_path, "tool", "exit 0")
    env = Environment([("PATH", f"{tmp_path}/missing:{tmp_path}")])
    assert find_in_path("tool", env) == f"{tmp_path}/tool"


def test_find_in_path_skips_non_executable(tmp_path):
    (tmp_path / "plain").write_text("data")
    env = Environment([("PATH", str(tmp_path))])
    assert find_in_path("plain", env) is None


def test_find_in_path_without_path_variable(tmp_path):
    _script(tmp_path, "tool", "exit 0")
    assert find_in_path("tool", Environment()) is None


def test_execute_external_not_found(tmp_path, capfd):
    state = _state(tmp_path)
    assert execute_external(state, ["nope"]) == 127
    assert state.exit_status == 127
    assert capfd.readouterr().out == "Command not found: nope\n"


def test_execute_external_blank_name(tmp_path):
    state = _state(tmp_path)
    assert execute_external(state, ["  "]) == 127


def test_execute_external_exit_status(tmp_path):
    _script(tmp_path, "fail", "exit 3")
    state = _state(tmp_path)
    assert execute_external(state, ["fail"]) == 3
    assert state.exit_status == 3


def test_execute_external_absolute_path(tmp_path):
    script = _script(tmp_path, "fail", "exit 4")
    state = ShellState(Environment())
    assert execute_external(state, [str(script)]) == 4


def test_execute_external_passes_environment(tmp_path, capfd):
    _script(tmp_path, "greet", 'echo "$GREETING"')
    state = _state(tmp_path, GREETING="hello")
    assert execute_external(state, ["greet"]) == 0
    assert capfd.readouterr().out == "hello\n"


def test_execute_external_directory_fails_to_execute(tmp_path, capfd):
    state = ShellState(Environment())
    assert execute_external(state, [str(tmp_path)]) == 1
    assert "execve:" in capfd.readouterr().err


def test_execute_external_killed_by_signal(tmp_path):
    _script(tmp_path, "suicide", "kill -TERM $$")
    state = _state(tmp_path)
    assert execute_external(state, ["suicide"]) == 128 + signal.SIGTERM


def test_execute_command_builtin_with_output_redirect(tmp_path):
    target = tmp_path / "out.txt"
    state = _state(tmp_path)
    command = Command(["echo", "hi"], [Redirect(TokenType.REDIR_OUT, str(target))])
    with saved_stdio():
        status = execute_command(state, command)
    assert status == 0
    assert target.read_text() == "hi\n"


def test_execute_command_append_keeps_previous_text(tmp_path):
    target = tmp_path / "out.txt"
    target.write_text("first\n")
    state = _state(tmp_path)
    command = Command(["echo", "second"], [Redirect(TokenType.REDIR_APPEND, str(target))])
    with saved_stdio():
        execute_command(state, command)
    assert target.read_text() == "first\nsecond\n"


def test_execute_command_records_builtin_status(tmp_path):
    state = _state(tmp_path)
    assert execute_command(state, Command(["unset", "1abc"])) == 1
    assert state.exit_status == 1


def test_execute_command_external_reads_redirected_input(tmp_path, capfd):
    _script(tmp_path, "reader", READ_LINES)
    source = tmp_path / "in.txt"
    source.write_text("one\ntwo\n")
    state = _state(tmp_path)
    command = Command(["reader"], [Redirect(TokenType.REDIR_IN, str(source))])
    with saved_stdio():
        status = execute_command(state, command)
    assert status == 0
    assert capfd.readouterr().out == "got:one\ngot:two\n"


def test_execute_command_exit_raises(tmp_path):
    state = _state(tmp_path)
    with pytest.raises(ExitShell) as info:
        execute_command(state, Command(["exit", "4"]))
    assert info.value.code == 4


def test_run_pipeline_builtin_into_program(tmp_path, capfd):
    _script(tmp_path, "reader", READ_LINES)
    state = _state(tmp_path)
    run_pipeline(state, [Command(["echo", "hello"]), Command(["reader"])])
    assert capfd.readouterr().out == "got:hello\n"


def test_run_pipeline_three_stages(tmp_path, capfd):
    _script(tmp_path, "reader", READ_LINES)
    state = _state(tmp_path)
    commands = [Command(["echo", "a"]), Command(["reader"]), Command(["reader"])]
    run_pipeline(state, commands)
    assert capfd.readouterr().out == "got:got:a\n"


def test_run_pipeline_status_of_last_command(tmp_path):
    _script(tmp_path, "fail", "exit 3")
    state = _state(tmp_path)
    assert run_pipeline(state, [Command(["echo", "x"]), Command(["fail"])]) == 3
    assert state.exit_status == 3


def test_run_pipeline_children_do_not_change_parent_env(tmp_path):
    state = _state(tmp_path)
    run_pipeline(state, [Command(["export", "CHILD=1"]), Command(["echo", "x"])])
    assert "CHILD" not in state.env


def test_run_pipeline_unknown_command(tmp_path, capfd):
    state = _state(tmp_path)
    status = run_pipeline(state, [Command(["echo", "x"]), Command(["nosuch"])])
    assert status == 0
    assert "Command not found: nosuch\n" in capfd.readouterr().out