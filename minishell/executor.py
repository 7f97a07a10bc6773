"""Running commands: builtins, external programs and pipelines."""

from __future__ import annotations

import contextlib
import os
import signal
import subprocess
import sys
from typing import Iterable, Iterator, NoReturn, Optional, Sequence

from minishell.builtins import ExitShell, run_builtin
from minishell.environment import Environment, ShellState
from minishell.parser import Command
from minishell.redirection import apply_redirects
from minishell.textutils import is_blank, split_fields

CMD_NOT_FOUND = 127
_PATH_PREFIXES = ("/", "./", "../")


def _flush() -> None:
    for stream in (sys.stdout, sys.stderr):
        with contextlib.suppress(AttributeError, OSError, ValueError):
            stream.flush()


@contextlib.contextmanager
def _stdout_on_descriptor() -> Iterator[None]:
    """Send ``sys.stdout`` to file descriptor 1 for the length of the block.

    Redirections and pipes act on the descriptor, so output written by the
    shell itself must go through it to land in the right place.
    """
    previous = sys.stdout
    _flush()
    with open(1, "w", closefd=False) as stream:
        sys.stdout = stream
        try:
            yield
        finally:
            sys.stdout = previous


@contextlib.contextmanager
def _ignoring_sigint() -> Iterator[None]:
    try:
        previous = signal.signal(signal.SIGINT, signal.SIG_IGN)
        installed = True
    except ValueError:
        previous, installed = None, False
    try:
        yield
    finally:
        if installed and previous is not None:
            signal.signal(signal.SIGINT, previous)


def _default_signals() -> None:
    signal.signal(signal.SIGINT, signal.SIG_DFL)
    signal.signal(signal.SIGQUIT, signal.SIG_DFL)


def _env_dict(env: Environment) -> dict[str, str]:
    return dict(entry.split("=", 1) for entry in env.to_envp())


def _status_from_wait(raw: int) -> int:
    code = os.waitstatus_to_exitcode(raw)
    return 128 - code if code < 0 else code


def find_in_path(name: str, env: Environment) -> Optional[str]:
    """Look ``name`` up in the directories of ``PATH``.

    Returns the first candidate that is executable, or ``None``.
    """
    path = env.get("PATH")
    if path is None:
        return None
    for directory in split_fields(path, ":"):
        candidate = f"{directory}/{name}"
        if os.access(candidate, os.X_OK):
            return candidate
    return None


def _not_found(state: ShellState, name: str) -> int:
    print(f"Command not found: {name}")
    state.exit_status = CMD_NOT_FOUND
    return CMD_NOT_FOUND


def execute_external(state: ShellState, args: Sequence[str]) -> int:
    """Run a program and wait for it; the shell ignores Ctrl-C meanwhile.

    Sets and returns the exit status: 127 when the program cannot be
    found, 128 plus the signal number when it was killed by a signal.
    """
    name = args[0] if args else ""
    if not name or is_blank(name):
        return _not_found(state, name)
    if name.startswith(_PATH_PREFIXES) or os.access(name, os.X_OK):
        path: Optional[str] = name
    else:
        path = find_in_path(name, state.env)
    if path is None or not os.access(path, os.X_OK):
        return _not_found(state, name)
    _flush()
    try:
        with _ignoring_sigint():
            completed = subprocess.run(
                list(args),
                executable=path,
                env=_env_dict(state.env),
                preexec_fn=_default_signals,
                check=False,
            )
    except OSError as exc:
        print(f"execve: {exc.strerror}", file=sys.stderr)
        state.exit_status = 1
        return 1
    code = completed.returncode
    if code < 0:
        state.exit_status = 128 - code
        if -code == signal.SIGINT:
            os.write(1, b"\n")
    else:
        state.exit_status = code
    return state.exit_status


def execute_command(state: ShellState, command: Command) -> int:
    """Apply the command's redirections, then run it as a builtin or a program.

    Redirections are left in place; callers restore standard input and
    output.  ``ExitShell`` raised by ``exit`` passes through.
    """
    with _stdout_on_descriptor():
        apply_redirects(command.redirects)
        if not command.args:
            return state.exit_status
        status = run_builtin(state, command.args)
        if status is None:
            return execute_external(state, command.args)
        state.exit_status = status
        return status


def _exec_from_path(state: ShellState, args: Sequence[str]) -> int:
    path = find_in_path(args[0], state.env)
    if path is None:
        print(f"Command not found: {args[0]}")
        return 0
    _flush()
    try:
        os.execve(path, list(args), _env_dict(state.env))
    except OSError as exc:
        print(f"execve: {exc.strerror}", file=sys.stderr)
    return 1


def _child_command(state: ShellState, command: Command) -> int:
    with _stdout_on_descriptor():
        apply_redirects(command.redirects)
        if not command.args:
            return 0
        if run_builtin(state, command.args) is not None:
            return 0
        return _exec_from_path(state, command.args)


def _run_child(state: ShellState, command: Command, prev_fd: Optional[int],
               pipe_fds: Optional[tuple[int, int]]) -> NoReturn:
    code = 1
    try:
        if prev_fd is not None:
            os.dup2(prev_fd, 0)
            os.close(prev_fd)
        if pipe_fds is not None:
            read_end, write_end = pipe_fds
            os.close(read_end)
            os.dup2(write_end, 1)
            os.close(write_end)
        code = _child_command(state, command)
    except ExitShell as exc:
        code = exc.code
    finally:
        _flush()
        os._exit(code)


def run_pipeline(state: ShellState, commands: Iterable[Command]) -> int:
    """Run commands joined by pipes, each in a child process of its own.

    Waits for every child; sets and returns the status of the last one.
    """
    items = list(commands)
    pids = []
    prev_fd: Optional[int] = None
    for index, command in enumerate(items):
        last = index == len(items) - 1
        pipe_fds = None if last else os.pipe()
        _flush()
        pid = os.fork()
        if pid == 0:
            _run_child(state, command, prev_fd, pipe_fds)
        pids.append(pid)
        if pipe_fds is not None:
            os.close(pipe_fds[1])
            if prev_fd is not None:
                os.close(prev_fd)
            prev_fd = pipe_fds[0]
        elif prev_fd is not None:
            os.close(prev_fd)
            prev_fd = None
    status = 0
    for pid in pids:
        _, raw = os.waitpid(pid, 0)
        status = _status_from_wait(raw)
    state.exit_status = status
    return status