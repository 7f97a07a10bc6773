"""The interactive read-and-run loop of the shell."""

from __future__ import annotations

import contextlib
import os
import signal
import sys
from typing import Optional

from minishell.builtins import ExitShell
from minishell.environment import Environment, ShellState
from minishell.executor import execute_command, run_pipeline
from minishell.heredoc import Reader
from minishell.lexer import TokenType, tokenize
from minishell.parser import Command, parse_pipeline
from minishell.redirection import saved_stdio
from minishell.textutils import ShellSyntaxError, is_blank

PROMPT = "minishell> "


def _remove_heredocs(commands: list[Command]) -> None:
    for command in commands:
        for redirect in command.redirects:
            if redirect.type is TokenType.HEREDOC:
                with contextlib.suppress(OSError):
                    os.unlink(redirect.target)


def handle_line(state: ShellState, line: str, reader: Optional[Reader] = None) -> int:
    """Parse and run one command line; returns the resulting exit status.

    Syntax errors are reported and the line is dropped.  Standard input and
    output are restored afterwards.  ``ExitShell`` passes through.
    """
    try:
        tokens = tokenize(line, state.env)
        if not tokens:
            return state.exit_status
        commands = parse_pipeline(tokens, state.env, reader)
    except ShellSyntaxError as exc:
        print(exc, file=sys.stderr)
        return state.exit_status
    if not commands:
        return state.exit_status
    try:
        with saved_stdio():
            if len(commands) == 1:
                execute_command(state, commands[0])
            else:
                run_pipeline(state, commands)
    finally:
        _remove_heredocs(commands)
    return state.exit_status


def _interactive_reader() -> Reader:
    try:
        import readline
    except ImportError:
        history = None
    else:
        readline.set_auto_history(False)
        history = readline

    def read(prompt: str) -> Optional[str]:
        try:
            line = input(prompt)
        except EOFError:
            return None
        if history is not None and not is_blank(line):
            history.add_history(line)
        return line

    return read


def run(state: ShellState, reader: Optional[Reader] = None) -> int:
    """Read and run lines until end of input or ``exit``.

    ``reader`` is called with a prompt and returns a line, or ``None`` at
    end of input; here-documents are read through it too.  Returns the
    code the shell exits with.
    """
    read = reader or _interactive_reader()
    while True:
        try:
            line = read(PROMPT)
        except KeyboardInterrupt:
            print()
            continue
        except EOFError:
            line = None
        if line is None:
            break
        if is_blank(line):
            continue
        try:
            handle_line(state, line, read)
        except ExitShell as exc:
            return exc.code
        except KeyboardInterrupt:
            print()
    print("exit")
    return 0


def _install_signal_handlers() -> None:
    signal.signal(signal.SIGINT, signal.default_int_handler)
    signal.signal(signal.SIGQUIT, signal.SIG_IGN)


def main(argv: Optional[list[str]] = None) -> int:
    """Start an interactive shell on the current environment."""
    state = ShellState(Environment.from_strings(f"{key}={value}" for key, value in os.environ.items()))
    _install_signal_handlers()
    return run(state, _interactive_reader())


if __name__ == "__main__":
    raise SystemExit(main())