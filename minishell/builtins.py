"""Commands the shell runs itself instead of starting a program."""

from __future__ import annotations

import os
import re
import sys
from typing import Callable, Optional, Sequence

from minishell.environment import ShellState, format_export, is_valid_identifier

_C_SPACE = " \t\n\v\f\r"
_ASCII_DIGITS = "0123456789"
_LONG_MAX = 2**63 - 1
_LONG_MIN = -(2**63)
_NO_NEWLINE_FLAG = re.compile(r"-n+")


class ExitShell(Exception):
    """Raised by ``exit`` to end the shell with ``code``."""

    def __init__(self, code: int):
        super().__init__(code)
        self.code = code


def _error(message: str) -> None:
    print(message, file=sys.stderr)


def _cd_target(state: ShellState, args: Sequence[str]) -> Optional[str]:
    if len(args) < 2 or args[1] == "--":
        home = state.env.get("HOME")
        if home is None:
            _error("cd: HOME not set")
        return home
    if args[1] == "-":
        oldpwd = state.env.get("OLDPWD")
        if oldpwd is None:
            _error("cd: OLDPWD not set")
        else:
            print(oldpwd)
        return oldpwd
    if len(args) > 2:
        _error("cd: too many arguments")
        return None
    return args[1]


def _update_existing(state: ShellState, key: str, value: str) -> None:
    # cd refreshes OLDPWD and PWD only when they are already defined.
    if key in state.env:
        state.env.set(key, value)


def builtin_cd(state: ShellState, args: Sequence[str]) -> int:
    """Change the working directory and refresh ``OLDPWD`` and ``PWD``."""
    try:
        previous = os.getcwd()
    except OSError:
        previous = ""
    target = _cd_target(state, args)
    if target is None:
        return 1
    try:
        os.chdir(target)
    except OSError as exc:
        _error(f"cd: {exc.strerror}")
        return 1
    _update_existing(state, "OLDPWD", previous)
    try:
        _update_existing(state, "PWD", os.getcwd())
    except OSError:
        pass
    return 0


def builtin_echo(state: ShellState, args: Sequence[str]) -> int:
    """Print the arguments separated by spaces; ``-n`` drops the newline."""
    words = list(args[1:])
    newline = True
    while words and _NO_NEWLINE_FLAG.fullmatch(words[0]):
        newline = False
        words.pop(0)
    text = " ".join(str(state.exit_status) if word == "$?" else word for word in words)
    print(text, end="\n" if newline else "")
    return 0


def builtin_env(state: ShellState, args: Sequence[str]) -> int:
    """Print every variable that has a non-empty value."""
    if len(args) > 1:
        _error("env: too many arguments")
        return 2
    if not len(state.env):
        return 1
    for key, value in state.env.items():
        if value:
            print(f"{key}={value}")
    return 0


def builtin_export(state: ShellState, args: Sequence[str]) -> int:
    """Define variables, or list them all when given no argument."""
    if len(args) < 2:
        sys.stdout.write(format_export(state.env))
        return 0
    for arg in args[1:]:
        key, sep, value = arg.partition("=")
        if not is_valid_identifier(key):
            _error(f"export: `{key}': not a valid identifier")
            continue
        state.env.set(key, value if sep else None)
    return 0


def builtin_pwd(state: ShellState, args: Sequence[str]) -> int:
    """Print the working directory."""
    try:
        cwd = os.getcwd()
    except OSError as exc:
        _error(f"pwd: {exc.strerror}")
        return 1
    print(cwd)
    return 0


def builtin_unset(state: ShellState, args: Sequence[str]) -> int:
    """Remove variables; invalid names are reported and make the status 1."""
    status = 0
    for arg in args[1:]:
        if not is_valid_identifier(arg) or "=" in arg:
            _error(f"unset: `{arg}': not a valid identifier")
            status = 1
        else:
            state.env.unset(arg)
    return status


def _is_numeric(arg: str) -> bool:
    text = arg.lstrip(_C_SPACE)
    if text[:1] in ("+", "-"):
        text = text[1:]
    return bool(text) and all(char in _ASCII_DIGITS for char in text)


def builtin_exit(state: ShellState, args: Sequence[str]) -> int:
    """Leave the shell by raising ``ExitShell``.

    Returns 1 without leaving when given more than one argument.
    """
    print("exit")
    if len(args) < 2:
        raise ExitShell(0)
    if not _is_numeric(args[1]):
        _error(f"exit: {args[1]}: numeric argument required")
        raise ExitShell(255)
    code = min(max(int(args[1].lstrip(_C_SPACE)), _LONG_MIN), _LONG_MAX)
    if len(args) > 2:
        _error("exit: too many arguments")
        return 1
    raise ExitShell(code % 256)


_BUILTINS: dict[str, Callable[[ShellState, Sequence[str]], int]] = {
    "cd": builtin_cd,
    "echo": builtin_echo,
    "env": builtin_env,
    "export": builtin_export,
    "pwd": builtin_pwd,
    "unset": builtin_unset,
    "exit": builtin_exit,
}


def is_builtin(name: str) -> bool:
    """Tell whether ``name`` is run by the shell itself."""
    return name in _BUILTINS


def run_builtin(state: ShellState, args: Sequence[str]) -> Optional[int]:
    """Run the builtin named by ``args[0]``.

    Returns its exit status, or ``None`` when ``args`` names no builtin.
    """
    if not args or args[0] not in _BUILTINS:
        return None
    return _BUILTINS[args[0]](state, args)