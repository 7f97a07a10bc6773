"""Shell variables and the state shared by the whole shell session."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Iterator, Optional

from minishell.textutils import split_fields


def _is_name_char(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalnum())


class Environment:
    """Ordered set of shell variables.

    Variables are kept in the order they were created.  Iteration yields the
    most recently created variable first, matching how the shell lists them
    for ``env`` and for the environment handed to child processes.  A
    variable may exist without a value (``export NAME``); its value is then
    ``None``.
    """

    def __init__(self, entries: Optional[Iterable[tuple[str, Optional[str]]]] = None):
        self._vars: dict[str, Optional[str]] = {}
        for key, value in entries or ():
            self._vars[key] = value

    @classmethod
    def from_strings(cls, envp: Iterable[str]) -> "Environment":
        """Build an environment from ``KEY=VALUE`` strings.

        Each string is cut on ``=`` with empty pieces dropped: the first piece
        is the name, the second the value, and anything after is ignored.
        Strings with no piece at all are skipped.
        """
        entries = []
        for line in envp:
            parts = split_fields(line, "=")
            if not parts:
                continue
            entries.append((parts[0], parts[1] if len(parts) > 1 else ""))
        return cls(entries)

    def get(self, key: str) -> Optional[str]:
        """Return the value of ``key``, or ``None`` if unset or valueless."""
        return self._vars.get(key)

    def set(self, key: str, value: Optional[str]) -> None:
        """Create or update a variable.

        Updating with ``None`` keeps the current value; creating with ``None``
        adds a variable that has no value.
        """
        if key in self._vars:
            if value is not None:
                self._vars[key] = value
        else:
            self._vars[key] = value

    def unset(self, key: str) -> None:
        """Remove ``key`` if it exists."""
        self._vars.pop(key, None)

    def items(self) -> Iterator[tuple[str, Optional[str]]]:
        """Yield ``(key, value)`` pairs, newest variable first."""
        return iter(reversed(list(self._vars.items())))

    def to_envp(self) -> list[str]:
        """Return ``KEY=VALUE`` strings for every variable that has a value."""
        return [f"{key}={value}" for key, value in self.items() if value is not None]

    def __contains__(self, key: object) -> bool:
        return key in self._vars

    def __len__(self) -> int:
        return len(self._vars)

    def __repr__(self) -> str:
        return f"Environment({list(self._vars.items())!r})"


@dataclass
class ShellState:
    """Everything a running shell carries between commands."""

    env: Environment = field(default_factory=Environment)
    exit_status: int = 0


def is_valid_identifier(key: Optional[str]) -> bool:
    """Tell whether ``key`` may name a shell variable."""
    if not key:
        return False
    if key[0].isascii() and key[0].isdigit():
        return False
    return all(_is_name_char(char) for char in key)


def format_export(env: Environment) -> str:
    """Render the listing printed by ``export`` with no arguments, oldest first."""
    lines = []
    for key, value in reversed(list(env.items())):
        if value is None:
            lines.append(f"declare -x {key}\n")
        else:
            lines.append(f'declare -x {key}="{value}"\n')
    return "".join(lines)


def expand_variable(text: str, pos: int, env: Environment, exit_status: int) -> tuple[str, int]:
    """Expand the variable reference that starts at ``pos``, just after a ``$``.

    Returns the replacement text and the position after the reference.
    ``$?`` gives the exit status; a ``$`` followed by no name stays ``$``;
    an unknown name expands to the empty string.
    """
    if pos < len(text) and text[pos] == "?":
        return str(exit_status), pos + 1
    end = pos
    while end < len(text) and _is_name_char(text[end]):
        end += 1
    if end == pos:
        return "$", pos
    value = env.get(text[pos:end])
    return (value if value is not None else ""), end