"""Turning tokens into a pipeline of commands."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, Optional

from minishell.environment import Environment
from minishell.heredoc import Reader, quoted_delimiter, read_heredoc
from minishell.lexer import Token, TokenType
from minishell.textutils import ShellSyntaxError

PIPE_ERROR = "syntax error near unexpected token `|'"
REDIRECT_ERROR = "syntax error: redirection operator used without a file"

_REDIRECT_TYPES = frozenset(
    {TokenType.REDIR_IN, TokenType.REDIR_OUT, TokenType.REDIR_APPEND, TokenType.HEREDOC}
)


@dataclass
class Redirect:
    """A redirection of a command.

    For a here-document ``target`` is the file holding its text and
    ``delimiter`` the word that ended it.
    """

    type: TokenType
    target: str
    quoted: bool = False
    delimiter: Optional[str] = None


@dataclass
class Command:
    """One simple command: its words and its redirections, in order."""

    args: list[str] = field(default_factory=list)
    redirects: list[Redirect] = field(default_factory=list)


def _make_redirect(kind: TokenType, word: Token, env: Environment,
                   reader: Optional[Reader]) -> Redirect:
    if kind is TokenType.HEREDOC:
        path = read_heredoc(word.value, env, reader)
        return Redirect(kind, path, word.quoted, quoted_delimiter(word.value)[0])
    return Redirect(kind, word.value, word.quoted)


def _parse_command(tokens: list[Token], pos: int, env: Environment,
                   reader: Optional[Reader]) -> tuple[Command, int]:
    command = Command()
    while pos < len(tokens) and tokens[pos].type is not TokenType.PIPE:
        token = tokens[pos]
        if token.type in _REDIRECT_TYPES:
            pos += 1
            if pos >= len(tokens) or tokens[pos].type is not TokenType.WORD:
                raise ShellSyntaxError(REDIRECT_ERROR)
            command.redirects.append(_make_redirect(token.type, tokens[pos], env, reader))
        else:
            command.args.append(token.value)
        pos += 1
    return command, pos


def parse_pipeline(tokens: Iterable[Token], env: Environment,
                   reader: Optional[Reader] = None) -> list[Command]:
    """Group ``tokens`` into commands separated by pipes.

    Here-documents are read as they are met, through ``reader``.
    Raises ``ShellSyntaxError`` on a misplaced pipe or a redirection with
    no file.
    """
    items = list(tokens)
    if items and items[0].type is TokenType.PIPE:
        raise ShellSyntaxError(PIPE_ERROR)
    commands: list[Command] = []
    pos = 0
    while pos < len(items):
        command, pos = _parse_command(items, pos, env, reader)
        commands.append(command)
        if pos >= len(items):
            break
        if pos + 1 >= len(items) or items[pos + 1].type is TokenType.PIPE:
            raise ShellSyntaxError(PIPE_ERROR)
        pos += 1
    return commands