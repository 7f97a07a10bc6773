"""Pointing standard input and output at files for a command."""

from __future__ import annotations

import contextlib
import os
import sys
from typing import Iterable, Iterator

from minishell.lexer import TokenType
from minishell.parser import Redirect

_FILE_MODE = 0o644

_OPENERS = {
    TokenType.REDIR_IN: (os.O_RDONLY, 0, "open infile"),
    TokenType.REDIR_OUT: (os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 1, "open outfile"),
    TokenType.REDIR_APPEND: (os.O_WRONLY | os.O_CREAT | os.O_APPEND, 1, "open append"),
    TokenType.HEREDOC: (os.O_RDONLY, 0, "open heredoc"),
}


def _flush_stdout() -> None:
    with contextlib.suppress(AttributeError, OSError, ValueError):
        sys.stdout.flush()


def _redirect(path: str, flags: int, target_fd: int, label: str) -> bool:
    try:
        fd = os.open(path, flags, _FILE_MODE)
    except OSError as exc:
        print(f"{label}: {exc.strerror}", file=sys.stderr)
        return False
    try:
        if target_fd == 1:
            _flush_stdout()
        os.dup2(fd, target_fd)
    finally:
        os.close(fd)
    return True


def apply_redirects(redirects: Iterable[Redirect]) -> bool:
    """Apply ``redirects`` in order to file descriptors 0 and 1.

    A file that cannot be opened is reported and skipped; the rest are
    still applied.  Returns whether every redirection succeeded.
    """
    ok = True
    for redirect in redirects:
        spec = _OPENERS.get(redirect.type)
        if spec is None:
            continue
        flags, target_fd, label = spec
        if not _redirect(redirect.target, flags, target_fd, label):
            ok = False
    return ok


@contextlib.contextmanager
def saved_stdio() -> Iterator[None]:
    """Restore standard input and output on leaving the block."""
    _flush_stdout()
    saved_in = os.dup(0)
    saved_out = os.dup(1)
    try:
        yield
    finally:
        _flush_stdout()
        os.dup2(saved_in, 0)
        os.dup2(saved_out, 1)
        os.close(saved_in)
        os.close(saved_out)