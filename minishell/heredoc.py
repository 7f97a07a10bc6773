"""Reading here-documents into temporary files."""

from __future__ import annotations

import os
import re
import tempfile
from typing import Callable, Optional

from minishell.environment import Environment
from minishell.textutils import QUOTES

Reader = Callable[[str], Optional[str]]

HEREDOC_PROMPT = ">"
EOF_WARNING = "warning: here-document terminated unexpectedly (EOF)"

_VARIABLE = re.compile(r"\$([A-Za-z0-9_]+)")


def quoted_delimiter(delimiter: str) -> tuple[str, bool]:
    """Strip one pair of surrounding quotes from ``delimiter``.

    Returns the bare delimiter and whether it was quoted; a quoted delimiter
    turns off expansion in the document body.
    """
    if len(delimiter) >= 2 and delimiter[0] in QUOTES and delimiter[-1] == delimiter[0]:
        return delimiter[1:-1], True
    return delimiter, False


def expand_heredoc_line(line: str, env: Environment) -> str:
    """Replace ``$NAME`` references in ``line`` with their values."""
    return _VARIABLE.sub(lambda match: env.get(match[1]) or "", line)


def _prompt(prompt: str) -> Optional[str]:
    try:
        return input(prompt)
    except EOFError:
        return None


def read_heredoc(delimiter: str, env: Environment, reader: Optional[Reader] = None) -> str:
    """Read lines until ``delimiter`` and store them in a temporary file.

    ``reader`` is called with the prompt and returns the next line, or
    ``None`` at end of input.  Returns the path of the file written.
    """
    read = reader or _prompt
    word, quoted = quoted_delimiter(delimiter)
    fd, path = tempfile.mkstemp(prefix="heredoc_tmp_")
    with os.fdopen(fd, "w") as out:
        while True:
            try:
                line = read(HEREDOC_PROMPT)
            except EOFError:
                line = None
            if line is None:
                print(EOF_WARNING)
                break
            if line == word:
                break
            if not quoted:
                line = expand_heredoc_line(line, env)
            out.write(line + "\n")
    return path