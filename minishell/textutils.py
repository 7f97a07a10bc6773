"""Character classes, quote scanning and string splitting for the shell."""

from __future__ import annotations

import enum
import re

WHITESPACE = " \t\n"
OPERATORS = "<>|"
QUOTES = "'\""

_WHITESPACE_RUN = re.compile(r"[ \t\n]+")


class ShellSyntaxError(Exception):
    """Raised when a command line cannot be parsed."""


class QuoteKind(enum.Enum):
    """How a word is quoted."""

    NONE = 0
    SINGLE = 1
    DOUBLE = 2
    MIXED = 3


def quoted_length(text: str, start: int) -> int:
    """Length of the quoted section opening at ``start``, both quotes included."""
    quote = text[start]
    end = text.find(quote, start + 1)
    if end == -1:
        raise ShellSyntaxError("syntax error: unclosed quotes")
    return end - start + 1


def quote_kind(text: str) -> QuoteKind:
    """Classify ``text`` by the kinds of quoting it contains.

    ``NONE`` means only bare characters, ``SINGLE`` or ``DOUBLE`` means only
    sections in that kind of quote, and anything else is ``MIXED``.
    """
    single = double = bare = False
    pos = 0
    while pos < len(text):
        char = text[pos]
        if char in QUOTES:
            if char == '"':
                double = True
            else:
                single = True
            pos += quoted_length(text, pos)
        else:
            bare = True
            pos += 1
    if bare and not single and not double:
        return QuoteKind.NONE
    if single and not double and not bare:
        return QuoteKind.SINGLE
    if double and not single and not bare:
        return QuoteKind.DOUBLE
    return QuoteKind.MIXED


def is_quoted(text: str) -> bool:
    """Tell whether ``text`` contains any quoting."""
    return quote_kind(text) is not QuoteKind.NONE


def split_fields(text: str, sep: str) -> list[str]:
    """Split ``text`` on ``sep``, dropping empty fields."""
    return [part for part in text.split(sep) if part]


def split_whitespace(text: str) -> list[str]:
    """Split ``text`` on runs of spaces, tabs and newlines."""
    return [part for part in _WHITESPACE_RUN.split(text) if part]


def is_blank(text: str) -> bool:
    """Tell whether ``text`` holds nothing but spaces, tabs and newlines."""
    return all(char in WHITESPACE for char in text)


def is_operator_char(char: str) -> bool:
    """Tell whether ``char`` starts a pipe or redirection operator."""
    return len(char) == 1 and char in OPERATORS