"""Splitting a command line into words and operators, with variable expansion."""

from __future__ import annotations

import enum
from dataclasses import dataclass

from minishell.environment import Environment
from minishell.textutils import (
    QUOTES,
    WHITESPACE,
    QuoteKind,
    is_operator_char,
    is_quoted,
    quote_kind,
    quoted_length,
    split_whitespace,
)


class TokenType(enum.Enum):
    """Kind of a lexical token."""

    WORD = 0
    PIPE = 1
    REDIR_IN = 2
    REDIR_OUT = 3
    REDIR_APPEND = 4
    HEREDOC = 5


@dataclass
class Token:
    """One word or operator of a command line."""

    value: str
    type: TokenType = TokenType.WORD
    quoted: bool = False


def _is_name_char(char: str) -> bool:
    return char == "_" or (char.isascii() and char.isalnum())


def _char_at(text: str, pos: int) -> str:
    return text[pos] if 0 <= pos < len(text) else ""


def operator_type(text: str) -> TokenType:
    """Return the token type that ``text`` starts with."""
    if text.startswith("|"):
        return TokenType.PIPE
    if text.startswith("<<"):
        return TokenType.HEREDOC
    if text.startswith(">>"):
        return TokenType.REDIR_APPEND
    if text.startswith("<"):
        return TokenType.REDIR_IN
    if text.startswith(">"):
        return TokenType.REDIR_OUT
    return TokenType.WORD


def token_size(text: str) -> int:
    """Length of the token at the start of ``text``.

    Quoted sections belong to the word around them, spaces and operators
    inside them included.  Raises ``ShellSyntaxError`` on an unclosed quote.
    """
    if text and is_operator_char(text[0]):
        if text.startswith("<<") or text.startswith(">>"):
            return 2
        return 1
    pos = 0
    while pos < len(text) and not is_operator_char(text[pos]) and text[pos] not in WHITESPACE:
        if text[pos] in QUOTES:
            pos += quoted_length(text, pos)
        else:
            pos += 1
    return pos


def strip_quotes(text: str, heredoc: bool = False) -> str:
    """Remove quote pairs from ``text``; a here-document delimiter is kept as is."""
    if heredoc:
        return text
    out = []
    pos = 0
    while pos < len(text):
        char = text[pos]
        if char in QUOTES:
            end = text.find(char, pos + 1)
            if end == -1:
                end = len(text)
            out.append(text[pos + 1:end])
            pos = end + 1
        else:
            out.append(char)
            pos += 1
    return "".join(out)


def _starts_expansion(word: str, pos: int) -> bool:
    nxt = _char_at(word, pos + 1)
    return word[pos] == "$" and nxt != "$" and nxt != "" and _is_name_char(nxt)


def _expand_name(word: str, pos: int, env: Environment) -> tuple[str, int]:
    end = pos + 1
    while end < len(word) and _is_name_char(word[end]):
        end += 1
    value = env.get(word[pos + 1:end])
    return (value or ""), end


def _literal_run(word: str, token: str, pos: int, stops: str) -> tuple[str, int]:
    """Consume bare text up to one of ``stops``; ``$$`` is dropped."""
    if word[pos] == "$" and _char_at(word, pos + 1) == "$":
        pos += 2
        start = pos
    elif word[pos] == "$":
        start = pos
        pos += 1
    else:
        start = pos
    while pos < len(word) and word[pos] not in stops:
        pos += 1
    if start != pos:
        token += word[start:pos]
    return token, pos


def _split_expansion(tokens: list[Token], expanded: str, token: str) -> str:
    """Join an unquoted expansion to ``token``, splitting it into fields.

    Complete fields become tokens of their own; the text that may still
    grow with what follows is returned.
    """
    if not any(char in WHITESPACE for char in expanded):
        return token + expanded
    rest = split_whitespace(expanded)
    if rest and expanded[0] not in WHITESPACE:
        token += rest.pop(0)
    if token:
        tokens.append(Token(token))
    if not rest:
        return ""
    *middle, last = rest
    tokens.extend(Token(field) for field in middle)
    if expanded[-1] not in WHITESPACE:
        return last
    tokens.append(Token(last))
    return ""


def _expand_word(tokens: list[Token], word: str, env: Environment) -> str:
    token = ""
    pos = 0
    length = len(word)
    while pos < length:
        char = word[pos]
        if char == "'":
            end = pos + quoted_length(word, pos)
            token += word[pos + 1:end - 1]
            pos = end
        elif char == '"':
            pos += 1
            while pos < length and word[pos] != '"':
                if _starts_expansion(word, pos):
                    value, pos = _expand_name(word, pos, env)
                    token += value
                else:
                    token, pos = _literal_run(word, token, pos, '$"')
            pos += 1
        elif _starts_expansion(word, pos):
            value, pos = _expand_name(word, pos, env)
            token = _split_expansion(tokens, value, token)
        else:
            token, pos = _literal_run(word, token, pos, "$\"'")
    return token


def _token_value(tokens: list[Token], chunk: str, env: Environment) -> str:
    kind = operator_type(chunk)
    if kind is TokenType.WORD and tokens and tokens[-1].type is TokenType.HEREDOC:
        return strip_quotes(chunk, heredoc=True)
    if kind is not TokenType.WORD or quote_kind(chunk) is QuoteKind.SINGLE:
        return strip_quotes(chunk)
    return _expand_word(tokens, chunk, env)


def tokenize(line: str, env: Environment) -> list[Token]:
    """Split ``line`` into tokens, expanding variables outside single quotes.

    Raises ``ShellSyntaxError`` on an unclosed quote.
    """
    tokens: list[Token] = []
    pos = 0
    while pos < len(line):
        while pos < len(line) and line[pos] in WHITESPACE:
            pos += 1
        if pos >= len(line):
            break
        rest = line[pos:]
        length = token_size(rest)
        chunk = rest[:length]
        value = _token_value(tokens, chunk, env)
        if value:
            tokens.append(Token(value, operator_type(chunk), is_quoted(chunk)))
        pos += length
    return tokens