"""Syntax tokenizer adapter backed by pygments.

The render model only needs ``(text, role)`` runs per line; this module
hides the lexer library behind a small protocol so tests can inject a
fake tokenizer.
"""

from __future__ import annotations

import os
from functools import lru_cache
from typing import Callable, List, Optional, Protocol, Tuple

from pygments.lexer import Lexer
from pygments.lexers import get_lexer_for_filename
from pygments.token import (
    Comment,
    Keyword,
    Name,
    Number,
    Operator,
    Punctuation,
    String,
    _TokenType,
)
from pygments.util import ClassNotFound

from ripdiff.core.rendered import TokenRole
from ripdiff.utils.log import get_logger

logger = get_logger()

Token = Tuple[str, TokenRole]


class Tokenizer(Protocol):
    def tokenize(self, text: str) -> List[Token]:
        ...


TokenizerFactory = Callable[[str], Optional[Tokenizer]]


def token_role_for(token_type: _TokenType) -> TokenRole:
    """Map a pygments token type onto a diff token role."""
    if token_type in Comment:
        return TokenRole.COMMENT
    if token_type in Keyword.Type:
        return TokenRole.TYPE
    if token_type in Keyword:
        return TokenRole.KEYWORD
    if token_type in String:
        return TokenRole.STRING
    if token_type in Number:
        return TokenRole.NUMBER
    if token_type in Name.Function:
        return TokenRole.FUNCTION
    if token_type in Name.Class or token_type in Name.Builtin:
        return TokenRole.TYPE
    if token_type in Punctuation or token_type in Operator:
        return TokenRole.PUNCTUATION
    return TokenRole.PLAIN


def plain_tokens(text: str) -> List[Token]:
    if not text:
        return []
    return [(text, TokenRole.PLAIN)]


class PygmentsTokenizer:
    """Tokenize single lines with a pygments lexer."""

    def __init__(self, lexer: Lexer):
        self.lexer = lexer

    def tokenize(self, text: str) -> List[Token]:
        if not text:
            return []
        tokens: List[Token] = []
        for token_type, value in self.lexer.get_tokens(text):
            if not value:
                continue
            tokens.append((value, token_role_for(token_type)))
        # pygments always terminates the stream with a newline.
        if not text.endswith("\n") and tokens and tokens[-1][0].endswith("\n"):
            value, role = tokens[-1]
            value = value[:-1]
            if value:
                tokens[-1] = (value, role)
            else:
                tokens.pop()
        return tokens


@lru_cache(maxsize=128)
def _lexer_for_name(name: str) -> Optional[Lexer]:
    try:
        return get_lexer_for_filename(name, stripnl=False, stripall=False, ensurenl=False, tabsize=0)
    except ClassNotFound:
        logger.debug("[tokenizer] No lexer for file", extra={"file_name": name})
        return None


def pygments_tokenizer_factory(path: str) -> Optional[Tokenizer]:
    """Default factory: choose a lexer from the file name, or ``None``."""
    if not path:
        return None
    name = os.path.basename(path)
    _, ext = os.path.splitext(name)
    # Cache by extension where there is one; extensionless names (Makefile) by name.
    lexer = _lexer_for_name(f"x{ext}" if ext else name)
    if lexer is None:
        return None
    return PygmentsTokenizer(lexer)


def tokenize_line(tokenizer: Optional[Tokenizer], text: str) -> List[Token]:
    """Tokenize with ``tokenizer`` when present, otherwise return plain tokens."""
    if tokenizer is None:
        return plain_tokens(text)
    tokens = tokenizer.tokenize(text)
    if "".join(value for value, _ in tokens) != text:
        logger.debug("[tokenizer] Token stream did not round-trip; falling back to plain text")
        return plain_tokens(text)
    return tokens


__all__ = [
    "Token",
    "Tokenizer",
    "TokenizerFactory",
    "PygmentsTokenizer",
    "plain_tokens",
    "pygments_tokenizer_factory",
    "token_role_for",
    "tokenize_line",
]
