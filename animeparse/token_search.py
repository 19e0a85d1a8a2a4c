#!/usr/bin/env python3
"""
Token navigation helpers used by the parser passes.

Tokens are addressed by list index. Searches return None when nothing
matches, so callers can treat "no token" and "wrong kind of token" alike.
"""

import logging
from enum import Flag, auto
from typing import List, Optional

from .element import ElementKind
from .text import DASHES_WITH_SPACE
from .tokenizer import Token, TokenizationResult, TokenKind

logger = logging.getLogger(__name__)


class TokenFlag(Flag):
    """Search criteria. Kind flags are OR-ed together; enclosure is AND-ed."""
    NONE = 0
    BRACKET = auto()
    NOT_BRACKET = auto()
    DELIMITER = auto()
    NOT_DELIMITER = auto()
    IDENTIFIER = auto()
    NOT_IDENTIFIER = auto()
    UNKNOWN = auto()
    NOT_UNKNOWN = auto()
    VALID = auto()
    NOT_VALID = auto()
    ENCLOSED = auto()
    NOT_ENCLOSED = auto()


_ENCLOSURE_FLAGS = TokenFlag.ENCLOSED | TokenFlag.NOT_ENCLOSED
_KIND_FLAGS = (
    TokenFlag.BRACKET | TokenFlag.NOT_BRACKET
    | TokenFlag.DELIMITER | TokenFlag.NOT_DELIMITER
    | TokenFlag.IDENTIFIER | TokenFlag.NOT_IDENTIFIER
    | TokenFlag.UNKNOWN | TokenFlag.NOT_UNKNOWN
    | TokenFlag.VALID | TokenFlag.NOT_VALID
)


def check_token_flags(token: Token, flags: TokenFlag) -> bool:
    if flags & _ENCLOSURE_FLAGS:
        wanted = bool(flags & TokenFlag.ENCLOSED)
        if token.enclosed != wanted:
            return False

    if flags & _KIND_FLAGS:
        checks = (
            (TokenFlag.BRACKET, TokenFlag.NOT_BRACKET, token.is_bracket),
            (TokenFlag.DELIMITER, TokenFlag.NOT_DELIMITER, token.kind == TokenKind.DELIMITER),
            (TokenFlag.IDENTIFIER, TokenFlag.NOT_IDENTIFIER, token.kind == TokenKind.IDENTIFIER),
            (TokenFlag.UNKNOWN, TokenFlag.NOT_UNKNOWN, token.kind == TokenKind.UNKNOWN),
            (TokenFlag.NOT_VALID, TokenFlag.VALID, token.kind == TokenKind.INVALID),
        )
        for positive, negative, is_kind in checks:
            if flags & positive and is_kind:
                return True
            if flags & negative and not is_kind:
                return True
        return False

    return True


def find_token(tokens: List[Token], start: int, end: int, flags: TokenFlag) -> Optional[int]:
    """Return the index of the first token in [start, end) matching the flags."""
    for i in range(max(start, 0), min(end, len(tokens))):
        if check_token_flags(tokens[i], flags):
            return i
    return None


def find_next_token(tokens: List[Token], index: int, flags: TokenFlag) -> Optional[int]:
    return find_token(tokens, index + 1, len(tokens), flags)


def find_previous_token(tokens: List[Token], index: int, flags: TokenFlag) -> Optional[int]:
    for i in range(min(index, len(tokens)) - 1, -1, -1):
        if check_token_flags(tokens[i], flags):
            return i
    return None


def token_has_kind(tokens: List[Token], index: Optional[int], kind: TokenKind) -> bool:
    return index is not None and tokens[index].kind == kind


def token_is_bracket(tokens: List[Token], index: Optional[int]) -> bool:
    return index is not None and tokens[index].is_bracket


def is_token_isolated(tokens: List[Token], index: int) -> bool:
    """True when the nearest non-delimiter tokens on both sides are brackets."""
    previous = find_previous_token(tokens, index, TokenFlag.NOT_DELIMITER)
    if not token_is_bracket(tokens, previous):
        return False

    following = find_next_token(tokens, index, TokenFlag.NOT_DELIMITER)
    return token_is_bracket(tokens, following)


def build_element(result: TokenizationResult, kind: ElementKind, keep_delimiters: bool,
                  begin: int, end: int) -> bool:
    """
    Render tokens[begin:end] as one element value and claim its unknown tokens.

    Unknown and bracket text is copied as-is and identifiers are skipped.
    Delimiters are copied literally when keep_delimiters is set; otherwise
    "," and "&" are kept, every other delimiter becomes a space, a leading
    delimiter is dropped and the result is trimmed of spaces and dashes.

    Returns:
        True if a non-empty element was inserted
    """
    parts = []
    for i in range(begin, end):
        token = result.tokens[i]
        if token.kind == TokenKind.UNKNOWN:
            parts.append(token.text)
            token.claim(kind)
        elif token.is_bracket:
            parts.append(token.text)
        elif token.kind == TokenKind.DELIMITER:
            if keep_delimiters:
                parts.append(token.text)
            elif i != begin:
                parts.append(token.text if token.text in ",&" else " ")

    value = "".join(parts)
    if not keep_delimiters:
        value = value.strip(DASHES_WITH_SPACE)

    if not value:
        return False
    logger.debug("Built %s %r", kind.value, value)
    return result.elements.insert(kind, value)
