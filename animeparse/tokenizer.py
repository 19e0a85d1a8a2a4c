#!/usr/bin/env python3
"""
Tokenizer module for splitting an anime filename into typed tokens.

The filename is first split on bracket pairs, then each bracket-bounded run
is searched for pre-identified literals (e.g. "Dual Audio", "H.264"), and
the remaining text is split on the allowed delimiter characters. A final
repair pass re-joins delimiters that were never meant to split anything,
such as the dots in "m.3.3.w" or the plus in "01+02".

Concatenating the text of every token yields the tokenized string again.
"""

import json
import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .element import ElementKind, Elements
from .keyword_dictionary import Keyword, KeywordDictionary
from .options import Options
from .text import is_alphanumeric_char, is_numeric_string

logger = logging.getLogger(__name__)

BRACKET_PAIRS = {
    "(": ")",
    "[": "]",
    "{": "}",
    "「": "」",
    "『": "』",
    "【": "】",
    "（": "）",
}


class TokenKind(Enum):
    OPEN_BRACKET = "open_bracket"
    CLOSE_BRACKET = "close_bracket"
    DELIMITER = "delimiter"
    UNKNOWN = "unknown"
    IDENTIFIER = "identifier"
    INVALID = "invalid"


@dataclass(eq=False)
class Token:
    """A contiguous run of filename text."""
    kind: TokenKind
    text: str
    enclosed: bool = False
    keyword: Optional[Keyword] = None  # dictionary entry seen by the keyword scan
    element_kind: Optional[ElementKind] = None  # element this token was claimed for

    @property
    def is_bracket(self) -> bool:
        return self.kind in (TokenKind.OPEN_BRACKET, TokenKind.CLOSE_BRACKET)

    def claim(self, element_kind: ElementKind) -> None:
        """Mark the token as consumed by an element."""
        self.kind = TokenKind.IDENTIFIER
        self.element_kind = element_kind

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "text": self.text,
            "enclosed": self.enclosed,
            "keyword": self.keyword.kind.value if self.keyword else None,
            "element_kind": self.element_kind.value if self.element_kind else None,
        }


@dataclass
class TokenizationResult:
    """Per-parse state shared by the tokenizer and every parser pass."""
    original: str
    cleaned: str
    options: Options = field(default_factory=Options)
    tokens: List[Token] = field(default_factory=list)
    elements: Elements = field(default_factory=Elements)
    removed_tokens: list = field(default_factory=list)
    found_episode_keywords: bool = False

    @property
    def success(self) -> bool:
        """A parse succeeds when an anime title was found."""
        return self.elements.contains(ElementKind.ANIME_TITLE)

    def to_json(self) -> str:
        """Convert result to JSON format."""
        json_data = {
            "original": self.original,
            "cleaned": self.cleaned,
            "success": self.success,
            "elements": self.elements.to_dict(),
            "tokens": [token.to_dict() for token in self.tokens],
        }
        return json.dumps(json_data, ensure_ascii=False)


class Tokenizer:
    """Tokenizer for splitting filenames into bracket, delimiter and text tokens."""

    def __init__(self, dictionary: KeywordDictionary):
        self.dictionary = dictionary

    def tokenize(
        self,
        cleaned: str,
        options: Optional[Options] = None,
        elements: Optional[Elements] = None,
        original: Optional[str] = None,
    ) -> TokenizationResult:
        """
        Tokenize a filename.

        Args:
            cleaned: Text to tokenize (extension and ignored strings already removed)
            options: Parser options; defaults are used when omitted
            elements: Element collection to extend with pre-identified terms
            original: The untouched filename, kept for reporting

        Returns:
            TokenizationResult holding the tokens and elements found so far
        """
        result = TokenizationResult(
            original=cleaned if original is None else original,
            cleaned=cleaned,
            options=options or Options(),
            elements=elements if elements is not None else Elements(),
        )

        self._tokenize_by_brackets(result)
        self._validate_delimiter_tokens(result.tokens)

        logger.debug("Tokenized %r into %d tokens", cleaned, len(result.tokens))
        return result

    def _tokenize_by_brackets(self, result: TokenizationResult) -> None:
        text = result.cleaned
        length = len(text)
        position = 0
        enclosed = False
        closing = ""

        while position < length:
            if not enclosed:
                index = next(
                    (i for i in range(position, length) if text[i] in BRACKET_PAIRS),
                    length,
                )
            else:
                # Only the partner of the open bracket may close it
                index = text.find(closing, position)
                if index == -1:
                    index = length

            if index > position:
                self._tokenize_by_preidentified(result, position, index, enclosed)

            if index == length:
                break

            if enclosed:
                kind = TokenKind.CLOSE_BRACKET
            else:
                kind = TokenKind.OPEN_BRACKET
                closing = BRACKET_PAIRS[text[index]]
            result.tokens.append(Token(kind=kind, text=text[index], enclosed=True))
            enclosed = not enclosed
            position = index + 1

    def _tokenize_by_preidentified(self, result: TokenizationResult, start: int, end: int, enclosed: bool) -> None:
        text = result.cleaned
        accepted: List[Tuple[int, int, ElementKind, str]] = []

        for offset, size, kind, literal in self.dictionary.peek(text, start, end):
            if any(offset < o + s and o < offset + size for o, s, _, _ in accepted):
                continue
            if not result.elements.add(kind, literal):
                continue
            logger.debug("Pre-identified %s %r", kind.value, literal)
            accepted.append((offset, size, kind, literal))

        position = start
        for offset, size, kind, literal in sorted(accepted):
            if offset > position:
                self._tokenize_by_delimiters(result, position, offset, enclosed)
            result.tokens.append(Token(
                kind=TokenKind.IDENTIFIER,
                text=literal,
                enclosed=enclosed,
                keyword=self.dictionary.lookup(self.dictionary.normalize(literal)),
                element_kind=kind,
            ))
            position = offset + size

        if position < end:
            self._tokenize_by_delimiters(result, position, end, enclosed)

    def _tokenize_by_delimiters(self, result: TokenizationResult, start: int, end: int, enclosed: bool) -> None:
        text = result.cleaned
        allowed = result.options.allowed_delimiters
        delimiters = {c for c in text[start:end] if c in allowed and not is_alphanumeric_char(c)}

        if not delimiters:
            result.tokens.append(Token(kind=TokenKind.UNKNOWN, text=text[start:end], enclosed=enclosed))
            return

        word_start = start
        for i in range(start, end):
            if text[i] not in delimiters:
                continue
            if i > word_start:
                result.tokens.append(Token(kind=TokenKind.UNKNOWN, text=text[word_start:i], enclosed=enclosed))
            result.tokens.append(Token(kind=TokenKind.DELIMITER, text=text[i], enclosed=enclosed))
            word_start = i + 1

        if word_start < end:
            result.tokens.append(Token(kind=TokenKind.UNKNOWN, text=text[word_start:end], enclosed=enclosed))

    def _validate_delimiter_tokens(self, tokens: List[Token]) -> None:
        """
        Re-join delimiters that should not have split their neighbours.

        Absorbed tokens are tombstoned as INVALID while the pass runs and
        dropped at the end, so neighbour lookups skip them.
        """
        def previous_index(i: int) -> Optional[int]:
            i -= 1
            while i >= 0 and tokens[i].kind == TokenKind.INVALID:
                i -= 1
            return i if i >= 0 else None

        def next_index(i: int) -> Optional[int]:
            i += 1
            while i < len(tokens) and tokens[i].kind == TokenKind.INVALID:
                i += 1
            return i if i < len(tokens) else None

        def is_delimiter(i: Optional[int]) -> bool:
            return i is not None and tokens[i].kind == TokenKind.DELIMITER

        def is_unknown(i: Optional[int]) -> bool:
            return i is not None and tokens[i].kind == TokenKind.UNKNOWN

        def is_single_character(i: Optional[int]) -> bool:
            return is_unknown(i) and len(tokens[i].text) == 1 and tokens[i].text != "-"

        def append_to(i: int, target: int) -> None:
            tokens[target].text += tokens[i].text
            tokens[i].kind = TokenKind.INVALID

        for i, token in enumerate(tokens):
            if token.kind != TokenKind.DELIMITER:
                continue
            delimiter = token.text
            prev = previous_index(i)
            nxt = next_index(i)

            # Single-character words, e.g. "m.3.3.w", "a-b"
            if delimiter not in " _":
                if is_single_character(prev):
                    append_to(i, prev)
                    while is_unknown(nxt):
                        append_to(nxt, prev)
                        nxt = next_index(nxt)
                        if is_delimiter(nxt) and tokens[nxt].text == delimiter:
                            append_to(nxt, prev)
                            nxt = next_index(nxt)
                    continue
                if is_single_character(nxt) and is_unknown(prev):
                    append_to(i, prev)
                    append_to(nxt, prev)
                    continue

            # Adjacent delimiters
            if is_unknown(prev) and is_delimiter(nxt):
                next_delimiter = tokens[nxt].text
                if delimiter != next_delimiter and delimiter != "," and next_delimiter in " _":
                    append_to(i, prev)
            elif is_delimiter(prev) and is_delimiter(nxt):
                if tokens[prev].text == tokens[nxt].text != delimiter:
                    token.kind = TokenKind.UNKNOWN  # e.g. "&" in "_&_"

            if delimiter in "&+" and token.kind == TokenKind.DELIMITER:
                if is_unknown(prev) and is_unknown(nxt):
                    if is_numeric_string(tokens[prev].text) and is_numeric_string(tokens[nxt].text):
                        append_to(i, prev)
                        append_to(nxt, prev)  # e.g. "01+02"

        tokens[:] = [token for token in tokens if token.kind != TokenKind.INVALID]
