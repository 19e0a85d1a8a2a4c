#!/usr/bin/env python3
"""
Episode extractor module for finding episode and volume numbers.

Extracts:
- Bare season words: S2, 第2期 (when no season keyword matched)
- Prefixed numbers: EP01, E05, Vol.3, "EP 12" (via the keyword scan)
- Number pairs: "8 & 10", "01 of 24"
- Pattern numbers: 01v2, 01-02, S01E03, 2x01, OVA2, 07.5, 4a, #01, 01話
- Plain numbers as a fallback: "01 (176)", " - 08", "[12]", or the last number

Patterns are kept in an ordered table; the first one that matches a word
wins. Numeric fallbacks only run when no pattern matched and no episode
number was found earlier by the keyword scan.
"""

import logging
import re
from dataclasses import dataclass
from typing import List, Optional

from .element import ElementKind
from .keyword_dictionary import KeywordDictionary
from .text import (
    equals_ignore_case,
    find_number_in_string,
    is_dash_character,
    is_numeric_char,
    is_numeric_string,
    to_int,
    trim,
)
from .token_search import (
    TokenFlag,
    find_next_token,
    find_previous_token,
    is_token_isolated,
    token_has_kind,
    token_is_bracket,
)
from .tokenizer import Token, TokenizationResult, TokenKind

logger = logging.getLogger(__name__)

EPISODE_NUMBER_MAX = 1899
VOLUME_NUMBER_MAX = 20

SINGLE_EPISODE_RE = re.compile(r"(\d{1,3})[vV](\d)", re.ASCII)
MULTI_EPISODE_RE = re.compile(r"(\d{1,3})(?:[vV](\d))?[-~&+](\d{1,3})(?:[vV](\d))?", re.ASCII)
SEASON_AND_EPISODE_RE = re.compile(
    r"S?(\d{1,2})(?:-S?(\d{1,2}))?(?:x|[ ._\-x]?E)(\d{1,3})(?:-E?(\d{1,3}))?",
    re.ASCII | re.IGNORECASE,
)
FRACTIONAL_EPISODE_RE = re.compile(r"\d+\.5", re.ASCII)
NUMBER_SIGN_RE = re.compile(r"#(\d{1,3})(?:[-~&+](\d{1,3}))?(?:[vV](\d))?", re.ASCII)
JAPANESE_COUNTER_RE = re.compile(r"(\d{1,3})話", re.ASCII)

SEASON_ONLY_RE = re.compile(r"S(\d{1,2})", re.ASCII)
SEASON_COUNTER_RE = re.compile(r"第?(\d{1,2})期", re.ASCII)

SINGLE_VOLUME_RE = re.compile(r"(\d{1,2})[vV](\d)", re.ASCII)
MULTI_VOLUME_RE = re.compile(r"(\d{1,2})[-~&+](\d{1,2})(?:[vV](\d))?", re.ASCII)

PARTIAL_EPISODE_SUFFIXES = "abcABC"


@dataclass(frozen=True)
class NumberPattern:
    """
    One row of a pattern table.

    numeric_front / numeric_back restrict which words the handler sees:
    True requires a digit at that end, False forbids one, None accepts both.
    """
    name: str
    handler: str
    numeric_front: Optional[bool] = None
    numeric_back: Optional[bool] = None

    def applies(self, numeric_front: bool, numeric_back: bool) -> bool:
        if self.numeric_front is not None and self.numeric_front != numeric_front:
            return False
        if self.numeric_back is not None and self.numeric_back != numeric_back:
            return False
        return True


EPISODE_PATTERNS = (
    NumberPattern("single", "_match_single_episode", True, True),            # 01v2
    NumberPattern("multi", "_match_multi_episode", True, True),              # 01-02, 03-05v2
    NumberPattern("season", "_match_season_and_episode", None, True),        # 2x01, S01E03
    NumberPattern("type", "_match_type_and_episode", False, None),           # ED1, OVA2
    NumberPattern("fractional", "_match_fractional_episode", True, True),    # 07.5
    NumberPattern("partial", "_match_partial_episode", True, False),         # 4a, 111C
    NumberPattern("number_sign", "_match_number_sign", None, True),          # #01, #02-03v2
    NumberPattern("japanese_counter", "_match_japanese_counter", True, None),  # 01話
)

VOLUME_PATTERNS = (
    NumberPattern("single", "_match_single_volume", True, True),
    NumberPattern("multi", "_match_multi_volume", True, True),
)


def is_valid_episode_number(number: str) -> bool:
    return to_int(number) <= EPISODE_NUMBER_MAX


def is_valid_volume_number(number: str) -> bool:
    return to_int(number) <= VOLUME_NUMBER_MAX


class EpisodeExtractor:
    """Extractor for episode and volume numbers."""

    def __init__(self, dictionary: KeywordDictionary):
        self.dictionary = dictionary

    # -- setters -----------------------------------------------------------

    def set_episode_number(self, result: TokenizationResult, number: str, token: Token, validate: bool) -> bool:
        """
        Record an episode number and claim its token.

        When episode keywords were already found before this pass, the new
        number is compared with the first episode number and the larger of
        the two becomes the alternative number.

        Args:
            result: Parse state
            number: Number text to store
            token: Token the number came from
            validate: Reject numbers above EPISODE_NUMBER_MAX

        Returns:
            True if an element was added
        """
        if validate and not is_valid_episode_number(number):
            return False

        token.claim(ElementKind.EPISODE_NUMBER)
        kind = ElementKind.EPISODE_NUMBER

        if result.found_episode_keywords:
            existing = result.elements.find(ElementKind.EPISODE_NUMBER)
            if existing is not None:
                comparison = to_int(number) - to_int(existing.value)
                if comparison == 0:
                    return False
                if result.elements.contains(ElementKind.EPISODE_NUMBER_ALT):
                    return False
                if comparison > 0:
                    kind = ElementKind.EPISODE_NUMBER_ALT
                    token.claim(kind)
                else:
                    existing.kind = ElementKind.EPISODE_NUMBER_ALT

        logger.debug("Episode number %s (%s)", number, kind.value)
        return result.elements.insert(kind, number)

    def set_alternative_episode_number(self, result: TokenizationResult, number: str, token: Token) -> bool:
        if not result.elements.add(ElementKind.EPISODE_NUMBER_ALT, number):
            return False
        token.claim(ElementKind.EPISODE_NUMBER_ALT)
        return True

    def set_volume_number(self, result: TokenizationResult, number: str, token: Token, validate: bool,
                          upper_bound: bool = False) -> bool:
        """
        Record a volume number and claim its token.

        Only the upper bound of a volume range may join an existing volume
        number.
        """
        if validate and not is_valid_volume_number(number):
            return False
        if not upper_bound and result.elements.contains(ElementKind.VOLUME_NUMBER):
            return False

        result.elements.insert(ElementKind.VOLUME_NUMBER, number)
        token.claim(ElementKind.VOLUME_NUMBER)
        return True

    # -- pattern tables ----------------------------------------------------

    def match_episode_patterns(self, result: TokenizationResult, word: str, token: Token) -> bool:
        """Try each episode pattern in order against a word."""
        # Every pattern has at least one non-numeric character
        if is_numeric_string(word):
            return False
        return self._match_table(EPISODE_PATTERNS, result, word, token)

    def match_volume_patterns(self, result: TokenizationResult, word: str, token: Token) -> bool:
        if is_numeric_string(word):
            return False
        return self._match_table(VOLUME_PATTERNS, result, word, token)

    def _match_table(self, patterns, result: TokenizationResult, word: str, token: Token) -> bool:
        word = trim(word, " -")
        if not word:
            return False

        numeric_front = is_numeric_char(word[0])
        numeric_back = is_numeric_char(word[-1])

        for pattern in patterns:
            if not pattern.applies(numeric_front, numeric_back):
                continue
            if getattr(self, pattern.handler)(result, word, token):
                logger.debug("Matched %s pattern on %r", pattern.name, word)
                return True
        return False

    def _match_single_episode(self, result: TokenizationResult, word: str, token: Token) -> bool:
        match = SINGLE_EPISODE_RE.fullmatch(word)
        if not match:
            return False
        self.set_episode_number(result, match.group(1), token, False)
        result.elements.add(ElementKind.RELEASE_VERSION, match.group(2))
        return True

    def _match_multi_episode(self, result: TokenizationResult, word: str, token: Token) -> bool:
        match = MULTI_EPISODE_RE.fullmatch(word)
        if not match:
            return False
        lower, upper = match.group(1), match.group(3)
        # Avoid "009-1" or "5-2"
        if to_int(lower) >= to_int(upper):
            return False
        if not self.set_episode_number(result, lower, token, True):
            return False
        self.set_episode_number(result, upper, token, False)
        for version in (match.group(2), match.group(4)):
            if version is not None:
                result.elements.add(ElementKind.RELEASE_VERSION, version)
        return True

    def _match_season_and_episode(self, result: TokenizationResult, word: str, token: Token) -> bool:
        match = SEASON_AND_EPISODE_RE.fullmatch(word)
        if not match:
            return False
        # AnimeSeason is singular, so "S01-S02" keeps the first season only
        result.elements.add(ElementKind.ANIME_SEASON, match.group(1))
        self.set_episode_number(result, match.group(3), token, False)
        if match.group(4) is not None:
            self.set_episode_number(result, match.group(4), token, False)
        return True

    def _match_type_and_episode(self, result: TokenizationResult, word: str, token: Token) -> bool:
        number_begin = find_number_in_string(word)
        if number_begin <= 0:
            return False
        prefix = word[:number_begin]
        keyword = self.dictionary.lookup(self.dictionary.normalize(prefix), ElementKind.ANIME_TYPE)
        if keyword is None:
            return False

        number = word[number_begin:]
        if not (self.match_episode_patterns(result, number, token)
                or self.set_episode_number(result, number, token, True)):
            return False

        result.elements.insert(ElementKind.ANIME_TYPE, prefix)

        # Split the token into the type keyword and the number; characters
        # trimmed from the word stay on the number side
        split = max(token.text.find(word), 0) + number_begin
        index = result.tokens.index(token)
        prefix_text, token.text = token.text[:split], token.text[split:]
        result.tokens.insert(index, Token(
            kind=TokenKind.IDENTIFIER if keyword.identifiable else TokenKind.UNKNOWN,
            text=prefix_text,
            enclosed=token.enclosed,
            keyword=keyword,
            element_kind=ElementKind.ANIME_TYPE if keyword.identifiable else None,
        ))
        return True

    def _match_fractional_episode(self, result: TokenizationResult, word: str, token: Token) -> bool:
        # Only ".5" is allowed; "1.11" or "8.0" are usually part of a title, "5.1" is audio
        if not FRACTIONAL_EPISODE_RE.fullmatch(word):
            return False
        return self.set_episode_number(result, word, token, True)

    def _match_partial_episode(self, result: TokenizationResult, word: str, token: Token) -> bool:
        suffix_begin = next((i for i, c in enumerate(word) if not is_numeric_char(c)), len(word))
        suffix = word[suffix_begin:]
        if len(suffix) != 1 or suffix not in PARTIAL_EPISODE_SUFFIXES:
            return False
        return self.set_episode_number(result, word, token, True)

    def _match_number_sign(self, result: TokenizationResult, word: str, token: Token) -> bool:
        if not word.startswith("#"):
            return False
        match = NUMBER_SIGN_RE.fullmatch(word)
        if not match:
            return False
        if not self.set_episode_number(result, match.group(1), token, True):
            return False
        if match.group(2) is not None:
            self.set_episode_number(result, match.group(2), token, False)
        if match.group(3) is not None:
            result.elements.add(ElementKind.RELEASE_VERSION, match.group(3))
        return True

    def _match_japanese_counter(self, result: TokenizationResult, word: str, token: Token) -> bool:
        if not word.endswith("話"):
            return False
        match = JAPANESE_COUNTER_RE.fullmatch(word)
        if not match:
            return False
        self.set_episode_number(result, match.group(1), token, False)
        return True

    def _match_single_volume(self, result: TokenizationResult, word: str, token: Token) -> bool:
        match = SINGLE_VOLUME_RE.fullmatch(word)
        if not match:
            return False
        self.set_volume_number(result, match.group(1), token, False)
        result.elements.add(ElementKind.RELEASE_VERSION, match.group(2))
        return True

    def _match_multi_volume(self, result: TokenizationResult, word: str, token: Token) -> bool:
        match = MULTI_VOLUME_RE.fullmatch(word)
        if not match:
            return False
        lower, upper = match.group(1), match.group(2)
        if to_int(lower) >= to_int(upper):
            return False
        if not self.set_volume_number(result, lower, token, True):
            return False
        self.set_volume_number(result, upper, token, False, upper_bound=True)
        if match.group(3) is not None:
            result.elements.add(ElementKind.RELEASE_VERSION, match.group(3))
        return True

    # -- token level searches ----------------------------------------------

    def search_for_season_number(self, result: TokenizationResult, candidates: List[Token]) -> bool:
        """Handle a bare "S2" or "第2期" when no season was found by keyword."""
        if result.elements.contains(ElementKind.ANIME_SEASON):
            return False
        for token in candidates:
            match = SEASON_ONLY_RE.fullmatch(token.text) or SEASON_COUNTER_RE.fullmatch(token.text)
            if match:
                result.elements.add(ElementKind.ANIME_SEASON, match.group(1))
                token.claim(ElementKind.ANIME_SEASON)
                logger.debug("Season %s from %r", match.group(1), token.text)
                return True
        return False

    def number_comes_after_prefix(self, result: TokenizationResult, kind: ElementKind, token: Token) -> bool:
        """Handle words such as "EP01", "E05" or "Vol.3"."""
        number_begin = find_number_in_string(token.text)
        if number_begin <= 0:
            return False
        prefix = self.dictionary.normalize(token.text[:number_begin])
        if not self.dictionary.find(kind, prefix):
            return False

        number = token.text[number_begin:]
        if kind == ElementKind.EPISODE_PREFIX:
            if not self.match_episode_patterns(result, number, token):
                self.set_episode_number(result, number, token, False)
            return True
        if kind == ElementKind.VOLUME_PREFIX:
            if not self.match_volume_patterns(result, number, token):
                self.set_volume_number(result, number, token, False)
            return True
        return False

    def number_comes_before_another_number(self, result: TokenizationResult, token: Token) -> bool:
        """Handle "8 & 10" (two episodes) and "01 of 24" (episode and total)."""
        tokens = result.tokens
        index = tokens.index(token)
        separator = find_next_token(tokens, index, TokenFlag.NOT_DELIMITER)
        if separator is None:
            return False

        for text, both_are_episodes in (("&", True), ("of", False)):
            if not equals_ignore_case(tokens[separator].text, text):
                continue
            other = find_next_token(tokens, separator, TokenFlag.NOT_DELIMITER)
            if other is None or not is_numeric_string(tokens[other].text):
                continue
            self.set_episode_number(result, token.text, token, False)
            if both_are_episodes:
                self.set_episode_number(result, tokens[other].text, tokens[other], False)
            tokens[separator].claim(ElementKind.EPISODE_NUMBER)
            tokens[other].claim(ElementKind.EPISODE_NUMBER)
            return True
        return False

    def _search_for_episode_patterns(self, result: TokenizationResult, candidates: List[Token]) -> bool:
        for token in candidates:
            if token.kind != TokenKind.UNKNOWN:
                continue
            if not is_numeric_char(token.text[0]):
                if self.number_comes_after_prefix(result, ElementKind.EPISODE_PREFIX, token):
                    return True
                if self.number_comes_after_prefix(result, ElementKind.VOLUME_PREFIX, token):
                    continue
            elif self.number_comes_before_another_number(result, token):
                return True

            if self.match_episode_patterns(result, token.text, token):
                return True
        return False

    def _search_for_equivalent_numbers(self, result: TokenizationResult, numbers: List[Token]) -> bool:
        """Handle "01 (176)" or "29 (04)": the smaller is the episode, the larger the alternative."""
        tokens = result.tokens
        for token in numbers:
            index = tokens.index(token)
            if is_token_isolated(tokens, index) or not is_valid_episode_number(token.text):
                continue

            following = find_next_token(tokens, index, TokenFlag.NOT_DELIMITER)
            if not token_is_bracket(tokens, following):
                continue
            following = find_next_token(tokens, following, TokenFlag.ENCLOSED | TokenFlag.NOT_DELIMITER)
            if not token_has_kind(tokens, following, TokenKind.UNKNOWN):
                continue

            other = tokens[following]
            if (not is_token_isolated(tokens, following)
                    or not is_numeric_string(other.text)
                    or not is_valid_episode_number(other.text)):
                continue

            smaller, larger = sorted((token, other), key=lambda t: to_int(t.text))
            self.set_episode_number(result, smaller.text, smaller, False)
            self.set_alternative_episode_number(result, larger.text, larger)
            return True
        return False

    def _search_for_separated_numbers(self, result: TokenizationResult, numbers: List[Token]) -> bool:
        """Handle " - 08"."""
        tokens = result.tokens
        for token in numbers:
            previous = find_previous_token(tokens, tokens.index(token), TokenFlag.NOT_DELIMITER)
            if not token_has_kind(tokens, previous, TokenKind.UNKNOWN):
                continue
            if not is_dash_character(tokens[previous].text):
                continue
            if self.set_episode_number(result, token.text, token, True):
                tokens[previous].claim(ElementKind.EPISODE_NUMBER)
                return True
        return False

    def _search_for_isolated_numbers(self, result: TokenizationResult, numbers: List[Token]) -> bool:
        """Handle "[12]"."""
        tokens = result.tokens
        for token in numbers:
            if not token.enclosed or not is_token_isolated(tokens, tokens.index(token)):
                continue
            if self.set_episode_number(result, token.text, token, True):
                return True
        return False

    def _search_for_last_number(self, result: TokenizationResult, numbers: List[Token]) -> bool:
        tokens = result.tokens
        for token in reversed(numbers):
            index = tokens.index(token)

            # The episode number comes after the title, so never the first token
            if index == 0:
                continue
            if token.enclosed:
                continue
            # Nor the first non-enclosed, non-delimiter token
            if all(t.enclosed or t.kind == TokenKind.DELIMITER for t in tokens[:index]):
                continue
            # "Movie 2", "Part 2"
            previous = find_previous_token(tokens, index, TokenFlag.NOT_DELIMITER)
            if token_has_kind(tokens, previous, TokenKind.UNKNOWN):
                if tokens[previous].text.lower() in ("movie", "part"):
                    continue

            if self.set_episode_number(result, token.text, token, True):
                return True
        return False

    def process(self, result: TokenizationResult) -> TokenizationResult:
        """
        Find the episode number among the unclaimed tokens.

        Args:
            result: TokenizationResult after the keyword and isolated number passes

        Returns:
            Updated TokenizationResult with episode/volume elements
        """
        candidates = [
            token for token in result.tokens
            if token.kind == TokenKind.UNKNOWN and find_number_in_string(token.text) != -1
        ]
        if not candidates:
            return result

        result.found_episode_keywords = result.elements.contains(ElementKind.EPISODE_NUMBER)

        if self.search_for_season_number(result, candidates):
            candidates = [token for token in candidates if token.kind == TokenKind.UNKNOWN]

        # A token matching a known pattern has to be the episode number
        if self._search_for_episode_patterns(result, candidates):
            return result

        # Found earlier via an episode keyword
        if result.elements.contains(ElementKind.EPISODE_NUMBER):
            return result

        numbers = [
            token for token in candidates
            if token.kind == TokenKind.UNKNOWN and is_numeric_string(token.text)
        ]
        if not numbers:
            return result

        for search in (
            self._search_for_equivalent_numbers,
            self._search_for_separated_numbers,
            self._search_for_isolated_numbers,
            self._search_for_last_number,
        ):
            if search(result, numbers):
                break
        return result
