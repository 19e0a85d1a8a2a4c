#!/usr/bin/env python3
"""
Keyword matcher module for identifying known terms in filename tokens.

Matches each unclaimed token against the keyword dictionary (case-insensitive
exact match). A hit adds an element of the keyword's kind; identifiable
keywords also claim the token. Season, episode and volume prefixes pull the
number from a neighbouring token. Words that are not keywords may still be a
CRC32 checksum or a video resolution.
"""

import logging
from typing import Optional

from .element import ElementKind, is_searchable, is_singular
from .episode_extractor import EpisodeExtractor
from .keyword_dictionary import KeywordDictionary
from .text import (
    find_number_in_string,
    is_crc32,
    is_numeric_string,
    is_resolution,
    number_from_ordinal,
    number_from_roman,
    trim,
)
from .token_search import TokenFlag, find_next_token, find_previous_token, token_has_kind
from .tokenizer import Token, TokenizationResult, TokenKind

logger = logging.getLogger(__name__)


class KeywordMatcher:
    """Matches tokens against known keywords."""

    def __init__(self, dictionary: KeywordDictionary, episode_extractor: Optional[EpisodeExtractor] = None):
        self.dictionary = dictionary
        self.episode_extractor = episode_extractor or EpisodeExtractor(dictionary)

    def process(self, result: TokenizationResult) -> TokenizationResult:
        """
        Scan every unknown token for keywords, checksums and resolutions.

        Args:
            result: TokenizationResult to process

        Returns:
            Modified TokenizationResult with keyword elements added
        """
        # Iterate over a snapshot, prefix handling may split tokens
        for token in list(result.tokens):
            if token.kind != TokenKind.UNKNOWN:
                continue
            self._match_token(result, token)
        return result

    def _match_token(self, result: TokenizationResult, token: Token) -> None:
        word = trim(token.text, " -")
        if not word:
            return
        # A number can only be a keyword if it could be a CRC32
        if len(word) != 8 and is_numeric_string(word):
            return

        elements = result.elements
        keyword = self.dictionary.lookup(self.dictionary.normalize(word))
        kind: Optional[ElementKind] = None
        identifiable = True

        if keyword is not None:
            token.keyword = keyword
            kind = keyword.kind
            identifiable = keyword.identifiable

            if kind == ElementKind.RELEASE_GROUP and not result.options.parse_release_group:
                return
            if not is_searchable(kind) or not keyword.searchable:
                return
            if is_singular(kind) and elements.contains(kind):
                return

            if kind == ElementKind.ANIME_SEASON_PREFIX:
                self._check_anime_season_keyword(result, token)
                return
            if kind == ElementKind.EPISODE_PREFIX:
                if keyword.valid:
                    self._check_extent_keyword(result, ElementKind.EPISODE_NUMBER, token)
                return
            if kind == ElementKind.VOLUME_PREFIX:
                self._check_extent_keyword(result, ElementKind.VOLUME_NUMBER, token)
                return
            if kind == ElementKind.RELEASE_VERSION:
                word = word[1:]  # number without "v"
        else:
            if not elements.contains(ElementKind.FILE_CHECKSUM) and is_crc32(word):
                kind = ElementKind.FILE_CHECKSUM
            elif not elements.contains(ElementKind.VIDEO_RESOLUTION) and is_resolution(word):
                kind = ElementKind.VIDEO_RESOLUTION

        if kind is None:
            return

        logger.debug("Keyword %s %r", kind.value, word)
        elements.insert(kind, word)
        if identifiable:
            token.claim(kind)

    def _check_anime_season_keyword(self, result: TokenizationResult, token: Token) -> bool:
        """Handle "2nd Season", "Season 2" and "Season II"."""
        tokens = result.tokens
        index = tokens.index(token)

        def set_anime_season(first: Token, second: Token, number: str) -> bool:
            if not result.elements.add(ElementKind.ANIME_SEASON, number):
                return False
            first.claim(ElementKind.ANIME_SEASON)
            second.claim(ElementKind.ANIME_SEASON)
            return True

        previous = find_previous_token(tokens, index, TokenFlag.NOT_DELIMITER)
        if token_has_kind(tokens, previous, TokenKind.UNKNOWN):
            number = number_from_ordinal(tokens[previous].text)
            if number:
                return set_anime_season(tokens[previous], token, number)

        following = find_next_token(tokens, index, TokenFlag.NOT_DELIMITER)
        if token_has_kind(tokens, following, TokenKind.UNKNOWN):
            text = tokens[following].text
            number = text if is_numeric_string(text) else number_from_roman(text)
            if number:
                return set_anime_season(token, tokens[following], number)

        return False

    def _check_extent_keyword(self, result: TokenizationResult, kind: ElementKind, token: Token) -> bool:
        """Take the number that follows an episode or volume prefix, e.g. "EP 01", "Vol. 3"."""
        tokens = result.tokens
        following = find_next_token(tokens, tokens.index(token), TokenFlag.NOT_DELIMITER)
        if not token_has_kind(tokens, following, TokenKind.UNKNOWN):
            return False

        number_token = tokens[following]
        if find_number_in_string(number_token.text) != 0:
            return False

        extractor = self.episode_extractor
        if kind == ElementKind.EPISODE_NUMBER:
            if not extractor.match_episode_patterns(result, number_token.text, number_token):
                extractor.set_episode_number(result, number_token.text, number_token, False)
            token.claim(ElementKind.EPISODE_PREFIX)
        else:
            if not extractor.match_volume_patterns(result, number_token.text, number_token):
                extractor.set_volume_number(result, number_token.text, number_token, False)
            token.claim(ElementKind.VOLUME_PREFIX)
        return True
