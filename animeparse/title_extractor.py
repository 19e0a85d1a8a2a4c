#!/usr/bin/env python3
"""
Title extractor module for finding the anime title among the leftover tokens.

The title is the first run of unclaimed text outside brackets. If every
unclaimed token is enclosed, the first bracket group is assumed to be the
release group and the title is taken from the next group of mostly Latin
text instead.
"""

import logging

from .element import ElementKind
from .text import is_mostly_latin_string
from .token_search import TokenFlag, build_element, find_previous_token, find_token
from .tokenizer import TokenizationResult

logger = logging.getLogger(__name__)


class TitleExtractor:
    """Extractor for the anime title."""

    def process(self, result: TokenizationResult) -> TokenizationResult:
        """
        Extract the anime title from unclaimed tokens.

        Args:
            result: TokenizationResult from previous processing

        Returns:
            Updated TokenizationResult, with an ANIME_TITLE element when one was found
        """
        tokens = result.tokens
        count = len(tokens)
        enclosed_title = False

        begin = find_token(tokens, 0, count, TokenFlag.NOT_ENCLOSED | TokenFlag.UNKNOWN)

        if begin is None:
            begin = self._find_enclosed_title(tokens)
            enclosed_title = True
        if begin is None:
            logger.debug("No title candidate in %r", result.cleaned)
            return result

        # Continue until an identifier (or a bracket, if the title is enclosed)
        end_flags = TokenFlag.IDENTIFIER | (TokenFlag.BRACKET if enclosed_title else TokenFlag.NONE)
        end = find_token(tokens, begin, count, end_flags)
        if end is None:
            end = count

        if not enclosed_title:
            end = self._exclude_unmatched_bracket(tokens, begin, end)
            end = self._exclude_trailing_groups(tokens, end)

        build_element(result, ElementKind.ANIME_TITLE, False, begin, end)
        return result

    def _find_enclosed_title(self, tokens):
        """First unknown token of the second mostly-Latin bracket group."""
        count = len(tokens)
        index = 0
        skipped_previous_group = False

        while True:
            index = find_token(tokens, index, count, TokenFlag.UNKNOWN)
            if index is None:
                return None
            # Groups of non-Latin text are ignored
            if is_mostly_latin_string(tokens[index].text) and skipped_previous_group:
                return index
            # Move on to the first unknown token of the next group
            index = find_token(tokens, index, count, TokenFlag.BRACKET)
            if index is None:
                return None
            skipped_previous_group = True

    def _exclude_unmatched_bracket(self, tokens, begin: int, end: int) -> int:
        """If the span opens a bracket it never closes, stop at that bracket."""
        last_bracket = end
        bracket_open = False
        for i in range(begin, end):
            if tokens[i].is_bracket:
                last_bracket = i
                bracket_open = not bracket_open
        return last_bracket if bracket_open else end

    def _exclude_trailing_groups(self, tokens, end: int) -> int:
        """
        Move the end back over trailing bracket groups, e.g. "Title [Fansub]".

        Groups closed by ")" are kept so that "(TV)" stays in the title.
        """
        index = find_previous_token(tokens, end, TokenFlag.NOT_DELIMITER)
        while index is not None and tokens[index].is_bracket and tokens[index].text != ")":
            index = find_previous_token(tokens, index, TokenFlag.BRACKET)
            if index is None:
                break
            end = index
            index = find_previous_token(tokens, end, TokenFlag.NOT_DELIMITER)
        return end
