#!/usr/bin/env python3
"""
Episode title extractor module.

After the title and episode number are claimed, the next run of unclaimed
text outside brackets is taken as the episode title, e.g. the "Tiger and
Dragon" in "Toradora! - 01 - Tiger and Dragon [720p]".
"""

from .element import ElementKind
from .text import is_dash_character
from .token_search import TokenFlag, build_element, find_token
from .tokenizer import TokenizationResult


class EpisodeTitleExtractor:
    """Extractor for the episode title."""

    def process(self, result: TokenizationResult) -> TokenizationResult:
        """
        Extract the episode title.

        Args:
            result: TokenizationResult after the title pass

        Returns:
            Updated TokenizationResult, with an EPISODE_TITLE element when one was found
        """
        tokens = result.tokens
        count = len(tokens)
        end = 0

        while True:
            begin = find_token(tokens, end, count, TokenFlag.NOT_ENCLOSED | TokenFlag.UNKNOWN)
            if begin is None:
                return result

            # Continue until a bracket or identifier is found
            end = find_token(tokens, begin, count, TokenFlag.BRACKET | TokenFlag.IDENTIFIER)
            if end is None:
                end = count

            # A lone dash is not a title
            if end - begin <= 2 and is_dash_character(tokens[begin].text):
                continue

            build_element(result, ElementKind.EPISODE_TITLE, False, begin, end)
            return result
