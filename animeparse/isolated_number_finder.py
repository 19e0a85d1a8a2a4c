#!/usr/bin/env python3
"""
Isolated number finder for bracketed years and resolutions, e.g. "(2008)", "[720]".
"""

import logging

from .element import ElementKind
from .text import is_numeric_string, to_int
from .token_search import is_token_isolated
from .tokenizer import TokenizationResult, TokenKind

logger = logging.getLogger(__name__)

ANIME_YEAR_MIN = 1900
ANIME_YEAR_MAX = 2050
BARE_RESOLUTIONS = (480, 720, 1080)


class IsolatedNumberFinder:
    """Claims numbers that sit alone between brackets."""

    def process(self, result: TokenizationResult) -> TokenizationResult:
        tokens = result.tokens
        elements = result.elements

        for index, token in enumerate(tokens):
            if token.kind != TokenKind.UNKNOWN or not is_numeric_string(token.text):
                continue
            if not is_token_isolated(tokens, index):
                continue

            number = to_int(token.text)

            if ANIME_YEAR_MIN <= number <= ANIME_YEAR_MAX and elements.empty(ElementKind.ANIME_YEAR):
                elements.insert(ElementKind.ANIME_YEAR, token.text)
                token.claim(ElementKind.ANIME_YEAR)
                logger.debug("Anime year %s", token.text)
                continue

            # Some groups leave off the "p"; alone in brackets these are rarely episodes
            if number in BARE_RESOLUTIONS and elements.empty(ElementKind.VIDEO_RESOLUTION):
                elements.insert(ElementKind.VIDEO_RESOLUTION, token.text)
                token.claim(ElementKind.VIDEO_RESOLUTION)
                logger.debug("Video resolution %s", token.text)

        return result
