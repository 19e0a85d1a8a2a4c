#!/usr/bin/env python3
"""
Final validation of extracted elements.

An anime type keyword can end up both as an AnimeType element and inside the
episode title (e.g. "Special" in "01 - Special Guest"). When that happens one
of the two is wrong:
- if the episode title is exactly the type, the episode title is dropped
- otherwise the type element is dropped, as long as it is a known type keyword
"""

import logging

from .element import ElementKind
from .keyword_dictionary import KeywordDictionary
from .tokenizer import TokenizationResult

logger = logging.getLogger(__name__)


class ElementValidator:
    """Resolves conflicts between anime type and episode title elements."""

    def __init__(self, dictionary: KeywordDictionary):
        self.dictionary = dictionary

    def process(self, result: TokenizationResult) -> TokenizationResult:
        elements = result.elements
        if elements.empty(ElementKind.ANIME_TYPE) or elements.empty(ElementKind.EPISODE_TITLE):
            return result

        episode_title = elements.get(ElementKind.EPISODE_TITLE)
        for element in list(elements):
            if element.kind != ElementKind.ANIME_TYPE or element.value not in episode_title:
                continue
            if len(element.value) == len(episode_title):
                logger.debug("Dropping episode title %r, it is an anime type", episode_title)
                elements.erase(ElementKind.EPISODE_TITLE)
            elif self.dictionary.find(ElementKind.ANIME_TYPE, self.dictionary.normalize(element.value)):
                logger.debug("Dropping anime type %r found inside the episode title", element.value)
                elements.remove(element)

        return result
