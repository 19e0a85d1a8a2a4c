#!/usr/bin/env python3
"""
Release group extractor: the first bracket group made only of unclaimed text,
e.g. "[TaigaSubs]". Delimiters are kept as written, so "[m.3.3.w]" survives.
"""

from .element import ElementKind
from .token_search import TokenFlag, build_element, find_previous_token, find_token
from .tokenizer import TokenizationResult


class ReleaseGroupExtractor:
    """Extractor for the release group."""

    def process(self, result: TokenizationResult) -> TokenizationResult:
        tokens = result.tokens
        count = len(tokens)
        end = 0

        while True:
            # First enclosed unknown token
            begin = find_token(tokens, end, count, TokenFlag.ENCLOSED | TokenFlag.UNKNOWN)
            if begin is None:
                return result

            # Continue until a bracket or identifier is found
            end = find_token(tokens, begin, count, TokenFlag.BRACKET | TokenFlag.IDENTIFIER)
            if end is None:
                return result
            if not tokens[end].is_bracket:
                continue

            # Must be the first non-delimiter token of its group
            previous = find_previous_token(tokens, begin, TokenFlag.NOT_DELIMITER)
            if previous is not None and not tokens[previous].is_bracket:
                continue

            build_element(result, ElementKind.RELEASE_GROUP, True, begin, end)
            return result
