#!/usr/bin/env python3
"""
Keyword dictionary for identifying known terms inside filename tokens.

Keywords are loaded from the packaged keywords.json (validated against its
JSON Schema) into two disjoint namespaces: file extensions, and everything
else. A dictionary instance is read-only once built and may be shared by
any number of parsers.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Tuple

from jsonschema import Draft7Validator

from .dictionary_loader import DictionaryLoader
from .element import ElementKind

logger = logging.getLogger(__name__)


class DictionaryError(Exception):
    """Raised when keyword data is missing or malformed."""


@dataclass(frozen=True)
class Keyword:
    """A dictionary entry and the behaviour flags attached to it."""
    kind: ElementKind
    identifiable: bool = True  # a hit claims the token
    searchable: bool = True    # the keyword scan may emit it
    valid: bool = True         # usable as a standalone token


# (offset, size, kind, literal)
PeekMatch = Tuple[int, int, ElementKind, str]


class KeywordDictionary:
    """Immutable keyword lookup tables."""

    def __init__(self, data: Optional[Dict[str, Any]] = None):
        """
        Build the dictionary.

        Args:
            data: Parsed keyword data; the packaged keywords.json is used when omitted

        Raises:
            DictionaryError: If the data is missing or fails schema validation
        """
        if data is None:
            data = DictionaryLoader.load_dictionary("keywords.json")
            if data is None:
                raise DictionaryError(
                    f"Keyword dictionary not found or unreadable: "
                    f"{DictionaryLoader.get_dictionary_path('keywords.json')}"
                )

        errors = self.validate(data)
        if errors:
            raise DictionaryError("Invalid keyword dictionary: " + "; ".join(errors))

        self._keywords: Dict[str, Keyword] = {}
        self._file_extensions: Dict[str, Keyword] = {}
        self._pre_identified: List[Tuple[ElementKind, str]] = []

        for group in data["keywords"]:
            self._add_group(self._keywords, group)
        for group in data["file_extensions"]:
            self._add_group(self._file_extensions, group)
        for entry in data["pre_identified"]:
            kind = ElementKind(entry["kind"])
            for literal in entry["literals"]:
                self._pre_identified.append((kind, literal))

        logger.debug(
            "Keyword dictionary ready: %d keywords, %d file extensions, %d pre-identified literals",
            len(self._keywords), len(self._file_extensions), len(self._pre_identified),
        )

    @staticmethod
    def validate(data: Any) -> List[str]:
        """
        Check keyword data against the packaged JSON Schema.

        Returns:
            Human-readable error messages, empty when the data is valid
        """
        schema = DictionaryLoader.load_schema()
        if schema is None:
            return [f"schema not found: {DictionaryLoader.get_schema_path()}"]

        validator = Draft7Validator(schema)
        messages = []
        for error in sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path)):
            location = " > ".join(str(p) for p in error.absolute_path) or "root"
            messages.append(f"{location}: {error.message}")
        return messages

    def _add_group(self, table: Dict[str, Keyword], group: Dict[str, Any]) -> None:
        keyword = Keyword(
            kind=ElementKind(group["kind"]),
            identifiable=group.get("identifiable", True),
            searchable=group.get("searchable", True),
            valid=group.get("valid", True),
        )
        for word in group["words"]:
            # First registration wins
            table.setdefault(self.normalize(word), keyword)

    @staticmethod
    def normalize(text: str) -> str:
        return text.upper()

    def _table_for(self, kind: Optional[ElementKind]) -> Dict[str, Keyword]:
        if kind == ElementKind.FILE_EXTENSION:
            return self._file_extensions
        return self._keywords

    def lookup(self, normalized: str, expected_kind: Optional[ElementKind] = None) -> Optional[Keyword]:
        """
        Look up a normalized word.

        Args:
            normalized: Upper-cased word
            expected_kind: When given, the entry must be of this kind.
                FILE_EXTENSION selects the file extension namespace.

        Returns:
            The matching Keyword, or None
        """
        keyword = self._table_for(expected_kind).get(normalized)
        if keyword is None:
            return None
        if expected_kind is not None and keyword.kind != expected_kind:
            return None
        return keyword

    def find(self, kind: ElementKind, normalized: str) -> bool:
        """Return True if the word is registered under the given kind."""
        return self.lookup(normalized, kind) is not None

    def peek(self, text: str, start: int = 0, end: Optional[int] = None) -> List[PeekMatch]:
        """
        Search a slice of text for pre-identified literals.

        Matching is a case-sensitive substring search; only the first
        occurrence of each literal is reported.

        Returns:
            (offset, size, kind, literal) tuples in dictionary order, offsets
            relative to the whole text
        """
        if end is None:
            end = len(text)

        matches: List[PeekMatch] = []
        for kind, literal in self._pre_identified:
            offset = text.find(literal, start, end)
            if offset != -1:
                matches.append((offset, len(literal), kind, literal))
        return matches


_default_dictionary: Optional[KeywordDictionary] = None


def get_default_dictionary() -> KeywordDictionary:
    """Return the shared dictionary built from the packaged data."""
    global _default_dictionary
    if _default_dictionary is None:
        _default_dictionary = KeywordDictionary()
    return _default_dictionary
