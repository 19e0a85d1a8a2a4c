#!/usr/bin/env python3
"""
Element model for parsed filename metadata.

An element is one extracted fact, e.g. (EPISODE_NUMBER, "01"). Elements are
kept in insertion order inside an Elements container, which also knows which
kinds may only appear once per parse.
"""

import json
from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Iterator, List


class ElementKind(Enum):
    """Kinds of metadata that can be extracted from a filename."""
    ANIME_SEASON = "anime_season"
    ANIME_SEASON_PREFIX = "anime_season_prefix"
    ANIME_TITLE = "anime_title"
    ANIME_TYPE = "anime_type"
    ANIME_YEAR = "anime_year"
    AUDIO_TERM = "audio_term"
    DEVICE_COMPATIBILITY = "device_compatibility"
    EPISODE_NUMBER = "episode_number"
    EPISODE_NUMBER_ALT = "episode_number_alt"
    EPISODE_PREFIX = "episode_prefix"
    EPISODE_TITLE = "episode_title"
    FILE_CHECKSUM = "file_checksum"
    FILE_EXTENSION = "file_extension"
    LANGUAGE = "language"
    OTHER = "other"
    RELEASE_GROUP = "release_group"
    RELEASE_INFORMATION = "release_information"
    RELEASE_VERSION = "release_version"
    SOURCE = "source"
    SUBTITLES = "subtitles"
    VIDEO_RESOLUTION = "video_resolution"
    VIDEO_TERM = "video_term"
    VOLUME_NUMBER = "volume_number"
    VOLUME_PREFIX = "volume_prefix"
    UNKNOWN = "unknown"


# Kinds that may be retained more than once per parse. Everything else is singular.
REPEATABLE_KINDS = frozenset({
    ElementKind.ANIME_TYPE,
    ElementKind.AUDIO_TERM,
    ElementKind.DEVICE_COMPATIBILITY,
    ElementKind.EPISODE_NUMBER,
    ElementKind.LANGUAGE,
    ElementKind.OTHER,
    ElementKind.RELEASE_INFORMATION,
    ElementKind.SOURCE,
    ElementKind.VIDEO_TERM,
})

# Kinds the keyword scan is allowed to emit from a dictionary hit.
SEARCHABLE_KINDS = frozenset({
    ElementKind.ANIME_SEASON_PREFIX,
    ElementKind.ANIME_TYPE,
    ElementKind.AUDIO_TERM,
    ElementKind.DEVICE_COMPATIBILITY,
    ElementKind.EPISODE_PREFIX,
    ElementKind.FILE_CHECKSUM,
    ElementKind.LANGUAGE,
    ElementKind.OTHER,
    ElementKind.RELEASE_GROUP,
    ElementKind.RELEASE_INFORMATION,
    ElementKind.RELEASE_VERSION,
    ElementKind.SOURCE,
    ElementKind.SUBTITLES,
    ElementKind.VIDEO_RESOLUTION,
    ElementKind.VIDEO_TERM,
    ElementKind.VOLUME_PREFIX,
})


def is_singular(kind: ElementKind) -> bool:
    """Return True if at most one element of this kind may be kept."""
    return kind not in REPEATABLE_KINDS


def is_searchable(kind: ElementKind) -> bool:
    return kind in SEARCHABLE_KINDS


@dataclass
class Element:
    """A single extracted (kind, value) fact."""
    kind: ElementKind
    value: str


class Elements:
    """Insertion-ordered collection of elements with per-kind helpers."""

    def __init__(self):
        self._elements: List[Element] = []

    def __iter__(self) -> Iterator[Element]:
        return iter(self._elements)

    def __len__(self) -> int:
        return len(self._elements)

    def __bool__(self) -> bool:
        return bool(self._elements)

    def __contains__(self, kind: ElementKind) -> bool:
        return self.contains(kind)

    def __repr__(self) -> str:
        return f"Elements({[(e.kind.value, e.value) for e in self._elements]!r})"

    def insert(self, kind: ElementKind, value: str) -> bool:
        """
        Append an element. Empty values are ignored.

        Returns:
            True if the element was appended
        """
        if not value:
            return False
        self._elements.append(Element(kind=kind, value=value))
        return True

    def add(self, kind: ElementKind, value: str) -> bool:
        """Append an element unless its kind is singular and already present."""
        if is_singular(kind) and self.contains(kind):
            return False
        return self.insert(kind, value)

    def find(self, kind: ElementKind):
        for element in self._elements:
            if element.kind == kind:
                return element
        return None

    def get(self, kind: ElementKind) -> str:
        """Return the value of the first element of a kind, or an empty string."""
        element = self.find(kind)
        return element.value if element is not None else ""

    def get_all(self, kind: ElementKind) -> List[str]:
        return [element.value for element in self._elements if element.kind == kind]

    def count(self, kind: ElementKind) -> int:
        return sum(1 for element in self._elements if element.kind == kind)

    def contains(self, kind: ElementKind) -> bool:
        return self.find(kind) is not None

    def empty(self, kind: ElementKind) -> bool:
        return not self.contains(kind)

    def erase(self, kind: ElementKind) -> None:
        """Remove every element of a kind."""
        self._elements = [element for element in self._elements if element.kind != kind]

    def remove(self, element: Element) -> None:
        """Remove one specific element instance."""
        self._elements = [e for e in self._elements if e is not element]

    def to_list(self) -> List[Dict[str, str]]:
        return [{"kind": e.kind.value, "value": e.value} for e in self._elements]

    def to_dict(self) -> Dict[str, Any]:
        """
        Group values by kind.

        Repeatable kinds, and any kind that ended up with several values
        (e.g. a volume range), map to a list; the rest map to a string.
        """
        grouped: Dict[str, Any] = {}
        for element in self._elements:
            key = element.kind.value
            if key in grouped:
                if not isinstance(grouped[key], list):
                    grouped[key] = [grouped[key]]
                grouped[key].append(element.value)
            elif is_singular(element.kind):
                grouped[key] = element.value
            else:
                grouped[key] = [element.value]
        return grouped

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), ensure_ascii=False)
