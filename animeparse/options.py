#!/usr/bin/env python3
"""
Per-call parser options.
"""

from dataclasses import dataclass
from typing import Tuple


DEFAULT_DELIMITERS = " _.&+,|-"


@dataclass(frozen=True)
class Options:
    """Which optional passes run, and how the filename is split."""
    allowed_delimiters: str = DEFAULT_DELIMITERS
    ignored_strings: Tuple[str, ...] = ()
    parse_episode_number: bool = True
    parse_episode_title: bool = True
    parse_file_extension: bool = True
    parse_release_group: bool = True

    def __post_init__(self):
        # Accept any iterable of strings but keep the dataclass hashable
        object.__setattr__(self, "ignored_strings", tuple(self.ignored_strings))
