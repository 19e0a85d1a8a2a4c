#!/usr/bin/env python3
"""
Character and string helpers shared by the tokenizer and parser passes.

Digit and letter tests are deliberately ASCII-only: str.isdigit() would
accept fullwidth and superscript digits, which filenames use as decoration.
"""

import re
from typing import Optional

DASHES = "-‐‑‒–—―"
DASHES_WITH_SPACE = " " + DASHES

_LEADING_INT_RE = re.compile(r"\s*([+-]?\d+)")

_ORDINALS = {
    "1st": "1", "First": "1",
    "2nd": "2", "Second": "2",
    "3rd": "3", "Third": "3",
    "4th": "4", "Fourth": "4",
    "5th": "5", "Fifth": "5",
    "6th": "6", "Sixth": "6",
    "7th": "7", "Seventh": "7",
    "8th": "8", "Eighth": "8",
    "9th": "9", "Ninth": "9",
}

# "I" and "V" are left out on purpose, they are far more likely to be words
_ROMAN_NUMBERS = {"II": "2", "III": "3", "IV": "4"}


def is_numeric_char(c: str) -> bool:
    return "0" <= c <= "9"


def is_alphanumeric_char(c: str) -> bool:
    return ("0" <= c <= "9") or ("A" <= c <= "Z") or ("a" <= c <= "z")


def is_hexadecimal_char(c: str) -> bool:
    return ("0" <= c <= "9") or ("A" <= c <= "F") or ("a" <= c <= "f")


def is_latin_char(c: str) -> bool:
    # Only up to the end of Latin Extended-B
    return ord(c) <= 0x024F


def is_numeric_string(text: str) -> bool:
    return bool(text) and all(is_numeric_char(c) for c in text)


def is_alphanumeric_string(text: str) -> bool:
    return bool(text) and all(is_alphanumeric_char(c) for c in text)


def is_hexadecimal_string(text: str) -> bool:
    return bool(text) and all(is_hexadecimal_char(c) for c in text)


def is_mostly_latin_string(text: str) -> bool:
    length = len(text) if text else 1
    return sum(1 for c in text if is_latin_char(c)) / length >= 0.5


def is_dash_character(text: str) -> bool:
    return len(text) == 1 and text in DASHES


def is_crc32(text: str) -> bool:
    return len(text) == 8 and is_hexadecimal_string(text)


def is_resolution(text: str) -> bool:
    """
    Check for "###x###" (x, X or the multiplication sign) or "###p" shapes.

    Examples:
        >>> is_resolution("1280x720")
        True
        >>> is_resolution("1080p")
        True
        >>> is_resolution("x264")
        False
    """
    min_width = 3
    min_height = 3

    if len(text) >= min_width + 1 + min_height:
        pos = next((i for i, c in enumerate(text) if c in "xX×"), -1)
        if pos != -1 and min_width <= pos <= len(text) - (min_height + 1):
            return all(is_numeric_char(c) for i, c in enumerate(text) if i != pos)

    elif len(text) >= min_height + 1 and text[-1] in "pP":
        return all(is_numeric_char(c) for c in text[:-1])

    return False


def find_number_in_string(text: str) -> int:
    """Return the index of the first ASCII digit, or -1."""
    for i, c in enumerate(text):
        if is_numeric_char(c):
            return i
    return -1


def to_int(text: str) -> int:
    """Parse leading digits the way strtol does; anything else is 0."""
    match = _LEADING_INT_RE.match(text)
    return int(match.group(1)) if match else 0


def number_from_ordinal(word: str) -> Optional[str]:
    return _ORDINALS.get(word)


def number_from_roman(word: str) -> Optional[str]:
    return _ROMAN_NUMBERS.get(word)


def trim(text: str, chars: str = DASHES_WITH_SPACE) -> str:
    return text.strip(chars)


def equals_ignore_case(a: str, b: str) -> bool:
    return len(a) == len(b) and a.lower() == b.lower()
