#!/usr/bin/env python3
"""
Filename clean-up that runs ahead of tokenization.

Strips the file extension and erases caller-supplied ignored strings
before the filename is tokenized.
"""

import json
import logging
from dataclasses import asdict, dataclass, field
from typing import List, Optional, Union

from .element import ElementKind
from .keyword_dictionary import KeywordDictionary
from .options import Options
from .text import is_alphanumeric_string

logger = logging.getLogger(__name__)

MAX_EXTENSION_LENGTH = 4


@dataclass
class RemovedToken:
    """Represents a piece of text that was removed from the filename."""
    value: str
    category: str  # 'file_extension' or 'ignored_string'
    position: int


@dataclass
class PreTokenizationResult:
    """The filename after clean-up, plus a record of what was cut from it."""
    original: str
    cleaned: str
    removed_tokens: List[RemovedToken] = field(default_factory=list)
    extension: Optional[str] = None

    def to_json(self) -> str:
        return json.dumps({
            "original": self.original,
            "cleaned": self.cleaned,
            "extension": self.extension,
            "removed_tokens": [asdict(removed) for removed in self.removed_tokens],
        }, ensure_ascii=False)


def decode_filename(filename: Union[str, bytes]) -> str:
    """Decode UTF-8 bytes, substituting U+FFFD for ill-formed sequences."""
    if isinstance(filename, bytes):
        return filename.decode("utf-8", errors="replace")
    return filename


class PreTokenizer:
    """Pre-tokenizer that prepares a filename for the tokenizer."""

    def __init__(self, dictionary: KeywordDictionary):
        self.dictionary = dictionary

    def process(self, filename: Union[str, bytes], options: Optional[Options] = None) -> PreTokenizationResult:
        """
        Strip the extension, then erase ignored strings.

        Args:
            filename: Filename as text or UTF-8 bytes
            options: Parser options; defaults are used when omitted

        Returns:
            PreTokenizationResult with the cleaned text ready for tokenizing
        """
        options = options or Options()
        original = decode_filename(filename)

        result = PreTokenizationResult(original=original, cleaned=original)

        # Step 1: Strip a known file extension
        if options.parse_file_extension:
            result = self._strip_extension(result)

        # Step 2: Erase ignored strings
        if options.ignored_strings:
            result = self._erase_ignored_strings(result, options.ignored_strings)

        return result

    def _strip_extension(self, result: PreTokenizationResult) -> PreTokenizationResult:
        """Remove the final ".ext" suffix if ext is a known file extension."""
        cleaned = result.cleaned
        position = cleaned.rfind(".")
        if position == -1:
            return result

        extension = cleaned[position + 1:]
        if not (1 <= len(extension) <= MAX_EXTENSION_LENGTH):
            return result
        if not is_alphanumeric_string(extension):
            return result
        if not self.dictionary.find(ElementKind.FILE_EXTENSION, self.dictionary.normalize(extension)):
            return result

        result.cleaned = cleaned[:position]
        result.extension = extension
        result.removed_tokens.append(RemovedToken(
            value=extension,
            category="file_extension",
            position=position + 1
        ))
        logger.debug("Stripped file extension %r", extension)
        return result

    def _erase_ignored_strings(self, result: PreTokenizationResult, ignored_strings) -> PreTokenizationResult:
        """Erase every literal occurrence of each ignored string."""
        cleaned = result.cleaned
        for ignored in ignored_strings:
            if not ignored:
                continue
            # Repeat until none remain, erasure may join a new occurrence
            position = cleaned.find(ignored)
            while position != -1:
                result.removed_tokens.append(RemovedToken(
                    value=ignored,
                    category="ignored_string",
                    position=position
                ))
                cleaned = cleaned[:position] + cleaned[position + len(ignored):]
                position = cleaned.find(ignored)
        result.cleaned = cleaned
        return result
