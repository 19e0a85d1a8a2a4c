#!/usr/bin/env python3
"""
Access to the JSON data shipped inside the package.

The keyword dictionary and its schema are each read at most once per
process; later lookups come from a class-level cache.
"""

import json
import logging
from pathlib import Path
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

PACKAGE_DIR = Path(__file__).resolve().parent


class DictionaryLoader:
    """Reads packaged JSON files and remembers what it has read."""

    # Cache for loaded files, keyed by absolute path
    _cache: Dict[str, Any] = {}

    @staticmethod
    def get_dictionary_path(dictionary_name: str = "keywords.json") -> Path:
        """Where a dictionary file lives inside the installed package."""
        return PACKAGE_DIR / "dictionaries" / dictionary_name

    @staticmethod
    def get_schema_path(schema_name: str = "keywords.schema.json") -> Path:
        return PACKAGE_DIR / "schemas" / schema_name

    @classmethod
    def load_json(cls, path: Path, use_cache: bool = True) -> Optional[Any]:
        """
        Read and decode a JSON file.

        Args:
            path: File to read
            use_cache: Return and store the cached copy when True

        Returns:
            The decoded data, or None when the file is missing or malformed
        """
        key = str(path)
        if use_cache and key in cls._cache:
            return cls._cache[key]

        try:
            with open(path, 'r', encoding='utf-8') as f:
                data = json.load(f)
        except (FileNotFoundError, json.JSONDecodeError, IOError) as e:
            logger.debug("Could not load %s: %s", path, e)
            return None

        logger.debug("Loaded %s", path)
        if use_cache:
            cls._cache[key] = data
        return data

    @classmethod
    def load_dictionary(
        cls,
        dictionary_name: str = "keywords.json",
        use_cache: bool = True
    ) -> Optional[Any]:
        return cls.load_json(cls.get_dictionary_path(dictionary_name), use_cache)

    @classmethod
    def load_schema(cls, schema_name: str = "keywords.schema.json") -> Optional[Any]:
        return cls.load_json(cls.get_schema_path(schema_name))
