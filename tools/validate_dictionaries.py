#!/usr/bin/env python3
"""Validate the keyword dictionary against its JSON Schema and custom rules."""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from jsonschema import Draft7Validator

ROOT = Path(__file__).resolve().parent.parent
PACKAGE_DIR = ROOT / "animeparse"
SCHEMA_DIR = PACKAGE_DIR / "schemas"
DICTIONARY_DIR = PACKAGE_DIR / "dictionaries"

# Extensions longer than this are never stripped from a filename
MAX_EXTENSION_LENGTH = 4


def load_json(path: Path):
    with path.open("r", encoding="utf-8") as handle:
        return json.load(handle)


def validate_with_schema(data, schema_path: Path, label: str) -> List[str]:
    schema = load_json(schema_path)
    validator = Draft7Validator(schema)
    errors = sorted(validator.iter_errors(data), key=lambda e: list(e.absolute_path))

    messages = []
    for error in errors:
        location = " > ".join(str(p) for p in error.absolute_path) or "root"
        messages.append(f"{label}: {location}: {error.message}")
    return messages


def check_duplicate_words(groups, section: str) -> List[str]:
    """Words are matched upper-cased, so 'Ova' and 'OVA' collide."""
    errors: List[str] = []
    seen: Dict[str, str] = {}
    for idx, group in enumerate(groups or []):
        for word in group.get("words") or []:
            key = word.upper()
            location = f"{section}[{idx}] ({group.get('kind')})"
            if key in seen:
                errors.append(f"{location}: duplicate word '{word}' also in {seen[key]}")
            else:
                seen[key] = location
    return errors


def check_file_extensions(groups) -> List[str]:
    errors: List[str] = []
    for idx, group in enumerate(groups or []):
        for word in group.get("words") or []:
            if not word.isascii() or not word.isalnum():
                errors.append(f"file_extensions[{idx}]: '{word}' must be alphanumeric")
            elif len(word) > MAX_EXTENSION_LENGTH:
                errors.append(
                    f"file_extensions[{idx}]: '{word}' is longer than {MAX_EXTENSION_LENGTH} characters"
                )
    return errors


def check_pre_identified(entries) -> List[str]:
    errors: List[str] = []
    seen: Dict[str, int] = {}
    for idx, entry in enumerate(entries or []):
        for literal in entry.get("literals") or []:
            if not literal.strip():
                errors.append(f"pre_identified[{idx}]: literal must not be blank")
                continue
            if literal != literal.strip():
                errors.append(f"pre_identified[{idx}]: literal '{literal}' has surrounding whitespace")
            if literal in seen:
                errors.append(
                    f"pre_identified[{idx}]: duplicate literal '{literal}' also at index {seen[literal]}"
                )
            else:
                seen[literal] = idx
    return errors


def validate_keyword_dictionary(data, schema_path: Path) -> List[str]:
    """Run the schema and every custom rule; return all failures."""
    failures = validate_with_schema(data, schema_path, "keywords")
    if failures or not isinstance(data, dict):
        # Custom rules assume the schema shape
        return failures

    failures.extend(check_duplicate_words(data.get("keywords"), "keywords"))
    failures.extend(check_duplicate_words(data.get("file_extensions"), "file_extensions"))
    failures.extend(check_file_extensions(data.get("file_extensions")))
    failures.extend(check_pre_identified(data.get("pre_identified")))
    return failures


def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Validate the keyword dictionary")
    parser.add_argument(
        "--dictionary",
        default=str(DICTIONARY_DIR / "keywords.json"),
        help="Dictionary file to check (default: packaged keywords.json)",
    )
    parser.add_argument(
        "--schema",
        default=str(SCHEMA_DIR / "keywords.schema.json"),
        help="JSON Schema to validate against",
    )
    return parser.parse_args(argv)


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = parse_arguments(argv)
    dictionary_path = Path(args.dictionary)

    try:
        data = load_json(dictionary_path)
    except (OSError, json.JSONDecodeError) as e:
        print(f"Dictionary validation failed:\n - {dictionary_path}: {e}")
        return 1

    failures = validate_keyword_dictionary(data, Path(args.schema))
    if failures:
        print("Dictionary validation failed:")
        for failure in failures:
            print(f" - {failure}")
        return 1

    print("All dictionaries validated successfully.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
