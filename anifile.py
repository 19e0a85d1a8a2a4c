#!/usr/bin/env python3
"""
Anifile - anime filename metadata extraction.

This module serves two purposes:
1. Library: FilenameParser class for extracting metadata from anime filenames
2. CLI: the `anifile` command, printing parsed elements as JSON or a table

Usage as library:
    from anifile import FilenameParser
    parser = FilenameParser()
    result = parser.parse("[TaigaSubs]_Toradora!_(2008)_-_01v2_-_Tiger_and_Dragon_[1280x720_H.264_FLAC][1234ABCD].mkv")
    result.elements.get(ElementKind.ANIME_TITLE)  # "Toradora!"

Usage as CLI:
    anifile "[Ouroboros]_Fullmetal_Alchemist_Brotherhood_-_01.mkv" --pretty
    anifile --stdin --excel report.xlsx < filenames.txt
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Union

from animeparse import (
    DictionaryError,
    ElementKind,
    Elements,
    ElementValidator,
    EpisodeExtractor,
    EpisodeTitleExtractor,
    IsolatedNumberFinder,
    KeywordDictionary,
    KeywordMatcher,
    Options,
    PreTokenizationResult,
    PreTokenizer,
    ReleaseGroupExtractor,
    TitleExtractor,
    TokenizationResult,
    Tokenizer,
    TokenKind,
    get_default_dictionary,
)
from animeparse.excel_writer import write_parse_report

logger = logging.getLogger("anifile")


# ============================================================================
# CORE PARSING - FilenameParser Class
# ============================================================================

class FilenameParser:
    """Parser for extracting metadata from anime filenames."""

    def __init__(self, dictionary: Optional[KeywordDictionary] = None):
        """
        Initialize the filename parser.

        Args:
            dictionary: Keyword dictionary to use. The packaged dictionary is
                        loaded (once per process) when omitted.

        Raises:
            DictionaryError: If the packaged dictionary is missing or invalid
        """
        self.dictionary = dictionary if dictionary is not None else get_default_dictionary()

        self.pre_tokenizer = PreTokenizer(self.dictionary)
        self.tokenizer = Tokenizer(self.dictionary)
        self.episode_extractor = EpisodeExtractor(self.dictionary)
        self.keyword_matcher = KeywordMatcher(self.dictionary, self.episode_extractor)
        self.isolated_number_finder = IsolatedNumberFinder()
        self.title_extractor = TitleExtractor()
        self.release_group_extractor = ReleaseGroupExtractor()
        self.episode_title_extractor = EpisodeTitleExtractor()
        self.element_validator = ElementValidator(self.dictionary)

    def pre_tokenize(self, filename: Union[str, bytes], options: Optional[Options] = None) -> PreTokenizationResult:
        """Strip the file extension and erase ignored strings."""
        return self.pre_tokenizer.process(filename, options)

    def tokenize(self, pre_result: PreTokenizationResult, options: Optional[Options] = None) -> TokenizationResult:
        """Split the cleaned filename into tokens, seeding elements with the extension."""
        elements = Elements()
        if pre_result.extension:
            elements.insert(ElementKind.FILE_EXTENSION, pre_result.extension)

        result = self.tokenizer.tokenize(
            cleaned=pre_result.cleaned,
            options=options,
            elements=elements,
            original=pre_result.original,
        )
        result.removed_tokens = list(pre_result.removed_tokens)
        return result

    def match_keywords(self, token_result: TokenizationResult) -> TokenizationResult:
        return self.keyword_matcher.process(token_result)

    def find_isolated_numbers(self, token_result: TokenizationResult) -> TokenizationResult:
        return self.isolated_number_finder.process(token_result)

    def extract_episode_number(self, token_result: TokenizationResult) -> TokenizationResult:
        return self.episode_extractor.process(token_result)

    def extract_title(self, token_result: TokenizationResult) -> TokenizationResult:
        return self.title_extractor.process(token_result)

    def extract_release_group(self, token_result: TokenizationResult) -> TokenizationResult:
        return self.release_group_extractor.process(token_result)

    def extract_episode_title(self, token_result: TokenizationResult) -> TokenizationResult:
        return self.episode_title_extractor.process(token_result)

    def validate_elements(self, token_result: TokenizationResult) -> TokenizationResult:
        return self.element_validator.process(token_result)

    def parse(self, filename: Union[str, bytes], options: Optional[Options] = None) -> TokenizationResult:
        """
        Full parsing pipeline.

        Pipeline order:
        1. Pre-tokenize (file extension, ignored strings)
        2. Tokenize (brackets, pre-identified terms, delimiters)
        3. Match keywords
        4. Find isolated numbers
        5. Extract episode number (if enabled)
        6. Extract anime title
        7. Extract release group (if enabled and not found as a keyword)
        8. Extract episode title (if enabled and an episode number exists)
        9. Validate elements

        Args:
            filename: Filename as text or UTF-8 bytes (no directory part)
            options: Parser options; defaults are used when omitted

        Returns:
            TokenizationResult; result.success is False when no title was found
        """
        options = options or Options()

        # Step 1: Pre-tokenization
        pre_result = self.pre_tokenize(filename, options)

        # Step 2: Tokenization
        token_result = self.tokenize(pre_result, options)
        if not token_result.tokens:
            logger.debug("Nothing to parse in %r", token_result.original)
            return token_result

        # Steps 3-4: Keywords and isolated numbers
        final_result = self.match_keywords(token_result)
        final_result = self.find_isolated_numbers(final_result)

        # Step 5: Episode number
        if options.parse_episode_number:
            final_result = self.extract_episode_number(final_result)

        # Step 6: Anime title
        final_result = self.extract_title(final_result)

        # Step 7: Release group
        if options.parse_release_group and final_result.elements.empty(ElementKind.RELEASE_GROUP):
            final_result = self.extract_release_group(final_result)

        # Step 8: Episode title
        if options.parse_episode_title and final_result.elements.contains(ElementKind.EPISODE_NUMBER):
            final_result = self.extract_episode_title(final_result)

        # Step 9: Validation
        final_result = self.validate_elements(final_result)

        logger.debug("Parsed %r: %s", final_result.original, final_result.elements)
        return final_result


_default_parser: Optional[FilenameParser] = None


def parse(filename: Union[str, bytes], **options: Any) -> Dict[str, Any]:
    """
    Parse a filename with a shared parser and return its elements as a dict.

    Keyword arguments are Options fields, e.g. parse_episode_title=False.
    """
    global _default_parser
    if _default_parser is None:
        _default_parser = FilenameParser()
    return _default_parser.parse(filename, Options(**options)).elements.to_dict()


# ============================================================================
# CLI
# ============================================================================

def parse_arguments(argv: Optional[Sequence[str]] = None) -> argparse.Namespace:
    """Parse command line arguments."""
    parser = argparse.ArgumentParser(
        prog='anifile',
        description='Extract metadata from anime filenames'
    )
    parser.add_argument(
        'filenames',
        nargs='*',
        help='Filename(s) to parse'
    )
    parser.add_argument(
        '--stdin',
        action='store_true',
        help='Read filenames from standard input, one per line'
    )
    parser.add_argument(
        '--format',
        choices=['json', 'table'],
        default='json',
        help='Output format (default: json)'
    )
    parser.add_argument(
        '--pretty',
        action='store_true',
        help='Indent JSON output'
    )
    parser.add_argument(
        '--debug',
        action='store_true',
        help='Also print the token stream'
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Include delimiter and bracket tokens in --debug output'
    )
    parser.add_argument(
        '--ignore',
        action='append',
        default=[],
        metavar='STRING',
        help='String to erase before parsing (repeatable)'
    )
    parser.add_argument(
        '--delimiters',
        default=Options.allowed_delimiters,
        help='Characters allowed to split words (default: %(default)r)'
    )
    parser.add_argument('--no-episode-number', action='store_true', help='Skip episode number search')
    parser.add_argument('--no-episode-title', action='store_true', help='Skip episode title search')
    parser.add_argument('--no-file-extension', action='store_true', help='Keep the file extension in the name')
    parser.add_argument('--no-release-group', action='store_true', help='Skip release group search')
    parser.add_argument(
        '--excel',
        metavar='PATH',
        help='Also write all results to an Excel workbook'
    )
    parser.add_argument(
        '--log-level',
        default='WARNING',
        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
        help='Logging level (default: WARNING)'
    )

    args = parser.parse_args(argv)
    if not args.filenames and not args.stdin:
        parser.error('give at least one filename or --stdin')
    return args


def options_from_arguments(args: argparse.Namespace) -> Options:
    return Options(
        allowed_delimiters=args.delimiters,
        ignored_strings=tuple(args.ignore),
        parse_episode_number=not args.no_episode_number,
        parse_episode_title=not args.no_episode_title,
        parse_file_extension=not args.no_file_extension,
        parse_release_group=not args.no_release_group,
    )


def debug_tokens(result: TokenizationResult, verbose: bool = False) -> List[Dict[str, Any]]:
    """Token rows for --debug; delimiters and brackets only when verbose."""
    rows = []
    for token in result.tokens:
        if not verbose and (token.is_bracket or token.kind == TokenKind.DELIMITER):
            continue
        rows.append({
            "kind": token.kind.value,
            "keyword": token.keyword.kind.value if token.keyword else None,
            "element_kind": token.element_kind.value if token.element_kind else None,
            "text": token.text,
        })
    return rows


def format_json(result: TokenizationResult, args: argparse.Namespace) -> str:
    data: Dict[str, Any] = result.elements.to_dict()
    if args.debug:
        data = {"elements": data, "tokens": debug_tokens(result, args.verbose)}
    return json.dumps(data, ensure_ascii=False, indent=2 if args.pretty else None)


def format_table(result: TokenizationResult, args: argparse.Namespace) -> str:
    lines = [result.original]
    width = max((len(element.kind.value) for element in result.elements), default=0)
    for element in result.elements:
        lines.append(f"  {element.kind.value:<{width}}  {element.value}")
    if args.debug:
        lines.append("  tokens:")
        for row in debug_tokens(result, args.verbose):
            lines.append(
                f"    {row['kind']:<13} {row['keyword'] or '-':<22} {row['element_kind'] or '-':<22} {row['text']!r}"
            )
    return "\n".join(lines)


def read_filenames(args: argparse.Namespace) -> List[str]:
    filenames = list(args.filenames)
    if args.stdin:
        for line in sys.stdin:
            line = line.rstrip("\r\n")
            if line.strip():
                filenames.append(line)
    return filenames


def main(argv: Optional[Sequence[str]] = None) -> int:
    """
    CLI entry point.

    Returns:
        0 if every filename yielded a title, 1 otherwise
    """
    args = parse_arguments(argv)
    logging.basicConfig(
        level=getattr(logging, args.log_level),
        format='%(levelname)s %(name)s: %(message)s'
    )

    try:
        parser = FilenameParser()
    except DictionaryError as e:
        logger.error("%s", e)
        return 1

    options = options_from_arguments(args)
    results = [parser.parse(filename, options) for filename in read_filenames(args)]

    formatter = format_table if args.format == 'table' else format_json
    for result in results:
        print(formatter(result, args))

    if args.excel:
        output_path = write_parse_report(Path(args.excel), results, include_tokens=args.debug)
        logger.info("Wrote %d results to %s", len(results), output_path)

    failed = [result.original for result in results if not result.success]
    for original in failed:
        logger.warning("No anime title found in %r", original)
    return 1 if failed or not results else 0


if __name__ == '__main__':
    sys.exit(main())
