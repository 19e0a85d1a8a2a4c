"""
Anime filename parser modules package.

This package contains the core processing modules:
- element: Element kinds and the ordered element collection
- options: Per-call parser options
- dictionary_loader: Cached loading of packaged JSON dictionaries
- keyword_dictionary: Keyword lookup, peek and schema validation
- text: Character-class and number helpers
- pre_tokenizer: File extension stripping and ignored string erasure
- tokenizer: Bracket, pre-identified and delimiter tokenization
- token_search: Token navigation and element building helpers
- keyword_matcher: Keyword scan over unclaimed tokens
- isolated_number_finder: Bracket-isolated years and resolutions
- episode_extractor: Episode, season and volume number patterns
- title_extractor: Anime title extraction
- release_group_extractor: Release group extraction
- episode_title_extractor: Episode title extraction
- element_validator: Final anime type / episode title conflict check
- excel_writer: Excel parse reports
"""

# Explicit imports make the public API clear and prevent namespace pollution
from .element import Element, ElementKind, Elements
from .options import DEFAULT_DELIMITERS, Options
from .keyword_dictionary import (
    DictionaryError,
    Keyword,
    KeywordDictionary,
    get_default_dictionary
)
from .pre_tokenizer import PreTokenizer, PreTokenizationResult, RemovedToken
from .tokenizer import Tokenizer, TokenizationResult, Token, TokenKind
from .keyword_matcher import KeywordMatcher
from .isolated_number_finder import IsolatedNumberFinder
from .episode_extractor import EpisodeExtractor
from .title_extractor import TitleExtractor
from .release_group_extractor import ReleaseGroupExtractor
from .episode_title_extractor import EpisodeTitleExtractor
from .element_validator import ElementValidator

__all__ = [
    'Element',
    'ElementKind',
    'Elements',
    'DEFAULT_DELIMITERS',
    'Options',
    'DictionaryError',
    'Keyword',
    'KeywordDictionary',
    'get_default_dictionary',
    'PreTokenizer',
    'PreTokenizationResult',
    'RemovedToken',
    'Tokenizer',
    'TokenizationResult',
    'Token',
    'TokenKind',
    'KeywordMatcher',
    'IsolatedNumberFinder',
    'EpisodeExtractor',
    'TitleExtractor',
    'ReleaseGroupExtractor',
    'EpisodeTitleExtractor',
    'ElementValidator',
]
