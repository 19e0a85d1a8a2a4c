#!/usr/bin/env python3
"""
Tests for episode number extraction: patterns, prefixes and numeric fallbacks.
"""

import pytest

from anifile import FilenameParser
from animeparse import ElementKind, Options, TokenKind
from animeparse.episode_extractor import EPISODE_PATTERNS, NumberPattern


@pytest.fixture(scope="module")
def parser():
    """Fixture providing a FilenameParser instance."""
    return FilenameParser()


def episodes(result):
    return result.elements.get_all(ElementKind.EPISODE_NUMBER)


class TestPatterns:
    """Words that have to be an episode number."""

    @pytest.mark.parametrize("filename,expected", [
        ("Show 01v2", ["01"]),
        ("Show 01~12", ["01", "12"]),
        ("Show 01+02", ["01", "02"]),
        ("Show 2x01", ["01"]),
        ("Show S01E03", ["03"]),
        ("Show s02e10", ["10"]),
        ("Show 07.5", ["07.5"]),
        ("Show 4a", ["4a"]),
        ("Show #05", ["05"]),
        ("Show 01話", ["01"]),
    ])
    def test_episode_patterns(self, parser, filename, expected):
        assert episodes(parser.parse(filename)) == expected

    def test_single_episode_sets_version(self, parser):
        result = parser.parse("Show 01v2")
        assert result.elements.get(ElementKind.RELEASE_VERSION) == "2"

    def test_range_versions(self, parser):
        result = parser.parse("Show 03~05v2")
        assert episodes(result) == ["03", "05"]
        assert result.elements.get(ElementKind.RELEASE_VERSION) == "2"

    def test_descending_range_is_not_a_range(self, parser):
        result = parser.parse("Show 05~02")
        assert episodes(result) == []
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Show 05~02"

    def test_season_and_episode_sets_season(self, parser):
        result = parser.parse("Attack on Titan S01E03.mkv")
        assert result.elements.get(ElementKind.ANIME_SEASON) == "01"
        assert episodes(result) == ["03"]
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Attack on Titan"

    def test_season_range_keeps_first_season(self, parser):
        # "-" would otherwise split the word
        result = parser.parse("Show S01-S02E05", Options(allowed_delimiters=" "))
        assert result.elements.get_all(ElementKind.ANIME_SEASON) == ["01"]
        assert episodes(result) == ["05"]

    def test_fraction_other_than_half_is_not_an_episode(self, parser):
        result = parser.parse("Show 08.1")
        assert episodes(result) == []

    def test_anime_type_and_number_splits_token(self, parser):
        result = parser.parse("Show OVA2")
        assert episodes(result) == ["2"]
        assert result.elements.get_all(ElementKind.ANIME_TYPE) == ["OVA"]
        assert [t.text for t in result.tokens] == ["Show", " ", "OVA", "2"]
        assert result.tokens[3].element_kind == ElementKind.EPISODE_NUMBER

    def test_anime_type_split_keeps_trailing_dash(self, parser):
        result = parser.parse("Show OVA2- Extra")
        assert episodes(result) == ["2"]
        assert result.elements.get_all(ElementKind.ANIME_TYPE) == ["OVA"]
        assert [t.text for t in result.tokens] == ["Show", " ", "OVA", "2-", " ", "Extra"]
        assert "".join(t.text for t in result.tokens) == result.cleaned

    def test_anime_type_with_unknown_prefix(self, parser):
        result = parser.parse("Show XYZ2")
        assert episodes(result) == []
        assert result.elements.empty(ElementKind.ANIME_TYPE)


class TestSeasonOnly:
    """Season numbers written without an episode."""

    @pytest.mark.parametrize("filename", ["Show S2 - 05.mkv", "Show 第2期 - 05.mkv", "Show 2期 - 05.mkv"])
    def test_season_word(self, parser, filename):
        result = parser.parse(filename)
        assert result.elements.get(ElementKind.ANIME_SEASON) == "2"
        assert episodes(result) == ["05"]
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Show"
        assert result.elements.empty(ElementKind.EPISODE_TITLE)

    def test_season_keyword_wins(self, parser):
        result = parser.parse("Show 2nd Season S3 - 05")
        assert result.elements.get_all(ElementKind.ANIME_SEASON) == ["2"]
        assert next(t for t in result.tokens if t.text == "S3").element_kind != ElementKind.ANIME_SEASON

    def test_lowercase_is_not_a_season(self, parser):
        result = parser.parse("Show s2 - 05")
        assert result.elements.empty(ElementKind.ANIME_SEASON)


class TestPrefixesAndPairs:
    """Prefixed numbers and number pairs."""

    @pytest.mark.parametrize("filename,expected", [
        ("Shingeki no Kyojin EP.1", ["1"]),
        ("Show EP01", ["01"]),
        ("Show E05", ["05"]),
        ("Show Ep12v3", ["12"]),
    ])
    def test_prefixed_number(self, parser, filename, expected):
        assert episodes(parser.parse(filename)) == expected

    def test_volume_prefix_is_not_an_episode(self, parser):
        result = parser.parse("Show Vol.3")
        assert episodes(result) == []
        assert result.elements.get_all(ElementKind.VOLUME_NUMBER) == ["3"]

    def test_number_of_total(self, parser):
        result = parser.parse("Hunter x Hunter 01 of 24")
        assert episodes(result) == ["01"]
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Hunter x Hunter"
        assert next(t for t in result.tokens if t.text == "24").kind == TokenKind.IDENTIFIER

    def test_two_numbers_joined_by_ampersand(self, parser):
        result = parser.parse("Show 8 & 10")
        assert episodes(result) == ["8", "10"]


class TestFallbacks:
    """Plain numbers, tried only when no pattern matched."""

    def test_equivalent_numbers(self, parser):
        result = parser.parse("Show 01 (176)")
        assert episodes(result) == ["01"]
        assert result.elements.get(ElementKind.EPISODE_NUMBER_ALT) == "176"

    def test_equivalent_numbers_smaller_first(self, parser):
        result = parser.parse("Show 29 (04)")
        assert episodes(result) == ["04"]
        assert result.elements.get(ElementKind.EPISODE_NUMBER_ALT) == "29"

    def test_separated_number(self, parser):
        result = parser.parse("Bakemonogatari - 2nd Season - 01")
        assert episodes(result) == ["01"]
        assert result.elements.get(ElementKind.ANIME_SEASON) == "2"
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Bakemonogatari"

    def test_isolated_number(self, parser):
        result = parser.parse("[Group] Show [12]")
        assert episodes(result) == ["12"]
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Show"
        assert result.elements.get(ElementKind.RELEASE_GROUP) == "Group"

    def test_last_number(self, parser):
        result = parser.parse("Toradora 25")
        assert episodes(result) == ["25"]
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Toradora"

    def test_first_number_is_never_the_episode(self, parser):
        result = parser.parse("25 Show")
        assert episodes(result) == []
        assert result.elements.get(ElementKind.ANIME_TITLE) == "25 Show"

    def test_movie_number_is_not_an_episode(self, parser):
        result = parser.parse("Show Movie 2")
        assert episodes(result) == []
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Show Movie 2"
        assert result.elements.get_all(ElementKind.ANIME_TYPE) == ["Movie"]

    def test_number_above_limit_is_rejected(self, parser):
        result = parser.parse("Show - 1900")
        assert episodes(result) == []


class TestEpisodeKeywordTieBreak:
    """A second number after an episode keyword becomes the alternative number."""

    def test_larger_number_is_alternative(self, parser):
        result = parser.parse("Show EP 05 [06v2]")
        assert episodes(result) == ["05"]
        assert result.elements.get(ElementKind.EPISODE_NUMBER_ALT) == "06"

    def test_smaller_number_takes_over(self, parser):
        result = parser.parse("Show EP 07 [06v2]")
        assert episodes(result) == ["06"]
        assert result.elements.get(ElementKind.EPISODE_NUMBER_ALT) == "07"

    def test_plain_numbers_skipped_after_keyword(self, parser):
        result = parser.parse("Show EP 05 [12]")
        assert episodes(result) == ["05"]
        assert result.elements.empty(ElementKind.EPISODE_NUMBER_ALT)


def test_episode_number_can_be_disabled(parser):
    result = parser.parse("Show - 01", Options(parse_episode_number=False))
    assert episodes(result) == []
    assert result.elements.get(ElementKind.ANIME_TITLE) == "Show - 01"


def test_pattern_table_order():
    assert [pattern.name for pattern in EPISODE_PATTERNS] == [
        "single", "multi", "season", "type", "fractional", "partial", "number_sign", "japanese_counter",
    ]


@pytest.mark.parametrize("front,back,expected", [
    (True, True, True),
    (True, False, False),
    (False, True, False),
])
def test_number_pattern_applies(front, back, expected):
    pattern = NumberPattern("single", "_match_single_episode", True, True)
    assert pattern.applies(front, back) is expected
