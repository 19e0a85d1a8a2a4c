#!/usr/bin/env python3
"""
End-to-end tests for FilenameParser: title, release group, episode title,
validation, options and properties every parse must satisfy.
"""

import pytest

import anifile
from anifile import FilenameParser
from animeparse import ElementKind, Options, TokenKind
from animeparse.element import is_singular


SAMPLE_FILENAMES = [
    "[TaigaSubs]_Toradora!_(2008)_-_01v2_-_Tiger_and_Dragon_[1280x720_H.264_FLAC][1234ABCD].mkv",
    "[Ouroboros]_Fullmetal_Alchemist_Brotherhood_-_01.mkv",
    "Bakemonogatari - 2nd Season - 01",
    "Attack on Titan S01E03.mkv",
    "Hunter x Hunter 01 of 24",
    "[Group] Show - 01~12 [BD]",
    "[Group][Show][01]",
    "Show OVA2",
    "Show Volume 1~3",
    "Show EP 07 [06v2]",
    "[m.3.3.w] Show - 01 [Dual Audio]",
    "Show - 01 - Special Guest",
    "とらドラ - 01.mkv",
    "[01]",
    "___---___",
    "Show S2 - 05.mkv",
    "Show 第2期 - 05.mkv",
    "Show OVA2- Extra",
    "Show (Kai) - 05",
    "Title [Unterminated",
]


@pytest.fixture(scope="module")
def parser():
    """Fixture providing a FilenameParser instance."""
    return FilenameParser()


class TestFullParse:
    """Whole filenames."""

    def test_complete_filename(self, parser):
        result = parser.parse(
            "[TaigaSubs]_Toradora!_(2008)_-_01v2_-_Tiger_and_Dragon_[1280x720_H.264_FLAC][1234ABCD].mkv"
        )

        assert result.success
        assert result.elements.to_dict() == {
            "file_extension": "mkv",
            "video_term": ["H.264"],
            "video_resolution": "1280x720",
            "audio_term": ["FLAC"],
            "file_checksum": "1234ABCD",
            "anime_year": "2008",
            "episode_number": ["01"],
            "release_version": "2",
            "anime_title": "Toradora!",
            "release_group": "TaigaSubs",
            "episode_title": "Tiger and Dragon",
        }

    def test_underscores_become_spaces_in_title(self, parser):
        result = parser.parse("[Ouroboros]_Fullmetal_Alchemist_Brotherhood_-_01.mkv")
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Fullmetal Alchemist Brotherhood"
        assert result.elements.get(ElementKind.RELEASE_GROUP) == "Ouroboros"
        assert result.elements.get_all(ElementKind.EPISODE_NUMBER) == ["01"]
        assert result.elements.empty(ElementKind.EPISODE_TITLE)

    def test_episode_range_in_brackets(self, parser):
        result = parser.parse("[Group] Show - 01~12 [BD]")
        assert result.elements.get_all(ElementKind.EPISODE_NUMBER) == ["01", "12"]
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Show"
        assert result.elements.get(ElementKind.RELEASE_GROUP) == "Group"
        assert result.elements.get_all(ElementKind.SOURCE) == ["BD"]

    def test_bytes_filename(self, parser):
        result = parser.parse("とらドラ - 01.mkv".encode("utf-8"))
        assert result.elements.get(ElementKind.ANIME_TITLE) == "とらドラ"
        assert result.elements.get(ElementKind.FILE_EXTENSION) == "mkv"


class TestScenarios:
    """Reference filenames and what they must produce."""

    def test_empty_filename(self, parser):
        result = parser.parse("")
        assert not result.success
        assert len(result.tokens) == 0
        assert len(result.elements) == 0

    def test_release_with_every_element(self, parser):
        elements = parser.parse(
            "[TaigaSubs]_Toradora!_(2008)_-_01v2_-_Tiger_and_Dragon_[1280x720_H.264_FLAC][1234ABCD].mkv"
        ).elements
        assert elements.get(ElementKind.FILE_EXTENSION) == "mkv"
        assert elements.get(ElementKind.RELEASE_GROUP) == "TaigaSubs"
        assert elements.get(ElementKind.ANIME_TITLE) == "Toradora!"
        assert elements.get(ElementKind.ANIME_YEAR) == "2008"
        assert elements.get_all(ElementKind.EPISODE_NUMBER) == ["01"]
        assert elements.get(ElementKind.RELEASE_VERSION) == "2"
        assert elements.get(ElementKind.EPISODE_TITLE) == "Tiger and Dragon"
        assert elements.get(ElementKind.VIDEO_RESOLUTION) == "1280x720"
        assert "H.264" in elements.get_all(ElementKind.VIDEO_TERM)
        assert "FLAC" in elements.get_all(ElementKind.AUDIO_TERM)
        assert elements.get(ElementKind.FILE_CHECKSUM) == "1234ABCD"

    def test_ordinal_season(self, parser):
        elements = parser.parse("Bakemonogatari - 2nd Season - 01.mkv").elements
        assert elements.get(ElementKind.ANIME_SEASON) == "2"
        assert elements.get_all(ElementKind.EPISODE_NUMBER) == ["01"]
        assert elements.get(ElementKind.ANIME_TITLE) == "Bakemonogatari"

    def test_equivalent_episode_numbers(self, parser):
        elements = parser.parse("[Group] Title - 08 (176) [Info].mkv").elements
        assert elements.get_all(ElementKind.EPISODE_NUMBER) == ["08"]
        assert elements.get(ElementKind.EPISODE_NUMBER_ALT) == "176"

    def test_unterminated_bracket(self, parser):
        result = parser.parse("Title [Unterminated")
        assert result.success
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Title"


class TestTitle:
    """Anime title extraction."""

    @pytest.mark.parametrize("filename,title", [
        ("Tom_&_Jerry_-_05", "Tom & Jerry"),
        ("Dr. Stone - 05", "Dr. Stone"),
        ("Hunter x Hunter 01 of 24", "Hunter x Hunter"),
        ("Show - 01 [Fansub]", "Show"),
    ])
    def test_title(self, parser, filename, title):
        assert parser.parse(filename).elements.get(ElementKind.ANIME_TITLE) == title

    def test_trailing_parenthesis_group_stays_in_title(self, parser):
        result = parser.parse("Show (Kai) - 05")
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Show (Kai)"
        assert result.elements.empty(ElementKind.RELEASE_GROUP)

    def test_trailing_square_group_is_left_out(self, parser):
        result = parser.parse("Show [Kai] - 05")
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Show"
        assert result.elements.get(ElementKind.RELEASE_GROUP) == "Kai"

    def test_enclosed_title_skips_non_latin_group(self, parser):
        result = parser.parse("[Group][とらドラ][Toradora][01]")
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Toradora"
        assert result.elements.get(ElementKind.RELEASE_GROUP) == "Group"
        assert result.elements.get_all(ElementKind.EPISODE_NUMBER) == ["01"]

    def test_enclosed_title_skips_first_group(self, parser):
        result = parser.parse("[Group][Show][01]")
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Show"
        assert result.elements.get(ElementKind.RELEASE_GROUP) == "Group"
        assert result.elements.get_all(ElementKind.EPISODE_NUMBER) == ["01"]

    @pytest.mark.parametrize("filename", ["", "[01]"])
    def test_no_title_is_a_failure(self, parser, filename):
        result = parser.parse(filename)
        assert not result.success
        assert result.elements.empty(ElementKind.ANIME_TITLE)


class TestReleaseGroup:
    """Release group extraction."""

    def test_delimiters_are_kept(self, parser):
        result = parser.parse("[m.3.3.w] Show - 01 [Dual Audio]")
        assert result.elements.get(ElementKind.RELEASE_GROUP) == "m.3.3.w"
        assert result.elements.get_all(ElementKind.AUDIO_TERM) == ["Dual Audio"]

    def test_keyword_group_is_not_searched_again(self, parser):
        result = parser.parse("[THORA] Show - 01 [Extra]")
        assert result.elements.get_all(ElementKind.RELEASE_GROUP) == ["THORA"]

    def test_release_group_can_be_disabled(self, parser):
        result = parser.parse("[THORA] Show - 01", Options(parse_release_group=False))
        assert result.elements.empty(ElementKind.RELEASE_GROUP)
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Show"


class TestEpisodeTitle:
    """Episode title extraction and validation."""

    def test_lone_dash_is_not_a_title(self, parser):
        result = parser.parse("Bakemonogatari - 2nd Season - 01")
        assert result.elements.empty(ElementKind.EPISODE_TITLE)

    def test_episode_title_requires_episode_number(self, parser):
        result = parser.parse("Show - 01 - Title", Options(parse_episode_number=False))
        assert result.elements.empty(ElementKind.EPISODE_TITLE)

    def test_episode_title_can_be_disabled(self, parser):
        result = parser.parse("Show - 01 - Title", Options(parse_episode_title=False))
        assert result.elements.empty(ElementKind.EPISODE_TITLE)
        assert result.elements.get_all(ElementKind.EPISODE_NUMBER) == ["01"]

    def test_episode_title_that_is_a_type_is_dropped(self, parser):
        result = parser.parse("Show - 01 - Special")
        assert result.elements.empty(ElementKind.EPISODE_TITLE)
        assert result.elements.get_all(ElementKind.ANIME_TYPE) == ["Special"]

    def test_type_inside_episode_title_is_dropped(self, parser):
        result = parser.parse("Show - 01 - Special Guest")
        assert result.elements.get(ElementKind.EPISODE_TITLE) == "Special Guest"
        assert result.elements.empty(ElementKind.ANIME_TYPE)


class TestOptions:
    """Per-call options."""

    def test_ignored_strings(self, parser):
        result = parser.parse("[Ignored] Show - 01", Options(ignored_strings=["[Ignored]"]))
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Show"
        assert result.elements.empty(ElementKind.RELEASE_GROUP)
        assert [t.category for t in result.removed_tokens] == ["ignored_string"]

    def test_file_extension_can_be_kept(self, parser):
        result = parser.parse("Show - 01.mkv", Options(parse_file_extension=False))
        assert result.elements.empty(ElementKind.FILE_EXTENSION)
        assert result.cleaned == "Show - 01.mkv"
        assert result.elements.get(ElementKind.ANIME_TITLE) == "Show"

    def test_defaults_when_options_omitted(self, parser):
        assert parser.parse("Show - 01").elements.to_dict() == parser.parse("Show - 01", Options()).elements.to_dict()


class TestProperties:
    """Guarantees that hold for every filename."""

    @pytest.mark.parametrize("filename", SAMPLE_FILENAMES)
    def test_deterministic(self, parser, filename):
        first = parser.parse(filename)
        second = parser.parse(filename)
        assert first.elements.to_list() == second.elements.to_list()
        assert [t.to_dict() for t in first.tokens] == [t.to_dict() for t in second.tokens]

    @pytest.mark.parametrize("filename", SAMPLE_FILENAMES)
    def test_tokens_partition_cleaned_text(self, parser, filename):
        result = parser.parse(filename)
        assert "".join(t.text for t in result.tokens) == result.cleaned

    @pytest.mark.parametrize("filename", SAMPLE_FILENAMES)
    def test_claimed_tokens_are_identifiers(self, parser, filename):
        result = parser.parse(filename)
        for token in result.tokens:
            assert token.kind != TokenKind.INVALID
            if token.element_kind is not None:
                assert token.kind == TokenKind.IDENTIFIER

    @pytest.mark.parametrize("filename", SAMPLE_FILENAMES)
    def test_singular_kinds_appear_once(self, parser, filename):
        elements = parser.parse(filename).elements
        # A volume range is emitted as a lower/upper pair
        for kind in ElementKind:
            if is_singular(kind) and kind != ElementKind.VOLUME_NUMBER:
                assert elements.count(kind) <= 1, kind

    def test_season_range_has_one_season(self, parser):
        elements = parser.parse("Show S01-S02E05", Options(allowed_delimiters=" ")).elements
        assert elements.count(ElementKind.ANIME_SEASON) == 1

    def test_volume_range_is_ordered(self, parser):
        volumes = parser.parse("Show Volume 1~3").elements.get_all(ElementKind.VOLUME_NUMBER)
        assert len(volumes) == 2
        assert int(volumes[0]) < int(volumes[1])


class TestModuleParse:
    """The dict-returning convenience function."""

    def test_returns_dict(self):
        assert anifile.parse("Show - 01.mkv") == {
            "file_extension": "mkv",
            "episode_number": ["01"],
            "anime_title": "Show",
        }

    def test_keyword_options(self):
        assert anifile.parse("Show - 01", parse_episode_number=False) == {"anime_title": "Show - 01"}

    def test_unknown_option_raises(self):
        with pytest.raises(TypeError):
            anifile.parse("Show - 01", no_such_option=True)
