#!/usr/bin/env python3
"""
Tests for the anifile command line interface.
"""

import io
import json
from unittest.mock import patch

import pytest
from openpyxl import load_workbook

from anifile import main, parse_arguments
from animeparse import DictionaryError


def run(capsys, argv):
    status = main(argv)
    return status, capsys.readouterr().out


def test_json_output(capsys):
    status, out = run(capsys, ["Show - 01.mkv"])
    assert status == 0
    assert json.loads(out) == {"file_extension": "mkv", "episode_number": ["01"], "anime_title": "Show"}


def test_one_line_per_filename(capsys):
    status, out = run(capsys, ["Show - 01", "Other - 02"])
    lines = out.strip().splitlines()
    assert status == 0
    assert [json.loads(line)["anime_title"] for line in lines] == ["Show", "Other"]


def test_pretty_json(capsys):
    _, out = run(capsys, ["Show - 01", "--pretty"])
    assert out.startswith("{\n  ")
    assert json.loads(out)["anime_title"] == "Show"


def test_failure_exit_status(capsys):
    status, out = run(capsys, ["Show - 01", "[01]"])
    assert status == 1
    assert len(out.strip().splitlines()) == 2


def test_missing_filenames_is_a_usage_error(capsys):
    with pytest.raises(SystemExit) as excinfo:
        main([])
    assert excinfo.value.code == 2
    assert "--stdin" in capsys.readouterr().err


def test_table_output(capsys):
    status, out = run(capsys, ["Show - 01.mkv", "--format", "table"])
    lines = out.splitlines()
    assert status == 0
    assert lines[0] == "Show - 01.mkv"
    assert lines[1].split() == ["file_extension", "mkv"]
    assert lines[3].split() == ["anime_title", "Show"]


def test_debug_tokens(capsys):
    _, out = run(capsys, ["Show - 01", "--debug"])
    data = json.loads(out)
    assert data["elements"]["anime_title"] == "Show"
    assert [row["text"] for row in data["tokens"]] == ["Show", "-", "01"]
    assert data["tokens"][2]["element_kind"] == "episode_number"


def test_verbose_debug_includes_delimiters(capsys):
    _, out = run(capsys, ["Show - 01", "--debug", "--verbose"])
    assert [row["text"] for row in json.loads(out)["tokens"]] == ["Show", " ", "-", " ", "01"]


def test_stdin(capsys, monkeypatch):
    monkeypatch.setattr("sys.stdin", io.StringIO("Show - 01\n\nOther - 02\r\n"))
    status, out = run(capsys, ["--stdin"])
    assert status == 0
    assert [json.loads(line)["anime_title"] for line in out.strip().splitlines()] == ["Show", "Other"]


def test_ignore_and_flags(capsys):
    _, out = run(capsys, [
        "[Ignored] Show - 01 - Title.mkv",
        "--ignore", "[Ignored]",
        "--no-file-extension",
        "--no-episode-title",
    ])
    data = json.loads(out)
    assert "release_group" not in data
    assert "file_extension" not in data
    assert "episode_title" not in data
    assert data["anime_title"] == "Show"


def test_no_episode_number(capsys):
    _, out = run(capsys, ["Show - 01", "--no-episode-number"])
    assert json.loads(out) == {"anime_title": "Show - 01"}


def test_no_release_group(capsys):
    _, out = run(capsys, ["[Group] Show - 01", "--no-release-group"])
    assert "release_group" not in json.loads(out)


def test_excel_report(capsys, tmp_path):
    output_path = tmp_path / "report.xlsx"
    status, _ = run(capsys, ["Show - 01", "[01]", "--excel", str(output_path), "--debug"])
    assert status == 1

    wb = load_workbook(output_path)
    try:
        assert wb.sheetnames == ["Elements", "Tokens"]
        assert wb["Elements"].max_row == 3
    finally:
        wb.close()


def test_parse_arguments_defaults():
    args = parse_arguments(["Show - 01"])
    assert args.format == "json"
    assert args.delimiters == " _.&+,|-"
    assert args.ignore == []
    assert args.log_level == "WARNING"


def test_dictionary_error_exit_status(capsys):
    with patch("anifile.FilenameParser", side_effect=DictionaryError("Keyword dictionary not found")):
        status, out = run(capsys, ["Show - 01"])
    assert status == 1
    assert out == ""
