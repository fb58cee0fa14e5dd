from __future__ import annotations

import json

import pytest

from terminal_karaoke.timeline.errors import ConfigurationError
from terminal_karaoke.timeline.load import (
    LRC_TAIL_S,
    load_json_song,
    load_lrc_song,
    load_song,
    lrc_to_timeline,
    parse_lrc,
)
from terminal_karaoke.timeline.model import LyricLine


def _write_json(path, data):
    path.write_text(json.dumps(data), encoding="utf-8")
    return path


def test_load_json_song(tmp_path):
    p = _write_json(
        tmp_path / "song.json",
        {
            "title": "My Song",
            "duration": 12,
            "start_position": 1.5,
            "lines": [{"text": "one", "start": 0, "end": 2}, {"text": "two", "start": 3, "end": 5.5}],
        },
    )
    tl = load_json_song(p)
    assert tl.title == "My Song"
    assert tl.total_duration == 12.0
    assert tl.start_position == 1.5
    assert tl.lines == (LyricLine("one", 0.0, 2.0), LyricLine("two", 3.0, 5.5))


def test_load_json_defaults_title_to_stem(tmp_path):
    p = _write_json(tmp_path / "ballad.json", {"duration": 3, "lines": []})
    tl = load_song(p)
    assert tl.title == "ballad"
    assert tl.start_position == 0.0


@pytest.mark.parametrize(
    "data, fragment",
    [
        ([], "top level"),
        ({"duration": 3}, "'lines' must be a list"),
        ({"lines": []}, "missing 'duration'"),
        ({"duration": "long", "lines": []}, "must be a number"),
        ({"duration": 3, "lines": [{"text": "a", "start": 0}]}, "missing 'end'"),
        ({"duration": 3, "lines": ["a"]}, "must be an object"),
        ({"duration": 3, "lines": [{"text": 1, "start": 0, "end": 1}]}, "'text' must be a string"),
        ({"duration": 3, "lines": [{"text": "a", "start": 0, "end": 2}, {"text": "b", "start": 1, "end": 3}]}, "overlapping"),
    ],
)
def test_load_json_errors(tmp_path, data, fragment):
    p = _write_json(tmp_path / "bad.json", data)
    with pytest.raises(ConfigurationError, match=fragment):
        load_json_song(p)


def test_load_json_invalid_syntax(tmp_path):
    p = tmp_path / "bad.json"
    p.write_text("{nope", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="invalid JSON"):
        load_song(p)


def test_load_missing_file(tmp_path):
    with pytest.raises(ConfigurationError, match="cannot read"):
        load_song(tmp_path / "missing.json")


def test_load_unknown_suffix(tmp_path):
    p = tmp_path / "song.txt"
    p.write_text("x", encoding="utf-8")
    with pytest.raises(ConfigurationError, match="unsupported song format"):
        load_song(p)


def test_parse_lrc_multiple_timestamps_and_offset():
    events, tags = parse_lrc("[ti:Song]\n[offset:500]\n[00:01.00][00:02.5]hey\n")
    assert [e.t_ms for e in events] == [500, 2000]
    assert [e.text for e in events] == ["hey", "hey"]
    assert tags == {"ti": "Song"}


def test_lrc_to_timeline_ends_lines_at_next_stamp():
    text = "[ar:Band]\n[ti:Tune]\n[length:00:20.00]\n[00:01.00]one\n[00:04.50]two\n[00:08.00]\n[00:10.00]three\n"
    tl = lrc_to_timeline(text, title="fallback")
    assert tl.title == "Band - Tune"
    assert tl.total_duration == 20.0
    assert tl.lines == (
        LyricLine("one", 1.0, 4.5),
        LyricLine("two", 4.5, 8.0),
        LyricLine("three", 10.0, 20.0),
    )


def test_lrc_without_length_gets_tail(tmp_path):
    p = tmp_path / "plain.lrc"
    p.write_text("[00:01.00]a\n[00:03.00]b\n", encoding="utf-8")
    tl = load_lrc_song(p)
    assert tl.title == "plain"
    assert tl.total_duration == 3.0 + LRC_TAIL_S
    assert tl.lines[-1].end_time == tl.total_duration


def test_lrc_explicit_duration_wins(tmp_path):
    p = tmp_path / "x.lrc"
    p.write_text("[length:00:20.00]\n[00:01.00]a\n", encoding="utf-8")
    assert load_lrc_song(p, duration=30.0).total_duration == 30.0


def test_lrc_line_past_duration_rejected():
    with pytest.raises(ConfigurationError):
        lrc_to_timeline("[00:10.00]late\n", title="t", duration=5.0)


def test_lrc_bad_seconds_rejected():
    with pytest.raises(ConfigurationError, match="Invalid seconds"):
        parse_lrc("[00:75.00]x\n")


def test_parse_lrc_lyric_wins_over_blank_at_same_time():
    events, _tags = parse_lrc("[00:00.00]a\n[00:01.00]\n[00:01.00]b\n")
    assert [(e.t_ms, e.text) for e in events] == [(0, "a"), (1000, "b")]
