from __future__ import annotations

import json
import logging
import re
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from .errors import ConfigurationError
from .model import LyricLine, Timeline

logger = logging.getLogger(__name__)

_TS_RE = re.compile(r"\[(\d{1,2}):(\d{2})(?:\.(\d{1,3}))?\]")  # [mm:ss] / [mm:ss.xx] / [mm:ss.xxx]
_OFFSET_RE = re.compile(r"^\[offset:([+-]?\d+)\]\s*$", re.IGNORECASE)
_TAG_RE = re.compile(r"^\[([a-zA-Z]{1,8}):(.*)\]\s*$")
_LENGTH_RE = re.compile(r"^(\d+):(\d{2})(?:\.(\d{1,3}))?$")

# last LRC line has no explicit end; give it this much time when no length is known
LRC_TAIL_S = 5.0


def default_timeline() -> Timeline:
    # Song metadata and lyrics; edit these for a different built-in song
    lines = [
        LyricLine(text=f"Example line {i + 1}", start_time=i * 3.0, end_time=(i + 1) * 3.0)
        for i in range(7)
    ]
    return Timeline.build("Title here", 21.0, lines, start_position=0.0)


def load_song(path: Path) -> Timeline:
    suffix = path.suffix.lower()
    if suffix == ".json":
        return load_json_song(path)
    if suffix == ".lrc":
        return load_lrc_song(path)
    raise ConfigurationError(f"{path}: unsupported song format {suffix or '(none)'!r}, expected .json or .lrc")


def _read_text(path: Path) -> str:
    try:
        return path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(f"{path}: cannot read song file: {e}") from e


def _number(obj: dict[str, Any], key: str, where: str, default: float | None = None) -> float:
    if key not in obj:
        if default is not None:
            return default
        raise ConfigurationError(f"{where}: missing {key!r}")
    v = obj[key]
    if isinstance(v, bool) or not isinstance(v, (int, float)):
        raise ConfigurationError(f"{where}: {key!r} must be a number, got {v!r}")
    return float(v)


def load_json_song(path: Path) -> Timeline:
    """
    {
      "title": "...",
      "duration": 21.0,
      "start_position": 0.0,      # optional
      "lines": [{"text": "...", "start": 0.0, "end": 3.0}, ...]
    }
    """
    try:
        data = json.loads(_read_text(path))
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"{path}: invalid JSON: {e}") from e

    if not isinstance(data, dict):
        raise ConfigurationError(f"{path}: top level must be an object")
    raw_lines = data.get("lines")
    if not isinstance(raw_lines, list):
        raise ConfigurationError(f"{path}: 'lines' must be a list")

    lines: list[LyricLine] = []
    for i, item in enumerate(raw_lines):
        where = f"{path}: line {i}"
        if not isinstance(item, dict):
            raise ConfigurationError(f"{where}: must be an object")
        text = item.get("text", "")
        if not isinstance(text, str):
            raise ConfigurationError(f"{where}: 'text' must be a string")
        lines.append(
            LyricLine(text=text, start_time=_number(item, "start", where), end_time=_number(item, "end", where))
        )

    title = data.get("title") or path.stem
    tl = Timeline.build(
        str(title),
        _number(data, "duration", str(path)),
        lines,
        start_position=_number(data, "start_position", str(path), default=0.0),
    )
    logger.debug("Loaded %s: %d lines, %.1fs", path, len(tl.lines), tl.total_duration)
    return tl


@dataclass(frozen=True, slots=True)
class _LrcEvent:
    t_ms: int
    text: str


def _parse_ts_to_ms(m: int, s: int, frac: str | None) -> int:
    if not (0 <= s <= 59):
        raise ConfigurationError(f"Invalid seconds: {s}")
    if frac is None:
        ms = 0
    else:
        # "2" -> 200ms, "23" -> 230ms, "234" -> 234ms
        ms = int(frac.ljust(3, "0")[:3])
    return (m * 60 + s) * 1000 + ms


def _parse_length(value: str) -> float | None:
    m = _LENGTH_RE.match(value.strip())
    if not m:
        return None
    return _parse_ts_to_ms(int(m.group(1)), int(m.group(2)), m.group(3)) / 1000.0


def parse_lrc(text: str) -> tuple[list[_LrcEvent], dict[str, str]]:
    """
    Supported:
    - [mm:ss], [mm:ss.xx], [mm:ss.xxx]
    - multiple timestamps per line
    - [offset:+/-ms]
    - basic tags: [ar:], [ti:], [length:], ...

    Events come back sorted by time; duplicates at the same instant keep
    the first non-empty text seen.
    """
    offset_ms = 0
    tags: dict[str, str] = {}
    events: list[_LrcEvent] = []

    for raw in text.splitlines():
        line = raw.rstrip()
        if not line.strip():
            continue

        off = _OFFSET_RE.match(line)
        if off:
            offset_ms = int(off.group(1))
            continue

        tag = _TAG_RE.match(line)
        if tag and not _TS_RE.search(line):
            k = tag.group(1).strip().lower()
            v = tag.group(2).strip()
            if k and v:
                tags[k] = v
            continue

        ts = list(_TS_RE.finditer(line))
        if not ts:
            continue

        payload = line[ts[-1].end() :].strip()
        for m in ts:
            t_ms = _parse_ts_to_ms(int(m.group(1)), int(m.group(2)), m.group(3))
            events.append(_LrcEvent(t_ms=t_ms, text=payload))

    # LRC offset: positive means lyrics appear earlier
    shifted = [_LrcEvent(max(e.t_ms - offset_ms, 0), e.text) for e in events]
    shifted.sort(key=lambda e: e.t_ms)
    dedup: list[_LrcEvent] = []
    for e in shifted:
        if dedup and dedup[-1].t_ms == e.t_ms:
            # a lyric beats a silence marker at the same instant
            if not dedup[-1].text and e.text:
                dedup[-1] = e
            continue
        dedup.append(e)
    return dedup, tags


def lrc_to_timeline(text: str, *, title: str, duration: float | None = None) -> Timeline:
    events, tags = parse_lrc(text)
    if duration is None and "length" in tags:
        duration = _parse_length(tags["length"])
    if duration is None:
        last = events[-1].t_ms / 1000.0 if events else 0.0
        duration = last + LRC_TAIL_S

    lines: list[LyricLine] = []
    for i, e in enumerate(events):
        if not e.text:
            # blank stamped line marks silence
            continue
        start = e.t_ms / 1000.0
        end = events[i + 1].t_ms / 1000.0 if i + 1 < len(events) else duration
        lines.append(LyricLine(text=e.text, start_time=start, end_time=end))

    if "ti" in tags:
        title = f"{tags['ar']} - {tags['ti']}" if "ar" in tags else tags["ti"]
    return Timeline.build(title, duration, lines)


def load_lrc_song(path: Path, duration: float | None = None) -> Timeline:
    tl = lrc_to_timeline(_read_text(path), title=path.stem, duration=duration)
    logger.debug("Loaded %s: %d lines, %.1fs", path, len(tl.lines), tl.total_duration)
    return tl
