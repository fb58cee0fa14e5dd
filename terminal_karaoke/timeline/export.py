from __future__ import annotations

import json

from .model import Timeline


def export_json(tl: Timeline) -> str:
    return json.dumps(
        {
            "title": tl.title,
            "duration": tl.total_duration,
            "start_position": tl.start_position,
            "lines": [{"text": ln.text, "start": ln.start_time, "end": ln.end_time} for ln in tl.lines],
        },
        ensure_ascii=False,
        indent=2,
    ) + "\n"


def _ms(seconds: float) -> int:
    return int(round(seconds * 1000))


def _fmt_lrc_time(ms: int) -> str:
    m, rem = divmod(ms, 60_000)
    s, ms2 = divmod(rem, 1_000)
    # keep 2 decimals for compatibility
    return f"{m:02d}:{s:02d}.{ms2 // 10:02d}"


def export_lrc(tl: Timeline) -> str:
    """
    Each line is stamped at its start; an empty stamped line closes a line
    that is followed by silence (or by the song end).
    """
    out: list[str] = [f"[ti:{tl.title}]", f"[length:{_fmt_lrc_time(_ms(tl.total_duration))}]"]
    for i, ln in enumerate(tl.lines):
        out.append(f"[{_fmt_lrc_time(_ms(ln.start_time))}]{ln.text}")
        nxt = tl.lines[i + 1] if i + 1 < len(tl.lines) else None
        if nxt is not None and nxt.start_time <= ln.end_time:
            continue
        if ln.end_time >= tl.total_duration:
            continue
        stamp = _fmt_lrc_time(_ms(ln.end_time))
        # gaps shorter than the 10ms LRC resolution collapse onto the next line
        if nxt is not None and stamp == _fmt_lrc_time(_ms(nxt.start_time)):
            continue
        out.append(f"[{stamp}]")
    return "\n".join(out) + "\n"


def _fmt_srt_time(ms: int) -> str:
    # HH:MM:SS,mmm
    h, rem = divmod(ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms2 = divmod(rem, 1_000)
    return f"{h:02d}:{m:02d}:{s:02d},{ms2:03d}"


def export_srt(tl: Timeline) -> str:
    out: list[str] = []
    for i, ln in enumerate(tl.lines, start=1):
        out.append(str(i))
        out.append(f"{_fmt_srt_time(_ms(ln.start_time))} --> {_fmt_srt_time(_ms(ln.end_time))}")
        out.append(ln.text)
        out.append("")
    return "\n".join(out)
