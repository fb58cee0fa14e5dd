from __future__ import annotations

import math
from bisect import bisect_right
from dataclasses import dataclass

from terminal_karaoke.timeline.model import Timeline


@dataclass(frozen=True, slots=True)
class RenderState:
    active_line_index: int | None
    revealed_char_count: int
    line_progress_fraction: float
    overall_progress_fraction: float
    effective_elapsed: float
    finished: bool = False
    # last line whose end_time <= effective_elapsed
    last_completed_index: int | None = None


def _clamp01(x: float) -> float:
    return min(max(x, 0.0), 1.0)


def compute(effective_elapsed: float, timeline: Timeline) -> RenderState:
    """
    Map an effective elapsed time onto the timeline.

    O(log n) via bisect over start times. Line windows are half-open
    [start, end); a time in a gap between lines has no active line.
    Pure: same input always gives an equal RenderState.
    """
    t = effective_elapsed
    lines = timeline.lines
    overall = _clamp01(t / timeline.total_duration)

    # candidate: last line starting at or before t
    i = bisect_right(timeline.start_times, t) - 1
    if i >= 0 and t >= lines[i].end_time:
        last_completed = i
    else:
        last_completed = i - 1 if i >= 1 else None

    if t >= timeline.total_duration:
        return RenderState(
            active_line_index=None,
            revealed_char_count=0,
            line_progress_fraction=0.0,
            overall_progress_fraction=1.0,
            effective_elapsed=t,
            finished=True,
            last_completed_index=last_completed,
        )

    if i < 0 or t >= lines[i].end_time:
        return RenderState(
            active_line_index=None,
            revealed_char_count=0,
            line_progress_fraction=0.0,
            overall_progress_fraction=overall,
            effective_elapsed=t,
            last_completed_index=last_completed,
        )

    line = lines[i]
    progress = _clamp01((t - line.start_time) / (line.end_time - line.start_time))
    n = line.char_count
    revealed = min(max(math.floor(progress * n), 0), n)
    return RenderState(
        active_line_index=i,
        revealed_char_count=revealed,
        line_progress_fraction=progress,
        overall_progress_fraction=overall,
        effective_elapsed=t,
        last_completed_index=last_completed,
    )


class SyncEngine:
    """Binds a timeline to `compute`; holds no per-tick state."""

    def __init__(self, timeline: Timeline):
        self.timeline = timeline

    def compute(self, effective_elapsed: float) -> RenderState:
        return compute(effective_elapsed, self.timeline)
