from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable

from .errors import ConfigurationError


@dataclass(frozen=True, slots=True)
class LyricLine:
    text: str
    start_time: float
    end_time: float

    @property
    def duration(self) -> float:
        return self.end_time - self.start_time

    @property
    def char_count(self) -> int:
        return len(self.text)


@dataclass(frozen=True, slots=True)
class Timeline:
    """
    Immutable, validated lyric timeline for one song.

    Lines are sorted by start time and never overlap, so lookups can bisect
    over `start_times` without re-sorting.
    """

    title: str
    total_duration: float
    lines: tuple[LyricLine, ...]
    start_position: float = 0.0
    start_times: tuple[float, ...] = field(init=False, repr=False, compare=False)

    def __post_init__(self) -> None:
        _validate(self)
        object.__setattr__(self, "start_times", tuple(ln.start_time for ln in self.lines))

    @classmethod
    def build(
        cls,
        title: str,
        total_duration: float,
        lines: Iterable[LyricLine],
        start_position: float = 0.0,
    ) -> "Timeline":
        return cls(
            title=title,
            total_duration=float(total_duration),
            lines=tuple(lines),
            start_position=float(start_position),
        )

    @property
    def gap_count(self) -> int:
        """Number of silences between consecutive lines."""
        return sum(1 for a, b in zip(self.lines, self.lines[1:]) if b.start_time > a.end_time)


def _validate(tl: Timeline) -> None:
    if not tl.total_duration > 0:
        raise ConfigurationError(f"total duration must be positive, got {tl.total_duration}")
    if tl.start_position < 0:
        raise ConfigurationError(f"start position must not be negative, got {tl.start_position}")
    if tl.start_position >= tl.total_duration:
        raise ConfigurationError(
            f"start position {tl.start_position} is past the song end ({tl.total_duration})"
        )

    prev: LyricLine | None = None
    for i, ln in enumerate(tl.lines):
        if ln.start_time < 0:
            raise ConfigurationError(f"line {i}: start time must not be negative, got {ln.start_time}")
        if not ln.end_time > ln.start_time:
            raise ConfigurationError(
                f"line {i}: end time {ln.end_time} must be after start time {ln.start_time}"
            )
        if ln.end_time > tl.total_duration:
            raise ConfigurationError(
                f"line {i}: ends at {ln.end_time}, after the song end ({tl.total_duration})"
            )
        if prev is not None:
            if ln.start_time < prev.start_time:
                raise ConfigurationError(f"line {i}: lines are not sorted by start time")
            if ln.start_time < prev.end_time:
                raise ConfigurationError(
                    f"line {i}: starts at {ln.start_time}, overlapping line {i - 1} (ends at {prev.end_time})"
                )
        prev = ln
