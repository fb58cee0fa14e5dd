from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class PlaybackState:
    session_start_instant: float
    accumulated_pause_duration: float = 0.0
    is_paused: bool = False
    pause_began_instant: float | None = None
    # integer ms so repeated 0.1s nudges add up exactly
    time_offset_ms: int = 0

    @property
    def time_offset(self) -> float:
        return self.time_offset_ms / 1000.0


class PlaybackClock:
    """
    Effective elapsed time for lyric sync:

        (instant - session_start) - accumulated_pause + start_position + offset

    `now_fn` must be monotonic; it is injectable so tests can drive time.
    While paused the instant is pinned to the moment the pause began, so
    `now()` stays frozen until resume. Result is clamped to [0, duration].
    """

    def __init__(
        self,
        start_position: float = 0.0,
        *,
        duration: float | None = None,
        now_fn: Callable[[], float] = time.monotonic,
    ):
        self.start_position = start_position
        self.duration = duration
        self.now_fn = now_fn
        self.state = PlaybackState(session_start_instant=now_fn())

    @property
    def is_paused(self) -> bool:
        return self.state.is_paused

    @property
    def time_offset(self) -> float:
        return self.state.time_offset

    def start(self, start_position: float | None = None) -> None:
        if start_position is not None:
            self.start_position = start_position
        self.state = PlaybackState(session_start_instant=self.now_fn())
        logger.debug("Clock started at position %.3fs", self.start_position)

    def now(self) -> float:
        st = self.state
        instant = st.pause_began_instant if st.is_paused and st.pause_began_instant is not None else self.now_fn()
        t = (instant - st.session_start_instant) - st.accumulated_pause_duration
        t += self.start_position + st.time_offset
        if t < 0.0:
            return 0.0
        if self.duration is not None and t > self.duration:
            return self.duration
        return t

    def toggle_pause(self) -> bool:
        st = self.state
        instant = self.now_fn()
        if st.is_paused:
            if st.pause_began_instant is not None:
                st.accumulated_pause_duration += instant - st.pause_began_instant
            st.pause_began_instant = None
            st.is_paused = False
            logger.debug("Resumed (paused total %.3fs)", st.accumulated_pause_duration)
        else:
            st.pause_began_instant = instant
            st.is_paused = True
            logger.debug("Paused at %.3fs", self.now())
        return st.is_paused

    def restart(self) -> None:
        self.start(self.start_position)

    def adjust_offset(self, delta_seconds: float) -> None:
        self.state.time_offset_ms += int(round(delta_seconds * 1000))
        logger.debug("Offset now %+.3fs", self.state.time_offset)
