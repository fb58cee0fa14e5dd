from __future__ import annotations

import enum
import logging
from typing import Protocol

from terminal_karaoke.config import AppConfig
from terminal_karaoke.input.keys import Key, KeyEvent
from terminal_karaoke.render.ansi import Frame
from terminal_karaoke.sync.clock import PlaybackClock
from terminal_karaoke.sync.engine import RenderState, SyncEngine
from terminal_karaoke.timeline.model import Timeline

logger = logging.getLogger(__name__)


class Command(enum.Enum):
    TOGGLE_PAUSE = "toggle_pause"
    RESTART = "restart"
    OFFSET_UP = "offset_up"
    OFFSET_DOWN = "offset_down"
    QUIT = "quit"


class KeySource(Protocol):
    def __enter__(self): ...
    def __exit__(self, exc_type, exc, tb): ...
    def poll(self, timeout: float) -> KeyEvent | None: ...


class FrameSink(Protocol):
    def __enter__(self): ...
    def __exit__(self, exc_type, exc, tb): ...
    def render(self, frame: Frame) -> None: ...


def command_for(ev: KeyEvent) -> Command | None:
    if ev.key is Key.SPACE:
        return Command.TOGGLE_PAUSE
    if ev.key is Key.UP:
        return Command.OFFSET_UP
    if ev.key is Key.DOWN:
        return Command.OFFSET_DOWN
    if ev.key is Key.CHAR:
        c = ev.char.lower()
        if c == "r":
            return Command.RESTART
        if c == "q":
            return Command.QUIT
    return None


def apply(cmd: Command, clock: PlaybackClock, state: RenderState, *, step: float) -> None:
    if cmd is Command.TOGGLE_PAUSE:
        # song over: only restart (or a backwards nudge) leaves the ended state
        if state.finished:
            return
        clock.toggle_pause()
    elif cmd is Command.RESTART:
        clock.restart()
    elif cmd is Command.OFFSET_UP:
        clock.adjust_offset(+step)
    elif cmd is Command.OFFSET_DOWN:
        clock.adjust_offset(-step)


def play(
    timeline: Timeline,
    cfg: AppConfig,
    *,
    keys: KeySource,
    renderer: FrameSink,
    clock: PlaybackClock | None = None,
) -> int:
    """
    Driving loop:
    clock.now() -> compute -> render, then wait for a key until the tick ends.

    Single-threaded; the key poll is the only place the loop blocks, and a
    quit seen there ends the loop with exit code 0.
    """
    if clock is None:
        clock = PlaybackClock(timeline.start_position, duration=timeline.total_duration)
    engine = SyncEngine(timeline)
    tick_s = cfg.tick_s
    now_fn = clock.now_fn
    logger.info("Playing %r (%d lines, %.1fs)", timeline.title, len(timeline.lines), timeline.total_duration)

    with keys, renderer:
        tick_end = now_fn() + tick_s
        try:
            while True:
                state = engine.compute(clock.now())
                if state.finished and not clock.is_paused:
                    clock.toggle_pause()
                    logger.info("Song ended at %.2fs; clock paused", state.effective_elapsed)

                renderer.render(
                    Frame(timeline=timeline, state=state, is_paused=clock.is_paused, time_offset=clock.time_offset)
                )

                # keys and slow frames eat into the tick, never extend it
                ev = keys.poll(max(tick_end - now_fn(), 0.0))
                if now_fn() >= tick_end:
                    tick_end = now_fn() + tick_s
                if ev is None:
                    continue
                cmd = command_for(ev)
                if cmd is None:
                    continue
                logger.debug("Key %s -> %s", ev, cmd.value)
                if cmd is Command.QUIT:
                    return 0
                apply(cmd, clock, state, step=cfg.offset_step_s)
        except KeyboardInterrupt:
            logger.info("Interrupted")
            return 0
