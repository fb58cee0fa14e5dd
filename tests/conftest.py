from __future__ import annotations

import pytest

from terminal_karaoke.config import AppConfig
from terminal_karaoke.input.keys import Key, KeyEvent
from terminal_karaoke.timeline.model import LyricLine, Timeline


class FakeTime:
    """Monotonic instant source driven by the test."""

    def __init__(self, t: float = 0.0):
        self.t = t

    def __call__(self) -> float:
        return self.t

    def advance(self, dt: float) -> None:
        self.t += dt


class ScriptedKeys:
    """
    Key source for the driving loop: every poll waits the full timeout on
    the fake clock, then hands out the next scripted event. Quits once the
    script runs out.
    """

    def __init__(self, script, fake_time: FakeTime):
        self.script = list(script)
        self.fake_time = fake_time
        self.entered = False
        self.exited = False
        self.timeouts: list[float] = []

    def __enter__(self):
        self.entered = True
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exited = True

    def poll(self, timeout: float):
        self.timeouts.append(timeout)
        self.fake_time.advance(timeout)
        if not self.script:
            return KeyEvent(Key.CHAR, "q")
        return self.script.pop(0)


class RecordingRenderer:
    def __init__(self):
        self.frames = []
        self.exited = False

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exited = True

    def render(self, frame) -> None:
        self.frames.append(frame)


@pytest.fixture
def fake_time() -> FakeTime:
    return FakeTime()


@pytest.fixture
def make_keys(fake_time):
    def _make(*events):
        return ScriptedKeys(events, fake_time)

    return _make


@pytest.fixture
def recorder() -> RecordingRenderer:
    return RecordingRenderer()


@pytest.fixture
def hello_timeline() -> Timeline:
    return Timeline.build("Hello song", 5.0, [LyricLine("Hello", 1.0, 3.0)])


@pytest.fixture
def two_line_timeline() -> Timeline:
    return Timeline.build(
        "Two lines",
        10.0,
        [LyricLine("first line", 0.0, 2.0), LyricLine("second", 4.0, 6.0)],
    )


@pytest.fixture
def app_config(tmp_path) -> AppConfig:
    # 2 Hz keeps tick arithmetic exact in binary floating point
    return AppConfig(
        config_dir=tmp_path / "config",
        song_path=None,
        refresh_hz=2.0,
        offset_step_s=0.1,
        context_lines=2,
        progress_width=30,
        use_alt_screen=False,
    )
