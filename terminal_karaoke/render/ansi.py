from __future__ import annotations

import shutil
import signal
import sys
from dataclasses import dataclass
from typing import Callable

from colorama import Fore, Style

from terminal_karaoke.sync.engine import RenderState
from terminal_karaoke.timeline.model import Timeline

CSI = "\x1b["

BAR_CHAR = "━"
BAR_HEAD = "●"


@dataclass(frozen=True, slots=True)
class Theme:
    title: str = Fore.MAGENTA + Style.BRIGHT
    sung: str = Fore.GREEN + Style.BRIGHT
    active: str = Fore.WHITE + Style.BRIGHT
    upcoming: str = Fore.LIGHTBLACK_EX
    marker: str = Fore.RED + Style.BRIGHT
    bar_played: str = Fore.WHITE
    bar_rest: str = Fore.LIGHTBLACK_EX
    warning: str = Fore.YELLOW + Style.BRIGHT
    reset: str = Style.RESET_ALL


@dataclass(frozen=True, slots=True)
class Frame:
    """Everything needed to paint one screen; nothing here points back at the clock."""

    timeline: Timeline
    state: RenderState
    is_paused: bool
    time_offset: float


def format_time(seconds: float) -> str:
    s = int(max(seconds, 0.0))
    return f"{s // 60}:{s % 60:02d}"


def bar_head(fraction: float, width: int) -> int:
    return min(int(width * fraction), max(width - 1, 0))


def progress_bar(fraction: float, width: int) -> str:
    if width <= 0:
        return ""
    head = bar_head(fraction, width)
    return BAR_CHAR * head + BAR_HEAD + BAR_CHAR * (width - head - 1)


def split_revealed(text: str, revealed: int) -> tuple[str, str]:
    n = min(max(revealed, 0), len(text))
    return text[:n], text[n:]


class AnsiRenderer:
    def __init__(
        self,
        use_alt_screen: bool = True,
        theme: Theme | None = None,
        context_lines: int = 2,
        progress_width: int = 30,
    ):
        self.use_alt_screen = use_alt_screen
        self.theme = theme or Theme()
        self.context_lines = context_lines
        self.progress_width = progress_width
        self._entered = False
        self._resize_handler: Callable[..., None] | None = None
        self._last_frame: Frame | None = None
        self._last_output: str | None = None

    def __enter__(self):
        self.enter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exit()

    def enter(self) -> None:
        if self._entered:
            return
        if self.use_alt_screen:
            sys.stdout.write(CSI + "?1049h")  # alt screen
        sys.stdout.write(CSI + "?25l")  # hide cursor
        sys.stdout.write(CSI + "H" + CSI + "2J")  # home + clear
        sys.stdout.flush()
        self._entered = True

        # Register SIGWINCH handler for resize
        def _on_resize(signum=None, frame=None):
            if self._last_frame is not None:
                self._last_output = None
                self.render(self._last_frame)

        self._resize_handler = _on_resize
        signal.signal(signal.SIGWINCH, _on_resize)

    def exit(self) -> None:
        if not self._entered:
            return
        if self._resize_handler:
            signal.signal(signal.SIGWINCH, signal.SIG_DFL)
            self._resize_handler = None
        sys.stdout.write(self.theme.reset)
        sys.stdout.write(CSI + "?25h")  # show cursor
        if self.use_alt_screen:
            sys.stdout.write(CSI + "?1049l")  # normal screen
        sys.stdout.flush()
        self._entered = False
        self._last_frame = None
        self._last_output = None

    # -- layout -------------------------------------------------------------

    def _centered(self, plain: str, styled: str, cols: int) -> str:
        pad = max((cols - len(plain)) // 2, 0)
        return " " * pad + styled

    def _lyric_row(self, frame: Frame, idx: int | None, cols: int) -> str:
        th = self.theme
        st = frame.state
        lines = frame.timeline.lines
        if idx is None or not (0 <= idx < len(lines)):
            return ""
        text = lines[idx].text
        if idx == st.active_line_index:
            sung, rest = split_revealed(text, st.revealed_char_count)
            plain = f">  {text}  <"
            styled = (
                f"{th.marker}>  {th.reset}"
                f"{th.sung}{sung}{th.reset}{th.active}{rest}{th.reset}"
                f"{th.marker}  <{th.reset}"
            )
            return self._centered(plain, styled, cols)
        completed = st.last_completed_index is not None and idx <= st.last_completed_index
        color = th.sung if completed else th.upcoming
        return self._centered(text, f"{color}{text}{th.reset}", cols)

    def lyric_window(self, frame: Frame) -> list[int | None]:
        """
        Line indices shown around the centre row, top to bottom.

        With an active line it sits in the centre; during silence the centre
        row is empty, sung lines above and upcoming lines below.
        """
        st = frame.state
        ctx = self.context_lines
        out: list[int | None] = []
        if st.active_line_index is not None:
            for rel in range(-ctx, ctx + 1):
                out.append(st.active_line_index + rel)
            return out
        lc = st.last_completed_index if st.last_completed_index is not None else -1
        for rel in range(-ctx, ctx + 1):
            if rel < 0:
                out.append(lc + rel + 1)
            elif rel == 0:
                out.append(None)
            else:
                out.append(lc + rel)
        return out

    def _progress_row(self, frame: Frame, cols: int) -> str:
        th = self.theme
        st = frame.state
        width = self.progress_width
        head = bar_head(st.overall_progress_fraction, width)
        left = f"{format_time(st.effective_elapsed)}  "
        right = f"  {format_time(frame.timeline.total_duration)}"
        plain = left + progress_bar(st.overall_progress_fraction, width) + right
        styled = (
            f"{th.bar_played}{left}{BAR_CHAR * head}{th.reset}"
            f"{th.active}{BAR_HEAD}{th.reset}"
            f"{th.bar_rest}{BAR_CHAR * (width - head - 1)}{th.reset}"
            f"{th.bar_played}{right}{th.reset}"
        )
        return self._centered(plain, styled, cols)

    def _status_row(self, frame: Frame, cols: int) -> str:
        th = self.theme
        if frame.state.finished:
            msg = "♫ Song ended - press R to restart ♫"
            return self._centered(msg, f"{th.warning}{msg}{th.reset}", cols)
        mode = "‖ paused" if frame.is_paused else "▶ playing"
        msg = f"{mode}   offset {frame.time_offset:+.1f}s   space pause · r restart · ↑/↓ offset · q quit"
        return self._centered(msg, msg, cols)

    def compose(self, frame: Frame, cols: int, rows: int) -> str:
        th = self.theme
        title = frame.timeline.title
        footer = [
            self._progress_row(frame, cols),
            self._centered(title, f"{th.title}{title}{th.reset}", cols),
            self._status_row(frame, cols),
        ]
        body_rows = max(rows - len(footer), 1)
        window = [self._lyric_row(frame, idx, cols) for idx in self.lyric_window(frame)]
        window = window[:body_rows]
        top = (body_rows - len(window)) // 2
        body = [""] * top + window
        body += [""] * (body_rows - len(body))
        return "\n".join(body + footer)

    def render(self, frame: Frame) -> None:
        # Store frame for SIGWINCH redraw
        self._last_frame = frame

        cols, rows = shutil.get_terminal_size(fallback=(80, 24))
        out = self.compose(frame, cols, rows)
        if out == self._last_output:
            return
        self._last_output = out

        # move home + clear, then print full frame
        sys.stdout.write(CSI + "H" + CSI + "2J")
        sys.stdout.write(out)
        sys.stdout.write(self.theme.reset)
        sys.stdout.flush()
