from __future__ import annotations

import dataclasses
import logging
from pathlib import Path

import typer

from terminal_karaoke.app import play as play_loop
from terminal_karaoke.config import AppConfig, load_config, save_config_song
from terminal_karaoke.input.keys import KeyReader, TerminalUnavailable
from terminal_karaoke.logging_setup import setup_logging
from terminal_karaoke.render.ansi import AnsiRenderer
from terminal_karaoke.sync.clock import PlaybackClock
from terminal_karaoke.timeline.errors import ConfigurationError
from terminal_karaoke.timeline.export import export_json, export_lrc, export_srt
from terminal_karaoke.timeline.load import default_timeline, load_song
from terminal_karaoke.timeline.model import Timeline

logger = logging.getLogger(__name__)

app = typer.Typer(no_args_is_help=True, add_completion=False)

EXIT_TERMINAL = 1
EXIT_CONFIG = 2


def _load_timeline(song: Path | None, cfg: AppConfig) -> Timeline:
    path = song or cfg.song_path
    if path is None:
        return default_timeline()
    return load_song(path)


@app.command()
def play(
    song: Path | None = typer.Argument(None, help="Song file (.json or .lrc); default: configured or built-in song"),
    start: float | None = typer.Option(None, "--start", help="Start position in seconds"),
    refresh_hz: float | None = typer.Option(None, "--refresh-hz", min=1.0, help="Redraw/poll frequency (Hz, at least 1)"),
    context_lines: int | None = typer.Option(None, "--context", help="Lines above/below current line"),
    step: float | None = typer.Option(None, "--step", help="Offset change per Up/Down press (seconds)"),
    no_alt_screen: bool = typer.Option(False, "--no-alt-screen", help="Do not use alternate screen buffer"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    log_file: Path | None = typer.Option(None, "--log-file", help="Write logs to this file"),
):
    """
    Show lyrics in time with a clock. Space pause, R restart, Up/Down offset, Q quit.
    """
    setup_logging(debug, log_file)
    cfg = load_config()
    if refresh_hz is not None:
        cfg = dataclasses.replace(cfg, refresh_hz=refresh_hz)
    if context_lines is not None:
        cfg = dataclasses.replace(cfg, context_lines=context_lines)
    if step is not None:
        cfg = dataclasses.replace(cfg, offset_step_s=step)
    if no_alt_screen:
        cfg = dataclasses.replace(cfg, use_alt_screen=False)

    try:
        timeline = _load_timeline(song, cfg)
        if start is not None:
            timeline = Timeline.build(timeline.title, timeline.total_duration, timeline.lines, start_position=start)
    except ConfigurationError as e:
        typer.echo(f"Invalid song: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)

    renderer = AnsiRenderer(
        use_alt_screen=cfg.use_alt_screen,
        context_lines=cfg.context_lines,
        progress_width=cfg.progress_width,
    )
    clock = PlaybackClock(timeline.start_position, duration=timeline.total_duration)
    try:
        code = play_loop(timeline, cfg, keys=KeyReader(), renderer=renderer, clock=clock)
    except TerminalUnavailable as e:
        logger.error("Terminal unavailable: %s", e)
        typer.echo(f"Terminal unavailable: {e}", err=True)
        raise typer.Exit(code=EXIT_TERMINAL)
    raise typer.Exit(code=code)


@app.command()
def check(song: Path):
    """Validate a song file and print its timeline stats."""
    try:
        tl = load_song(song)
    except ConfigurationError as e:
        typer.echo(f"Invalid song: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)
    typer.echo(f"title={tl.title}")
    typer.echo(f"duration={tl.total_duration:g}")
    typer.echo(f"start_position={tl.start_position:g}")
    typer.echo(f"lines={len(tl.lines)}")
    typer.echo(f"gaps={tl.gap_count}")


@app.command()
def export(
    song: Path,
    fmt: str = typer.Option("json", "--format", case_sensitive=False, help="json|lrc|srt"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
):
    """Export a song timeline to JSON/LRC/SRT."""
    fmt_l = fmt.lower()
    if fmt_l not in ("json", "lrc", "srt"):
        raise typer.BadParameter("format must be one of: json, lrc, srt")
    try:
        tl = load_song(song)
    except ConfigurationError as e:
        typer.echo(f"Invalid song: {e}", err=True)
        raise typer.Exit(code=EXIT_CONFIG)

    if fmt_l == "json":
        data = export_json(tl)
    elif fmt_l == "lrc":
        data = export_lrc(tl)
    else:
        data = export_srt(tl)

    if out:
        out.write_text(data, encoding="utf-8")
    else:
        typer.echo(data, nl=False)


@app.command()
def config(
    song: Path | None = typer.Option(None, "--song", help="Remember this song as the default"),
    clear_song: bool = typer.Option(False, "--clear-song", help="Forget the default song"),
):
    """Show or change the saved settings."""
    if song is not None:
        try:
            load_song(song)
        except ConfigurationError as e:
            typer.echo(f"Invalid song: {e}", err=True)
            raise typer.Exit(code=EXIT_CONFIG)
        save_config_song(song.resolve())
    elif clear_song:
        save_config_song(None)

    cfg = load_config()
    typer.echo(f"config_dir={cfg.config_dir}")
    typer.echo(f"song={cfg.song_path or '(built-in)'}")
    typer.echo(f"refresh_hz={cfg.refresh_hz:g}")
    typer.echo(f"offset_step={cfg.offset_step_s:g}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
