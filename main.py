
"""
Compatibility entrypoint.

Prefer running:
  - `terminal-karaoke play [SONG]`
or:
  - `python -m terminal_karaoke play [SONG]`
"""

from terminal_karaoke.cli import main as cli_main


def cli() -> None:
    cli_main()


if __name__ == "__main__":
    cli()
