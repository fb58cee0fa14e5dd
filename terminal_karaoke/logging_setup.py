from __future__ import annotations

import logging
import os
from pathlib import Path


def setup_logging(debug: bool, log_file: Path | None = None) -> None:
    level = logging.DEBUG if debug else logging.WARNING
    # Allow env override for e.g. scripted runs
    level_name = os.getenv("TERMINAL_KARAOKE_LOG_LEVEL")
    if level_name:
        level = getattr(logging, level_name.upper(), level)

    # stderr output would tear the full-screen display; prefer a file when given
    if log_file is None and os.getenv("TERMINAL_KARAOKE_LOG_FILE"):
        log_file = Path(os.environ["TERMINAL_KARAOKE_LOG_FILE"])

    logging.basicConfig(
        level=level,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        filename=str(log_file) if log_file else None,
    )
