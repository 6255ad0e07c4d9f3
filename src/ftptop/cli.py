"""ftptop command line entry point."""

import logging
import os
import sys

from textual.logging import TextualHandler

from ftptop.app import FtptopApp
from ftptop.models import RunConfig
from ftptop.options import PROGRAM, ConfigurationError, parse_options
from ftptop.scoreboard import FileScoreboard

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(levelname)s - %(message)s"


def setup_logging(log_file: str | None = None) -> None:
    """
    Route log records away from the terminal the TUI is drawing on.

    Records go to the Textual devtools console, or to log_file when given.
    """
    if log_file:
        handler: logging.Handler = logging.FileHandler(log_file)
        handler.setFormatter(logging.Formatter(LOG_FORMAT))
        level = logging.DEBUG
    else:
        handler = TextualHandler()
        level = logging.INFO
    logging.basicConfig(level=level, handlers=[handler], force=True)


def verify_scoreboard_path(path: str) -> str | None:
    """Return an error message if the scoreboard path cannot be stat'ed."""
    try:
        os.stat(path)
    except OSError as e:
        return f"unable to stat '{path}': {e.strerror or e}"
    return None


def build_app(config: RunConfig) -> FtptopApp | None:
    """Resolve the scoreboard and build the app, or report why not."""
    scoreboard = FileScoreboard()
    if config.scoreboard_path:
        scoreboard.set_path(config.scoreboard_path)

    error = verify_scoreboard_path(scoreboard.get_path())
    if error is not None:
        print(f"{PROGRAM}: {error}", file=sys.stderr)
        return None

    return FtptopApp(config, scoreboard)


def main(argv: list[str] | None = None) -> int:
    """Entry point for ftptop."""
    try:
        config = parse_options(argv)
    except ConfigurationError as e:
        print(f"{PROGRAM}: {e}", file=sys.stderr)
        return 1

    app = build_app(config)
    if app is None:
        return 1

    setup_logging(config.log_file)
    logger.info(
        "Starting with delay=%ds filter=%s scoreboard=%s",
        config.refresh_delay,
        config.display_filter,
        config.scoreboard_path or "default",
    )
    app.run()
    return app.return_code or 0
