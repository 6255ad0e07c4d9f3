"""ftptop - Main Textual application."""

import asyncio
import contextlib
import logging
import signal
import time

from rich.text import Text
from textual import events
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import VerticalScroll
from textual.widgets import Static

from ftptop.classify import COLUMN_HEADER
from ftptop.models import PollResult, RunConfig, TerminateReason
from ftptop.options import PROGRAM, VERSION
from ftptop.poller import SessionPoller
from ftptop.scoreboard import Scoreboard

logger = logging.getLogger(__name__)

# Smallest refresh interval handed to the timer; a delay of 0 polls at this rate.
MIN_REFRESH_INTERVAL = 0.1

TERMINATE_SIGNALS = (signal.SIGINT, signal.SIGTERM, signal.SIGHUP)

QUIT_KEYS = ("q", "Q", "shift+q", "ctrl+c")


def format_summary(result: PollResult) -> str:
    """Format the session summary line."""
    counters = result.counters
    return (
        f"{counters.total} Total FTP Sessions: {counters.downloading} downloading, "
        f"{counters.uploading} uploading, {counters.idle} idle"
    )


class SummaryHeader(Static):
    """Title, summary and scoreboard error lines."""

    DEFAULT_CSS = """
    SummaryHeader {
        height: auto;
        padding-bottom: 1;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize SummaryHeader."""
        super().__init__(*args, **kwargs)
        self.title_line: str = VERSION
        self.summary_line: str = ""
        self.error_line: str = ""

    def update_result(self, result: PollResult) -> None:
        """Update the header from a poll result."""
        self.title_line = f"{VERSION}: {time.ctime(result.polled_at)}"
        self.summary_line = format_summary(result)
        self.error_line = (
            f"{PROGRAM}: {result.error}" if result.error is not None else ""
        )

        self.update(self.render_text())

    def render_text(self) -> Text:
        """Build the header text: bold title and summary, then any error."""
        text = Text(f"{self.title_line}\n{self.summary_line}", style="bold")
        if self.error_line:
            text.append("\n")
            text.append(self.error_line, style="bold red")
        return text


class SessionRows(VerticalScroll):
    """Scrollable list of formatted session rows."""

    DEFAULT_CSS = """
    SessionRows {
        height: 1fr;
    }

    #column-header {
        text-style: reverse;
        width: 100%;
    }
    """

    def __init__(self, *args, **kwargs) -> None:
        """Initialize SessionRows."""
        super().__init__(*args, **kwargs)
        self.row_lines: list[str] = []

    def compose(self) -> ComposeResult:
        """Compose the column header and row body."""
        yield Static(COLUMN_HEADER, id="column-header", markup=False)
        yield Static(id="row-body", markup=False)

    def update_result(self, result: PollResult) -> None:
        """Replace the displayed rows with those of a poll result."""
        self.row_lines = [row.text for row in result.rows]
        self.query_one("#row-body", Static).update(Text("\n".join(self.row_lines)))


class FtptopApp(App):
    """Main ftptop application."""

    TITLE = "ftptop"
    SUB_TITLE = "FTP Session Monitor"

    CSS = """
    Screen {
        layout: vertical;
    }
    """

    BINDINGS = [
        Binding("q,Q,shift+q", "quit", "Quit"),
        Binding("ctrl+c", "interrupt", "Interrupt", show=False, priority=True),
    ]

    def __init__(self, config: RunConfig, scoreboard: Scoreboard) -> None:
        """
        Initialize the FtptopApp.

        Args:
            config: Run configuration from the command line.
            scoreboard: Scoreboard to poll.
        """
        super().__init__()
        self._config = config
        self._poller = SessionPoller(scoreboard, config.display_filter)
        self.last_result: PollResult | None = None
        self.termination_reason: TerminateReason | None = None

    @property
    def refresh_interval(self) -> float:
        """Seconds between polls."""
        return max(MIN_REFRESH_INTERVAL, float(self._config.refresh_delay))

    def compose(self) -> ComposeResult:
        """Compose the application layout."""
        yield SummaryHeader(id="summary")
        yield SessionRows(id="sessions")

    def on_mount(self) -> None:
        """Paint the first frame and start the refresh timer."""
        self._install_signal_handlers()
        self.refresh_sessions()
        self.set_interval(self.refresh_interval, self.refresh_sessions)

    def _install_signal_handlers(self) -> None:
        loop = asyncio.get_running_loop()
        for signum in TERMINATE_SIGNALS:
            # Not available on every platform or outside the main thread.
            with contextlib.suppress(NotImplementedError, RuntimeError, ValueError):
                loop.add_signal_handler(signum, self.handle_signal, signum)

    def refresh_sessions(self) -> None:
        """Poll the scoreboard and repaint the frame."""
        if self.termination_reason is not None:
            return

        result = self._poller.poll()
        self.last_result = result

        self.query_one("#summary", SummaryHeader).update_result(result)
        self.query_one("#sessions", SessionRows).update_result(result)

        if result.error is not None:
            self.notify(str(result.error), title=PROGRAM, severity="error")

    def on_key(self, event: events.Key) -> None:
        """Any key other than quit repaints immediately."""
        if event.key in QUIT_KEYS or (event.character or "").lower() == "q":
            return
        self.refresh_sessions()

    def handle_signal(self, signum: int) -> None:
        """Terminate on an interrupt or termination signal."""
        logger.info("Received %s", signal.Signals(signum).name)
        self.terminate(TerminateReason.INTERRUPT)

    def terminate(self, reason: TerminateReason) -> None:
        """
        Shut the display down.

        Only the first call has any effect, so a quit key racing an
        interrupt signal tears the terminal down once.
        """
        if self.termination_reason is not None:
            return
        self.termination_reason = reason
        logger.info("Terminating (%s)", reason.value)
        self.exit(return_code=0)

    def action_quit(self) -> None:
        """Handle quit action."""
        self.terminate(TerminateReason.USER_QUIT)

    def action_interrupt(self) -> None:
        """Handle ctrl+c the same way as SIGINT."""
        self.terminate(TerminateReason.INTERRUPT)
