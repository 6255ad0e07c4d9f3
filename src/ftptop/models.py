"""Data models for ftptop."""

from dataclasses import dataclass, field
from enum import Enum, Flag, auto


class DisplayFilter(Flag):
    """Session categories permitted to appear as rows."""

    DOWNLOAD = auto()
    UPLOAD = auto()
    IDLE = auto()
    ALL = DOWNLOAD | UPLOAD | IDLE


class SessionStatus(Enum):
    """Status symbol shown in the S column."""

    AUTHENTICATING = "A"
    IDLE = "I"
    DOWNLOADING = "D"
    UPLOADING = "U"
    LISTING = "L"


class TerminateReason(Enum):
    """Why the display loop is shutting down."""

    USER_QUIT = "quit"
    INTERRUPT = "interrupt"


@dataclass(slots=True, frozen=True)
class SessionRecord:
    """One scoreboard entry, as read from the scoreboard."""

    pid: int
    username: str
    client_addr: str
    server_addr: str
    command: str  # e.g. 'RETR foo.tar.gz', '(idle)'


@dataclass(slots=True, frozen=True)
class ClassifiedRow:
    """A formatted row for a single session."""

    status: SessionStatus
    text: str


@dataclass(slots=True)
class SessionCounters:
    """Aggregate counters for one poll."""

    total: int = 0
    downloading: int = 0
    uploading: int = 0
    idle: int = 0


@dataclass(slots=True)
class PollResult:
    """Everything one poll produced: counters, rows and any open failure."""

    counters: SessionCounters = field(default_factory=SessionCounters)
    rows: list[ClassifiedRow] = field(default_factory=list)
    error: Exception | None = None
    polled_at: float = 0.0


@dataclass(slots=True, frozen=True)
class RunConfig:
    """Immutable run configuration built from the command line."""

    refresh_delay: int = 2
    display_filter: DisplayFilter = DisplayFilter.ALL
    scoreboard_path: str | None = None
    log_file: str | None = None
