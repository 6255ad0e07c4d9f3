"""Read-only access to the ProFTPD scoreboard."""

import logging
import struct
from collections.abc import Iterator
from contextlib import contextmanager
from typing import BinaryIO, Protocol

import psutil

from ftptop.models import SessionRecord

logger = logging.getLogger(__name__)

DEFAULT_SCOREBOARD_PATH = "/var/run/proftpd.scoreboard"

SCOREBOARD_MAGIC = 0xDEADBEEF
SCOREBOARD_VERSION = 0x01040002

# magic, version, daemon pid, daemon start time
HEADER_FORMAT = "=IIiq"
HEADER_SIZE = struct.calcsize(HEADER_FORMAT)

# pid, uid, gid, user, client addr, server addr, current command
ENTRY_FORMAT = "=iII32s80s80s65s"
ENTRY_SIZE = struct.calcsize(ENTRY_FORMAT)


class ScoreboardError(Exception):
    """Base class for scoreboard open failures."""

    diagnostic = "unable to open scoreboard"

    def __str__(self) -> str:
        return self.diagnostic


class ScoreboardNotAccessible(ScoreboardError):
    """The scoreboard file could not be opened."""

    def __init__(self, path: str, reason: str) -> None:
        super().__init__(path, reason)
        self.path = path
        self.reason = reason

    @property
    def diagnostic(self) -> str:
        return f"unable to open scoreboard: {self.reason}"


class ScoreboardReadError(ScoreboardNotAccessible):
    """The scoreboard was opened but reading a slot failed."""

    @property
    def diagnostic(self) -> str:
        return f"unable to read scoreboard: {self.reason}"


class ScoreboardCorrupt(ScoreboardError):
    """Bad magic or a short header: the file is damaged or predates versioning."""

    diagnostic = "scoreboard is corrupted or old"


class ScoreboardTooOld(ScoreboardError):
    """The scoreboard was written by an older server."""

    diagnostic = "scoreboard is too old"


class ScoreboardTooNew(ScoreboardError):
    """The scoreboard was written by a newer server."""

    diagnostic = "scoreboard is too new"


class Scoreboard(Protocol):
    """What ftptop needs from a scoreboard implementation."""

    def set_path(self, path: str) -> None: ...

    def get_path(self) -> str: ...

    def open(self) -> None:
        """Open for reading. Raises a ScoreboardError subclass on failure."""
        ...

    def read_next(self) -> SessionRecord | None:
        """Return the next live session, or None at the end."""
        ...

    def close(self) -> None: ...


def _decode(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


class FileScoreboard:
    """
    Scoreboard backed by the file the FTP daemon maintains.

    The file holds a header followed by fixed-size session slots. Slots with
    a zero pid are free. Slots whose process has gone away are skipped when
    scrub_stale is set, since a crashed session can leave its slot behind.
    """

    def __init__(self, path: str = DEFAULT_SCOREBOARD_PATH, scrub_stale: bool = True) -> None:
        """
        Initialize the FileScoreboard.

        Args:
            path: Location of the scoreboard file.
            scrub_stale: Skip slots whose pid no longer exists.
        """
        self._path = path
        self._scrub_stale = scrub_stale
        self._file: BinaryIO | None = None

    def set_path(self, path: str) -> None:
        self._path = path

    def get_path(self) -> str:
        return self._path

    @property
    def is_open(self) -> bool:
        return self._file is not None

    def open(self) -> None:
        """Open the scoreboard and validate its header."""
        self.close()
        try:
            scoreboard_file = open(self._path, "rb")
        except OSError as e:
            raise ScoreboardNotAccessible(self._path, e.strerror or str(e)) from e

        try:
            self._check_header(scoreboard_file.read(HEADER_SIZE))
        except ScoreboardError:
            scoreboard_file.close()
            raise

        self._file = scoreboard_file

    def _check_header(self, data: bytes) -> None:
        if len(data) < HEADER_SIZE:
            raise ScoreboardCorrupt()

        magic, version, _daemon_pid, _started = struct.unpack(HEADER_FORMAT, data)
        if magic != SCOREBOARD_MAGIC:
            raise ScoreboardCorrupt()
        if version < SCOREBOARD_VERSION:
            raise ScoreboardTooOld()
        if version > SCOREBOARD_VERSION:
            raise ScoreboardTooNew()

    def read_next(self) -> SessionRecord | None:
        """Read slots until a live session is found."""
        if self._file is None:
            return None

        while True:
            try:
                data = self._file.read(ENTRY_SIZE)
            except OSError as e:
                raise ScoreboardReadError(self._path, e.strerror or str(e)) from e
            if len(data) < ENTRY_SIZE:
                return None

            pid, _uid, _gid, user, client_addr, server_addr, cmd = struct.unpack(
                ENTRY_FORMAT, data
            )
            if pid == 0:
                continue
            if self._scrub_stale and not psutil.pid_exists(pid):
                logger.debug("Skipping stale scoreboard slot for pid %d", pid)
                continue

            return SessionRecord(
                pid=pid,
                username=_decode(user),
                client_addr=_decode(client_addr),
                server_addr=_decode(server_addr),
                command=_decode(cmd),
            )

    def close(self) -> None:
        if self._file is not None:
            self._file.close()
            self._file = None


@contextmanager
def open_scoreboard(scoreboard: Scoreboard) -> Iterator[Iterator[SessionRecord]]:
    """
    Open a scoreboard for one pass over its sessions.

    Yields a lazy iterator of SessionRecords. The scoreboard is closed when
    the block exits, whether or not the iterator was exhausted.

    Raises:
        ScoreboardError: If the scoreboard cannot be opened.
    """
    scoreboard.open()
    try:
        yield _iter_sessions(scoreboard)
    finally:
        scoreboard.close()


def _iter_sessions(scoreboard: Scoreboard) -> Iterator[SessionRecord]:
    while True:
        record = scoreboard.read_next()
        if record is None:
            return
        yield record
