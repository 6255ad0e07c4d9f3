"""Shared fixtures for ftptop tests."""

import struct

import pytest

from ftptop.models import SessionRecord
from ftptop.scoreboard import (
    ENTRY_FORMAT,
    HEADER_FORMAT,
    SCOREBOARD_MAGIC,
    SCOREBOARD_VERSION,
)


class MemoryScoreboard:
    """Scoreboard test double serving records from a list."""

    def __init__(self, records=None, open_error=None, path="/tmp/memory.scoreboard"):
        self.records = list(records or [])
        self.open_error = open_error
        self.path = path
        self.open_calls = 0
        self.close_calls = 0
        self._pending = None

    def set_path(self, path):
        self.path = path

    def get_path(self):
        return self.path

    def open(self):
        self.open_calls += 1
        if self.open_error is not None:
            raise self.open_error
        self._pending = iter(self.records)

    def read_next(self):
        if self._pending is None:
            return None
        return next(self._pending, None)

    def close(self):
        self.close_calls += 1
        self._pending = None


def make_record(pid, command, username="ftpuser", client_addr="10.0.0.5", server_addr="10.0.0.1:21"):
    """Build a SessionRecord with sensible defaults."""
    return SessionRecord(
        pid=pid,
        username=username,
        client_addr=client_addr,
        server_addr=server_addr,
        command=command,
    )


def pack_header(magic=SCOREBOARD_MAGIC, version=SCOREBOARD_VERSION, daemon_pid=1, started=0):
    return struct.pack(HEADER_FORMAT, magic, version, daemon_pid, started)


def pack_entry(pid, user="ftpuser", client_addr="10.0.0.5", server_addr="10.0.0.1:21", cmd="(idle)"):
    return struct.pack(
        ENTRY_FORMAT,
        pid,
        1000,
        1000,
        user.encode(),
        client_addr.encode(),
        server_addr.encode(),
        cmd.encode(),
    )


@pytest.fixture
def mixed_records():
    """One session of each kind, in scoreboard order."""
    return [
        make_record(101, "(idle)"),
        make_record(102, "RETR big.iso"),
        make_record(103, "STOR upload.zip"),
        make_record(104, "LIST"),
    ]


@pytest.fixture
def write_scoreboard(tmp_path):
    """Write a scoreboard file and return its path."""

    def _write(*entries, header=None):
        path = tmp_path / "proftpd.scoreboard"
        data = pack_header() if header is None else header
        path.write_bytes(data + b"".join(entries))
        return str(path)

    return _write
