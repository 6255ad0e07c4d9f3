"""Session classification and row formatting."""

from ftptop.models import (
    ClassifiedRow,
    DisplayFilter,
    SessionCounters,
    SessionRecord,
    SessionStatus,
)

COLUMN_HEADER = "PID   S USER     ADDR        SRVR    TIME COMMAND"

UPLOAD_COMMANDS = ("STOR", "APPE", "STOU")
LISTING_COMMANDS = ("LIST", "NLST")


def format_row(record: SessionRecord, status: SessionStatus) -> str:
    """Format a session as a fixed-layout row."""
    return (
        f"{record.pid:<5d} {status.value} {record.username[:10]} "
        f"{record.client_addr[:7]} {record.server_addr} 0 {record.command[:20]}"
    )


def classify_status(command: str) -> SessionStatus:
    """Work out a session's status from its current command label."""
    if "(idle)" in command:
        return SessionStatus.IDLE
    if "RETR" in command:
        return SessionStatus.DOWNLOADING
    if any(cmd in command for cmd in UPLOAD_COMMANDS):
        return SessionStatus.UPLOADING
    if any(cmd in command for cmd in LISTING_COMMANDS):
        return SessionStatus.LISTING
    return SessionStatus.AUTHENTICATING


def classify_session(
    record: SessionRecord,
    display_filter: DisplayFilter,
    counters: SessionCounters,
) -> ClassifiedRow | None:
    """
    Classify a session, update the counters and format its row.

    Counters are updated for every session, including ones the display
    filter hides. Listing and authenticating sessions are always shown.

    Returns:
        The row to display, or None if the filter hides this session.
    """
    status = classify_status(record.command)
    counters.total += 1

    if status is SessionStatus.IDLE:
        counters.idle += 1
        if not display_filter & DisplayFilter.IDLE:
            return None
    elif status is SessionStatus.DOWNLOADING:
        counters.downloading += 1
        if not display_filter & DisplayFilter.DOWNLOAD:
            return None
    elif status is SessionStatus.UPLOADING:
        # The daemon only refreshes the scoreboard during downloads, so an
        # upload may still show its previous command here.
        counters.uploading += 1
        if not display_filter & DisplayFilter.UPLOAD:
            return None

    return ClassifiedRow(status=status, text=format_row(record, status))
