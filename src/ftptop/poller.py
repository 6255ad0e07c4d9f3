"""Scoreboard polling for ftptop."""

import logging
import time

from ftptop.classify import classify_session
from ftptop.models import DisplayFilter, PollResult
from ftptop.scoreboard import Scoreboard, ScoreboardError, open_scoreboard

logger = logging.getLogger(__name__)


class SessionPoller:
    """
    Reads the scoreboard and classifies every session on it.

    Each call to poll() starts from empty counters and an empty row list, so
    a result only ever describes a single scoreboard pass. Open failures are
    captured in the result instead of being raised: the next poll simply
    tries again.
    """

    def __init__(
        self,
        scoreboard: Scoreboard,
        display_filter: DisplayFilter = DisplayFilter.ALL,
    ) -> None:
        """
        Initialize the SessionPoller.

        Args:
            scoreboard: Scoreboard to read from.
            display_filter: Session categories to emit rows for.
        """
        self._scoreboard = scoreboard
        self._display_filter = display_filter

    @property
    def display_filter(self) -> DisplayFilter:
        """Get the display filter."""
        return self._display_filter

    def poll(self) -> PollResult:
        """Take one pass over the scoreboard."""
        result = PollResult(polled_at=time.time())

        try:
            with open_scoreboard(self._scoreboard) as sessions:
                for record in sessions:
                    row = classify_session(record, self._display_filter, result.counters)
                    if row is not None:
                        result.rows.append(row)
        except ScoreboardError as e:
            logger.warning("%s: %s", self._scoreboard.get_path(), e.diagnostic)
            return PollResult(error=e, polled_at=result.polled_at)

        counters = result.counters
        logger.debug(
            "Polled %d sessions (%d downloading, %d uploading, %d idle), %d shown",
            counters.total,
            counters.downloading,
            counters.uploading,
            counters.idle,
            len(result.rows),
        )
        return result
