"""FIFO queue of serialized messages awaiting transmission."""

from __future__ import annotations

import json
from collections import deque
from collections.abc import Iterable


class PendingQueue:
    """Ordered buffer of serialized log lines.

    Entries leave the queue only through ``trim`` (after a confirmed send)
    or ``clear``. Callers must hold the owning logger's lock; the queue
    itself does no locking.
    """

    def __init__(self) -> None:
        self._entries: deque[str] = deque()

    def extend(self, entries: Iterable[str]) -> None:
        """Append entries in order."""
        self._entries.extend(entries)

    def snapshot(self) -> list[str]:
        """Return a copy of the current contents."""
        return list(self._entries)

    def trim(self, count: int) -> None:
        """Drop ``count`` entries from the front of the queue."""
        for _ in range(min(count, len(self._entries))):
            self._entries.popleft()

    def clear(self) -> None:
        self._entries.clear()

    def batch_length(self) -> int:
        """Length of the newline-terminated concatenation of every message text.

        JSON envelopes contribute their ``msg`` field; any other entry
        (graphite, carbon2, raw or a structured message without ``msg``)
        contributes its full text.
        """
        return sum(len(_message_text(entry)) + 1 for entry in self._entries)

    def __len__(self) -> int:
        return len(self._entries)


def _message_text(entry: str) -> str:
    try:
        decoded = json.loads(entry)
    except ValueError:
        return entry
    if isinstance(decoded, dict) and "msg" in decoded:
        msg = decoded["msg"]
        return msg if isinstance(msg, str) else json.dumps(msg)
    return entry
