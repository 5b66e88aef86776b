"""
Message Log - Append-only transcript of the conversation.

Entries are never edited or removed. Order is insertion order, which
is the order the reducer appends in (narrative before feedback).
"""

from __future__ import annotations
from typing import Callable, Iterable
import time
import uuid

from .state import MessageEntry, Sender


Clock = Callable[[], float]


def new_entry(sender: Sender, text: str, clock: Clock = time.time) -> MessageEntry:
    """Create a transcript entry with a fresh identity."""
    return MessageEntry(
        entry_id=uuid.uuid4().hex,
        sender=Sender(sender),
        text=text,
        timestamp=clock(),
    )


def append_message(
    messages: tuple[MessageEntry, ...],
    sender: Sender,
    text: str,
    clock: Clock = time.time,
) -> tuple[MessageEntry, ...]:
    """Return a new log with one entry appended."""
    return messages + (new_entry(sender, text, clock),)


def entries_from(messages: Iterable[MessageEntry], sender: Sender) -> list[MessageEntry]:
    """All entries produced by one sender, in log order."""
    return [m for m in messages if m.sender == sender]


def entries_since(
    messages: tuple[MessageEntry, ...],
    entry_id: str | None,
) -> tuple[MessageEntry, ...]:
    """
    Entries appended after the one with the given id.

    Presentation layers use this to render only what is new. With no
    id, the whole log is returned.
    """
    if entry_id is None:
        return messages
    for idx, entry in enumerate(messages):
        if entry.entry_id == entry_id:
            return messages[idx + 1:]
    return messages
