"""
Optimistic local state reconciled with live store snapshots.

A LiveDocument holds two copies of one document: ``confirmed`` is the last
snapshot delivered by the store, ``draft`` is the local edit not yet seen
back. Every inbound snapshot replaces ``confirmed`` and drops the draft;
nothing is merged, the last snapshot wins.
"""

import logging
from collections.abc import Callable
from typing import Generic, TypeVar

from ..core.errors import PreconditionError
from ..core.models import Session
from ..core.sessions import SessionRepository
from ..core.store import Unsubscribe

logger = logging.getLogger(__name__)

T = TypeVar("T")


class LiveDocument(Generic[T]):
    """Local draft plus confirmed remote copy of one document."""

    def __init__(self, write: Callable[[T], None]):
        """
        Initialize the document.

        Args:
            write: Persists a locally edited value; errors propagate
        """
        self._write = write
        self.confirmed: T | None = None
        self.draft: T | None = None
        self.error: Exception | None = None

    @property
    def current(self) -> T | None:
        """What to render: the draft while one exists, else the confirmed copy."""
        return self.draft if self.draft is not None else self.confirmed

    @property
    def pending(self) -> bool:
        """True while a local edit has not been confirmed by a snapshot."""
        return self.draft is not None

    def apply_local(self, edit: Callable[[T], T]) -> T:
        """
        Apply an edit optimistically and fire the write.

        On a write failure the draft is kept, the error is recorded on
        ``error`` and re-raised. The write is never retried.

        Raises:
            PreconditionError: If nothing has been loaded yet
        """
        base = self.current
        if base is None:
            raise PreconditionError("Document has not been loaded")
        value = edit(base)
        self.draft = value
        self.error = None
        try:
            self._write(value)
        except Exception as e:
            logger.warning("Write failed, keeping local draft: %s", e)
            self.error = e
            raise
        return value

    def on_snapshot(self, value: T | None) -> None:
        """Accept an inbound snapshot as the new source of truth."""
        if self.draft is not None:
            logger.debug("Snapshot replaces pending draft")
        self.confirmed = value
        self.draft = None


def follow_session(sessions: SessionRepository, session_id: str) -> tuple[LiveDocument[Session], Unsubscribe]:
    """
    Live view of one session.

    Returns:
        The live document (already holding the first snapshot) and the
        function that stops following it
    """
    live: LiveDocument[Session] = LiveDocument(sessions.save)
    unsubscribe = sessions.subscribe(session_id, live.on_snapshot)
    return live, unsubscribe
