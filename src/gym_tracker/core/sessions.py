"""
Session persistence and status helpers.

Sessions live in ``gymSessions/{id}``. Every read goes through
``parse_session`` so callers always see a fully populated Session.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from ..io.serializers import has_unset_work, parse_session, session_exercise_to_doc, session_to_doc
from .config import PREVIOUS_SESSION_LOOKBACK, SESSIONS_COLLECTION
from .errors import require
from .models import Session
from .store import Query, StoreContext, Unsubscribe

logger = logging.getLogger(__name__)


def is_unfinished(session: Session) -> bool:
    """
    True if any set of the session is not done.

    Exercises without sets count through their own flag. A session with
    no exercises is never unfinished.
    """
    if not session.exercises:
        return False
    return has_unset_work(session.exercises)


def is_complete(session: Session) -> bool:
    """True if the session has exercises and all of them are done."""
    return bool(session.exercises) and not is_unfinished(session)


def pick_previous(sessions: list[Session], exclude_session_id: str | None = None) -> Session | None:
    """
    Choose the session to carry forward from.

    Args:
        sessions: Candidates for one template, newest first
        exclude_session_id: Session to skip (usually the one being viewed)

    Returns:
        The newest finished session, else the newest of any status, else None
    """
    candidates = [s for s in sessions if s.id != exclude_session_id]
    for s in candidates:
        if s.status == "finished":
            return s
    return candidates[0] if candidates else None


class SessionRepository:
    """Reads and writes sessions for one owner."""

    def __init__(self, ctx: StoreContext):
        self.ctx = ctx

    def _owner(self) -> str:
        return require(self.ctx.owner_id, "owner_id")

    def create(self, session: Session) -> str:
        """Persist a new session and return its id."""
        doc_id = self.ctx.store.create(self._owner(), SESSIONS_COLLECTION, session_to_doc(session))
        logger.debug("Created session %s", doc_id)
        return doc_id

    def get(self, session_id: str) -> Session | None:
        """Return the session, or None if it does not exist."""
        owner = self._owner()
        require(session_id, "session_id")
        doc = self.ctx.store.get(owner, SESSIONS_COLLECTION, session_id)
        if doc is None:
            return None
        return parse_session(doc, session_id)

    def save(self, session: Session) -> None:
        """
        Write the mutable parts of a session.

        Patches exercises, status and finish stamps; ``startedAt`` is never
        rewritten.
        """
        owner = self._owner()
        require(session.id, "session_id")
        patch: dict = {
            "exercises": [session_exercise_to_doc(ex) for ex in session.exercises],
            "status": session.status,
            "musclesWorked": list(session.muscles_worked),
        }
        if session.finished_at is not None:
            patch["finishedAt"] = session.finished_at
        if session.duration_sec is not None:
            patch["durationSec"] = session.duration_sec
        self.ctx.store.update(owner, SESSIONS_COLLECTION, session.id, patch)
        logger.debug("Saved session %s (%s)", session.id, session.status)

    def delete(self, session_id: str) -> None:
        """Delete a session."""
        owner = self._owner()
        require(session_id, "session_id")
        self.ctx.store.delete(owner, SESSIONS_COLLECTION, session_id)

    def _query(self, query: Query) -> list[Session]:
        rows = self.ctx.store.query(self._owner(), SESSIONS_COLLECTION, query)
        return [parse_session(doc, doc_id) for doc_id, doc in rows]

    def recent(self, n: int) -> list[Session]:
        """The ``n`` most recently started sessions, newest first."""
        return self._query(Query(order_by="startedAt", limit=n))

    def in_range(self, start_ms: int, end_ms: int) -> list[Session]:
        """Sessions with ``start_ms <= startedAt < end_ms``, newest first."""
        return self._query(
            Query(range_field="startedAt", range_start=start_ms, range_end=end_ms, order_by="startedAt")
        )

    def for_template(self, template_id: str, limit: int = PREVIOUS_SESSION_LOOKBACK) -> list[Session]:
        """Sessions started from a template, newest first."""
        require(template_id, "template_id")
        return self._query(Query(where=(("templateId", template_id),), order_by="startedAt", limit=limit))

    def latest_for_template(self, template_id: str) -> Session | None:
        """Newest finished session for the template, else the newest of any status."""
        return pick_previous(self.for_template(template_id))

    def previous_for_template(self, template_id: str, exclude_session_id: str | None = None) -> Session | None:
        """
        Session shown as "Previous" while tracking ``exclude_session_id``.

        Looks at the two most recent sessions for the template and returns
        the first one that is not the excluded session.
        """
        for s in self.for_template(template_id, limit=2):
            if s.id != exclude_session_id:
                return s
        return None

    def subscribe(self, session_id: str, callback: Callable[[Session | None], None]) -> Unsubscribe:
        """Follow one session document; None is delivered when it does not exist."""
        owner = self._owner()
        require(session_id, "session_id")

        def deliver(rows) -> None:
            for doc_id, doc in rows:
                if doc_id == session_id:
                    callback(parse_session(doc, doc_id))
                    return
            callback(None)

        return self.ctx.store.subscribe(owner, SESSIONS_COLLECTION, Query(), deliver)

    def subscribe_recent(self, n: int, callback: Callable[[list[Session]], None]) -> Unsubscribe:
        """Follow the ``n`` most recent sessions."""
        return self.ctx.store.subscribe(
            self._owner(),
            SESSIONS_COLLECTION,
            Query(order_by="startedAt", limit=n),
            lambda rows: callback([parse_session(doc, doc_id) for doc_id, doc in rows]),
        )

    def subscribe_range(self, start_ms: int, end_ms: int, callback: Callable[[list[Session]], None]) -> Unsubscribe:
        """Follow the sessions of a time window."""
        return self.ctx.store.subscribe(
            self._owner(),
            SESSIONS_COLLECTION,
            Query(range_field="startedAt", range_start=start_ms, range_end=end_ms, order_by="startedAt"),
            lambda rows: callback([parse_session(doc, doc_id) for doc_id, doc in rows]),
        )
