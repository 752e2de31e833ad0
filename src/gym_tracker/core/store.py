"""
Document store port and the context object injected into every component.

The core never talks to a concrete database. Components receive a
StoreContext carrying the owner id, a DocumentStore implementation, a clock
and an id factory. Documents are plain JSON-compatible dicts keyed by
(owner_id, collection, document_id).
"""

import uuid
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Protocol

from .errors import require

Document = dict[str, Any]
Snapshot = list[tuple[str, Document]]  # (document_id, document) pairs
Unsubscribe = Callable[[], None]


@dataclass(frozen=True)
class Query:
    """
    Collection query understood by every DocumentStore.

    ``where`` holds equality filters. ``range_field`` restricts documents to
    ``range_start <= doc[range_field] < range_end`` (either bound optional).
    Results are ordered by ``order_by`` (descending unless ``descending`` is
    False) and truncated to ``limit``.
    """

    where: tuple[tuple[str, Any], ...] = ()
    range_field: str | None = None
    range_start: Any = None
    range_end: Any = None
    order_by: str | None = None
    descending: bool = True
    limit: int | None = None

    def matches(self, doc: Document) -> bool:
        """
        Return True if the document passes the equality and range filters.

        A range bound only matches values of the same kind (numbers against
        numbers, strings against strings); anything else is filtered out.
        """
        for key, value in self.where:
            if doc.get(key) != value:
                return False
        if self.range_field is not None:
            value = doc.get(self.range_field)
            if value is None:
                return False
            if self.range_start is not None:
                if _rank(value) != _rank(self.range_start) or value < self.range_start:
                    return False
            if self.range_end is not None:
                if _rank(value) != _rank(self.range_end) or value >= self.range_end:
                    return False
        return True

    def apply(self, rows: Snapshot) -> Snapshot:
        """Filter, order and limit (id, doc) rows."""
        out = [(doc_id, doc) for doc_id, doc in rows if self.matches(doc)]
        if self.order_by is not None:
            key = self.order_by
            out.sort(key=lambda row: _sort_key(row[1].get(key)), reverse=self.descending)
        if self.limit is not None:
            out = out[: max(self.limit, 0)]
        return out


def _rank(value: Any) -> int:
    # Missing < other types < strings < numbers
    if value is None:
        return 0
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return 3
    if isinstance(value, str):
        return 2
    return 1


def _sort_key(value: Any) -> tuple[int, Any]:
    # Values of different kinds never compare with each other
    rank = _rank(value)
    return (rank, value) if rank >= 2 else (rank, 0)


class DocumentStore(Protocol):
    """
    Persistence collaborator.

    Implementations must deep-copy documents in both directions so callers
    never share mutable state with the store.
    """

    def create(self, owner_id: str, collection: str, doc: Document) -> str:
        """Store a new document and return its generated id."""
        ...

    def get(self, owner_id: str, collection: str, doc_id: str) -> Document | None:
        """Return the document, or None if it does not exist."""
        ...

    def update(self, owner_id: str, collection: str, doc_id: str, patch: Document) -> None:
        """Shallow-merge ``patch`` into an existing document."""
        ...

    def delete(self, owner_id: str, collection: str, doc_id: str) -> None:
        """Remove a document; deleting a missing document is a no-op."""
        ...

    def query(self, owner_id: str, collection: str, query: Query) -> Snapshot:
        """Return matching (id, doc) rows."""
        ...

    def subscribe(
        self,
        owner_id: str,
        collection: str,
        query: Query,
        callback: Callable[[Snapshot], None],
    ) -> Unsubscribe:
        """Deliver the current snapshot now and again after every change."""
        ...


def _now() -> datetime:
    return datetime.now()


def _new_id() -> str:
    return uuid.uuid4().hex


@dataclass
class StoreContext:
    """
    Everything a component needs to reach persistence for one user.

    Passed explicitly to every component constructor; there is no global
    store or auth handle.
    """

    owner_id: str
    store: DocumentStore
    clock: Callable[[], datetime] = field(default=_now)
    id_factory: Callable[[], str] = field(default=_new_id)

    def __post_init__(self) -> None:
        require(self.owner_id, "owner_id")

    def now(self) -> datetime:
        """Current time from the injected clock."""
        return self.clock()

    def now_ms(self) -> int:
        """Current time as epoch milliseconds."""
        return to_millis(self.clock())

    def new_id(self) -> str:
        """Fresh id for a set or exercise slot."""
        return self.id_factory()


def to_millis(moment: datetime) -> int:
    """Convert a datetime to epoch milliseconds (naive values are local time)."""
    return int(round(moment.timestamp() * 1000))


def from_millis(ms: int) -> datetime:
    """Convert epoch milliseconds to a naive local datetime."""
    return datetime.fromtimestamp(ms / 1000)
