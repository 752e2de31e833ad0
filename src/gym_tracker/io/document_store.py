"""
DocumentStore implementations.

InMemoryDocumentStore keeps everything in process and is what the tests
use. JsonDocumentStore adds one JSON file per owner and collection:

    <data_dir>/<owner_id>/<collection>.json   {"<doc id>": {...}, ...}

Both deep-copy documents in and out, and notify subscribers synchronously
after every write to a collection they follow.
"""

import copy
import json
import logging
import os
import uuid
from collections.abc import Callable
from pathlib import Path

from ..core.config import DATA_DIR_NAME
from ..core.errors import DocumentNotFoundError, require
from ..core.store import Document, Query, Snapshot, Unsubscribe
from .serializers import ValidationError

logger = logging.getLogger(__name__)

Key = tuple[str, str]
Subscriber = tuple[Query, Callable[[Snapshot], None]]


def get_default_data_dir() -> Path:
    """Default per-user data directory (~/.gym-tracker)."""
    return Path.home() / DATA_DIR_NAME


class InMemoryDocumentStore:
    """Process-local document store."""

    def __init__(self, id_factory: Callable[[], str] | None = None):
        self._collections: dict[Key, dict[str, Document]] = {}
        self._subscribers: dict[Key, list[Subscriber]] = {}
        self._id_factory = id_factory or (lambda: uuid.uuid4().hex)

    # -- hooks for persistent subclasses ---------------------------------

    def _load(self, key: Key) -> dict[str, Document]:
        return {}

    def _persist(self, key: Key) -> None:
        pass

    # --------------------------------------------------------------------

    def _docs(self, owner_id: str, collection: str) -> dict[str, Document]:
        require(owner_id, "owner_id")
        require(collection, "collection")
        key = (owner_id, collection)
        if key not in self._collections:
            self._collections[key] = self._load(key)
        return self._collections[key]

    def _snapshot(self, key: Key, query: Query) -> Snapshot:
        rows = [(doc_id, copy.deepcopy(doc)) for doc_id, doc in self._collections.get(key, {}).items()]
        return query.apply(rows)

    def _written(self, owner_id: str, collection: str) -> None:
        key = (owner_id, collection)
        self._persist(key)
        for query, callback in list(self._subscribers.get(key, [])):
            callback(self._snapshot(key, query))

    def create(self, owner_id: str, collection: str, doc: Document) -> str:
        docs = self._docs(owner_id, collection)
        doc_id = self._id_factory()
        docs[doc_id] = copy.deepcopy(doc)
        logger.debug("create %s/%s/%s", owner_id, collection, doc_id)
        self._written(owner_id, collection)
        return doc_id

    def get(self, owner_id: str, collection: str, doc_id: str) -> Document | None:
        require(doc_id, "document id")
        doc = self._docs(owner_id, collection).get(doc_id)
        return copy.deepcopy(doc) if doc is not None else None

    def update(self, owner_id: str, collection: str, doc_id: str, patch: Document) -> None:
        require(doc_id, "document id")
        docs = self._docs(owner_id, collection)
        if doc_id not in docs:
            raise DocumentNotFoundError(f"{collection}/{doc_id} does not exist")
        docs[doc_id].update(copy.deepcopy(patch))
        logger.debug("update %s/%s/%s fields=%s", owner_id, collection, doc_id, sorted(patch))
        self._written(owner_id, collection)

    def delete(self, owner_id: str, collection: str, doc_id: str) -> None:
        require(doc_id, "document id")
        docs = self._docs(owner_id, collection)
        if docs.pop(doc_id, None) is None:
            return
        logger.debug("delete %s/%s/%s", owner_id, collection, doc_id)
        self._written(owner_id, collection)

    def query(self, owner_id: str, collection: str, query: Query) -> Snapshot:
        self._docs(owner_id, collection)
        return self._snapshot((owner_id, collection), query)

    def subscribe(
        self,
        owner_id: str,
        collection: str,
        query: Query,
        callback: Callable[[Snapshot], None],
    ) -> Unsubscribe:
        self._docs(owner_id, collection)
        key = (owner_id, collection)
        entry: Subscriber = (query, callback)
        self._subscribers.setdefault(key, []).append(entry)
        callback(self._snapshot(key, query))

        def unsubscribe() -> None:
            subscribers = self._subscribers.get(key, [])
            if entry in subscribers:
                subscribers.remove(entry)

        return unsubscribe


class JsonDocumentStore(InMemoryDocumentStore):
    """
    Document store persisted as JSON files.

    Collections are read lazily on first access and rewritten in full after
    every write.
    """

    def __init__(self, data_dir: str | Path | None = None, id_factory: Callable[[], str] | None = None):
        """
        Initialize the store.

        Args:
            data_dir: Root directory (default ``~/.gym-tracker``)
            id_factory: Generator for new document ids
        """
        super().__init__(id_factory)
        self.data_dir = Path(data_dir) if data_dir is not None else get_default_data_dir()

    def path_for(self, owner_id: str, collection: str) -> Path:
        """File holding one owner's collection."""
        return self.data_dir / owner_id / f"{collection}.json"

    def _load(self, key: Key) -> dict[str, Document]:
        path = self.path_for(*key)
        if not path.exists():
            return {}
        try:
            with open(path, "r") as f:
                data = json.load(f)
        except json.JSONDecodeError as e:
            raise ValidationError(f"Error parsing {path}: {e}") from e
        if not isinstance(data, dict):
            raise ValidationError(f"Error parsing {path}: expected an object of documents")
        return {str(k): v for k, v in data.items() if isinstance(v, dict)}

    def _persist(self, key: Key) -> None:
        path = self.path_for(*key)
        path.parent.mkdir(parents=True, exist_ok=True)
        tmp = path.with_suffix(".json.tmp")
        with open(tmp, "w") as f:
            json.dump(self._collections.get(key, {}), f, indent=2)
        os.replace(tmp, path)
