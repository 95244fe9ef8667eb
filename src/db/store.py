"""
Document store interface

The gamification engine talks to its document database only through the five
operations of DocumentStore. The hosted store provides atomic increments,
point reads and filtered/sorted range queries; InMemoryDocumentStore provides
the same contract for tests and local runs.
"""
import asyncio
import copy
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence
from uuid import uuid4

from src.exceptions import DuplicateRecordError, QueryError

logger = logging.getLogger(__name__)

# Collections
USERS = "users"
XP_ACTIONS = "xp_actions"
STREAK_ACTIVITIES = "streak_activities"
USER_BADGES = "user_badges"
GAMES = "games"
SEASON_GOALS = "season_goals"
SUSPICIOUS_ACTIVITY = "suspicious_activity"
ACHIEVEMENT_UNLOCKS = "achievement_unlocks"

_OPERATORS = {
    "==": lambda a, b: a == b,
    "!=": lambda a, b: a != b,
    ">": lambda a, b: a is not None and a > b,
    ">=": lambda a, b: a is not None and a >= b,
    "<": lambda a, b: a is not None and a < b,
    "<=": lambda a, b: a is not None and a <= b,
    "in": lambda a, b: a in b,
}


@dataclass(frozen=True)
class Filter:
    """Single field comparison, e.g. Filter("user_id", "==", "abc")"""
    field: str
    op: str
    value: Any

    def __post_init__(self):
        if self.op not in _OPERATORS:
            raise QueryError(f"Unsupported filter operator '{self.op}'")

    def matches(self, record: Dict[str, Any]) -> bool:
        return _OPERATORS[self.op](_get_path(record, self.field), self.value)


def _get_path(record: Dict[str, Any], path: str) -> Any:
    """Read a dotted field path, None when any segment is missing"""
    value: Any = record
    for part in path.split("."):
        if not isinstance(value, dict) or part not in value:
            return None
        value = value[part]
    return value


def _set_path(record: Dict[str, Any], path: str, value: Any) -> None:
    parts = path.split(".")
    target = record
    for part in parts[:-1]:
        if not isinstance(target.get(part), dict):
            target[part] = {}
        target = target[part]
    target[parts[-1]] = value


class DocumentStore(ABC):
    """Operations the engine needs from its document database"""

    @abstractmethod
    async def append(
        self,
        collection: str,
        record: Dict[str, Any],
        record_id: Optional[str] = None,
    ) -> str:
        """
        Insert a new document and return its id

        When record_id is given and already exists, raises DuplicateRecordError
        instead of overwriting. This is the unique-key insert the engine
        relies on for write-once rows.
        """

    @abstractmethod
    async def get_by_id(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        """Point read; None if the document does not exist"""

    @abstractmethod
    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """Filtered, optionally sorted and limited range query"""

    @abstractmethod
    async def update_increment(self, collection: str, record_id: str, field: str, delta: float) -> None:
        """Atomic numeric increment; creates the document or field when absent"""

    @abstractmethod
    async def update_set(self, collection: str, record_id: str, fields: Dict[str, Any]) -> None:
        """Last-write-wins merge; dotted keys set nested fields"""


class InMemoryDocumentStore(DocumentStore):
    """
    Dict-backed DocumentStore

    Every public call yields to the event loop once, so interleavings between
    concurrent coroutines look like they would against a remote store.
    Documents are deep-copied on the way in and out.
    """

    def __init__(self):
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}

    def _collection(self, name: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(name, {})

    async def append(
        self,
        collection: str,
        record: Dict[str, Any],
        record_id: Optional[str] = None,
    ) -> str:
        await asyncio.sleep(0)
        docs = self._collection(collection)
        doc_id = record_id or str(uuid4())
        if doc_id in docs:
            raise DuplicateRecordError(
                f"Document {doc_id} already exists in {collection}",
                collection=collection,
                record_id=doc_id,
            )
        stored = copy.deepcopy(record)
        stored["id"] = doc_id
        docs[doc_id] = stored
        logger.debug(f"Appended {collection}/{doc_id}")
        return doc_id

    async def get_by_id(self, collection: str, record_id: str) -> Optional[Dict[str, Any]]:
        await asyncio.sleep(0)
        doc = self._collection(collection).get(record_id)
        return copy.deepcopy(doc) if doc is not None else None

    async def query(
        self,
        collection: str,
        filters: Sequence[Filter] = (),
        order_by: Optional[str] = None,
        descending: bool = False,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        await asyncio.sleep(0)
        results = [
            doc for doc in self._collection(collection).values()
            if all(f.matches(doc) for f in filters)
        ]
        if order_by:
            # Documents missing the sort field go last
            present = [d for d in results if _get_path(d, order_by) is not None]
            missing = [d for d in results if _get_path(d, order_by) is None]
            present.sort(key=lambda d: _get_path(d, order_by), reverse=descending)
            results = present + missing
        if limit is not None:
            results = results[:limit]
        return copy.deepcopy(results)

    async def update_increment(self, collection: str, record_id: str, field: str, delta: float) -> None:
        await asyncio.sleep(0)
        doc = self._collection(collection).setdefault(record_id, {"id": record_id})
        current = _get_path(doc, field) or 0
        _set_path(doc, field, current + delta)

    async def update_set(self, collection: str, record_id: str, fields: Dict[str, Any]) -> None:
        await asyncio.sleep(0)
        doc = self._collection(collection).setdefault(record_id, {"id": record_id})
        for key, value in fields.items():
            _set_path(doc, key, copy.deepcopy(value))

    def count(self, collection: str) -> int:
        """Number of documents in a collection"""
        return len(self._collection(collection))
