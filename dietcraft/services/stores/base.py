from abc import ABC, abstractmethod
from typing import Any, Dict, List, Optional


class DocumentNotFoundError(Exception):
    def __init__(self, collection: str, doc_id: str):
        super().__init__(f"{collection}/{doc_id} not found")
        self.collection = collection
        self.doc_id = doc_id


class DocumentStore(ABC):
    """Key-value document storage keyed by collection and string id.

    Documents go in and come out as plain dicts with an ``id`` key. Updates
    are last-write-wins; only the counter operations are atomic.
    """
    name: str = "Unknown"

    @abstractmethod
    def insert(self, collection: str, document: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        """Store a new document and return its id (generated when not given)."""

    @abstractmethod
    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        pass

    @abstractmethod
    def put(self, collection: str, doc_id: str, document: Dict[str, Any], merge: bool = False) -> Dict[str, Any]:
        """Create or replace a document; ``merge`` keeps fields not in ``document``."""

    @abstractmethod
    def update(self, collection: str, doc_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """Set fields on an existing document; None when it does not exist."""

    @abstractmethod
    def delete(self, collection: str, doc_id: str) -> bool:
        pass

    @abstractmethod
    def find(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        sort_by: Optional[str] = None,
        descending: bool = True
    ) -> List[Dict[str, Any]]:
        """Return documents whose fields equal every filter value."""

    @abstractmethod
    def increment_if_below(
        self,
        collection: str,
        doc_id: str,
        field: str,
        limit: int,
        set_fields: Optional[Dict[str, Any]] = None,
        insert_fields: Optional[Dict[str, Any]] = None
    ) -> Optional[int]:
        """
        Atomically add one to ``field`` unless it already reached ``limit``.

        A missing document is created with ``field`` at 1 plus ``insert_fields``.
        ``set_fields`` are written on every successful increment.

        Returns:
            The counter value after the increment, or None when at the limit.
        """

    @abstractmethod
    def decrement_if_positive(
        self,
        collection: str,
        doc_id: str,
        field: str,
        set_fields: Optional[Dict[str, Any]] = None
    ) -> Optional[int]:
        """Atomically subtract one from a positive counter; None when nothing changed."""
