import copy
import threading
import uuid
from typing import Any, Dict, List, Optional

from dietcraft.services.stores.base import DocumentStore


class MemoryStore(DocumentStore):
    """Process-local store for development and tests.

    A single lock serialises every operation, which makes the counter
    read-check-increment atomic within the process.
    """
    name = "Memory"

    def __init__(self) -> None:
        self._collections: Dict[str, Dict[str, Dict[str, Any]]] = {}
        self._lock = threading.Lock()

    def _collection(self, collection: str) -> Dict[str, Dict[str, Any]]:
        return self._collections.setdefault(collection, {})

    @staticmethod
    def _export(doc_id: str, document: Dict[str, Any]) -> Dict[str, Any]:
        exported = copy.deepcopy(document)
        exported["id"] = doc_id
        return exported

    def insert(self, collection: str, document: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        doc_id = doc_id or uuid.uuid4().hex
        stored = copy.deepcopy(document)
        stored.pop("id", None)
        with self._lock:
            self._collection(collection)[doc_id] = stored
        return doc_id

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        with self._lock:
            document = self._collection(collection).get(doc_id)
            return self._export(doc_id, document) if document is not None else None

    def put(self, collection: str, doc_id: str, document: Dict[str, Any], merge: bool = False) -> Dict[str, Any]:
        incoming = copy.deepcopy(document)
        incoming.pop("id", None)
        with self._lock:
            documents = self._collection(collection)
            if merge and doc_id in documents:
                documents[doc_id].update(incoming)
            else:
                documents[doc_id] = incoming
            return self._export(doc_id, documents[doc_id])

    def update(self, collection: str, doc_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        with self._lock:
            document = self._collection(collection).get(doc_id)
            if document is None:
                return None
            document.update({k: copy.deepcopy(v) for k, v in changes.items() if k != "id"})
            return self._export(doc_id, document)

    def delete(self, collection: str, doc_id: str) -> bool:
        with self._lock:
            return self._collection(collection).pop(doc_id, None) is not None

    def find(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        sort_by: Optional[str] = None,
        descending: bool = True
    ) -> List[Dict[str, Any]]:
        filters = filters or {}
        with self._lock:
            matches = [
                self._export(doc_id, document)
                for doc_id, document in self._collection(collection).items()
                if all(document.get(key) == value for key, value in filters.items())
            ]
        if sort_by:
            present = [doc for doc in matches if doc.get(sort_by) is not None]
            missing = [doc for doc in matches if doc.get(sort_by) is None]
            present.sort(key=lambda doc: doc[sort_by], reverse=descending)
            matches = present + missing
        return matches

    def increment_if_below(
        self,
        collection: str,
        doc_id: str,
        field: str,
        limit: int,
        set_fields: Optional[Dict[str, Any]] = None,
        insert_fields: Optional[Dict[str, Any]] = None
    ) -> Optional[int]:
        with self._lock:
            documents = self._collection(collection)
            document = documents.get(doc_id)
            if document is None:
                if limit <= 0:
                    return None
                document = copy.deepcopy(insert_fields or {})
                document[field] = 0
                documents[doc_id] = document

            current = document.get(field) or 0
            if current >= limit:
                return None
            document[field] = current + 1
            document.update(set_fields or {})
            return document[field]

    def decrement_if_positive(
        self,
        collection: str,
        doc_id: str,
        field: str,
        set_fields: Optional[Dict[str, Any]] = None
    ) -> Optional[int]:
        with self._lock:
            document = self._collection(collection).get(doc_id)
            if document is None or (document.get(field) or 0) <= 0:
                return None
            document[field] -= 1
            document.update(set_fields or {})
            return document[field]
