import uuid
from typing import Any, Dict, List, Optional

from pymongo import ASCENDING, DESCENDING, MongoClient, ReturnDocument
from pymongo.errors import DuplicateKeyError, PyMongoError

from dietcraft.core.logging_config import get_logger
from dietcraft.services.stores.base import DocumentStore

logger = get_logger(__name__)

INDEXES = {
    "clients": [[("dietitian_id", ASCENDING), ("created_at", DESCENDING)]],
    "diet_plans": [
        [("client_id", ASCENDING), ("created_at", DESCENDING)],
        [("dietitian_id", ASCENDING), ("created_at", DESCENDING)],
    ],
    "ai_usage": [[("user_id", ASCENDING), ("date", ASCENDING)]],
}


class MongoStore(DocumentStore):
    name = "MongoDB"

    def __init__(self, uri: Optional[str] = None, db_name: str = "dietcraft", database=None):
        """
        Connect to MongoDB, or wrap an already opened database handle.

        Args:
            uri: MongoDB connection string.
            db_name: Database name used with ``uri``.
            database: Existing pymongo Database (takes precedence over ``uri``).
        """
        if database is not None:
            self.client = None
            self.db = database
            return

        if not uri:
            raise ValueError("MongoStore requires a connection URI or a database handle")

        self.client = MongoClient(
            uri,
            serverSelectionTimeoutMS=10000,
            connectTimeoutMS=10000,
            socketTimeoutMS=10000,
            maxPoolSize=10,
            retryWrites=True
        )
        self.db = self.client[db_name]
        host = uri.split("@")[-1][:50]
        logger.info(f"MongoDB client created for ...@{host} (db={db_name})")

    def ensure_indexes(self) -> bool:
        """Create the lookup indexes used by the record services."""
        try:
            for collection, indexes in INDEXES.items():
                for keys in indexes:
                    self.db[collection].create_index(keys)
            return True
        except PyMongoError as e:
            logger.error(f"Index creation failed: {e}")
            return False

    def ping(self) -> bool:
        try:
            self.db.command("ping")
            return True
        except PyMongoError as e:
            logger.warning(f"MongoDB ping failed: {e}")
            return False

    @staticmethod
    def _export(document: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
        if document is None:
            return None
        exported = dict(document)
        exported["id"] = str(exported.pop("_id"))
        return exported

    @staticmethod
    def _strip_id(document: Dict[str, Any]) -> Dict[str, Any]:
        return {k: v for k, v in document.items() if k not in ("id", "_id")}

    def insert(self, collection: str, document: Dict[str, Any], doc_id: Optional[str] = None) -> str:
        doc_id = doc_id or uuid.uuid4().hex
        stored = self._strip_id(document)
        stored["_id"] = doc_id
        self.db[collection].insert_one(stored)
        return doc_id

    def get(self, collection: str, doc_id: str) -> Optional[Dict[str, Any]]:
        return self._export(self.db[collection].find_one({"_id": doc_id}))

    def put(self, collection: str, doc_id: str, document: Dict[str, Any], merge: bool = False) -> Dict[str, Any]:
        fields = self._strip_id(document)
        if merge:
            result = self.db[collection].find_one_and_update(
                {"_id": doc_id},
                {"$set": fields},
                upsert=True,
                return_document=ReturnDocument.AFTER
            )
            return self._export(result)
        self.db[collection].replace_one({"_id": doc_id}, fields, upsert=True)
        return {**fields, "id": doc_id}

    def update(self, collection: str, doc_id: str, changes: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        result = self.db[collection].find_one_and_update(
            {"_id": doc_id},
            {"$set": self._strip_id(changes)},
            return_document=ReturnDocument.AFTER
        )
        return self._export(result)

    def delete(self, collection: str, doc_id: str) -> bool:
        return self.db[collection].delete_one({"_id": doc_id}).deleted_count > 0

    def find(
        self,
        collection: str,
        filters: Optional[Dict[str, Any]] = None,
        sort_by: Optional[str] = None,
        descending: bool = True
    ) -> List[Dict[str, Any]]:
        cursor = self.db[collection].find(filters or {})
        if sort_by:
            cursor = cursor.sort(sort_by, DESCENDING if descending else ASCENDING)
        return [self._export(doc) for doc in cursor]

    def increment_if_below(
        self,
        collection: str,
        doc_id: str,
        field: str,
        limit: int,
        set_fields: Optional[Dict[str, Any]] = None,
        insert_fields: Optional[Dict[str, Any]] = None
    ) -> Optional[int]:
        if limit <= 0:
            return None

        update: Dict[str, Any] = {"$inc": {field: 1}}
        if set_fields:
            update["$set"] = set_fields
        if insert_fields:
            update["$setOnInsert"] = insert_fields

        collection_ref = self.db[collection]
        query = {"_id": doc_id, field: {"$lt": limit}}
        try:
            result = collection_ref.find_one_and_update(
                query,
                update,
                upsert=True,
                return_document=ReturnDocument.AFTER
            )
        except DuplicateKeyError:
            # The document exists but did not match: either the counter is at
            # the limit, or a concurrent first request inserted it. Only a
            # plain conditional update tells the two apart.
            result = collection_ref.find_one_and_update(
                query,
                update,
                return_document=ReturnDocument.AFTER
            )
        if result is None:
            return None
        return int(result.get(field, 0))

    def decrement_if_positive(
        self,
        collection: str,
        doc_id: str,
        field: str,
        set_fields: Optional[Dict[str, Any]] = None
    ) -> Optional[int]:
        update: Dict[str, Any] = {"$inc": {field: -1}}
        if set_fields:
            update["$set"] = set_fields
        result = self.db[collection].find_one_and_update(
            {"_id": doc_id, field: {"$gt": 0}},
            update,
            return_document=ReturnDocument.AFTER
        )
        if result is None:
            return None
        return int(result.get(field, 0))
