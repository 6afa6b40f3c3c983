import os
from typing import Optional

from dotenv import load_dotenv

from dietcraft.core.logging_config import get_logger
from dietcraft.services.stores.base import DocumentStore
from dietcraft.services.stores.memory import MemoryStore

load_dotenv()

logger = get_logger(__name__)

_store: Optional[DocumentStore] = None


def create_document_store() -> DocumentStore:
    """Pick MongoDB when MONGODB_URI is configured, else the in-memory store."""
    uri = os.getenv("MONGODB_URI")
    if not uri:
        logger.warning("MONGODB_URI not set. Records are kept in memory and lost on restart.")
        return MemoryStore()

    from dietcraft.services.stores.mongo import MongoStore
    return MongoStore(uri, db_name=os.getenv("MONGODB_DB", "dietcraft"))


def get_document_store() -> DocumentStore:
    """Return the process-wide document store, creating it on first use."""
    global _store
    if _store is None:
        _store = create_document_store()
        logger.info(f"Document store ready: {_store.name}")
    return _store
