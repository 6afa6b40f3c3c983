from datetime import datetime, timezone
from typing import List, Optional

from dietcraft.core.logging_config import get_logger
from dietcraft.models import Client, ClientProfile, ClientUpdate
from dietcraft.services.document_store import get_document_store
from dietcraft.services.stores.base import DocumentNotFoundError, DocumentStore

logger = get_logger(__name__)

CLIENTS_COLLECTION = "clients"


class ClientService:
    def __init__(self, store: Optional[DocumentStore] = None) -> None:
        self.store = store or get_document_store()

    def create(self, dietitian_id: str, profile: ClientProfile) -> Client:
        now = datetime.now(timezone.utc)
        document = {
            **profile.model_dump(),
            "dietitian_id": dietitian_id,
            "created_at": now,
            "updated_at": now,
        }
        client_id = self.store.insert(CLIENTS_COLLECTION, document)
        logger.info(f"Client created: {client_id}")
        return Client(id=client_id, **document)

    def get(self, client_id: str, dietitian_id: Optional[str] = None) -> Client:
        """Fetch a client; with ``dietitian_id`` set, other dietitians' clients read as missing."""
        document = self.store.get(CLIENTS_COLLECTION, client_id)
        if document is None or (dietitian_id is not None and document.get("dietitian_id") != dietitian_id):
            raise DocumentNotFoundError(CLIENTS_COLLECTION, client_id)
        return Client(**document)

    def list_for_dietitian(self, dietitian_id: str) -> List[Client]:
        documents = self.store.find(CLIENTS_COLLECTION, {"dietitian_id": dietitian_id}, sort_by="created_at")
        return [Client(**doc) for doc in documents]

    def update(self, client_id: str, changes: ClientUpdate, dietitian_id: Optional[str] = None) -> Client:
        self.get(client_id, dietitian_id)
        fields = changes.model_dump(exclude_none=True)
        fields["updated_at"] = datetime.now(timezone.utc)
        document = self.store.update(CLIENTS_COLLECTION, client_id, fields)
        if document is None:
            raise DocumentNotFoundError(CLIENTS_COLLECTION, client_id)
        logger.info(f"Client updated: {client_id}")
        return Client(**document)

    def delete(self, client_id: str, dietitian_id: Optional[str] = None) -> None:
        self.get(client_id, dietitian_id)
        self.store.delete(CLIENTS_COLLECTION, client_id)
        logger.info(f"Client deleted: {client_id}")


client_service = ClientService()
