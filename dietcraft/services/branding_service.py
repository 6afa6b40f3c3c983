import copy
from datetime import datetime, timezone
from typing import Optional

from dietcraft.core.logging_config import get_logger
from dietcraft.core.rules import DEFAULT_BRANDING
from dietcraft.models import BrandingSettings
from dietcraft.services.document_store import get_document_store
from dietcraft.services.stores.base import DocumentStore

logger = get_logger(__name__)

BRANDING_COLLECTION = "branding"


def default_branding() -> BrandingSettings:
    return BrandingSettings(**copy.deepcopy(DEFAULT_BRANDING))


class BrandingService:
    """Per-dietitian branding, stored under the dietitian's user id."""

    def __init__(self, store: Optional[DocumentStore] = None) -> None:
        self.store = store or get_document_store()

    def get(self, user_id: str) -> BrandingSettings:
        document = self.store.get(BRANDING_COLLECTION, user_id)
        if document is None:
            return default_branding()
        return BrandingSettings(**document)

    def save(self, user_id: str, settings: BrandingSettings) -> BrandingSettings:
        document = settings.model_dump()
        document["updated_at"] = datetime.now(timezone.utc)
        stored = self.store.put(BRANDING_COLLECTION, user_id, document, merge=True)
        logger.info(f"Branding saved for user={user_id}")
        return BrandingSettings(**stored)


branding_service = BrandingService()
