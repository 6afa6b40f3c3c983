from datetime import datetime, timezone
from typing import Optional

from dietcraft.core.logging_config import get_logger
from dietcraft.models import UserProfile, UserProfileCreate, UserProfileUpdate
from dietcraft.services.document_store import get_document_store
from dietcraft.services.stores.base import DocumentNotFoundError, DocumentStore

logger = get_logger(__name__)

PROFILES_COLLECTION = "user_profiles"


def display_name_for(email: Optional[str], display_name: Optional[str]) -> str:
    if display_name and display_name.strip():
        return display_name.strip()
    if email and email.split("@")[0]:
        return email.split("@")[0]
    return "Dietitian"


class ProfileService:
    def __init__(self, store: Optional[DocumentStore] = None) -> None:
        self.store = store or get_document_store()

    def create(self, user_id: str, data: UserProfileCreate) -> UserProfile:
        now = datetime.now(timezone.utc)
        document = {
            "email": data.email,
            "display_name": display_name_for(data.email, data.display_name),
            "photo_url": data.photo_url,
            "role": "dietitian",
            "onboarding_completed": False,
            "plan_export_count": 0,
            "subscription_status": "free",
            "created_at": now,
            "updated_at": now,
        }
        stored = self.store.put(PROFILES_COLLECTION, user_id, document)
        logger.info(f"User profile created: {user_id}")
        return UserProfile(**stored)

    def get(self, user_id: str) -> UserProfile:
        document = self.store.get(PROFILES_COLLECTION, user_id)
        if document is None:
            raise DocumentNotFoundError(PROFILES_COLLECTION, user_id)
        return UserProfile(**document)

    def exists(self, user_id: str) -> bool:
        return self.store.get(PROFILES_COLLECTION, user_id) is not None

    def update(self, user_id: str, changes: UserProfileUpdate) -> UserProfile:
        return self._set(user_id, changes.model_dump(exclude_none=True))

    def complete_onboarding(self, user_id: str) -> UserProfile:
        return self._set(user_id, {"onboarding_completed": True})

    def record_export(self, user_id: str) -> Optional[UserProfile]:
        """Count one plan export; users without a profile are not tracked."""
        document = self.store.get(PROFILES_COLLECTION, user_id)
        if document is None:
            return None
        return self._set(user_id, {"plan_export_count": int(document.get("plan_export_count") or 0) + 1})

    def _set(self, user_id: str, fields: dict) -> UserProfile:
        fields["updated_at"] = datetime.now(timezone.utc)
        document = self.store.update(PROFILES_COLLECTION, user_id, fields)
        if document is None:
            raise DocumentNotFoundError(PROFILES_COLLECTION, user_id)
        return UserProfile(**document)


profile_service = ProfileService()
