import re
import time
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from fastapi import HTTPException

from dietcraft.core.logging_config import get_logger
from dietcraft.core.rules import LOGO_CONTENT_TYPES, MAX_LOGO_BYTES
from dietcraft.models import BrandingSettings
from dietcraft.services.branding_service import BrandingService
from dietcraft.services.document_store import get_document_store
from dietcraft.services.stores.base import DocumentNotFoundError, DocumentStore

logger = get_logger(__name__)

LOGOS_COLLECTION = "logos"
LOGO_URL_PREFIX = "/api/logos/"

UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def safe_filename(filename: Optional[str]) -> str:
    name = (filename or "").replace("\\", "/").split("/")[-1]
    name = UNSAFE_FILENAME_CHARS.sub("_", name).strip("._")
    return name or "logo"


def logo_id_from_url(url: Optional[str]) -> Optional[str]:
    if url and url.startswith(LOGO_URL_PREFIX):
        return url[len(LOGO_URL_PREFIX):]
    return None


class LogoService:
    """Branding logos kept in the document store and served by the API."""

    def __init__(self, store: Optional[DocumentStore] = None) -> None:
        self.store = store or get_document_store()
        self.branding = BrandingService(self.store)

    def validate(self, content_type: Optional[str], content: bytes) -> None:
        """
        Checks an uploaded logo before anything is stored.
        Raises HTTPException(400) for an empty file, a wrong type or a file over 2 MB.
        """
        if not content:
            raise HTTPException(
                status_code=400,
                detail={
                    "error_code": "LOGO_REQUIRED",
                    "message": "No file provided",
                    "suggestion": "Choose a logo image to upload."
                }
            )

        if content_type not in LOGO_CONTENT_TYPES:
            raise HTTPException(
                status_code=400,
                detail={
                    "error_code": "INVALID_LOGO_TYPE",
                    "message": "Invalid file type. Please upload PNG, JPG, or SVG",
                    "suggestion": "Export the logo as PNG, JPG or SVG."
                }
            )

        if len(content) > MAX_LOGO_BYTES:
            raise HTTPException(
                status_code=400,
                detail={
                    "error_code": "LOGO_TOO_LARGE",
                    "message": "File size too large. Maximum 2MB allowed",
                    "suggestion": "Compress or resize the logo below 2MB."
                }
            )

    def upload(self, user_id: str, filename: Optional[str], content_type: Optional[str], content: bytes) -> BrandingSettings:
        """
        Store a new logo and point the user's branding at it.

        Args:
            user_id: Dietitian id; logos live under ``{user_id}/``.
            filename: Original file name, sanitised for the id.
            content_type: Declared MIME type of the upload.
            content: File bytes.

        Returns:
            The saved BrandingSettings with the new ``logo_url``.
        """
        self.validate(content_type, content)

        logo_id = f"{user_id}/{int(time.time() * 1000)}-{uuid.uuid4().hex[:8]}-{safe_filename(filename)}"
        self.store.insert(
            LOGOS_COLLECTION,
            {
                "user_id": user_id,
                "content_type": "image/jpeg" if content_type == "image/jpg" else content_type,
                "size": len(content),
                "data": content,
                "created_at": datetime.now(timezone.utc),
            },
            doc_id=logo_id
        )
        logger.info(f"📤 Logo uploaded for user={user_id} ({len(content)} bytes)")

        settings = self.branding.get(user_id)
        previous = settings.logo_url
        settings.logo_url = f"{LOGO_URL_PREFIX}{logo_id}"
        saved = self.branding.save(user_id, settings)
        self._discard(user_id, previous)
        return saved

    def remove(self, user_id: str) -> BrandingSettings:
        settings = self.branding.get(user_id)
        previous = settings.logo_url
        settings.logo_url = ""
        saved = self.branding.save(user_id, settings)
        self._discard(user_id, previous)
        return saved

    def get(self, logo_id: str) -> Dict[str, Any]:
        document = self.store.get(LOGOS_COLLECTION, logo_id)
        if document is None:
            raise DocumentNotFoundError(LOGOS_COLLECTION, logo_id)
        return document

    def _discard(self, user_id: str, url: Optional[str]) -> None:
        # Only the user's own uploads are deleted; external URLs are left alone.
        logo_id = logo_id_from_url(url)
        if logo_id is None or not logo_id.startswith(f"{user_id}/"):
            return
        if self.store.delete(LOGOS_COLLECTION, logo_id):
            logger.info(f"Old logo deleted: {logo_id}")


logo_service = LogoService()
