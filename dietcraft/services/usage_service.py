from datetime import datetime, timezone
from typing import Optional

from dietcraft.core.app_config import load_app_config
from dietcraft.core.logging_config import get_logger
from dietcraft.models import UsageDecision, UsageSummary
from dietcraft.services.document_store import get_document_store
from dietcraft.services.stores.base import DocumentStore

logger = get_logger(__name__)

USAGE_COLLECTION = "ai_usage"
COUNTER_FIELD = "generations_used"


class QuotaExceededError(Exception):
    def __init__(self, decision: UsageDecision):
        super().__init__(decision.message or "Daily AI generation limit reached")
        self.decision = decision
        self.error_code = "DAILY_LIMIT_REACHED"
        self.status_code = 429


def today_utc() -> str:
    """Today's UTC calendar day as YYYY-MM-DD."""
    return datetime.now(timezone.utc).strftime("%Y-%m-%d")


def usage_key(user_id: str, date: str) -> str:
    return f"{user_id}_{date}"


class UsageService:
    def __init__(self, store: Optional[DocumentStore] = None, daily_limit: Optional[int] = None) -> None:
        self.store = store or get_document_store()
        self.daily_limit = daily_limit if daily_limit is not None else load_app_config().daily_generation_limit

    def limit_message(self) -> str:
        return (
            f"Daily AI generation limit reached ({self.daily_limit}/{self.daily_limit}). "
            "Please try again tomorrow."
        )

    def check_and_consume(self, user_id: str, date: Optional[str] = None) -> UsageDecision:
        """
        Consume one generation for the user's day if the quota allows it.

        The check and the increment are one conditional write in the store,
        so concurrent requests cannot both pass at the last unit.

        Args:
            user_id: Dietitian id.
            date: UTC day (YYYY-MM-DD); defaults to today.

        Returns:
            UsageDecision; a denied decision leaves the counter untouched.
        """
        date = date or today_utc()
        used = self.store.increment_if_below(
            USAGE_COLLECTION,
            usage_key(user_id, date),
            COUNTER_FIELD,
            self.daily_limit,
            set_fields={"last_updated": datetime.now(timezone.utc)},
            insert_fields={"user_id": user_id, "date": date}
        )

        if used is None:
            logger.info(f"Generation quota exhausted for user={user_id} date={date}")
            return UsageDecision(
                allowed=False,
                remaining=0,
                limit=self.daily_limit,
                date=date,
                message=self.limit_message()
            )

        remaining = max(0, self.daily_limit - used)
        logger.info(f"Generation {used}/{self.daily_limit} consumed for user={user_id} date={date}")
        return UsageDecision(allowed=True, remaining=remaining, limit=self.daily_limit, date=date)

    def get_usage(self, user_id: str, date: Optional[str] = None) -> UsageSummary:
        date = date or today_utc()
        record = self.store.get(USAGE_COLLECTION, usage_key(user_id, date))
        used = int(record.get(COUNTER_FIELD) or 0) if record else 0
        return UsageSummary(
            date=date,
            generations_used=used,
            limit=self.daily_limit,
            remaining=max(0, self.daily_limit - used)
        )

    def refund(self, user_id: str, date: str) -> bool:
        """Give back one consumed generation; never drops the counter below zero."""
        restored = self.store.decrement_if_positive(
            USAGE_COLLECTION,
            usage_key(user_id, date),
            COUNTER_FIELD,
            set_fields={"last_updated": datetime.now(timezone.utc)}
        )
        if restored is None:
            return False
        logger.info(f"Refunded one generation for user={user_id} date={date}")
        return True


usage_service = UsageService()
