from datetime import datetime, timezone
from typing import List, Optional

from dietcraft.core.logging_config import get_logger
from dietcraft.models import DietPlan, DietPlanCreate, DietPlanUpdate, PlanSection
from dietcraft.services.document_store import get_document_store
from dietcraft.services.plan_parser import plan_parser
from dietcraft.services.stores.base import DocumentNotFoundError, DocumentStore

logger = get_logger(__name__)

PLANS_COLLECTION = "diet_plans"


class DietPlanService:
    def __init__(self, store: Optional[DocumentStore] = None) -> None:
        self.store = store or get_document_store()

    def create(self, dietitian_id: str, data: DietPlanCreate) -> DietPlan:
        now = datetime.now(timezone.utc)
        document = {
            **data.model_dump(),
            "dietitian_id": dietitian_id,
            "created_at": now,
            "updated_at": now,
        }
        plan_id = self.store.insert(PLANS_COLLECTION, document)
        logger.info(f"Diet plan created: {plan_id} (client={data.client_id})")
        return DietPlan(id=plan_id, **document)

    def get(self, plan_id: str, dietitian_id: Optional[str] = None) -> DietPlan:
        document = self.store.get(PLANS_COLLECTION, plan_id)
        if document is None or (dietitian_id is not None and document.get("dietitian_id") != dietitian_id):
            raise DocumentNotFoundError(PLANS_COLLECTION, plan_id)
        return DietPlan(**document)

    def list_for_client(self, client_id: str, dietitian_id: Optional[str] = None) -> List[DietPlan]:
        filters = {"client_id": client_id}
        if dietitian_id is not None:
            filters["dietitian_id"] = dietitian_id
        return [DietPlan(**doc) for doc in self.store.find(PLANS_COLLECTION, filters, sort_by="created_at")]

    def list_for_dietitian(self, dietitian_id: str) -> List[DietPlan]:
        documents = self.store.find(PLANS_COLLECTION, {"dietitian_id": dietitian_id}, sort_by="created_at")
        return [DietPlan(**doc) for doc in documents]

    def update(self, plan_id: str, changes: DietPlanUpdate, dietitian_id: Optional[str] = None) -> DietPlan:
        self.get(plan_id, dietitian_id)
        fields = changes.model_dump(exclude_none=True)
        fields["updated_at"] = datetime.now(timezone.utc)
        document = self.store.update(PLANS_COLLECTION, plan_id, fields)
        if document is None:
            raise DocumentNotFoundError(PLANS_COLLECTION, plan_id)
        logger.info(f"Diet plan updated: {plan_id}")
        return DietPlan(**document)

    def delete(self, plan_id: str, dietitian_id: Optional[str] = None) -> None:
        self.get(plan_id, dietitian_id)
        self.store.delete(PLANS_COLLECTION, plan_id)
        logger.info(f"Diet plan deleted: {plan_id}")

    def sections(self, plan_id: str, dietitian_id: Optional[str] = None) -> List[PlanSection]:
        """Structured view of the stored plan text, recomputed on every call."""
        return plan_parser.parse(self.get(plan_id, dietitian_id).generated_plan)


diet_plan_service = DietPlanService()
