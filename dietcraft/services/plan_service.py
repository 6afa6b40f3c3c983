import time
from typing import Optional

from dietcraft.core.app_config import load_app_config
from dietcraft.core.logging_config import get_logger
from dietcraft.models import ClientProfile, DietPlanCreate, GeneratePlanRequest, GeneratePlanResponse
from dietcraft.services.ai_service import PlanGenerationError, ai_service
from dietcraft.services.client_service import client_service
from dietcraft.services.diet_plan_service import diet_plan_service
from dietcraft.services.plan_parser import plan_parser
from dietcraft.services.profile_validator import profile_validator
from dietcraft.services.usage_service import QuotaExceededError, usage_service

logger = get_logger(__name__)


class PlanGenerationService:
    def __init__(self, refund_on_failure: Optional[bool] = None) -> None:
        if refund_on_failure is None:
            refund_on_failure = load_app_config().refund_on_failure
        self.refund_on_failure = refund_on_failure

    def generate(self, user_id: str, request: GeneratePlanRequest) -> GeneratePlanResponse:
        """Generate, store and structure a plan for one client.

        Args:
            user_id: The dietitian making the request.
            request: Stored client id or inline profile plus notes.

        Returns:
            GeneratePlanResponse with the raw text, parsed sections and quota left.

        Raises:
            HTTPException: invalid client data (nothing consumed).
            QuotaExceededError: daily limit reached.
            PlanGenerationError: the AI call failed or its output was rejected.
        """
        total_start = time.time()

        # 1. Resolve and validate the client before touching the quota
        stored_client = None
        profile: Optional[ClientProfile] = request.client
        if request.client_id:
            stored_client = client_service.get(request.client_id, dietitian_id=user_id)
            profile = ClientProfile(**stored_client.model_dump(include=set(ClientProfile.model_fields)))
        profile = profile_validator.validate(profile)

        # 2. Consume one unit of the daily quota
        decision = usage_service.check_and_consume(user_id)
        if not decision.allowed:
            raise QuotaExceededError(decision)

        # 3. Generate
        try:
            generated = ai_service.generate_plan(profile, request.raw_input)
        except PlanGenerationError as e:
            if self.refund_on_failure:
                usage_service.refund(user_id, decision.date)
            logger.warning(f"Generation for user={user_id} failed with {e.error_code}")
            raise

        # 4. Persist when the plan belongs to a stored client
        plan_id = None
        if stored_client is not None and request.save:
            plan = diet_plan_service.create(
                user_id,
                DietPlanCreate(
                    client_id=stored_client.id,
                    title=request.title or f"Nutrition plan for {stored_client.full_name}",
                    raw_input=request.raw_input,
                    generated_plan=generated,
                    status="draft"
                )
            )
            plan_id = plan.id

        sections = plan_parser.parse(generated)
        logger.info(f"✅ Plan generation finished in {time.time() - total_start:.2f}s ({len(sections)} sections)")

        return GeneratePlanResponse(
            plan_id=plan_id,
            generated_plan=generated,
            sections=sections,
            remaining=decision.remaining,
            limit=decision.limit
        )


plan_service = PlanGenerationService()
