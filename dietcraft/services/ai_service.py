import os
from typing import Any, Dict, Optional, Tuple

import openai
from dotenv import load_dotenv
from openai import OpenAI

from dietcraft.core.app_config import AppConfig, load_app_config
from dietcraft.core.logging_config import get_logger
from dietcraft.core.rules import UNSAFE_PHRASES
from dietcraft.models import ClientProfile

load_dotenv()

logger = get_logger(__name__)

GENERIC_FAILURE_MESSAGE = "Failed to generate diet plan. Please try again later."

SYSTEM_PROMPT = """You are writing a professional nutrition plan on behalf of a qualified dietitian.
The plan must read as if the dietitian wrote it personally: warm, professional, practical.
Never mention AI, automation or that the text was generated.
You do NOT diagnose diseases and you do NOT prescribe medication.
If information is missing, make conservative assumptions.

STRUCTURE
1. CLIENT PROFILE SUMMARY
2. NUTRITION TARGETS
3. 7-DAY MEAL PLAN
   Start each day on its own line as "Day N".
   Write every meal on one line as "<Meal>: <foods>; <portions>; <notes>"
   using the labels Breakfast, Mid-Morning, Lunch, Evening, Snack, Dinner,
   Pre-Workout or Post-Workout.
4. FOOD ALTERNATIVES
5. NUTRITION GUIDELINES
6. FOODS TO EMPHASIZE
7. FOODS TO LIMIT
8. PROFESSIONAL NOTES
9. DISCLAIMER

FORMATTING
- Section headings in capital letters
- Bullet points ("- ") for lists
- No emojis, no markdown tables, no technical jargon
- Portions in grams, cups or pieces
- No disease cure claims, no medical diagnoses, no brand names or supplements unless specified"""


class PlanGenerationError(Exception):
    def __init__(self, error_code: str, message: str, status_code: int = 500, details: Optional[str] = None):
        super().__init__(message)
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details


def contains_unsafe_phrases(text: str) -> bool:
    lowered = (text or "").lower()
    return any(phrase in lowered for phrase in UNSAFE_PHRASES)


def _format_list(values) -> str:
    cleaned = [str(v).strip() for v in (values or []) if str(v).strip()]
    return ", ".join(cleaned) if cleaned else "None specified"


def _or_unspecified(value: Any) -> str:
    if value is None or str(value).strip() == "":
        return "Not specified"
    return str(value).strip()


def build_user_prompt(client: ClientProfile, raw_input: Optional[str]) -> str:
    notes = (raw_input or "").strip() or "No additional notes provided."
    return f"""Create a personalized diet plan based on the following data.

Client Profile:
- Name: {client.full_name.strip() or "Client"}
- Age: {_or_unspecified(client.age)}
- Gender: {_or_unspecified(client.gender)}
- Height: {_or_unspecified(client.height)}
- Weight: {_or_unspecified(client.weight)}
- Medical Conditions: {_format_list(client.medical_conditions)}
- Allergies: {_format_list(client.allergies)}
- Goals: {_or_unspecified(client.goals)}

Dietitian Notes / Raw Input:
{notes}

REQUIREMENTS:
- Do NOT mention diagnoses
- Respect all allergies and restrictions
- Focus on whole foods
- Include portion sizes using simple household measurements
- Avoid supplements unless explicitly mentioned
- Include hydration guidance
- Include culturally neutral food options
"""


def _is_content_filter_error(error: Exception) -> bool:
    code = str(getattr(error, "code", "") or "").lower()
    if code in {"content_filter", "content_policy_violation"}:
        return True
    return "content_filter" in str(error).lower()


def classify_error(error: Exception) -> PlanGenerationError:
    """Map an upstream failure onto one of the fixed user-facing errors."""
    details = str(error)
    if isinstance(error, (openai.AuthenticationError, openai.PermissionDeniedError)):
        return PlanGenerationError(
            "AI_AUTH_FAILED",
            "AI service configuration error. Please contact support.",
            status_code=500,
            details=details
        )
    if isinstance(error, openai.RateLimitError):
        return PlanGenerationError(
            "AI_RATE_LIMITED",
            "AI service is temporarily busy. Please try again later.",
            status_code=429,
            details=details
        )
    if isinstance(error, openai.BadRequestError) and _is_content_filter_error(error):
        return PlanGenerationError(
            "AI_CONTENT_BLOCKED",
            "Content was blocked by safety filters. Please rephrase your input.",
            status_code=400,
            details=details
        )
    if isinstance(error, openai.APITimeoutError):
        return PlanGenerationError(
            "AI_TIMEOUT",
            "The AI service took too long to respond. Please try again.",
            status_code=504,
            details=details
        )
    return PlanGenerationError("AI_GENERATION_FAILED", GENERIC_FAILURE_MESSAGE, status_code=500, details=details)


class AIService:
    def __init__(self, config: Optional[AppConfig] = None):
        self.config = config or load_app_config()
        api_key = os.getenv("OPENAI_API_KEY")
        if not api_key:
            logger.warning("OPENAI_API_KEY not set. Plan generation will be unavailable.")
            self.client = None
        else:
            # One attempt per request; the caller surfaces failures instead of retrying.
            self.client = OpenAI(
                api_key=api_key,
                timeout=self.config.request_timeout_seconds,
                max_retries=0
            )

    def generate_plan(self, client: ClientProfile, raw_input: Optional[str] = None) -> str:
        """
        Generate plan text for a client profile.

        Args:
            client: Profile sent to the model.
            raw_input: Free-text notes from the dietitian.

        Returns:
            The generated plan text.

        Raises:
            PlanGenerationError: for a missing key, any upstream failure,
                an empty answer or output containing unsafe claims.
        """
        if not self.client:
            raise PlanGenerationError(
                "AI_NOT_CONFIGURED",
                "AI service not configured. Please add OPENAI_API_KEY to environment variables.",
                status_code=500
            )

        user_prompt = build_user_prompt(client, raw_input)
        logger.info(f"🤖 Generating diet plan for: {client.full_name}")

        try:
            text, finish_reason = self._complete(SYSTEM_PROMPT, user_prompt)
        except Exception as e:
            error = classify_error(e)
            logger.error(f"Plan generation failed ({error.error_code}): {e}")
            raise error from e

        if finish_reason == "content_filter":
            logger.warning("Completion stopped by the provider's content filter")
            raise PlanGenerationError(
                "AI_CONTENT_BLOCKED",
                "Content was blocked by safety filters. Please rephrase your input.",
                status_code=400
            )
        if not text or not text.strip():
            logger.error("Plan generation returned an empty completion")
            raise PlanGenerationError("AI_GENERATION_FAILED", GENERIC_FAILURE_MESSAGE, status_code=500)

        if contains_unsafe_phrases(text):
            logger.warning("⚠️ Generated plan contains unsafe phrases; rejecting it")
            raise PlanGenerationError(
                "UNSAFE_CONTENT",
                "Generated plan contains inappropriate medical claims. Please try again or edit the raw input.",
                status_code=400
            )

        logger.info("✅ Diet plan generated successfully")
        return text

    def _complete(self, system_prompt: str, user_prompt: str) -> Tuple[str, Optional[str]]:
        response = self.client.chat.completions.create(
            model=self.config.openai_model,
            messages=[
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": user_prompt}
            ],
            temperature=self.config.temperature,
            max_tokens=self.config.max_tokens
        )
        choice = response.choices[0]
        if response.usage is not None:
            logger.info(f"Plan generation used {response.usage.total_tokens} tokens")
        return choice.message.content or "", choice.finish_reason

    def status(self) -> Dict[str, Any]:
        return {"configured": self.client is not None, "model": self.config.openai_model}


ai_service = AIService()
