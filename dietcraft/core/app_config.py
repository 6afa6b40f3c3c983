import json
import os
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv

from dietcraft.core.logging_config import get_logger

load_dotenv()

logger = get_logger(__name__)


@dataclass(frozen=True)
class AppConfig:
    daily_generation_limit: int = 3
    openai_model: str = "gpt-4o"
    temperature: float = 0.7
    max_tokens: int = 3000
    request_timeout_seconds: float = 60.0
    refund_on_failure: bool = False


def _as_bool(value: Any, default: bool) -> bool:
    if isinstance(value, bool):
        return value
    if isinstance(value, str):
        return value.strip().lower() in {"1", "true", "yes", "on"}
    return default


def _as_int(value: Any, default: int) -> int:
    if isinstance(value, bool):
        return default
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return default
    return default


def _as_float(value: Any, default: float) -> float:
    if isinstance(value, bool):
        return default
    if isinstance(value, (int, float)):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value.strip())
        except ValueError:
            return default
    return default


def _config_path() -> Path:
    return Path(__file__).resolve().parents[2] / "config" / "app_config.json"


def _apply_env_overrides(config: AppConfig) -> AppConfig:
    env = os.environ
    return replace(
        config,
        daily_generation_limit=_as_int(env.get("DAILY_GENERATION_LIMIT"), config.daily_generation_limit),
        openai_model=env.get("OPENAI_MODEL") or config.openai_model,
        request_timeout_seconds=_as_float(env.get("AI_TIMEOUT_SECONDS"), config.request_timeout_seconds),
        refund_on_failure=_as_bool(env.get("REFUND_ON_FAILURE"), config.refund_on_failure)
    )


def load_app_config(path: Optional[Path] = None) -> AppConfig:
    """Load settings from JSON, then apply environment overrides."""
    config_path = path or _config_path()
    defaults = AppConfig()
    try:
        data: Dict[str, Any] = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return _apply_env_overrides(defaults)
    except json.JSONDecodeError as exc:
        logger.warning(f"Invalid app config JSON at {config_path}: {exc}")
        return _apply_env_overrides(defaults)

    config = AppConfig(
        daily_generation_limit=_as_int(data.get("daily_generation_limit"), defaults.daily_generation_limit),
        openai_model=str(data.get("openai_model") or defaults.openai_model),
        temperature=_as_float(data.get("temperature"), defaults.temperature),
        max_tokens=_as_int(data.get("max_tokens"), defaults.max_tokens),
        request_timeout_seconds=_as_float(data.get("request_timeout_seconds"), defaults.request_timeout_seconds),
        refund_on_failure=_as_bool(data.get("refund_on_failure"), defaults.refund_on_failure)
    )
    return _apply_env_overrides(config)
