import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv(override=False)


def _as_bool(raw: str | None, default: bool) -> bool:
    if raw is None:
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def _as_int(raw: str | None, default: int) -> int:
    if raw is None:
        return default
    try:
        return int(raw.strip())
    except ValueError:
        return default


@dataclass(frozen=True)
class Settings:
    action_llm_provider: str
    action_llm_model: str
    action_llm_api_key: str | None
    action_llm_api_base_url: str | None
    action_llm_timeout_seconds: int
    action_llm_max_attempts: int
    action_llm_retry_base_delay_ms: int
    chat_llm_enabled: bool
    calendar_timezone: str
    google_api_timeout_seconds: int
    conversation_max_messages: int
    log_level: str


def load_settings() -> Settings:
    provider = os.getenv("ACTION_LLM_PROVIDER", "groq").strip().lower()
    api_key = (
        os.getenv("ACTION_LLM_API_KEY")
        or os.getenv("GROQ_API_KEY")
        or os.getenv("OPENAI_API_KEY")
        or None
    )
    return Settings(
        action_llm_provider=provider,
        action_llm_model=(
            os.getenv("ACTION_LLM_MODEL")
            or os.getenv("GROQ_CHAT_MODEL")
            or "llama-3.3-70b-versatile"
        ),
        action_llm_api_key=api_key,
        action_llm_api_base_url=(os.getenv("ACTION_LLM_API_BASE_URL") or None),
        action_llm_timeout_seconds=max(
            1, _as_int(os.getenv("ACTION_LLM_TIMEOUT_SECONDS"), 8)
        ),
        action_llm_max_attempts=max(
            1, min(5, _as_int(os.getenv("ACTION_LLM_MAX_ATTEMPTS"), 3))
        ),
        action_llm_retry_base_delay_ms=max(
            50,
            min(5000, _as_int(os.getenv("ACTION_LLM_RETRY_BASE_DELAY_MS"), 200)),
        ),
        chat_llm_enabled=_as_bool(os.getenv("CHAT_LLM_ENABLED"), True),
        calendar_timezone=os.getenv("CALENDAR_TIMEZONE", "Europe/Madrid").strip()
        or "Europe/Madrid",
        google_api_timeout_seconds=max(
            1, _as_int(os.getenv("GOOGLE_API_TIMEOUT_SECONDS"), 8)
        ),
        conversation_max_messages=max(
            4, min(200, _as_int(os.getenv("CONVERSATION_MAX_MESSAGES"), 30))
        ),
        log_level=os.getenv("LOG_LEVEL", "INFO").strip().upper() or "INFO",
    )


settings = load_settings()
