from __future__ import annotations

import logging

from fastapi import FastAPI, Header, HTTPException

from actionagent.config import settings
from actionagent.models import ActionExecuteRequest, ActionExecuteResponse
from actionagent.router.intent_router import Intent
from actionagent.services.chat_responder import (
    ChatResponder,
    LlmChatResponder,
    StaticChatResponder,
)
from actionagent.services.conversation_store import InMemoryConversationStore
from actionagent.services.date_interpreter import local_now
from actionagent.services.llm_client import OpenAICompatibleClient, OpenAICompatibleConfig
from actionagent.services.orchestrator import ActionOrchestrator, ActionRequest
from actionagent.services.resource_resolver import AttachmentResolver
from actionagent.services.tool_invocation import ToolInvocationEngine
from actionagent.tools import CalendarDispatcher, DriveFileStore, GmailDispatcher
from actionagent.tools.registry import build_default_registry

logging.basicConfig(
    level=settings.log_level,
    format="%(levelname)s: %(name)s: %(message)s",
)
logger = logging.getLogger(__name__)

app = FastAPI(title="ActionAgent API", version="0.1.0")


def _build_model_client() -> OpenAICompatibleClient | None:
    key = (settings.action_llm_api_key or "").strip()
    if not key:
        return None
    return OpenAICompatibleClient(
        OpenAICompatibleConfig(
            provider=settings.action_llm_provider,
            model=settings.action_llm_model,
            api_key=key,
            api_base_url=settings.action_llm_api_base_url,
            timeout_seconds=settings.action_llm_timeout_seconds,
        )
    )


def _build_chat_responder(model_client: OpenAICompatibleClient | None) -> ChatResponder:
    if model_client is None or not settings.chat_llm_enabled:
        return StaticChatResponder()
    return LlmChatResponder(
        model_client=model_client,
        max_attempts=settings.action_llm_max_attempts,
        base_delay_seconds=settings.action_llm_retry_base_delay_ms / 1000,
    )


def _build_orchestrator() -> ActionOrchestrator | None:
    model_client = _build_model_client()
    if model_client is None:
        logger.warning("Action LLM key missing; /v1/actions will answer 503")
        return None

    def clock():
        return local_now(settings.calendar_timezone)

    engine = ToolInvocationEngine(
        model_client,
        build_default_registry(),
        max_attempts=settings.action_llm_max_attempts,
        base_delay_seconds=settings.action_llm_retry_base_delay_ms / 1000,
        clock=clock,
    )
    timeout = settings.google_api_timeout_seconds
    return ActionOrchestrator(
        engine=engine,
        mail_dispatcher=GmailDispatcher(timeout_seconds=timeout),
        event_dispatcher=CalendarDispatcher(
            timezone_name=settings.calendar_timezone,
            timeout_seconds=timeout,
        ),
        chat_responder=_build_chat_responder(model_client),
        attachment_resolver=AttachmentResolver(DriveFileStore(timeout_seconds=timeout)),
        conversation_store=InMemoryConversationStore(
            max_messages=settings.conversation_max_messages
        ),
        clock=clock,
        timezone_name=settings.calendar_timezone,
    )


orchestrator = _build_orchestrator()


@app.get("/health")
def health() -> dict[str, str]:
    return {"status": "ok"}


@app.post("/v1/actions", response_model=ActionExecuteResponse)
def execute_action(
    payload: ActionExecuteRequest,
    authorization: str | None = Header(default=None),
    x_user_key: str | None = Header(default=None),
) -> ActionExecuteResponse:
    if orchestrator is None:
        raise HTTPException(
            status_code=503,
            detail="Action LLM key missing. Set ACTION_LLM_API_KEY or GROQ_API_KEY.",
        )
    text = payload.text.strip()
    if not text:
        raise HTTPException(status_code=400, detail="Message text is required.")

    hint = Intent.parse(payload.action)
    if hint is None and (payload.action or "").strip().lower() not in {"", "auto"}:
        raise HTTPException(status_code=400, detail=f"Unknown action: {payload.action}")

    access_token = _bearer_token(authorization)
    result = orchestrator.execute(
        ActionRequest(
            text=text,
            access_token=access_token,
            hint=hint,
            user_key=(x_user_key or "").strip() or None,
        )
    )
    return ActionExecuteResponse(
        success=result.success,
        message=result.message,
        error=result.error,
    )


def _bearer_token(authorization: str | None) -> str:
    raw = (authorization or "").strip()
    if not raw.lower().startswith("bearer "):
        raise HTTPException(status_code=401, detail="Missing bearer token.")
    token = raw[7:].strip()
    if not token:
        raise HTTPException(status_code=401, detail="Missing bearer token.")
    return token
