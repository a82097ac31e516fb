from __future__ import annotations

from abc import ABC, abstractmethod
import time
from typing import Callable

from actionagent.services.llm_client import ModelClient
from actionagent.services.tool_invocation import (
    DEFAULT_BASE_DELAY_SECONDS,
    DEFAULT_MAX_ATTEMPTS,
    call_with_backoff,
)
from actionagent.tools.base import ConversationMessage

CHAT_SYSTEM_PROMPT = (
    "Eres un asistente personal amable que responde en español. "
    "Puedes enviar correos y crear eventos de calendario cuando el usuario lo pida; "
    "para cualquier otra consulta responde de forma breve y clara."
)

FALLBACK_REPLY = (
    "Puedo ayudarte a enviar correos o crear eventos en tu calendario. "
    "Por ejemplo: 'Envía un correo a ana@ejemplo.com con asunto Hola'."
)


class ChatResponder(ABC):
    @abstractmethod
    def reply(self, text: str, history: list[ConversationMessage]) -> str:
        raise NotImplementedError


class LlmChatResponder(ChatResponder):
    def __init__(
        self,
        model_client: ModelClient,
        context_messages: int = 10,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self._model_client = model_client
        self._context_messages = max(0, context_messages)
        self._max_attempts = max_attempts
        self._base_delay_seconds = base_delay_seconds
        self._sleep = sleep

    def reply(self, text: str, history: list[ConversationMessage]) -> str:
        recent = history[-self._context_messages :] if self._context_messages else []
        messages = [
            {"role": row.role, "content": row.content}
            for row in recent
            if row.role in {"user", "assistant"}
        ]
        messages.append({"role": "user", "content": text})
        response = call_with_backoff(
            lambda: self._model_client.complete(
                system_prompt=CHAT_SYSTEM_PROMPT,
                messages=messages,
            ),
            max_attempts=self._max_attempts,
            base_delay_seconds=self._base_delay_seconds,
            sleep=self._sleep,
        )
        return response.text or FALLBACK_REPLY


class StaticChatResponder(ChatResponder):
    def reply(self, text: str, history: list[ConversationMessage]) -> str:
        _ = (text, history)
        return FALLBACK_REPLY
