from __future__ import annotations

from abc import ABC, abstractmethod
import json
from dataclasses import dataclass, field

import requests

from actionagent.errors import ModelHardFailure, ModelTransientOverload
from actionagent.tools.registry import ToolSpec

TRANSIENT_STATUS_CODES = {503, 529}
TRANSIENT_ERROR_TYPES = {"overloaded_error", "server_overloaded", "service_unavailable"}

DEFAULT_BASE_URLS = {
    "groq": "https://api.groq.com/openai/v1",
    "openai": "https://api.openai.com/v1",
    "openai_compatible": "https://api.openai.com/v1",
}


@dataclass(frozen=True)
class ToolCall:
    name: str
    arguments: dict[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class ModelResponse:
    text: str = ""
    tool_call: ToolCall | None = None


class ModelClient(ABC):
    @abstractmethod
    def complete(
        self,
        *,
        system_prompt: str,
        messages: list[dict[str, str]],
        tools: list[ToolSpec] | None = None,
    ) -> ModelResponse:
        raise NotImplementedError


@dataclass(frozen=True)
class OpenAICompatibleConfig:
    provider: str
    model: str
    api_key: str
    timeout_seconds: int
    api_base_url: str | None = None
    temperature: float = 0.0
    max_tokens: int = 1024


class OpenAICompatibleClient(ModelClient):
    """Chat-completions client for Groq, OpenAI and compatible endpoints."""

    def __init__(self, cfg: OpenAICompatibleConfig) -> None:
        provider = (cfg.provider or "").strip().lower()
        if provider not in DEFAULT_BASE_URLS:
            raise ValueError(
                f"Unsupported LLM provider '{cfg.provider}'. "
                f"Expected one of: {', '.join(sorted(DEFAULT_BASE_URLS))}"
            )
        self._provider = provider
        self._model = _required(cfg.model, "model")
        self._api_key = _required(cfg.api_key, "API key")
        self._base_url = ((cfg.api_base_url or "").strip() or DEFAULT_BASE_URLS[provider]).rstrip("/")
        self._timeout = max(1, int(cfg.timeout_seconds))
        self._temperature = cfg.temperature
        self._max_tokens = cfg.max_tokens

    def complete(
        self,
        *,
        system_prompt: str,
        messages: list[dict[str, str]],
        tools: list[ToolSpec] | None = None,
    ) -> ModelResponse:
        payload: dict[str, object] = {
            "model": self._model,
            "messages": [{"role": "system", "content": system_prompt}, *messages],
            "temperature": self._temperature,
            "max_tokens": self._max_tokens,
        }
        if tools:
            payload["tools"] = [tool.to_openai_tool() for tool in tools]
            payload["tool_choice"] = "auto"

        url = f"{self._base_url}/chat/completions"
        try:
            response = requests.post(
                url,
                json=payload,
                headers={"Authorization": f"Bearer {self._api_key}"},
                timeout=self._timeout,
            )
        except requests.Timeout as exc:
            raise ModelHardFailure(f"{self._provider} request timed out after {self._timeout}s") from exc
        except requests.RequestException as exc:
            raise ModelHardFailure(f"{self._provider} request failed: {exc}") from exc

        if not response.ok:
            raise _failure_for(response.status_code, response.text.strip())
        try:
            body = response.json()
        except ValueError as exc:
            raise ModelHardFailure(f"{self._provider} returned a non-JSON completion.") from exc
        return parse_chat_completion(body)


def _required(value: str | None, label: str) -> str:
    cleaned = (value or "").strip()
    if not cleaned:
        raise RuntimeError(f"LLM {label} is required.")
    return cleaned


def _failure_for(status_code: int, detail: str) -> ModelHardFailure | ModelTransientOverload:
    message = f"Model call failed with HTTP {status_code}: {detail[:400] or 'no detail'}"
    if _is_transient_failure(status_code, detail):
        return ModelTransientOverload(message, status_code=status_code)
    return ModelHardFailure(message, status_code=status_code)


def parse_chat_completion(body: object) -> ModelResponse:
    choices = body.get("choices") if isinstance(body, dict) else None
    first = choices[0] if isinstance(choices, list) and choices else None
    message = first.get("message") if isinstance(first, dict) else None
    if not isinstance(message, dict):
        raise ModelHardFailure("Model completion has no message in its first choice.")

    content = message.get("content")
    text = content.strip() if isinstance(content, str) else ""
    for call in message.get("tool_calls") or []:
        function = call.get("function") if isinstance(call, dict) else None
        if not isinstance(function, dict):
            continue
        name = str(function.get("name") or "").strip()
        if name:
            arguments = _parse_arguments(function.get("arguments"))
            return ModelResponse(text=text, tool_call=ToolCall(name=name, arguments=arguments))
    return ModelResponse(text=text)


def _parse_arguments(raw: object) -> dict[str, object]:
    if isinstance(raw, dict):
        return raw
    if isinstance(raw, str):
        return extract_first_json_object(raw) or {}
    return {}


def _is_transient_failure(status_code: int, detail: str) -> bool:
    if status_code in TRANSIENT_STATUS_CODES:
        return True
    try:
        parsed = json.loads(detail)
    except ValueError:
        return False
    error = parsed.get("error") if isinstance(parsed, dict) else None
    if not isinstance(error, dict):
        return False
    error_type = str(error.get("type") or error.get("code") or "").strip().lower()
    return error_type in TRANSIENT_ERROR_TYPES


def extract_first_json_object(raw_text: str) -> dict[str, object] | None:
    """Return the first JSON object embedded in ``raw_text``, if any."""
    text = raw_text or ""
    decoder = json.JSONDecoder()
    index = text.find("{")
    while index >= 0:
        try:
            parsed, _ = decoder.raw_decode(text, index)
        except ValueError:
            index = text.find("{", index + 1)
            continue
        if isinstance(parsed, dict):
            return parsed
        index = text.find("{", index + 1)
    return None
