from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime
import logging
import time
from typing import Callable

from actionagent.errors import ModelTransientOverload
from actionagent.router.intent_router import Intent
from actionagent.services.llm_client import ModelClient, ModelResponse
from actionagent.services.manual_extraction import (
    extract_event_title,
    extract_recipient,
    extract_subject,
)
from actionagent.tools.registry import ToolRegistry, ToolSpec

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3
DEFAULT_BASE_DELAY_SECONDS = 0.2


@dataclass(frozen=True)
class ToolInvocationOutcome:
    used_tool: bool
    tool_name: str | None = None
    raw_parameters: dict[str, object] = field(default_factory=dict)
    model_text: str = ""
    attempts: int = 1


def call_with_backoff(
    call: Callable[[], ModelResponse],
    *,
    max_attempts: int = DEFAULT_MAX_ATTEMPTS,
    base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
    sleep: Callable[[float], None] = time.sleep,
) -> ModelResponse:
    """Run one model call, retrying only on transient overload.

    The delay doubles after every overloaded attempt. Any other error
    propagates on the first occurrence.
    """
    attempts = max(1, max_attempts)
    for attempt in range(1, attempts + 1):
        try:
            return call()
        except ModelTransientOverload as exc:
            if attempt >= attempts:
                logger.warning("Model still overloaded after %d attempts", attempt)
                raise
            delay = base_delay_seconds * (2 ** (attempt - 1))
            logger.info(
                "Model overloaded (attempt %d/%d, status=%s); retrying in %.0fms",
                attempt,
                attempts,
                exc.status_code,
                delay * 1000,
            )
            sleep(delay)
    raise AssertionError("unreachable")


class ToolInvocationEngine:
    def __init__(
        self,
        model_client: ModelClient,
        tool_registry: ToolRegistry,
        *,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        base_delay_seconds: float = DEFAULT_BASE_DELAY_SECONDS,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self._model_client = model_client
        self._tool_registry = tool_registry
        self._max_attempts = max_attempts
        self._base_delay_seconds = base_delay_seconds
        self._sleep = sleep
        self._clock = clock

    def invoke(self, intent: Intent, text: str) -> ToolInvocationOutcome:
        if not intent.requires_tool:
            raise ValueError("Tool invocation requires an actionable intent.")
        spec = self._tool_registry.get(intent.value)

        first = self._call(
            system_prompt=build_system_prompt(intent, now=self._clock()),
            user_text=text,
            spec=spec,
        )
        outcome = _outcome_from_response(first, spec, attempts=1)
        if outcome.used_tool:
            logger.info("Model used tool %s on first attempt", spec.name)
            return outcome

        logger.info("Model answered without %s; retrying with a directive prompt", spec.name)
        second = self._call(
            system_prompt=build_strict_system_prompt(
                intent,
                now=self._clock(),
                tool_description=self._tool_registry.render_for_prompt(spec.name),
            ),
            user_text=build_directive_prompt(intent, text),
            spec=spec,
        )
        outcome = _outcome_from_response(second, spec, attempts=2)
        if outcome.used_tool:
            logger.info("Model used tool %s on directive retry", spec.name)
        else:
            logger.info("Model never used %s; manual extraction required", spec.name)
        return outcome

    def _call(self, *, system_prompt: str, user_text: str, spec: ToolSpec) -> ModelResponse:
        return call_with_backoff(
            lambda: self._model_client.complete(
                system_prompt=system_prompt,
                messages=[{"role": "user", "content": user_text}],
                tools=[spec],
            ),
            max_attempts=self._max_attempts,
            base_delay_seconds=self._base_delay_seconds,
            sleep=self._sleep,
        )


def _outcome_from_response(
    response: ModelResponse,
    spec: ToolSpec,
    attempts: int,
) -> ToolInvocationOutcome:
    call = response.tool_call
    if call is None or call.name != spec.name:
        return ToolInvocationOutcome(
            used_tool=False,
            model_text=response.text,
            attempts=attempts,
        )
    return ToolInvocationOutcome(
        used_tool=True,
        tool_name=call.name,
        raw_parameters=spec.filter_args(call.arguments),
        model_text=response.text,
        attempts=attempts,
    )


def build_system_prompt(intent: Intent, now: datetime) -> str:
    base = (
        "Eres un asistente que SIEMPRE usa las herramientas disponibles para realizar acciones. "
        "NUNCA respondas con texto cuando puedas usar una herramienta. "
        "Tu trabajo es EJECUTAR acciones, no describir lo que harías."
    )
    if intent is Intent.SEND_MESSAGE:
        detail = (
            "Cuando el usuario solicite enviar un correo:\n"
            "1. DEBES usar la herramienta send_email\n"
            "2. Extrae destinatario, asunto y cuerpo del mensaje del usuario\n"
            "3. Si falta información no crítica, usa valores predeterminados razonables\n"
            "4. NO expliques lo que vas a hacer, simplemente EJECUTA la acción"
        )
    else:
        detail = (
            "Cuando el usuario solicite crear un evento o reunión:\n"
            "1. DEBES usar la herramienta create_event\n"
            "2. Extrae título, fecha, hora de inicio y fin del mensaje del usuario\n"
            "3. Si falta información, usa valores predeterminados razonables\n"
            "4. NO expliques lo que vas a hacer, simplemente EJECUTA la acción"
        )
    today = (
        f"Hoy es {now.strftime('%Y-%m-%d')} ({now.strftime('%H:%M')}). "
        f"Usa SIEMPRE el año actual ({now.year}) en las fechas."
    )
    return f"{base}\n\n{detail}\n\n{today}"


def build_strict_system_prompt(intent: Intent, now: datetime, tool_description: str) -> str:
    return (
        f"{build_system_prompt(intent, now)}\n\n"
        "Tu respuesta anterior no usó la herramienta. Esta vez la ÚNICA respuesta válida "
        f"es una llamada a {intent.value}. No escribas texto.\n\n"
        f"Herramienta disponible:\n{tool_description}"
    )


def build_directive_prompt(intent: Intent, text: str) -> str:
    if intent is Intent.SEND_MESSAGE:
        recipient = extract_recipient(text) or "el destinatario indicado"
        subject = extract_subject(text) or "Mensaje automático"
        return (
            "IMPORTANTE: UTILIZA LA HERRAMIENTA send_email PARA REALIZAR ESTA TAREA. "
            "NO RESPONDAS CON TEXTO. "
            f'Usa send_email para enviar un correo a {recipient} con asunto "{subject}" '
            f'y el siguiente contenido: "{text}"'
        )
    title = extract_event_title(text)
    title_hint = f' titulado "{title}"' if title else ""
    return (
        "IMPORTANTE: UTILIZA LA HERRAMIENTA create_event PARA REALIZAR ESTA TAREA. "
        "NO RESPONDAS CON TEXTO. "
        f"Usa create_event para crear un evento{title_hint} en el calendario "
        f'con la siguiente información: "{text}"'
    )
