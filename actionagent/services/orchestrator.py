from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
import logging
import re
from typing import Callable

from actionagent.errors import (
    DispatchFailure,
    ModelHardFailure,
    ModelTransientOverload,
    ValidationError,
)
from actionagent.router.intent_router import Intent, decide_action, normalize_text
from actionagent.services.chat_responder import ChatResponder
from actionagent.services.conversation_store import last_email_recipients
from actionagent.services.manual_extraction import extract_manually
from actionagent.services.resource_resolver import (
    AttachmentResolver,
    find_attachment_references,
)
from actionagent.services.tool_invocation import ToolInvocationEngine
from actionagent.services.validation import (
    PLACEHOLDER_RECIPIENT,
    normalize_recipients,
    validate,
    validate_email_params,
    validate_event_params,
)
from actionagent.tools.base import (
    ConversationMessage,
    ConversationStore,
    EmailParams,
    EventDispatcher,
    EventParams,
    ExtractedParameters,
    MailDispatcher,
    ResolvedAttachment,
)

logger = logging.getLogger(__name__)

OVERLOADED_MESSAGE = (
    "El servicio de IA está sobrecargado en este momento. "
    "Inténtalo de nuevo en unos minutos."
)
MODEL_FAILURE_MESSAGE = (
    "No se pudo procesar tu solicitud con el servicio de IA. Inténtalo de nuevo más tarde."
)
GENERIC_FAILURE_MESSAGE = "Ocurrió un error al procesar tu solicitud."

_PREVIOUS_RECIPIENT_REFERENCE = re.compile(
    r"\b(mism[oa]|anterior|otra vez|de nuevo|como antes|igual que antes|vuelve a)\b"
)


@dataclass(frozen=True)
class ActionRequest:
    text: str
    access_token: str
    hint: Intent | None = None
    user_key: str | None = None


@dataclass(frozen=True)
class ActionResult:
    success: bool
    message: str
    params: ExtractedParameters | None = None
    error: str | None = None
    source: str | None = None


class ActionOrchestrator:
    def __init__(
        self,
        engine: ToolInvocationEngine,
        mail_dispatcher: MailDispatcher,
        event_dispatcher: EventDispatcher,
        chat_responder: ChatResponder,
        attachment_resolver: AttachmentResolver | None = None,
        conversation_store: ConversationStore | None = None,
        clock: Callable[[], datetime] = datetime.now,
        timezone_name: str | None = None,
    ) -> None:
        self.engine = engine
        self.mail_dispatcher = mail_dispatcher
        self.event_dispatcher = event_dispatcher
        self.chat_responder = chat_responder
        self.attachment_resolver = attachment_resolver
        self.conversation_store = conversation_store
        self._clock = clock
        self._timezone_name = timezone_name

    def execute(self, request: ActionRequest) -> ActionResult:
        try:
            result = self._execute(request)
        except ValidationError as exc:
            logger.info("Validation aborted request: %s", exc.code)
            result = ActionResult(success=False, message=str(exc), error=exc.code)
        except ModelTransientOverload as exc:
            logger.warning("Model overloaded, giving up: %s", exc)
            result = ActionResult(success=False, message=OVERLOADED_MESSAGE, error=exc.code)
        except ModelHardFailure as exc:
            logger.error("Model call failed: %s", exc)
            result = ActionResult(success=False, message=MODEL_FAILURE_MESSAGE, error=exc.code)
        except Exception as exc:
            logger.exception("Unexpected failure while executing action")
            result = ActionResult(
                success=False,
                message=f"{GENERIC_FAILURE_MESSAGE} ({exc.__class__.__name__})",
                error="internal_error",
            )
        self._record(request, result)
        return result

    def _execute(self, request: ActionRequest) -> ActionResult:
        decision = decide_action(request.text, request.hint)
        logger.info(
            "Routed request intent=%s reason=%s confidence=%.2f",
            decision.intent.value,
            decision.reason,
            decision.confidence,
        )
        if decision.intent is Intent.NONE:
            reply = self.chat_responder.reply(request.text, self._history(request))
            return ActionResult(success=True, message=reply, source="chat")

        now = self._clock()
        outcome = self.engine.invoke(decision.intent, request.text)
        if outcome.used_tool:
            source = "tool" if outcome.attempts == 1 else "tool_retry"
            raw = self._recall_recipient(decision.intent, request, dict(outcome.raw_parameters))
            params = validate(
                decision.intent,
                raw,
                text=request.text,
                now=now,
                timezone_name=self._timezone_name,
            )
        else:
            source = "manual"
            params = self._validate_manual(
                decision.intent,
                extract_manually(decision.intent, request.text, now),
                request,
                now,
            )
        logger.info("Parameters ready for %s via source=%s", decision.intent.value, source)

        if isinstance(params, EmailParams):
            return self._send_email(request, params, source)
        return self._create_event(request, params, source)

    def _validate_manual(
        self,
        intent: Intent,
        extracted: ExtractedParameters,
        request: ActionRequest,
        now: datetime,
    ) -> ExtractedParameters:
        if isinstance(extracted, EmailParams):
            raw: dict[str, object] = {
                "to": [row for row in extracted.to if row != PLACEHOLDER_RECIPIENT],
                "subject": extracted.subject,
                "body": extracted.body,
                "driveAttachments": list(extracted.drive_attachments),
            }
            return validate_email_params(self._recall_recipient(intent, request, raw))
        return validate_event_params(
            {
                "summary": extracted.summary,
                "start": extracted.start.isoformat(),
                "end": extracted.end.isoformat(),
                "location": extracted.location,
            },
            text=request.text,
            now=now,
            timezone_name=self._timezone_name,
        )

    def _recall_recipient(
        self,
        intent: Intent,
        request: ActionRequest,
        raw: dict[str, object],
    ) -> dict[str, object]:
        if intent is not Intent.SEND_MESSAGE or normalize_recipients(raw.get("to")):
            return raw
        if not _PREVIOUS_RECIPIENT_REFERENCE.search(normalize_text(request.text)):
            return raw
        recipients = last_email_recipients(self._history(request))
        if recipients:
            logger.info("Reusing previous recipient from conversation history")
            return {**raw, "to": list(recipients)}
        return raw

    def _send_email(self, request: ActionRequest, params: EmailParams, source: str) -> ActionResult:
        references = list(params.drive_attachments)
        for reference in find_attachment_references(request.text):
            if reference not in references:
                references.append(reference)
        attachments, missing = self._resolve_attachments(request.access_token, references)

        result = self.mail_dispatcher.send(request.access_token, params, attachments)
        if not result.success:
            failure = DispatchFailure(result.error or "Error desconocido")
            logger.error("Mail dispatch failed source=%s: %s", source, failure)
            return ActionResult(
                success=False,
                message=f"Error al enviar el correo: {failure}",
                params=params,
                error=failure.code,
                source=source,
            )

        logger.info("Mail sent message_id=%s source=%s", result.resource_id, source)
        message = f"Correo enviado correctamente a {', '.join(params.to)} con asunto \"{params.subject}\"."
        if attachments:
            names = ", ".join(row.file_name or row.reference_text for row in attachments)
            message += f" Archivos adjuntos: {names}."
        if missing:
            message += f" No se encontraron estos archivos, así que no se adjuntaron: {', '.join(missing)}."
        return ActionResult(success=True, message=message, params=params, source=source)

    def _resolve_attachments(
        self,
        access_token: str,
        references: list[str],
    ) -> tuple[list[ResolvedAttachment], list[str]]:
        if not references:
            return [], []
        if self.attachment_resolver is None:
            return [], references
        found: list[ResolvedAttachment] = []
        missing: list[str] = []
        for reference in references:
            resolved = self.attachment_resolver.resolve(access_token, reference)
            if resolved is None:
                missing.append(reference)
            elif all(row.resolved_id != resolved.resolved_id for row in found):
                found.append(resolved)
        return found, missing

    def _create_event(self, request: ActionRequest, params: EventParams, source: str) -> ActionResult:
        result = self.event_dispatcher.create(request.access_token, params)
        if not result.success:
            failure = DispatchFailure(result.error or "Error desconocido")
            logger.error("Event dispatch failed source=%s: %s", source, failure)
            return ActionResult(
                success=False,
                message=f"Error al crear el evento: {failure}",
                params=params,
                error=failure.code,
                source=source,
            )

        logger.info("Event created event_id=%s source=%s", result.resource_id, source)
        message = (
            f"Evento \"{params.summary}\" creado correctamente para el "
            f"{_format_when(params.start)} hasta las {params.end.strftime('%H:%M')}"
        )
        if params.location:
            message += f" en {params.location}"
        return ActionResult(success=True, message=message + ".", params=params, source=source)

    def _history(self, request: ActionRequest) -> list[ConversationMessage]:
        if self.conversation_store is None or not request.user_key:
            return []
        return self.conversation_store.get(request.user_key)

    def _record(self, request: ActionRequest, result: ActionResult) -> None:
        if self.conversation_store is None or not request.user_key:
            return
        metadata: dict[str, object] = {}
        if result.success and isinstance(result.params, EmailParams):
            metadata = {
                "action": Intent.SEND_MESSAGE.value,
                "email_recipients": list(result.params.to),
                "email_subject": result.params.subject,
            }
        elif result.success and isinstance(result.params, EventParams):
            metadata = {"action": Intent.CREATE_EVENT.value}
        if result.error:
            metadata = {**metadata, "error": result.error}
        try:
            self.conversation_store.append_many(
                request.user_key,
                [
                    ConversationMessage(role="user", content=request.text),
                    ConversationMessage(role="assistant", content=result.message, metadata=metadata),
                ],
            )
        except Exception:
            logger.exception("Failed to append conversation log for user")


def _format_when(value: datetime) -> str:
    return value.strftime("%d/%m/%Y a las %H:%M")
