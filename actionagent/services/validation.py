from __future__ import annotations

from datetime import datetime, timedelta
import logging
import re
from typing import Any

from actionagent.errors import InvalidDateRange, MissingRecipient, MissingTitle
from actionagent.router.intent_router import Intent
from actionagent.services.date_interpreter import (
    has_same_day_marker,
    interpret_date_reference,
    parse_iso_datetime,
)
from actionagent.tools.base import EmailParams, EventParams, ExtractedParameters

logger = logging.getLogger(__name__)

PLACEHOLDER_RECIPIENT = "destinatario@example.com"
DEFAULT_SUBJECT = "Mensaje desde tu asistente personal"
DEFAULT_BODY = "Hola, este es un mensaje enviado desde mi asistente personal."

EMAIL_PATTERN = re.compile(r"^[A-Z0-9._%+\-]+@[A-Z0-9.\-]+\.[A-Z]{2,}$", re.IGNORECASE)


def validate(
    intent: Intent,
    raw_parameters: dict[str, Any],
    *,
    text: str,
    now: datetime,
    timezone_name: str | None = None,
) -> ExtractedParameters:
    if intent is Intent.SEND_MESSAGE:
        return validate_email_params(raw_parameters)
    if intent is Intent.CREATE_EVENT:
        return validate_event_params(
            raw_parameters,
            text=text,
            now=now,
            timezone_name=timezone_name,
        )
    raise ValueError(f"Intent '{intent.value}' has no parameters to validate.")


def validate_email_params(raw: dict[str, Any]) -> EmailParams:
    recipients = normalize_recipients(raw.get("to"))
    if not recipients:
        raise MissingRecipient(
            "No se pudo determinar el destinatario del correo. "
            "Por favor, especifica a quién quieres enviar el correo."
        )
    subject = _clean_text(raw.get("subject")) or DEFAULT_SUBJECT
    body = _clean_text(raw.get("body"), keep_newlines=True) or DEFAULT_BODY
    attachments = tuple(
        item for item in (_clean_text(row) for row in _as_list(raw.get("driveAttachments"))) if item
    )
    return EmailParams(
        to=recipients,
        subject=subject,
        body=body,
        drive_attachments=attachments,
    )


def normalize_recipients(raw: object) -> tuple[str, ...]:
    out: list[str] = []
    for row in _as_list(raw):
        if not isinstance(row, str):
            continue
        for candidate in re.split(r"[,;\s]+", row):
            address = candidate.strip().strip("<>\"'").lower()
            if not address or address == PLACEHOLDER_RECIPIENT:
                continue
            if not EMAIL_PATTERN.match(address):
                continue
            if address not in out:
                out.append(address)
    return tuple(out)


def validate_event_params(
    raw: dict[str, Any],
    *,
    text: str,
    now: datetime,
    timezone_name: str | None = None,
) -> EventParams:
    summary = _clean_text(raw.get("summary"))
    if not summary:
        raise MissingTitle(
            "No se pudo determinar el título del evento. "
            "Por favor, especifica un título para el evento."
        )

    start = parse_iso_datetime(raw.get("start"), timezone_name)
    end = parse_iso_datetime(raw.get("end"), timezone_name)
    if needs_date_correction(start, text=text, now=now):
        corrected_start, corrected_end = interpret_date_reference(text, now)
        logger.info(
            "Corrected implausible event dates start=%s end=%s -> start=%s end=%s",
            raw.get("start"),
            raw.get("end"),
            corrected_start.isoformat(),
            corrected_end.isoformat(),
        )
        start, end = corrected_start, corrected_end
    elif end is None:
        end = start + timedelta(hours=1)

    if end <= start:
        raise InvalidDateRange(
            "La hora de fin del evento debe ser posterior a la hora de inicio."
        )

    location = _clean_text(raw.get("location")) or None
    return EventParams(summary=summary, start=start, end=end, location=location)


def needs_date_correction(start: datetime | None, *, text: str, now: datetime) -> bool:
    if start is None:
        return True
    if start.year < now.year:
        return True
    return start < now and not has_same_day_marker(text)


def _as_list(raw: object) -> list[object]:
    if raw is None:
        return []
    if isinstance(raw, (list, tuple)):
        return list(raw)
    return [raw]


def _clean_text(raw: object, keep_newlines: bool = False) -> str:
    if not isinstance(raw, str):
        return ""
    if keep_newlines:
        return raw.strip()
    return re.sub(r"\s+", " ", raw).strip()
