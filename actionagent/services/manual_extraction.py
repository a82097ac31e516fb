from __future__ import annotations

from datetime import datetime, timedelta
import logging
import re

from actionagent.router.intent_router import Intent, normalize_text
from actionagent.services.date_interpreter import (
    DEFAULT_DURATION_HOURS,
    has_date_reference,
    interpret_date_reference,
    next_business_hour,
)
from actionagent.services.validation import (
    DEFAULT_BODY,
    DEFAULT_SUBJECT,
    PLACEHOLDER_RECIPIENT,
)
from actionagent.tools.base import EmailParams, EventParams, ExtractedParameters

logger = logging.getLogger(__name__)

DEFAULT_EVENT_TITLE = "Reunión"
MIN_BODY_LENGTH = 5

_ADDRESS = r"[A-Z0-9._%+\-]+@[A-Z0-9.\-]+\.[A-Z]{2,}"
_RECIPIENT_AFTER_PREPOSITION = re.compile(rf"\b(?:a|para)\s+({_ADDRESS})", re.IGNORECASE)
_ANY_ADDRESS = re.compile(rf"({_ADDRESS})", re.IGNORECASE)
_SUBJECT_MARKER = re.compile(
    r"\b(?:asunto|tema|subject)\b[:\s]+[\"'“‘]?([^\"'”’\n.]*)[\"'”’]?",
    re.IGNORECASE,
)
_COMMAND_PREFIX = re.compile(
    r"^.*?\b(?:env[ií]a\w*|enviar|manda\w*|mandar|escribe\w*)\b.*?"
    r"(?:correo|e-?mail|mensaje|mail)\b.*?"
    rf"{_ADDRESS}",
    re.IGNORECASE | re.DOTALL,
)
_BODY_MARKER = re.compile(
    r"\b(?:diciendo(?:le)?(?:\s+que)?|que\s+diga(?:\s+que)?|dile\s+que|mensaje:|cuerpo:)\s*(.+)$",
    re.IGNORECASE | re.DOTALL,
)
_LEADING_CONNECTORS = re.compile(r"^(?:\s*(?:(?:con|y|que)\b|[,:;.]))+", re.IGNORECASE)
_FAREWELL = re.compile(r"\b(adios|despedida|despedirse|despedirme)\b")

_TITLE_MARKER = re.compile(
    r"\b(?:titulad[oa]|llamad[oa]|t[ií]tulo|title|sobre)\b[:\s]+[\"'“‘]?([^\"'”’\n.]*)[\"'”’]?",
    re.IGNORECASE,
)
_TITLE_TAIL = re.compile(
    r"\s+(?:para|el|la|a\s+las?|ma[nñ]ana|hoy|pasado|durante|en|con|desde)\b.*$",
    re.IGNORECASE,
)
_LOCATION_MARKER = re.compile(
    r"\b(?:ubicaci[oó]n|lugar)\b[:\s]+[\"'“‘]?([^\"'”’\n.,]*)[\"'”’]?",
    re.IGNORECASE,
)


def extract_manually(intent: Intent, text: str, now: datetime) -> ExtractedParameters:
    if intent is Intent.SEND_MESSAGE:
        params: ExtractedParameters = extract_email_params(text)
    elif intent is Intent.CREATE_EVENT:
        params = extract_event_params(text, now)
    else:
        raise ValueError(f"Intent '{intent.value}' has no parameters to extract.")
    logger.info("Manual extraction produced %s for intent=%s", type(params).__name__, intent.value)
    return params


def extract_email_params(text: str) -> EmailParams:
    raw = (text or "").strip()
    recipient = extract_recipient(raw) or PLACEHOLDER_RECIPIENT
    subject = extract_subject(raw)
    if not subject:
        subject = "Adiós" if _FAREWELL.search(normalize_text(raw)) else DEFAULT_SUBJECT
    body = extract_body(raw)
    if len(body) < MIN_BODY_LENGTH:
        body = "Adiós." if _FAREWELL.search(normalize_text(raw)) else DEFAULT_BODY
    return EmailParams(to=(recipient,), subject=subject, body=body)


def extract_recipient(text: str) -> str:
    match = _RECIPIENT_AFTER_PREPOSITION.search(text) or _ANY_ADDRESS.search(text)
    if not match:
        return ""
    return match.group(1).strip().lower()


def extract_subject(text: str) -> str:
    match = _SUBJECT_MARKER.search(text)
    if not match:
        return ""
    return match.group(1).strip()


def extract_body(text: str) -> str:
    marker = _BODY_MARKER.search(text)
    if marker:
        body = marker.group(1)
    else:
        body = _COMMAND_PREFIX.sub("", text, count=1)
        body = _SUBJECT_MARKER.sub("", body, count=1)
    body = _LEADING_CONNECTORS.sub("", body.strip()).strip().strip("\"'“”")
    if body:
        body = body[0].upper() + body[1:]
    return body


def extract_event_params(text: str, now: datetime) -> EventParams:
    raw = (text or "").strip()
    summary = extract_event_title(raw) or DEFAULT_EVENT_TITLE
    if has_date_reference(raw):
        start, end = interpret_date_reference(raw, now)
    else:
        start = next_business_hour(now)
        end = start + timedelta(hours=DEFAULT_DURATION_HOURS)
    location_match = _LOCATION_MARKER.search(raw)
    location = location_match.group(1).strip() if location_match else None
    return EventParams(summary=summary, start=start, end=end, location=location or None)


def extract_event_title(text: str) -> str:
    match = _TITLE_MARKER.search(text)
    if not match:
        return ""
    title = match.group(1).strip()
    quoted = match.start(1) > 0 and text[match.start(1) - 1] in "\"'“‘"
    if not quoted:
        title = _TITLE_TAIL.sub("", title).strip()
    return title[:1].upper() + title[1:] if title else ""
