from dataclasses import dataclass
from enum import Enum
import re
import unicodedata


class Intent(Enum):
    SEND_MESSAGE = "send_email"
    CREATE_EVENT = "create_event"
    NONE = "none"

    @property
    def requires_tool(self) -> bool:
        return self is not Intent.NONE

    @classmethod
    def parse(cls, raw: str | None) -> "Intent | None":
        """Map an API action string to an intent; ``None`` means auto."""
        value = (raw or "").strip().lower()
        if not value or value == "auto":
            return None
        return _INTENT_ALIASES.get(value)


_INTENT_ALIASES = {
    "send_email": Intent.SEND_MESSAGE,
    "send_message": Intent.SEND_MESSAGE,
    "email": Intent.SEND_MESSAGE,
    "create_event": Intent.CREATE_EVENT,
    "event": Intent.CREATE_EVENT,
    "calendar": Intent.CREATE_EVENT,
    "none": Intent.NONE,
    "chat": Intent.NONE,
}

MAIL_TERMS = (
    "correo",
    "email",
    "e-mail",
    "mail",
    "enviar",
    "envia",
    "enviale",
    "mandar",
    "manda",
    "mandale",
)

SCHEDULING_TERMS = (
    "evento",
    "reunion",
    "cita",
    "calendario",
    "agendar",
    "agenda",
)


@dataclass(frozen=True)
class RouteDecision:
    intent: Intent
    reason: str
    confidence: float


def normalize_text(text: str) -> str:
    decomposed = unicodedata.normalize("NFKD", (text or "").lower())
    stripped = "".join(ch for ch in decomposed if not unicodedata.combining(ch))
    return re.sub(r"\s+", " ", stripped).strip()


def _contains_term(text: str, terms: tuple[str, ...]) -> bool:
    return any(re.search(rf"\b{re.escape(term)}\b", text) for term in terms)


def _matches_mail_intent(text: str) -> bool:
    if _contains_term(text, MAIL_TERMS):
        return True
    return bool(re.search(r"\b(envia|manda)\w*\b", text))


def _matches_scheduling_intent(text: str) -> bool:
    if _contains_term(text, SCHEDULING_TERMS):
        return True
    return bool(
        re.search(r"\bcrea\w*\b", text) and re.search(r"\b(programa|agenda)\w*\b", text)
    )


def decide_action(user_text: str, hint: Intent | None = None) -> RouteDecision:
    if hint in {Intent.SEND_MESSAGE, Intent.CREATE_EVENT}:
        return RouteDecision(intent=hint, reason="explicit_hint", confidence=1.0)

    text = normalize_text(user_text)
    if not text:
        return RouteDecision(intent=Intent.NONE, reason="empty_text", confidence=1.0)
    if _matches_mail_intent(text):
        return RouteDecision(
            intent=Intent.SEND_MESSAGE,
            reason="matched_mail_terms",
            confidence=0.9,
        )
    if _matches_scheduling_intent(text):
        return RouteDecision(
            intent=Intent.CREATE_EVENT,
            reason="matched_scheduling_terms",
            confidence=0.88,
        )
    return RouteDecision(intent=Intent.NONE, reason="default_chat", confidence=0.75)


def classify(text: str, hint: Intent | None = None) -> Intent:
    return decide_action(text, hint).intent
