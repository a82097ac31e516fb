from __future__ import annotations

import re
import threading

from actionagent.tools.base import ConversationMessage, ConversationStore

SYSTEM_PROMPT = (
    "Eres un asistente personal que ayuda con correos y eventos de calendario usando Google. "
    "Puedes enviar correos y crear eventos."
)

_ADDRESS = re.compile(r"[A-Z0-9._%+\-]+@[A-Z0-9.\-]+\.[A-Z]{2,}", re.IGNORECASE)


class InMemoryConversationStore(ConversationStore):
    """Per-user message log; writes to one user key never interleave."""

    def __init__(self, max_messages: int = 30) -> None:
        self._max_messages = max(2, max_messages)
        self._conversations: dict[str, list[ConversationMessage]] = {}
        self._locks: dict[str, threading.Lock] = {}
        self._locks_guard = threading.Lock()

    def append(self, user_key: str, message: ConversationMessage) -> None:
        self.append_many(user_key, [message])

    def append_many(self, user_key: str, messages: list[ConversationMessage]) -> None:
        with self._lock_for(user_key):
            conversation = self._conversations.setdefault(
                user_key,
                [ConversationMessage(role="system", content=SYSTEM_PROMPT)],
            )
            conversation.extend(messages)
            if len(conversation) > self._max_messages:
                system = [row for row in conversation[:1] if row.role == "system"]
                keep = self._max_messages - len(system)
                self._conversations[user_key] = system + conversation[-keep:]

    def get(self, user_key: str) -> list[ConversationMessage]:
        with self._lock_for(user_key):
            return list(self._conversations.get(user_key, []))

    def reset(self, user_key: str) -> None:
        with self._lock_for(user_key):
            self._conversations.pop(user_key, None)

    def _lock_for(self, user_key: str) -> threading.Lock:
        with self._locks_guard:
            lock = self._locks.get(user_key)
            if lock is None:
                lock = threading.Lock()
                self._locks[user_key] = lock
            return lock


def last_email_recipients(messages: list[ConversationMessage]) -> tuple[str, ...]:
    for message in reversed(messages):
        recipients = message.metadata.get("email_recipients")
        if isinstance(recipients, (list, tuple)) and recipients:
            return tuple(str(row) for row in recipients if str(row).strip())
    for message in reversed(messages):
        if message.role == "system":
            continue
        match = _ADDRESS.search(message.content)
        if match:
            return (match.group(0).lower(),)
    return ()
