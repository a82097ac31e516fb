import unittest

from actionagent.errors import ModelTransientOverload
from actionagent.services.chat_responder import (
    CHAT_SYSTEM_PROMPT,
    FALLBACK_REPLY,
    LlmChatResponder,
)
from actionagent.services.llm_client import ModelClient, ModelResponse
from actionagent.tools.base import ConversationMessage


class _RecordingModelClient(ModelClient):
    def __init__(self, text: str) -> None:
        self.text = text
        self.calls = []

    def complete(self, *, system_prompt, messages, tools=None):
        self.calls.append((system_prompt, messages, tools))
        return ModelResponse(text=self.text)


class _FlakyModelClient(ModelClient):
    def __init__(self, failures: int, text: str) -> None:
        self.failures = failures
        self.text = text
        self.calls = 0

    def complete(self, *, system_prompt, messages, tools=None):
        _ = (system_prompt, messages, tools)
        self.calls += 1
        if self.calls <= self.failures:
            raise ModelTransientOverload("overloaded", status_code=503)
        return ModelResponse(text=self.text)


class LlmChatResponderTests(unittest.TestCase):
    def test_recent_history_is_sent_without_system_rows(self):
        client = _RecordingModelClient("¡Hola!")
        history = [
            ConversationMessage(role="system", content="sys"),
            ConversationMessage(role="user", content="uno"),
            ConversationMessage(role="assistant", content="dos"),
            ConversationMessage(role="user", content="tres"),
        ]
        reply = LlmChatResponder(client, context_messages=2).reply("¿qué tal?", history)
        self.assertEqual(reply, "¡Hola!")
        system_prompt, messages, tools = client.calls[0]
        self.assertEqual(system_prompt, CHAT_SYSTEM_PROMPT)
        self.assertIsNone(tools)
        self.assertEqual(
            messages,
            [
                {"role": "assistant", "content": "dos"},
                {"role": "user", "content": "tres"},
                {"role": "user", "content": "¿qué tal?"},
            ],
        )

    def test_empty_model_text_uses_fallback(self):
        reply = LlmChatResponder(_RecordingModelClient("")).reply("hola", [])
        self.assertEqual(reply, FALLBACK_REPLY)

    def test_overloaded_chat_call_is_retried(self):
        client = _FlakyModelClient(failures=2, text="Aquí estoy")
        sleeps = []
        reply = LlmChatResponder(client, sleep=sleeps.append).reply("hola", [])
        self.assertEqual(reply, "Aquí estoy")
        self.assertEqual(client.calls, 3)
        self.assertEqual(sleeps, [0.2, 0.4])

    def test_overload_after_budget_is_raised(self):
        client = _FlakyModelClient(failures=3, text="nunca")
        with self.assertRaises(ModelTransientOverload):
            LlmChatResponder(client, sleep=lambda _: None).reply("hola", [])
        self.assertEqual(client.calls, 3)


if __name__ == "__main__":
    unittest.main()
