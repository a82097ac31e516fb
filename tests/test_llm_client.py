import json
import unittest
from unittest.mock import MagicMock, patch

import requests

from actionagent.errors import ModelHardFailure, ModelTransientOverload
from actionagent.services.llm_client import (
    OpenAICompatibleClient,
    OpenAICompatibleConfig,
    extract_first_json_object,
    parse_chat_completion,
)
from actionagent.tools.registry import SEND_EMAIL_TOOL


def _client() -> OpenAICompatibleClient:
    return OpenAICompatibleClient(
        OpenAICompatibleConfig(
            provider="groq",
            model="llama-3.3-70b-versatile",
            api_key="key-1",
            timeout_seconds=5,
        )
    )


def _response(status_code: int, body: object) -> MagicMock:
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.text = json.dumps(body)
    response.json.return_value = body
    return response


class ParseChatCompletionTests(unittest.TestCase):
    def test_tool_call_arguments_are_decoded(self):
        parsed = parse_chat_completion(
            {
                "choices": [
                    {
                        "message": {
                            "content": None,
                            "tool_calls": [
                                {
                                    "id": "call-1",
                                    "type": "function",
                                    "function": {
                                        "name": "send_email",
                                        "arguments": '{"to": ["ana@x.com"], "subject": "Hola"}',
                                    },
                                }
                            ],
                        }
                    }
                ]
            }
        )
        self.assertEqual(parsed.text, "")
        self.assertEqual(parsed.tool_call.name, "send_email")
        self.assertEqual(parsed.tool_call.arguments["to"], ["ana@x.com"])

    def test_text_only_answer(self):
        parsed = parse_chat_completion({"choices": [{"message": {"content": " Hola "}}]})
        self.assertEqual(parsed.text, "Hola")
        self.assertIsNone(parsed.tool_call)

    def test_malformed_payload_is_hard_failure(self):
        with self.assertRaises(ModelHardFailure):
            parse_chat_completion({"choices": []})

    def test_extract_first_json_object_from_noise(self):
        self.assertEqual(extract_first_json_object('texto {"a": 1} fin'), {"a": 1})
        self.assertIsNone(extract_first_json_object("sin json"))


class OpenAICompatibleClientTests(unittest.TestCase):
    def test_request_payload_includes_tools(self):
        body = {"choices": [{"message": {"content": "ok"}}]}
        with patch(
            "actionagent.services.llm_client.requests.post",
            return_value=_response(200, body),
        ) as post_mock:
            result = _client().complete(
                system_prompt="sys",
                messages=[{"role": "user", "content": "hola"}],
                tools=[SEND_EMAIL_TOOL],
            )
        self.assertEqual(result.text, "ok")
        args, kwargs = post_mock.call_args
        self.assertEqual(args[0], "https://api.groq.com/openai/v1/chat/completions")
        payload = kwargs["json"]
        self.assertEqual(payload["messages"][0], {"role": "system", "content": "sys"})
        self.assertEqual(payload["tools"][0]["function"]["name"], "send_email")
        self.assertEqual(payload["tool_choice"], "auto")

    def test_overload_statuses_are_transient(self):
        for status in (503, 529):
            with patch(
                "actionagent.services.llm_client.requests.post",
                return_value=_response(status, {"error": {"message": "busy"}}),
            ):
                with self.assertRaises(ModelTransientOverload) as ctx:
                    _client().complete(system_prompt="s", messages=[])
            self.assertEqual(ctx.exception.status_code, status)

    def test_overloaded_error_type_is_transient(self):
        with patch(
            "actionagent.services.llm_client.requests.post",
            return_value=_response(500, {"error": {"type": "overloaded_error"}}),
        ):
            with self.assertRaises(ModelTransientOverload):
                _client().complete(system_prompt="s", messages=[])

    def test_other_errors_are_hard_failures(self):
        with patch(
            "actionagent.services.llm_client.requests.post",
            return_value=_response(400, {"error": {"type": "invalid_request_error"}}),
        ):
            with self.assertRaises(ModelHardFailure) as ctx:
                _client().complete(system_prompt="s", messages=[])
        self.assertEqual(ctx.exception.status_code, 400)

    def test_timeout_is_hard_failure(self):
        with patch(
            "actionagent.services.llm_client.requests.post",
            side_effect=requests.Timeout("slow"),
        ):
            with self.assertRaises(ModelHardFailure):
                _client().complete(system_prompt="s", messages=[])

    def test_unknown_provider_is_rejected(self):
        with self.assertRaises(ValueError):
            OpenAICompatibleClient(
                OpenAICompatibleConfig(provider="acme", model="m", api_key="k", timeout_seconds=5)
            )


if __name__ == "__main__":
    unittest.main()
