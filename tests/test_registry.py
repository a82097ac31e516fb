import unittest

from actionagent.tools.registry import ToolRegistry, ToolSpec, build_default_registry


class ToolRegistryTests(unittest.TestCase):
    def test_default_registry_lists_both_actions(self):
        self.assertEqual(build_default_registry().list_tools(), ["create_event", "send_email"])

    def test_filter_args_drops_unknown_keys(self):
        spec = build_default_registry().get("create_event")
        self.assertEqual(
            spec.filter_args({"summary": "Demo", "attendees": ["x"], "start": "2025-06-05T10:00:00"}),
            {"summary": "Demo", "start": "2025-06-05T10:00:00"},
        )
        with self.assertRaises(ValueError):
            spec.filter_args(["not", "a", "dict"])

    def test_unregistered_tool_raises(self):
        with self.assertRaises(ValueError):
            ToolRegistry().get("send_email")

    def test_render_for_prompt_lists_arguments(self):
        rendered = build_default_registry().render_for_prompt("send_email")
        self.assertTrue(rendered.startswith("- send_email: "))
        self.assertIn("  - to (array):", rendered)
        self.assertIn("  - driveAttachments (array):", rendered)

    def test_openai_tool_shape(self):
        spec = ToolSpec(name="noop", description="Nada.", input_schema={"type": "object"})
        self.assertEqual(
            spec.to_openai_tool(),
            {
                "type": "function",
                "function": {
                    "name": "noop",
                    "description": "Nada.",
                    "parameters": {"type": "object"},
                },
            },
        )


if __name__ == "__main__":
    unittest.main()
