import threading
import unittest

from actionagent.services.conversation_store import (
    InMemoryConversationStore,
    last_email_recipients,
)
from actionagent.tools.base import ConversationMessage


class InMemoryConversationStoreTests(unittest.TestCase):
    def test_first_append_seeds_system_message(self):
        store = InMemoryConversationStore()
        store.append("u-1", ConversationMessage(role="user", content="hola"))
        rows = store.get("u-1")
        self.assertEqual([row.role for row in rows], ["system", "user"])
        self.assertEqual(store.get("u-2"), [])

    def test_trim_keeps_system_message(self):
        store = InMemoryConversationStore(max_messages=4)
        for index in range(6):
            store.append("u-1", ConversationMessage(role="user", content=f"m{index}"))
        rows = store.get("u-1")
        self.assertEqual(len(rows), 4)
        self.assertEqual(rows[0].role, "system")
        self.assertEqual([row.content for row in rows[1:]], ["m3", "m4", "m5"])

    def test_concurrent_appends_are_not_lost(self):
        store = InMemoryConversationStore(max_messages=500)

        def worker(prefix: str) -> None:
            for index in range(50):
                store.append("u-1", ConversationMessage(role="user", content=f"{prefix}{index}"))

        threads = [threading.Thread(target=worker, args=(name,)) for name in "abcd"]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        self.assertEqual(len(store.get("u-1")), 201)

    def test_concurrent_exchanges_stay_paired(self):
        store = InMemoryConversationStore(max_messages=500)

        def worker(prefix: str) -> None:
            for index in range(25):
                store.append_many(
                    "u-1",
                    [
                        ConversationMessage(role="user", content=f"{prefix}{index}"),
                        ConversationMessage(role="assistant", content=f"{prefix}{index}"),
                    ],
                )

        threads = [threading.Thread(target=worker, args=(name,)) for name in "abcd"]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        rows = store.get("u-1")[1:]
        self.assertEqual(len(rows), 200)
        for user, assistant in zip(rows[::2], rows[1::2]):
            self.assertEqual(user.role, "user")
            self.assertEqual(assistant.role, "assistant")
            self.assertEqual(user.content, assistant.content)

    def test_reset_clears_history(self):
        store = InMemoryConversationStore()
        store.append("u-1", ConversationMessage(role="user", content="hola"))
        store.reset("u-1")
        self.assertEqual(store.get("u-1"), [])


class LastEmailRecipientsTests(unittest.TestCase):
    def test_metadata_wins_over_text(self):
        messages = [
            ConversationMessage(role="user", content="escribe a otro@x.com"),
            ConversationMessage(
                role="assistant",
                content="Correo enviado",
                metadata={"email_recipients": ["ana@x.com"]},
            ),
        ]
        self.assertEqual(last_email_recipients(messages), ("ana@x.com",))

    def test_falls_back_to_latest_address_in_text(self):
        messages = [
            ConversationMessage(role="system", content="root@system.com"),
            ConversationMessage(role="user", content="Envía un correo a Luis@Y.es"),
            ConversationMessage(role="assistant", content="Hecho."),
        ]
        self.assertEqual(last_email_recipients(messages), ("luis@y.es",))
        self.assertEqual(last_email_recipients([]), ())


if __name__ == "__main__":
    unittest.main()
