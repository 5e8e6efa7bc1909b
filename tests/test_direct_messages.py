import unittest

from api_case import ApiTestCase


class TestDirectMessages(ApiTestCase):

    def dm(self, sender, recipient, text):
        return self.client.post(
            f"/api/v1/messages/dm/{recipient['id']}", json={"text": text}, headers=sender["headers"]
        )

    def thread(self, viewer, other, **params):
        resp = self.client.get(f"/api/v1/messages/dm/{other['id']}", params=params, headers=viewer["headers"])
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()["messages"]

    def test_send_and_read_marking(self) -> None:
        alice = self.register("Alice")
        bob = self.register("Bob")
        self.befriend(alice, bob)

        resp = self.dm(alice, bob, "hi")
        self.assertEqual(resp.status_code, 201, resp.text)
        message = resp.json()["message"]
        self.assertEqual(message["text"], "hi")
        self.assertEqual(message["read_by"], [])
        self.assertEqual(message["sender"]["name"], "Alice")
        self.assertEqual(message["recipient_id"], bob["id"])
        self.assertIsNone(message["group_id"])

        # The sender viewing the thread does not mark their own message
        messages = self.thread(alice, bob)
        self.assertEqual(messages[0]["read_by"], [])

        messages = self.thread(bob, alice)
        self.assertEqual([m["id"] for m in messages], [message["id"]])
        self.assertEqual(messages[0]["read_by"], [bob["id"]])

        # Re-fetching is idempotent
        messages = self.thread(bob, alice)
        self.assertEqual(messages[0]["read_by"], [bob["id"]])

    def test_text_is_trimmed_and_validated(self) -> None:
        alice = self.register("Alice")
        bob = self.register("Bob")
        self.befriend(alice, bob)

        resp = self.dm(alice, bob, "  hello there  ")
        self.assertEqual(resp.json()["message"]["text"], "hello there")

        self.assertError(self.dm(alice, bob, "   "), 400, "validation_error")
        self.assertError(self.dm(alice, bob, "x" * 1001), 400, "validation_error")
        self.assertEqual(self.dm(alice, bob, "x" * 1000).status_code, 201)

    def test_only_friends_can_message(self) -> None:
        alice = self.register("Alice")
        stranger = self.register("Stranger")

        for text in ("hi", "hello", "x" * 1000):
            self.assertError(self.dm(alice, stranger, text), 403, "forbidden", "not_friends")

        # Unfriending closes the channel again
        bob = self.register("Bob")
        self.befriend(alice, bob)
        self.assertEqual(self.dm(alice, bob, "hey").status_code, 201)
        self.client.delete(f"/api/v1/friends/{bob['id']}", headers=bob["headers"])
        self.assertError(self.dm(alice, bob, "still there?"), 403, "forbidden", "not_friends")

    def test_thread_order_and_limit(self) -> None:
        alice = self.register("Alice")
        bob = self.register("Bob")
        carol = self.register("Carol")
        self.befriend(alice, bob)
        self.befriend(alice, carol)

        for i in range(5):
            sender, recipient = (alice, bob) if i % 2 == 0 else (bob, alice)
            self.assertEqual(self.dm(sender, recipient, f"m{i}").status_code, 201)
        self.dm(alice, carol, "other thread")

        texts = [m["text"] for m in self.thread(alice, bob)]
        self.assertEqual(texts, ["m0", "m1", "m2", "m3", "m4"])

        # Most recent N, still oldest first
        texts = [m["text"] for m in self.thread(alice, bob, limit=2)]
        self.assertEqual(texts, ["m3", "m4"])

    def test_thread_with_unknown_user(self) -> None:
        alice = self.register("Alice")
        resp = self.client.get("/api/v1/messages/dm/999999", headers=alice["headers"])
        self.assertError(resp, 404, "not_found")

    def test_conversations(self) -> None:
        alice = self.register("Alice")
        bob = self.register("Bob")
        carol = self.register("Carol")
        self.befriend(alice, bob)
        self.befriend(alice, carol)

        self.dm(bob, alice, "from bob 1")
        self.dm(bob, alice, "from bob 2")
        self.dm(alice, carol, "to carol")

        resp = self.client.get("/api/v1/messages/conversations", headers=alice["headers"])
        self.assertEqual(resp.status_code, 200, resp.text)
        conversations = resp.json()["conversations"]

        # Newest conversation first
        self.assertEqual([c["user"]["id"] for c in conversations], [carol["id"], bob["id"]])
        self.assertEqual(conversations[0]["last_message"]["text"], "to carol")
        self.assertEqual(conversations[0]["unread"], 0)
        self.assertEqual(conversations[1]["last_message"]["text"], "from bob 2")
        self.assertEqual(conversations[1]["unread"], 2)

        self.thread(alice, bob)
        conversations = self.client.get("/api/v1/messages/conversations", headers=alice["headers"]).json()["conversations"]
        self.assertEqual({c["user"]["id"]: c["unread"] for c in conversations}, {bob["id"]: 0, carol["id"]: 0})

        # Carol sees her side of the conversation
        conversations = self.client.get("/api/v1/messages/conversations", headers=carol["headers"]).json()["conversations"]
        self.assertEqual([c["user"]["id"] for c in conversations], [alice["id"]])
        self.assertEqual(conversations[0]["unread"], 1)

    def test_requires_authentication(self) -> None:
        resp = self.client.get("/api/v1/messages/conversations")
        self.assertError(resp, 401, "unauthenticated")
        resp = self.client.get("/api/v1/messages/conversations", headers={"Authorization": "Bearer nope"})
        self.assertError(resp, 401, "unauthenticated")


if __name__ == "__main__":
    unittest.main()
