import unittest

from api_case import ApiTestCase


class TestSocialFeed(ApiTestCase):

    def post(self, author, post_type="weight_update", data=None, **extra):
        payload = {"type": post_type, "data": data if data is not None else {"weight": 80.5}}
        payload.update(extra)
        return self.client.post("/api/v1/social/post", json=payload, headers=author["headers"])

    def feed(self, viewer, **params):
        resp = self.client.get("/api/v1/social/feed", params=params, headers=viewer["headers"])
        self.assertEqual(resp.status_code, 200, resp.text)
        return resp.json()

    def comment(self, user, post_id, text):
        return self.client.post(
            f"/api/v1/social/post/{post_id}/comment", json={"text": text}, headers=user["headers"]
        )

    def test_create_post_defaults(self) -> None:
        alice = self.register("Alice")
        resp = self.post(alice, "weight_update", {"weight": 80.5, "change": -1.2}, visibility="friends")
        self.assertEqual(resp.status_code, 201, resp.text)
        post = resp.json()["post"]

        self.assertEqual(post["type"], "weight_update")
        self.assertEqual(post["visibility"], "friends")
        self.assertEqual(post["content"], "")
        self.assertEqual(post["data"], {"weight": 80.5, "change": -1.2})
        self.assertEqual(post["likes"], [])
        self.assertEqual(post["like_count"], 0)
        self.assertFalse(post["liked"])
        self.assertEqual(post["comments"], [])
        self.assertEqual(post["user"]["id"], alice["id"])

    def test_create_post_requires_type(self) -> None:
        alice = self.register("Alice")

        resp = self.client.post("/api/v1/social/post", json={"content": "no type"}, headers=alice["headers"])
        self.assertError(resp, 400, "validation_error")

        resp = self.client.post(
            "/api/v1/social/post", json={"type": "not_a_type", "data": {}}, headers=alice["headers"]
        )
        self.assertError(resp, 422, "validation_error")

    def test_weight_update_without_data_reaches_friends(self) -> None:
        alice = self.register("Alice")
        bob = self.register("Bob")
        stranger = self.register("Stranger")
        self.befriend(alice, bob)

        resp = self.client.post(
            "/api/v1/social/post", json={"type": "weight_update", "visibility": "friends"}, headers=alice["headers"]
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        post = resp.json()["post"]
        self.assertEqual(post["data"], {})
        self.assertEqual(post["visibility"], "friends")

        self.assertIn(post["id"], [p["id"] for p in self.feed(bob)["posts"]])
        self.assertNotIn(post["id"], [p["id"] for p in self.feed(stranger)["posts"]])

    def test_payload_fields_are_optional_and_stored_as_sent(self) -> None:
        alice = self.register("Alice")

        resp = self.client.post(
            "/api/v1/social/post",
            json={"type": "weight_update", "content": "feeling great"},
            headers=alice["headers"]
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json()["post"]["content"], "feeling great")

        # Cleared number inputs arrive as empty strings
        resp = self.post(alice, "weight_update", {"weight": ""})
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json()["post"]["data"], {"weight": ""})

        resp = self.post(alice, "progress_update", {"weight": "70", "note": None})
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json()["post"]["data"], {"weight": "70", "note": None})

        for post_type in ("meal_plan", "custom_meal", "calorie_log", "workout_log", "progress_update"):
            resp = self.post(alice, post_type, {})
            self.assertEqual(resp.status_code, 201, resp.text)
            self.assertEqual(resp.json()["post"]["data"], {})

    def test_payload_field_of_wrong_kind(self) -> None:
        alice = self.register("Alice")
        self.assertError(self.post(alice, "weight_update", {"weight": {"kg": 70}}), 400, "validation_error")
        self.assertError(self.post(alice, "workout_log", {"workout": ["run"]}), 400, "validation_error")

    def test_content_length_limit(self) -> None:
        alice = self.register("Alice")

        resp = self.post(alice, content="x" * 500)
        self.assertEqual(resp.status_code, 201, resp.text)

        # Length is measured after trimming
        resp = self.post(alice, content="  " + "y" * 500 + "  ")
        self.assertEqual(resp.status_code, 201, resp.text)
        self.assertEqual(resp.json()["post"]["content"], "y" * 500)

        self.assertError(self.post(alice, content="x" * 501), 400, "validation_error")

    def test_comment_and_reply_length_limits(self) -> None:
        alice = self.register("Alice")
        post_id = self.post(alice).json()["post"]["id"]

        resp = self.comment(alice, post_id, "c" * 300)
        self.assertEqual(resp.status_code, 200, resp.text)
        comment_id = resp.json()["comments"][0]["id"]
        self.assertError(self.comment(alice, post_id, "c" * 301), 400, "validation_error")

        reply_url = f"/api/v1/social/post/{post_id}/comment/{comment_id}/reply"
        resp = self.client.post(reply_url, json={"text": "r" * 300}, headers=alice["headers"])
        self.assertEqual(resp.status_code, 200, resp.text)
        resp = self.client.post(reply_url, json={"text": "r" * 301}, headers=alice["headers"])
        self.assertError(resp, 400, "validation_error")

        comments = self.client.post(reply_url, json={"text": " ok "}, headers=alice["headers"]).json()["comments"]
        self.assertEqual([r["text"] for r in comments[0]["replies"]], ["r" * 300, "ok"])

    def test_payload_keys_are_camel_case_and_extras_kept(self) -> None:
        alice = self.register("Alice")
        resp = self.post(
            alice,
            "meal_plan",
            {"title": "Lean week", "planType": "cut", "totalCalories": 1800, "source": "coach"},
            content="My plan"
        )
        self.assertEqual(resp.status_code, 201, resp.text)
        data = resp.json()["post"]["data"]
        self.assertEqual(data["planType"], "cut")
        self.assertEqual(data["totalCalories"], 1800)
        self.assertEqual(data["source"], "coach")
        self.assertNotIn("plan_type", data)

        resp = self.post(alice, "progress_update", {"bodyFat": 18.5, "muscleMass": 40})
        data = resp.json()["post"]["data"]
        self.assertEqual(data, {"bodyFat": 18.5, "muscleMass": 40})

    def test_feed_visibility(self) -> None:
        alice = self.register("Alice")
        bob = self.register("Bob")
        stranger = self.register("Stranger")
        self.befriend(alice, bob)

        post_id = self.post(alice, "weight_update", {"weight": 79}, visibility="friends").json()["post"]["id"]
        stranger_post = self.post(stranger).json()["post"]["id"]

        self.assertIn(post_id, [p["id"] for p in self.feed(bob)["posts"]])
        self.assertIn(post_id, [p["id"] for p in self.feed(alice)["posts"]])

        stranger_feed = [p["id"] for p in self.feed(stranger)["posts"]]
        self.assertNotIn(post_id, stranger_feed)
        self.assertEqual(stranger_feed, [stranger_post])

        allowed = {alice["id"], bob["id"]}
        for post in self.feed(bob)["posts"]:
            self.assertIn(post["user"]["id"], allowed)

    def test_feed_pagination(self) -> None:
        alice = self.register("Alice")
        post_ids = [self.post(alice, "calorie_log", {"calories": 1500 + i}).json()["post"]["id"] for i in range(5)]

        page1 = self.feed(alice, page=1, limit=2)
        self.assertEqual([p["id"] for p in page1["posts"]], post_ids[::-1][:2])
        self.assertEqual(page1["total"], 5)
        self.assertEqual(page1["page"], 1)
        self.assertTrue(page1["has_more"])

        page3 = self.feed(alice, page=3, limit=2)
        self.assertEqual([p["id"] for p in page3["posts"]], [post_ids[0]])
        self.assertFalse(page3["has_more"])

    def test_delete_post_ownership(self) -> None:
        alice = self.register("Alice")
        bob = self.register("Bob")
        self.befriend(alice, bob)
        post_id = self.post(alice).json()["post"]["id"]
        self.comment(bob, post_id, "nice!")
        self.client.put(f"/api/v1/social/post/{post_id}/like", headers=bob["headers"])

        resp = self.client.delete(f"/api/v1/social/post/{post_id}", headers=bob["headers"])
        self.assertError(resp, 403, "forbidden")

        resp = self.client.delete(f"/api/v1/social/post/{post_id}", headers=alice["headers"])
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertNotIn(post_id, [p["id"] for p in self.feed(alice)["posts"]])

        resp = self.client.delete(f"/api/v1/social/post/{post_id}", headers=alice["headers"])
        self.assertError(resp, 404, "not_found")
        resp = self.client.put(f"/api/v1/social/post/{post_id}/like", headers=alice["headers"])
        self.assertError(resp, 404, "not_found")

    def test_like_toggle(self) -> None:
        alice = self.register("Alice")
        bob = self.register("Bob")
        post_id = self.post(alice).json()["post"]["id"]

        resp = self.client.put(f"/api/v1/social/post/{post_id}/like", headers=alice["headers"])
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json(), {"likes": 1, "liked": True})

        resp = self.client.put(f"/api/v1/social/post/{post_id}/like", headers=bob["headers"])
        self.assertEqual(resp.json(), {"likes": 2, "liked": True})

        resp = self.client.put(f"/api/v1/social/post/{post_id}/like", headers=alice["headers"])
        self.assertEqual(resp.json(), {"likes": 1, "liked": False})

        post = self.feed(alice)["posts"][0]
        self.assertEqual(post["likes"], [bob["id"]])
        self.assertFalse(post["liked"])

    def test_comments_and_replies(self) -> None:
        alice = self.register("Alice")
        bob = self.register("Bob")
        carol = self.register("Carol")
        self.befriend(alice, bob)
        post_id = self.post(alice).json()["post"]["id"]

        resp = self.comment(bob, post_id, "  nice!  ")
        self.assertEqual(resp.status_code, 200, resp.text)
        comments = resp.json()["comments"]
        self.assertEqual(len(comments), 1)
        self.assertEqual(comments[0]["text"], "nice!")
        self.assertEqual(comments[0]["user"]["name"], "Bob")
        self.assertEqual(comments[0]["replies"], [])
        comment_id = comments[0]["id"]

        # Anyone may reply
        resp = self.client.post(
            f"/api/v1/social/post/{post_id}/comment/{comment_id}/reply",
            json={"text": "thanks"},
            headers=carol["headers"]
        )
        self.assertEqual(resp.status_code, 200, resp.text)
        replies = resp.json()["comments"][0]["replies"]
        self.assertEqual([(r["text"], r["user"]["name"]) for r in replies], [("thanks", "Carol")])

        self.assertError(self.comment(bob, post_id, "   "), 400, "validation_error")
        self.assertError(self.comment(bob, 999999, "hello"), 404, "not_found")
        resp = self.client.post(
            f"/api/v1/social/post/{post_id}/comment/999999/reply", json={"text": "hi"}, headers=bob["headers"]
        )
        self.assertError(resp, 404, "not_found")
        resp = self.client.post(
            f"/api/v1/social/post/{post_id}/comment/{comment_id}/reply", json={"text": ""}, headers=bob["headers"]
        )
        self.assertError(resp, 400, "validation_error")

    def test_delete_comment_permissions(self) -> None:
        alice = self.register("Alice")
        bob = self.register("Bob")
        carol = self.register("Carol")
        self.befriend(alice, bob)
        post_id = self.post(alice).json()["post"]["id"]

        bob_comment = self.comment(bob, post_id, "nice!").json()["comments"][0]["id"]
        comments = self.comment(alice, post_id, "thanks").json()["comments"]
        alice_comment = comments[1]["id"]
        self.client.post(
            f"/api/v1/social/post/{post_id}/comment/{bob_comment}/reply", json={"text": "agreed"}, headers=alice["headers"]
        )

        # Neither the comment author nor the post author
        resp = self.client.delete(f"/api/v1/social/post/{post_id}/comment/{alice_comment}", headers=carol["headers"])
        self.assertError(resp, 403, "forbidden")
        resp = self.client.delete(f"/api/v1/social/post/{post_id}/comment/{alice_comment}", headers=bob["headers"])
        self.assertError(resp, 403, "forbidden")

        # The post author may delete any comment on their post
        resp = self.client.delete(f"/api/v1/social/post/{post_id}/comment/{bob_comment}", headers=alice["headers"])
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual([c["id"] for c in resp.json()["comments"]], [alice_comment])

        resp = self.client.delete(f"/api/v1/social/post/{post_id}/comment/{bob_comment}", headers=alice["headers"])
        self.assertError(resp, 404, "not_found")
        resp = self.client.delete(f"/api/v1/social/post/999999/comment/{alice_comment}", headers=alice["headers"])
        self.assertError(resp, 404, "not_found")

    def test_comment_author_can_delete_own_comment(self) -> None:
        alice = self.register("Alice")
        bob = self.register("Bob")
        post_id = self.post(alice).json()["post"]["id"]
        comment_id = self.comment(bob, post_id, "great work").json()["comments"][0]["id"]

        resp = self.client.delete(f"/api/v1/social/post/{post_id}/comment/{comment_id}", headers=bob["headers"])
        self.assertEqual(resp.status_code, 200, resp.text)
        self.assertEqual(resp.json()["comments"], [])


if __name__ == "__main__":
    unittest.main()
