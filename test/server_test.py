import _bootstrap  # noqa: F401
import unittest

from eth_account import Account
from fastapi.testclient import TestClient

from _support import make_sessionmaker, sign, new_address, FakeIndex, FailingQuerySession
from main import app
from src.ambrodeo.auth import SecretChallengeStore
from src.ambrodeo.database import get_db
from src.ambrodeo.models import Message
from src.ambrodeo.services import TokenResolver

TOKEN = "0x00000000000000000000000000000000000000aa"
UNKNOWN_TOKEN = "0x00000000000000000000000000000000000000bb"


class ServerTestCase(unittest.TestCase):
    def setUp(self) -> None:
        self.Session = make_sessionmaker()

        def override_get_db():
            db = self.Session()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = override_get_db
        self.saved_state = (app.state.secret_store, app.state.token_resolver)
        self.index = FakeIndex(tokens=[TOKEN])
        app.state.secret_store = SecretChallengeStore()
        app.state.token_resolver = TokenResolver(self.index)

        self.client = TestClient(app)
        self.account = Account.create()
        self.address = self.account.address.lower()

    def tearDown(self) -> None:
        app.dependency_overrides.clear()
        app.state.secret_store, app.state.token_resolver = self.saved_state

    def login(self, account=None) -> dict:
        account = account or self.account
        response = self.client.get("/api/secret", headers={"Address": account.address})
        self.assertEqual(response.status_code, 200)
        secret = response.json()["secret"]
        return {"Address": account.address, "Signature": sign(account, secret)}

    def token_likes(self) -> int:
        return self.client.get("/api/token", params={"tokenAddress": TOKEN}).json()["like"]


class AuthenticationTests(ServerTestCase):
    def test_secret_requires_valid_address(self) -> None:
        response = self.client.get("/api/secret", headers={"Address": "nope"})
        self.assertEqual(response.status_code, 400)
        self.assertIn("error", response.json())

    def test_missing_headers_rejected(self) -> None:
        response = self.client.post("/api/user", json={"userName": "alice"})
        self.assertEqual(response.status_code, 400)

        self.client.get("/api/secret", headers={"Address": self.account.address})
        response = self.client.post("/api/user", json={"userName": "alice"}, headers={"Address": self.account.address})
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Missing address or signature in headers"})

    def test_signature_by_other_key_rejected(self) -> None:
        headers = self.login()
        secret = app.state.secret_store.get(self.address)
        headers["Signature"] = sign(Account.create(), secret)

        response = self.client.post("/api/user", json={"userName": "mallory"}, headers=headers)
        self.assertEqual(response.status_code, 401)
        self.assertIsNone(self.client.get("/api/user", params={"address": self.address}).json())

    def test_invalid_json_rejected(self) -> None:
        headers = self.login()
        headers["Content-Type"] = "application/json"
        response = self.client.post("/api/like", content="{not json", headers=headers)
        self.assertEqual(response.status_code, 400)
        self.assertEqual(response.json(), {"error": "Invalid JSON payload"})


class TokenLikeTests(ServerTestCase):
    def test_like_repeat_unlike(self) -> None:
        headers = self.login()

        self.assertEqual(self.client.post("/api/like", json={"tokenAddress": TOKEN, "like": True}, headers=headers).json(), {})
        self.assertEqual(self.token_likes(), 1)

        self.client.post("/api/like", json={"tokenAddress": TOKEN, "like": True}, headers=headers)
        self.assertEqual(self.token_likes(), 1)

        self.client.post("/api/like", json={"tokenAddress": TOKEN, "like": False}, headers=headers)
        self.assertEqual(self.token_likes(), 0)

        status = self.client.get("/api/isliked", params={"address": self.address, "tokenAddress": TOKEN}).json()
        self.assertEqual(status, {"status": False})

    def test_user_likes_listing(self) -> None:
        headers = self.login()
        self.client.post("/api/like", json={"tokenAddress": TOKEN, "like": True}, headers=headers)

        result = self.client.get("/api/userlikes", headers={"Address": self.account.address}).json()
        self.assertEqual(result["total"], 1)
        self.assertEqual(result["data"][0]["tokenAddress"], TOKEN)

    def test_unknown_token_is_404(self) -> None:
        headers = self.login()
        response = self.client.post(
            "/api/message", json={"tokenAddress": UNKNOWN_TOKEN, "message": "gm"}, headers=headers
        )
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"token": "Token not found"})

        db = self.Session()
        try:
            self.assertEqual(db.query(Message).count(), 0)
        finally:
            db.close()


class UserTests(ServerTestCase):
    def test_partial_update_keeps_other_fields(self) -> None:
        headers = self.login()
        self.client.post("/api/user", json={"userName": "alice", "image": "a.png"}, headers=headers)
        self.client.post("/api/user", json={"image": "b.png"}, headers=headers)

        user = self.client.get("/api/user", params={"address": self.account.address}).json()
        self.assertEqual(user["address"], self.address)
        self.assertEqual(user["userName"], "alice")
        self.assertEqual(user["image"], "b.png")

    def test_unknown_user_is_null(self) -> None:
        response = self.client.get("/api/user", params={"address": new_address()})
        self.assertEqual(response.status_code, 200)
        self.assertIsNone(response.json())

    def test_follow_and_isfollowed(self) -> None:
        headers = self.login()
        target = new_address()
        self.client.post("/api/follow", json={"userAddress": target, "add": True}, headers=headers)

        status = self.client.get("/api/isfollowed", params={"address": self.address, "userAddress": target}).json()
        self.assertEqual(status, {"status": True})
        self.assertEqual(self.client.get("/api/user", params={"address": target}).json()["followers"], 1)
        self.assertEqual(self.client.get("/api/user", params={"address": self.address}).json()["followed"], 1)

        followers = self.client.get("/api/followers", params={"userAddress": target}).json()
        self.assertEqual(followers["total"], 1)
        self.assertEqual(followers["data"][0]["address"], self.address)

    def test_isliked_needs_a_target(self) -> None:
        response = self.client.get("/api/isliked", params={"address": self.address})
        self.assertEqual(response.status_code, 400)


class MessageTests(ServerTestCase):
    def post_messages(self, headers, count):
        for i in range(count):
            response = self.client.post(
                "/api/message", json={"tokenAddress": TOKEN, "message": f"m{i}"}, headers=headers
            )
            self.assertEqual(response.status_code, 200)

    def test_listing_paginates_and_marks_liked(self) -> None:
        headers = self.login()
        self.post_messages(headers, 3)

        everything = self.client.get("/api/messages", params={"tokenAddress": TOKEN}).json()
        self.assertEqual(everything["total"], 3)
        liked_id = everything["data"][0]["_id"]

        response = self.client.post("/api/messagelike", json={"id": liked_id, "like": True}, headers=headers)
        self.assertEqual(response.status_code, 200)

        page = self.client.get(
            "/api/messages", params={"tokenAddress": TOKEN, "address": self.address, "skip": 0, "limit": 2}
        ).json()
        self.assertEqual(page["total"], 3)
        self.assertEqual(len(page["data"]), 2)
        marks = {m["_id"]: m["liked"] for m in page["data"]}
        self.assertTrue(marks[liked_id])
        self.assertEqual(sum(marks.values()), 1)

        self.assertEqual(self.client.get("/api/user", params={"address": self.address}).json()["messagesLikes"], 1)

    def test_replies_are_listed_under_parent(self) -> None:
        headers = self.login()
        self.post_messages(headers, 1)
        parent_id = self.client.get("/api/messages", params={"tokenAddress": TOKEN}).json()["data"][0]["_id"]

        replier = Account.create()
        reply = self.client.post(
            "/api/message", json={"tokenAddress": TOKEN, "message": "re", "id": parent_id}, headers=self.login(replier)
        )
        self.assertEqual(reply.status_code, 200)

        top_level = self.client.get("/api/messages", params={"tokenAddress": TOKEN}).json()
        self.assertEqual(top_level["total"], 1)

        replies = self.client.get("/api/messagereplies", params={"id": parent_id}).json()
        self.assertEqual(replies["total"], 1)
        self.assertEqual(replies["data"][0]["id"], parent_id)
        self.assertEqual(self.client.get("/api/user", params={"address": self.address}).json()["messagesReplies"], 1)

    def test_like_unknown_message_is_404(self) -> None:
        headers = self.login()
        response = self.client.post("/api/messagelike", json={"id": "missing", "like": True}, headers=headers)
        self.assertEqual(response.status_code, 404)
        self.assertEqual(response.json(), {"message": "Message not found"})

    def test_sort_ascending_lists_oldest_first(self) -> None:
        headers = self.login()
        self.post_messages(headers, 3)

        oldest_first = self.client.get("/api/messages", params={"tokenAddress": TOKEN, "sort": 1}).json()
        self.assertEqual([m["message"] for m in oldest_first["data"]], ["m0", "m1", "m2"])

        newest_first = self.client.get("/api/messages", params={"tokenAddress": TOKEN}).json()
        self.assertEqual([m["message"] for m in newest_first["data"]], ["m2", "m1", "m0"])

    def test_messages_by_user_marks_the_readers_likes(self) -> None:
        author_headers = self.login()
        self.post_messages(author_headers, 2)
        listed = self.client.get("/api/messagesbyuser", params={"address": self.address}).json()
        self.assertEqual(listed["total"], 2)
        liked_id = listed["data"][0]["_id"]

        reader = Account.create()
        self.client.post("/api/messagelike", json={"id": liked_id, "like": True}, headers=self.login(reader))

        as_reader = self.client.get(
            "/api/messagesbyuser", params={"address": self.address}, headers={"Address": reader.address}
        ).json()
        self.assertEqual({m["_id"]: m["liked"] for m in as_reader["data"]}[liked_id], True)
        self.assertEqual(sum(m["liked"] for m in as_reader["data"]), 1)

        as_author = self.client.get(
            "/api/messagesbyuser", params={"address": self.address}, headers={"Address": self.account.address}
        ).json()
        self.assertFalse(any(m["liked"] for m in as_author["data"]))

        anonymous = self.client.get("/api/messagesbyuser", params={"address": self.address}).json()
        self.assertFalse(any(m["liked"] for m in anonymous["data"]))


class DatastoreFailureTests(ServerTestCase):
    def setUp(self) -> None:
        super().setUp()
        FailingSession = make_sessionmaker(FailingQuerySession)

        def failing_get_db():
            db = FailingSession()
            try:
                yield db
            finally:
                db.close()

        app.dependency_overrides[get_db] = failing_get_db

    def test_read_failure_is_500_with_generic_body(self) -> None:
        with self.assertLogs("main", level="ERROR"):
            response = self.client.get("/api/token", params={"tokenAddress": TOKEN})
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Internal server error"})

    def test_write_failure_is_500_with_generic_body(self) -> None:
        headers = self.login()
        with self.assertLogs("src.ambrodeo.services.feed", level="ERROR"):
            response = self.client.post("/api/messagelike", json={"id": "abc", "like": True}, headers=headers)
        self.assertEqual(response.status_code, 500)
        self.assertEqual(response.json(), {"error": "Internal server error"})


if __name__ == "__main__":
    unittest.main()
