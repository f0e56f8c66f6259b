"""Integration tests for the conversation router."""

from datetime import UTC, datetime

from httpx import AsyncClient

from chat_gateway.models.conversation import Conversation
from chat_gateway.models.user import User
from tests.conftest import create_user, make_session_headers
from tests.conftest import test_session_factory as session_factory


async def _insert_conversation(
    user_id: str, title: str | None, created_at: datetime
) -> str:
    async with session_factory() as session:
        conversation = Conversation(user_id=user_id, title=title, created_at=created_at)
        session.add(conversation)
        await session.commit()
        return conversation.id


class TestListConversations:
    async def test_newest_first_when_created_back_to_back(
        self, authed_client: AsyncClient
    ) -> None:
        created = []
        for i in range(5):
            resp = await authed_client.post("/api/chat", json={"message": f"topic {i}"})
            created.append(resp.json()["data"]["conversationId"])

        resp = await authed_client.get("/api/conversations")

        assert [c["id"] for c in resp.json()["data"]] == created[::-1]

    async def test_newest_first(self, authed_client: AsyncClient, user: User) -> None:
        older = await _insert_conversation(user.id, "older", datetime(2024, 1, 1, tzinfo=UTC))
        newer = await _insert_conversation(user.id, "newer", datetime(2024, 6, 1, tzinfo=UTC))

        resp = await authed_client.get("/api/conversations")

        assert resp.status_code == 200
        assert [c["id"] for c in resp.json()["data"]] == [newer, older]

    async def test_title_from_first_message(self, authed_client: AsyncClient) -> None:
        message = "What is the capital of France and why is it famous?"
        await authed_client.post("/api/chat", json={"message": message})

        resp = await authed_client.get("/api/conversations")

        conversation = resp.json()["data"][0]
        assert conversation["title"] == message[:30]
        assert "createdAt" in conversation

    async def test_untitled_placeholder(self, authed_client: AsyncClient, user: User) -> None:
        await _insert_conversation(user.id, None, datetime(2024, 1, 1, tzinfo=UTC))

        resp = await authed_client.get("/api/conversations")

        assert resp.json()["data"][0]["title"] == "Empty Conversation"

    async def test_excludes_other_users(self, authed_client: AsyncClient) -> None:
        stranger = await create_user("stranger")
        await _insert_conversation(stranger.id, "theirs", datetime(2024, 1, 1, tzinfo=UTC))

        resp = await authed_client.get("/api/conversations")

        assert resp.json()["data"] == []


class TestDeleteConversation:
    async def test_delete_cascades(self, authed_client: AsyncClient) -> None:
        created = await authed_client.post("/api/chat", json={"message": "to delete"})
        conversation_id = created.json()["data"]["conversationId"]

        resp = await authed_client.delete(
            "/api/conversations", params={"id": conversation_id}
        )

        assert resp.status_code == 200
        body = resp.json()
        assert body["message"] == "Conversation deleted"
        assert body["data"] == {"id": conversation_id, "deleted": True}

        messages = await authed_client.get(
            "/api/chat", params={"conversationId": conversation_id}
        )
        assert messages.status_code == 404
        listing = await authed_client.get("/api/conversations")
        assert listing.json()["data"] == []

    async def test_delete_twice(self, authed_client: AsyncClient) -> None:
        created = await authed_client.post("/api/chat", json={"message": "once"})
        conversation_id = created.json()["data"]["conversationId"]

        await authed_client.delete("/api/conversations", params={"id": conversation_id})
        resp = await authed_client.delete(
            "/api/conversations", params={"id": conversation_id}
        )

        assert resp.status_code == 404

    async def test_delete_foreign(self, authed_client: AsyncClient) -> None:
        stranger = await create_user("stranger")
        conversation_id = await _insert_conversation(
            stranger.id, "theirs", datetime(2024, 1, 1, tzinfo=UTC)
        )

        resp = await authed_client.delete(
            "/api/conversations", params={"id": conversation_id}
        )
        assert resp.status_code == 404

        owner = await authed_client.get(
            "/api/conversations", headers=make_session_headers(stranger.id)
        )
        assert [c["id"] for c in owner.json()["data"]] == [conversation_id]

    async def test_missing_id(self, authed_client: AsyncClient) -> None:
        resp = await authed_client.delete("/api/conversations")
        assert resp.status_code == 422
