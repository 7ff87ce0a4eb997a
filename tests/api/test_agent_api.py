import pytest
from fastapi.testclient import TestClient

from gymagent.coach.conversation_store import InMemoryChatHistoryStore
from gymagent.coach.quick_action import QuickActionService
from gymagent.coach.sessions import SessionRegistry
from gymagent.main import create_app
from gymagent.routing.pipeline import ReasoningPipeline
from gymagent.routing.streaming import StreamingChatService
from gymagent.tools.catalog import build_tool_registry


@pytest.fixture
def registry(router):
    return SessionRegistry(store=InMemoryChatHistoryStore(), router=router)


@pytest.fixture
def client(router, registry):
    app = create_app(
        session_registry=registry,
        quick_action_service=QuickActionService(build_tool_registry(ReasoningPipeline(router))),
        streaming_chat_service=StreamingChatService(router, registry.store),
    )
    return TestClient(app)


def _create_session(client) -> str:
    response = client.post("/agent/sessions", json={"user_id": "user-1"})
    assert response.status_code == 200
    return response.json()["session_id"]


def test_create_session(client):
    session_id = _create_session(client)

    assert session_id.startswith("s_")


def test_send_message(client):
    session_id = _create_session(client)

    response = client.post(f"/agent/sessions/{session_id}/messages", json={"message": "double it"})

    assert response.status_code == 200
    body = response.json()
    assert body["intent"] == "CANNOT_DOUBLE_NO_WORKOUT"
    assert "no active workout to double" in body["response"]
    assert body["clarification_pending"] is False


def test_clarification_round_trip(client, registry, workout_w1):
    session_id = _create_session(client)
    registry.get_agent(session_id).preset_workout(workout_w1)

    asked = client.post(f"/agent/sessions/{session_id}/messages", json={"message": "double it"}).json()
    answered = client.post(f"/agent/sessions/{session_id}/messages", json={"message": "1"}).json()

    assert asked["clarification_pending"] is True
    assert asked["intent"] == "DOUBLE_WORKOUT"
    assert answered["intent"] == "USER_PROVIDED_CLARIFICATION"
    assert answered["response"] == "Workout modified successfully: DOUBLE_SETS"
    current = registry.get_agent(session_id).get_memory().working_memory.current_workout
    assert current.exercises[0].sets == 6


def test_message_history(client):
    session_id = _create_session(client)
    client.post(f"/agent/sessions/{session_id}/messages", json={"message": "hello"})

    response = client.get(f"/agent/sessions/{session_id}/messages")

    assert response.status_code == 200
    roles = [message["role"] for message in response.json()["messages"]]
    assert roles == ["user", "assistant"]


def test_unknown_session_returns_404(client):
    response = client.post("/agent/sessions/missing/messages", json={"message": "hi"})

    assert response.status_code == 404
    assert response.json()["detail"] == "Unknown session: missing"


def test_empty_message_is_rejected(client):
    session_id = _create_session(client)

    response = client.post(f"/agent/sessions/{session_id}/messages", json={"message": ""})

    assert response.status_code == 422


def test_stream_reply(client, fast_backend):
    fast_backend.chunks = ["Keep ", "your ", "back straight."]
    session_id = _create_session(client)

    response = client.post(f"/agent/sessions/{session_id}/stream", json={"message": "hi"})

    assert response.status_code == 200
    assert response.headers["content-type"].startswith("text/plain")
    assert response.text == "Keep your back straight."
    history = client.get(f"/agent/sessions/{session_id}/messages").json()["messages"]
    assert [(m["role"], m["content"]) for m in history] == [("user", "hi"), ("assistant", "Keep your back straight.")]


def test_stream_unknown_session_returns_404(client):
    response = client.post("/agent/sessions/missing/stream", json={"message": "hi"})

    assert response.status_code == 404


def test_close_session(client, registry):
    session_id = _create_session(client)

    response = client.delete(f"/agent/sessions/{session_id}")

    assert response.status_code == 200
    assert response.json() == {"session_id": session_id, "closed": True}
    assert session_id not in registry
    assert len(registry) == 0
    assert client.post(f"/agent/sessions/{session_id}/messages", json={"message": "hi"}).status_code == 404


def test_close_unknown_session_returns_404(client):
    assert client.delete("/agent/sessions/missing").status_code == 404


def test_create_app_rejects_registry_without_store(router):
    with pytest.raises(ValueError, match="chat history store"):
        create_app(session_registry=SessionRegistry(router=router))


def test_quick_action_navigation(client):
    response = client.post("/agent/quick-action", json={"message": "go to my profile", "user_id": "user-1"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["navigation_target"] == "/profile"


def test_healthz(client):
    assert client.get("/healthz").json() == {"status": "ok"}
