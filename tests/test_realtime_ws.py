"""WebSocket change stream, exercised through Starlette's TestClient."""

from datetime import datetime, timedelta, timezone

import jwt
import pytest
from fastapi.testclient import TestClient
from starlette.websockets import WebSocketDisconnect

import main
from app.api import dependencies
from app.api.dependencies import db_dependency
from app.models.collaboration import CurrentUser
from app.services import database

SECRET = "test-secret"
OWNER = CurrentUser(id="user-owner", email="parent@example.com")
STRANGER = CurrentUser(id="user-stranger", email="stranger@example.com")


def _token(user: CurrentUser) -> str:
    return jwt.encode(
        {
            "sub": user.id,
            "email": user.email,
            "aud": "authenticated",
            "exp": datetime.now(timezone.utc) + timedelta(hours=1),
        },
        SECRET,
        algorithm="HS256",
    )


@pytest.fixture
def client(tmp_path, monkeypatch):
    """TestClient over a file-backed database so every connection sees the same data."""
    db_path = str(tmp_path / "realtime.db")

    async def create_tables():
        await database.create_tables(db_path)

    async def override_db():
        async with database.get_db(db_path) as conn:
            yield conn

    monkeypatch.setattr(dependencies, "AUTH_JWT_SECRET", SECRET)
    monkeypatch.setattr(main, "create_tables", create_tables)
    main.app.dependency_overrides[db_dependency] = override_db
    with TestClient(main.app) as test_client:
        yield test_client
    main.app.dependency_overrides.clear()


def test_feeding_change_is_pushed(client: TestClient):
    headers = {"Authorization": f"Bearer {_token(OWNER)}"}
    baby = client.post("/babies", json={"name": "Aiden", "birth_date": "2025-03-02"}, headers=headers).json()

    with client.websocket_connect(f"/ws/babies/{baby['id']}?token={_token(OWNER)}") as ws:
        assert ws.receive_json() == {"event": "CONNECTED", "baby_id": baby["id"]}
        created = client.post(
            f"/babies/{baby['id']}/feedings",
            json={"timestamp": "2025-03-03T08:00:00Z", "type": "formula", "amount": 90},
            headers=headers,
        ).json()
        event = ws.receive_json()

    assert event["event_type"] == "INSERT"
    assert event["table"] == "feeding_records"
    assert event["baby_id"] == baby["id"]
    assert event["new"]["id"] == created["id"]
    assert client.get("/health").json()["realtime_channels"] == 0


def test_stranger_is_refused(client: TestClient):
    headers = {"Authorization": f"Bearer {_token(OWNER)}"}
    baby = client.post("/babies", json={"name": "Aiden", "birth_date": "2025-03-02"}, headers=headers).json()

    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect(f"/ws/babies/{baby['id']}?token={_token(STRANGER)}") as ws:
            ws.receive_json()


def test_invalid_token_is_refused(client: TestClient):
    with pytest.raises(WebSocketDisconnect):
        with client.websocket_connect("/ws/babies/1?token=garbage") as ws:
            ws.receive_json()


def test_missing_server_secret_is_refused(client: TestClient, monkeypatch):
    monkeypatch.setattr(dependencies, "AUTH_JWT_SECRET", "")
    with pytest.raises(WebSocketDisconnect) as refused:
        with client.websocket_connect(f"/ws/babies/1?token={_token(OWNER)}") as ws:
            ws.receive_json()
    assert refused.value.code == 1008
