"""
Tests for the HTTP API.

Tests cover:
- POST /messages with each action, and rejections (422)
- GET /messages, /messages/render, /messages/stored
- GET /stats counter semantics
- POST /register and /login
- Health, metrics and request id header
"""

import json

import pytest


VALID_RECIPIENT = "+27718693002"


def send(client, recipient=VALID_RECIPIENT, message="Hi tonight", action="Send"):
    """Helper to compose a message via the API."""
    return client.post(
        "/messages",
        json={"recipient": recipient, "message": message, "action": action},
    )


class TestCreateMessage:
    """Test POST /messages."""

    def test_send_success(self, client, store_path):
        response = send(client)

        assert response.status_code == 200
        data = response.json()
        assert len(data["message_id"]) == 10
        assert data["sequence_number"] == 1
        assert data["message_hash"] == f"{data['message_id'][:2]}:1:HITONIGHT"
        assert data["action"] == "Send"
        assert data["persisted"] is True
        assert data["status"] == "Message successfully sent."

        record = json.loads(store_path.read_text(encoding="utf-8"))
        assert record["messageID"] == data["message_id"]

    def test_action_defaults_to_send(self, client, store_path):
        response = client.post("/messages", json={"recipient": VALID_RECIPIENT, "message": "Hello"})

        assert response.status_code == 200
        assert response.json()["action"] == "Send"
        assert store_path.exists()

    def test_disregard_keeps_store_untouched(self, client, store_path):
        response = send(client, action="Disregard")

        assert response.status_code == 200
        assert response.json()["persisted"] is False
        assert not store_path.exists()

    def test_invalid_recipient_rejected(self, client, store_path):
        response = send(client, recipient="27718693002")

        assert response.status_code == 422
        assert response.json()["rejection"] == "invalid_recipient"
        assert not store_path.exists()

    def test_oversized_body_rejected(self, client):
        response = send(client, message="a" * 251)

        assert response.status_code == 422
        assert response.json()["rejection"] == "oversized_body"

    def test_unknown_action_is_validation_error(self, client):
        response = send(client, action="Delete")
        assert response.status_code == 422

    def test_unencodable_body_store_failure(self, client, store_path):
        response = client.post(
            "/messages",
            content=b'{"recipient":"+27718693002","message":"Hi \\ud800 there","action":"Store"}',
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 500
        assert response.json()["detail"] == "Message could not be written to the message store."
        assert client.get("/stats").json()["accepted"] == 1

    def test_store_write_failure(self, client, tmp_path):
        from quickchat.main import app, get_store_path

        blocker = tmp_path / "blocker"
        blocker.write_text("x", encoding="utf-8")
        app.dependency_overrides[get_store_path] = lambda: str(blocker / "messages.json")

        response = send(client)
        assert response.status_code == 500

        # The message is still in the ledger
        assert client.get("/messages").json()["total"] == 1

    def test_response_includes_request_id_header(self, client):
        response = send(client)
        assert "x-request-id" in response.headers


class TestListMessages:
    """Test GET /messages and /messages/render."""

    def test_empty(self, client):
        response = client.get("/messages")

        assert response.status_code == 200
        assert response.json() == {"data": [], "total": 0}

    def test_accepted_only_in_order(self, client):
        send(client, message="First one")
        send(client, recipient="bad", message="Rejected")
        send(client, message="Second one", action="Disregard")

        data = client.get("/messages").json()
        assert data["total"] == 2
        assert [m["message"] for m in data["data"]] == ["First one", "Second one"]
        assert [m["sequence_number"] for m in data["data"]] == [1, 2]

    def test_render_empty(self, client):
        assert client.get("/messages/render").json() == {"text": "No messages sent."}

    def test_render(self, client):
        send(client)
        text = client.get("/messages/render").json()["text"]

        assert text.startswith("ID: ")
        assert f"Recipient: {VALID_RECIPIENT}, Message: Hi tonight" in text


class TestStoredMessages:
    """Test GET /messages/stored."""

    def test_empty_store(self, client):
        assert client.get("/messages/stored").json() == {"data": [], "total": 0}

    def test_sent_and_stored_only(self, client):
        send(client, message="Sent one", action="Send")
        send(client, message="Stored one", action="Store")
        send(client, message="Dropped one", action="Disregard")

        data = client.get("/messages/stored").json()
        assert data["total"] == 2
        assert [m["message"] for m in data["data"]] == ["Sent one", "Stored one"]
        assert set(data["data"][0]) == {"messageID", "messageNumber", "recipient", "message", "messageHash"}


class TestStats:
    """Test GET /stats."""

    def test_empty(self, client):
        assert client.get("/stats").json() == {"total_messages": 0, "accepted": 0}

    def test_rejections_released(self, client):
        send(client)
        send(client, recipient="27718693002")
        send(client)

        assert client.get("/stats").json() == {"total_messages": 2, "accepted": 2}


class TestAccounts:
    """Test POST /register and /login."""

    REGISTRATION = {"username": "kyl_1", "password": "Ch&&sec@ke99!", "cell_phone": "+27838968976"}

    def test_register_and_login(self, client):
        response = client.post("/register", json=self.REGISTRATION)
        assert response.status_code == 201
        assert response.json() == {"status": "Registration successful"}

        response = client.post("/login", json={
            "username": "kyl_1", "password": "Ch&&sec@ke99!", "first_name": "Kyle", "last_name": "Smith",
        })
        assert response.status_code == 200
        assert response.json()["status"] == "Welcome Kyle, Smith it is great to see you again"

    @pytest.mark.parametrize("field,value", [
        ("username", "kyle!!!!!!!"),
        ("password", "password"),
        ("cell_phone", "08966553"),
    ])
    def test_register_invalid(self, client, field, value):
        response = client.post("/register", json={**self.REGISTRATION, field: value})
        assert response.status_code == 422

    def test_login_wrong_password(self, client):
        client.post("/register", json=self.REGISTRATION)
        response = client.post("/login", json={
            "username": "kyl_1", "password": "wrong", "first_name": "Kyle", "last_name": "Smith",
        })
        assert response.status_code == 401

    def test_login_unknown_user(self, client):
        response = client.post("/login", json={
            "username": "nobody", "password": "x", "first_name": "A", "last_name": "B",
        })
        assert response.status_code == 401


class TestHealthAndMetrics:
    """Test health probes and the metrics endpoint."""

    def test_live(self, client):
        assert client.get("/health/live").json() == {"status": "ok", "reason": None}

    def test_ready(self, client):
        response = client.get("/health/ready")
        assert response.status_code == 200
        assert response.json()["status"] == "ready"

    def test_not_ready_when_store_directory_missing(self, client, tmp_path):
        from quickchat.main import app, get_store_path

        app.dependency_overrides[get_store_path] = lambda: str(tmp_path / "missing" / "messages.json")
        response = client.get("/health/ready")
        assert response.status_code == 503
        assert response.json()["status"] == "not_ready"

    def test_metrics(self, client):
        send(client)
        send(client, recipient="bad")
        response = client.get("/metrics")

        assert response.status_code == 200
        assert "message_outcomes_total" in response.text
        assert 'result="invalid_recipient"' in response.text
