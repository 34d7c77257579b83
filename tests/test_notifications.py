from datetime import timedelta

from auralis.core.utils.timeutils import utcnow
from auralis.main import app
from auralis.services.call_store import get_call_store


NOTIFICATIONS_URL = "/api/v1/notifications/"


def create(client, **overrides):
    payload = {
        "type": "system_alert",
        "title": "Agent offline",
        "message": "The voice agent stopped answering",
    }
    payload.update(overrides)
    return client.post(NOTIFICATIONS_URL, json=payload)


def test_create_notification(client):
    response = create(client, severity="error", relatedType="agent", relatedId="agent_test", metadata={"retries": 3})

    assert response.status_code == 201
    body = response.json()
    assert body["id"] > 0
    assert body["type"] == "system_alert"
    assert body["severity"] == "error"
    assert body["relatedType"] == "agent"
    assert body["isRead"] is False
    assert body["metadata"] == {"retries": 3}


def test_severity_defaults_to_info(client):
    assert create(client).json()["severity"] == "info"


def test_list_filters(client):
    create(client, title="first")
    second = create(client, title="second", severity="critical").json()
    client.post(f"/api/v1/notifications/{second['id']}/read")

    all_items = client.get(NOTIFICATIONS_URL).json()
    assert [n["title"] for n in all_items] == ["second", "first"]

    unread = client.get(NOTIFICATIONS_URL, params={"isRead": "false"}).json()
    assert [n["title"] for n in unread] == ["first"]

    critical = client.get(NOTIFICATIONS_URL, params={"severity": "critical"}).json()
    assert [n["isRead"] for n in critical] == [True]

    assert len(client.get(NOTIFICATIONS_URL, params={"limit": 1}).json()) == 1


def test_mark_unknown_notification_read(client):
    response = client.post("/api/v1/notifications/999/read")

    assert response.status_code == 404
    assert response.json()["error"] == "Notification not found"


def test_cleanup_expired(client):
    create(client, title="old", expiresAt=(utcnow() - timedelta(hours=1)).isoformat())
    create(client, title="fresh", expiresAt=(utcnow() + timedelta(days=1)).isoformat())
    create(client, title="forever")

    response = client.delete("/api/v1/notifications/expired")

    assert response.json() == {"success": True, "deletedCount": 1}
    assert sorted(n["title"] for n in client.get(NOTIFICATIONS_URL).json()) == ["forever", "fresh"]


def test_invalid_notification_is_rejected(client):
    response = create(client, type="not_a_type")

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request"
    assert body["details"].startswith("type")
    assert body["requestId"] == response.headers["X-Request-ID"]

    response = client.get(NOTIFICATIONS_URL, params={"severity": "loud"})
    assert response.status_code == 400


def test_create_without_store_is_a_storage_error(client, unconfigured_store):
    app.dependency_overrides[get_call_store] = lambda: unconfigured_store

    response = create(client)

    assert response.status_code == 500
    assert response.json()["error"] == "Failed to create notification"
    assert client.get(NOTIFICATIONS_URL).json() == []


def test_unknown_route_uses_the_envelope(client):
    response = client.get("/api/v1/nothing-here")

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "Not Found"
    assert "requestId" in body
