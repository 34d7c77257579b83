import asyncio

import pytest

from auralis.core.config import get_settings
from auralis.core.errors import VendorError
from auralis.main import app
from auralis.services.call_service import generate_call_id

from conftest import make_settings


def test_generate_call_id_format():
    call_id = generate_call_id()
    prefix, millis, suffix = call_id.split("_")
    assert prefix == "call"
    assert millis.isdigit() and len(millis) == 13
    assert len(suffix) == 9 and suffix.isalnum() and suffix == suffix.lower()
    assert generate_call_id() != call_id


def test_initiate_call(client, store, voice_agent):
    response = client.post("/api/v1/calls", json={"phoneNumber": "(650) 253-0000"})

    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["status"] == "calling"
    assert body["phoneNumber"] == "+16502530000"
    assert body["elevenlabsCallId"] == "conv_123"
    assert body["agentName"] == "Auralis AI"
    assert body["agentId"] == "agent_test"
    assert voice_agent.calls == ["+16502530000"]

    record = asyncio.run(store.get_record(body["callId"]))
    assert record.status == "calling"
    assert record.elevenlabs_call_id == "conv_123"
    assert record.twilio_call_sid == "CA123"
    assert record.to_number == "+16502530000"
    assert record.started_at is not None

    logs = asyncio.run(store.list_call_logs(body["callId"]))
    assert logs[0].type == "call_initiated"


@pytest.mark.parametrize("missing", ["ELEVENLABS_API_KEY", "ELEVENLABS_AGENT_ID", "ELEVENLABS_PHONE_NUMBER_ID"])
def test_missing_credentials_block_the_call(client, store, voice_agent, missing):
    app.dependency_overrides[get_settings] = lambda: make_settings(**{missing: ""})

    response = client.post("/api/v1/calls", json={"phoneNumber": "+16502530000"})

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "ElevenLabs configuration missing"
    assert missing in body["details"]
    assert body["requestId"]
    assert voice_agent.calls == []
    assert asyncio.run(store.list_recent()) == []


@pytest.mark.parametrize("phone, error", [
    ("", "Phone number is required"),
    ("   ", "Phone number is required"),
    (None, "Phone number is required"),
    ("12", "Invalid phone number"),
])
def test_invalid_phone_number(client, store, voice_agent, phone, error):
    response = client.post("/api/v1/calls", json={"phoneNumber": phone})

    assert response.status_code == 400
    assert response.json()["error"] == error
    assert voice_agent.calls == []
    assert asyncio.run(store.list_recent()) == []


def test_vendor_error_is_passed_through_and_recorded(client, store, voice_agent):
    voice_agent.error = VendorError(
        "ElevenLabs API error",
        vendor="voice_agent",
        status_code=422,
        details="agent_phone_number_id is invalid",
    )

    response = client.post("/api/v1/calls", json={"phoneNumber": "+16502530000"})

    assert response.status_code == 422
    body = response.json()
    assert body["error"] == "ElevenLabs API error"
    assert body["details"] == "agent_phone_number_id is invalid"
    assert body["vendor"] == "voice_agent"

    [record] = asyncio.run(store.list_recent())
    assert record.status == "failed"
    assert record.error_code == "ELEVENLABS_422"
    assert record.error_message == "agent_phone_number_id is invalid"
    assert record.ended_at is not None


def test_unexpected_vendor_failure_becomes_bad_gateway(client, store, voice_agent):
    voice_agent.error = ConnectionError("connection refused")

    response = client.post("/api/v1/calls", json={"phoneNumber": "+16502530000"})

    assert response.status_code == 502
    assert response.json()["error"] == "Failed to make ElevenLabs call"
    [record] = asyncio.run(store.list_recent())
    assert record.status == "failed"
    assert record.error_code == "ELEVENLABS_ERROR"


def test_get_list_and_stats(client, store):
    asyncio.run(store.upsert_many([
        {"call_id": "call_a", "status": "completed", "duration_sec": 20, "recording_sid": "RE1", "recording_url": "https://x/RE1"},
        {"call_id": "call_b", "status": "failed"},
    ]))

    response = client.get("/api/v1/calls/call_a")
    assert response.status_code == 200
    body = response.json()
    assert body["callId"] == "call_a"
    assert body["durationSec"] == 20
    assert body["recording"]["recordingSid"] == "RE1"

    response = client.get("/api/v1/calls", params={"limit": 10, "sinceDays": 1})
    assert response.status_code == 200
    assert response.json()["totalCount"] == 2

    stats = client.get("/api/v1/calls/stats").json()
    assert stats["total"] == 2
    assert stats["completed"] == 1
    assert stats["failed"] == 1
    assert stats["averageDurationSec"] == 20


def test_list_calls_filtered_by_callee(client, store):
    asyncio.run(store.upsert_many([
        {"call_id": "call_a", "to_number": "+16502530000"},
        {"call_id": "call_b", "to_number": "+16502530001"},
    ]))

    response = client.get("/api/v1/calls", params={"toNumber": "(650) 253-0000"})
    assert response.status_code == 200
    assert [c["callId"] for c in response.json()["calls"]] == ["call_a"]

    response = client.get("/api/v1/calls", params={"toNumber": "12"})
    assert response.status_code == 400
    assert response.json()["error"] == "Invalid phone number"


def test_unknown_call_is_404(client):
    response = client.get("/api/v1/calls/nope")

    assert response.status_code == 404
    body = response.json()
    assert body["error"] == "Call not found"
    assert body["requestId"] == response.headers["X-Request-ID"]


def test_end_call(client, store):
    asyncio.run(store.create_or_merge_record({"call_id": "call_1", "status": "in-progress"}))

    response = client.post("/api/v1/calls/call_1/end", json={})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "completed"
    assert body["endReason"] == "user_ended"
    assert body["durationSec"] is not None

    # ending an ended call leaves it alone
    response = client.post("/api/v1/calls/call_1/end", json={"reason": "again"})
    assert response.json()["endReason"] == "user_ended"

    assert client.post("/api/v1/calls/missing/end").status_code == 404


def test_watch_call_streams_status_and_accepts_end(client, store):
    asyncio.run(store.create_or_merge_record({"call_id": "call_1", "status": "in-progress"}))

    with client.websocket_connect("/api/v1/calls/call_1/watch") as ws:
        first = ws.receive_json()
        assert first == {"type": "status", "callId": "call_1", "previous": None, "status": "in-progress"}

        ws.send_json({"action": "end"})
        ended = ws.receive_json()

    assert ended["type"] == "ended"
    assert ended["call"]["status"] == "completed"
    assert ended["call"]["endReason"] == "user_ended"
    assert asyncio.run(store.get_record("call_1")).status == "completed"


def test_health(client):
    body = client.get("/api/v1/health/").json()
    assert body["status"] == "ok"
    assert body["store"] == "configured"


def test_validation_errors_use_the_envelope(client):
    response = client.get("/api/v1/calls", params={"limit": 0})

    assert response.status_code == 400
    body = response.json()
    assert body["error"] == "Invalid request"
    assert "limit" in body["details"]
    assert "requestId" in body
