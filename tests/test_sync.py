import asyncio

from auralis.core.config import get_settings
from auralis.main import app

from conftest import make_settings, twilio_call, twilio_recording


SYNC_URL = "/api/v1/calls/sync"


def test_sync_requires_twilio_credentials(client, twilio):
    app.dependency_overrides[get_settings] = lambda: make_settings(TWILIO_AUTH_TOKEN="")

    response = client.post(SYNC_URL)

    assert response.status_code == 500
    body = response.json()
    assert body["error"] == "Twilio configuration missing"
    assert "TWILIO_AUTH_TOKEN" in body["details"]
    assert twilio.list_calls_kwargs is None


def test_sync_stores_unknown_calls_under_twilio_ids(client, store, twilio):
    twilio.calls = [twilio_call("CA1"), twilio_call("CA2", status="busy", duration="0")]

    response = client.post(SYNC_URL, json={"limit": 10, "daysBack": 2})

    assert response.status_code == 200
    body = response.json()
    assert body["syncedCount"] == 2
    assert body["message"] == "Successfully synced 2 calls"
    assert body["metadata"]["query"]["daysBack"] == 2
    assert body["metadata"]["stored"] == 2
    assert [c["callId"] for c in body["metadata"]["calls"]] == ["twilio-CA1", "twilio-CA2"]
    assert twilio.list_calls_kwargs["limit"] == 10

    first = asyncio.run(store.get_record("twilio-CA1"))
    assert first.status == "completed"
    assert first.duration_sec == 42
    assert first.twilio_call_sid == "CA1"

    busy = asyncio.run(store.get_record("twilio-CA2"))
    assert busy.status == "failed"
    assert busy.end_reason == "busy"


def test_sync_merges_into_existing_record(client, store, twilio):
    asyncio.run(store.create_or_merge_record({
        "call_id": "call_1",
        "twilio_call_sid": "CA1",
        "agent_id": "agent_test",
        "status": "calling",
    }))
    before = asyncio.run(store.get_record("call_1"))
    twilio.calls = [twilio_call("CA1")]

    body = client.post(SYNC_URL).json()

    assert body["metadata"]["calls"][0]["callId"] == "call_1"
    assert asyncio.run(store.get_record("twilio-CA1")) is None
    record = asyncio.run(store.get_record("call_1"))
    assert record.status == "completed"
    assert record.agent_id == "agent_test"
    assert record.created_at == before.created_at


def test_sync_keeps_a_locally_ended_call_ended(client, store, twilio):
    asyncio.run(store.create_or_merge_record({
        "call_id": "call_1",
        "twilio_call_sid": "CA1",
        "status": "completed",
        "end_reason": "user_ended",
    }))
    twilio.calls = [twilio_call("CA1", status="in-progress", duration=None)]

    body = client.post(SYNC_URL).json()

    assert body["syncedCount"] == 1
    record = asyncio.run(store.get_record("call_1"))
    assert record.status == "completed"
    assert record.end_reason == "user_ended"
    assert record.twilio_status == "in-progress"


def test_sync_filters_by_direction(client, store, twilio):
    twilio.calls = [
        twilio_call("CA1", direction="outbound-api"),
        twilio_call("CA2", direction="inbound"),
        twilio_call("CA3", direction="outbound-dial"),
    ]

    body = client.post(SYNC_URL, json={}).json()
    assert body["syncedCount"] == 2

    body = client.post(SYNC_URL, json={"direction": "inbound"}).json()
    assert [c["callId"] for c in body["metadata"]["calls"]] == ["twilio-CA2"]


def test_sync_uses_configured_defaults(client, twilio, test_settings):
    client.post(SYNC_URL)

    assert twilio.list_calls_kwargs["limit"] == test_settings.CALL_SYNC_LIMIT
    window = twilio.list_calls_kwargs["start_before"] - twilio.list_calls_kwargs["start_after"]
    assert window.days == test_settings.CALL_SYNC_DAYS_BACK


def test_sync_with_recordings(client, store, twilio):
    twilio.calls = [twilio_call("CA1"), twilio_call("CA2")]
    twilio.recordings = [twilio_recording("RE1", "CA1")]

    response = client.post(SYNC_URL, json={"includeRecordings": True})
    assert response.status_code == 200

    record = asyncio.run(store.get_record("twilio-CA1"))
    assert record.recording_sid == "RE1"
    assert record.recording_url.endswith("/Recordings/RE1")
    assert record.recording_duration_sec == 40
    assert record.recording_status == "completed"

    assert asyncio.run(store.get_record("twilio-CA2")).recording_sid is None


def test_sync_rejects_bad_limits(client, twilio):
    response = client.post(SYNC_URL, json={"limit": 0})

    assert response.status_code == 400
    assert twilio.list_calls_kwargs is None
