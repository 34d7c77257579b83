from datetime import timedelta

import pytest

from auralis.core.errors import StorageError
from auralis.core.utils.enums import CallLogTypeEnum, CallStatusEnum, VendorEnum
from auralis.core.utils.timeutils import utcnow
from auralis.services.call_store import CallRecordStore

from conftest import sqlite_database


@pytest.mark.asyncio
async def test_merge_writes_union_partial_fields(db_store):
    await db_store.create_or_merge_record({"call_id": "call_1", "to_number": "+14155550100", "status": "initiating"})
    first = await db_store.get_record("call_1")

    await db_store.create_or_merge_record({"call_id": "call_1", "elevenlabs_call_id": "conv_1", "status": "calling"})
    record = await db_store.get_record("call_1")

    assert record.to_number == "+14155550100"
    assert record.elevenlabs_call_id == "conv_1"
    assert record.status == "calling"
    assert record.created_at == first.created_at


@pytest.mark.asyncio
async def test_none_values_never_erase_stored_fields(db_store):
    await db_store.create_or_merge_record({"call_id": "call_1", "agent_id": "agent_test"})
    await db_store.create_or_merge_record({"call_id": "call_1", "agent_id": None, "end_reason": "busy"})

    record = await db_store.get_record("call_1")
    assert record.agent_id == "agent_test"
    assert record.end_reason == "busy"


@pytest.mark.asyncio
async def test_repeated_merge_is_idempotent(db_store):
    fields = {"call_id": "call_1", "twilio_call_sid": "CA1", "status": CallStatusEnum.RINGING}
    await db_store.create_or_merge_record(fields)
    await db_store.create_or_merge_record(fields)

    records = await db_store.list_recent()
    assert [r.call_id for r in records] == ["call_1"]
    assert records[0].status == "ringing"


@pytest.mark.asyncio
async def test_update_record(db_store):
    await db_store.create_or_merge_record({"call_id": "call_1", "status": "calling"})

    assert await db_store.update_record("call_1", {"status": "in-progress", "duration_sec": 3})
    assert not await db_store.update_record("missing", {"status": "completed"})

    record = await db_store.get_record("call_1")
    assert record.status == "in-progress"
    assert record.duration_sec == 3


@pytest.mark.asyncio
async def test_terminal_status_is_not_regressed(db_store):
    await db_store.create_or_merge_record({"call_id": "call_1", "status": "completed"})

    await db_store.update_record("call_1", {"status": "ringing", "twilio_status": "ringing"})

    record = await db_store.get_record("call_1")
    assert record.status == "completed"
    assert record.twilio_status == "ringing"


@pytest.mark.asyncio
async def test_terminal_outcome_is_kept_against_another_terminal_status(db_store):
    await db_store.create_or_merge_record({"call_id": "call_1", "status": "completed"})

    await db_store.update_record("call_1", {"status": "failed", "end_reason": "timeout", "ended_at": utcnow()})

    record = await db_store.get_record("call_1")
    assert record.status == "completed"
    assert record.end_reason is None
    assert record.ended_at is not None


@pytest.mark.asyncio
async def test_merges_do_not_regress_a_terminal_record(db_store):
    await db_store.create_or_merge_record({"call_id": "call_1", "status": "completed", "end_reason": "user_ended"})
    await db_store.create_or_merge_record({"call_id": "call_2", "status": "no-answer"})

    await db_store.create_or_merge_record({"call_id": "call_1", "status": "in-progress", "duration_sec": 12})
    await db_store.upsert_many([
        {"call_id": "call_1", "status": "ringing", "end_reason": "busy"},
        {"call_id": "call_2", "status": "completed", "twilio_status": "completed"},
    ])

    first = await db_store.get_record("call_1")
    assert first.status == "completed"
    assert first.end_reason == "user_ended"
    assert first.duration_sec == 12
    second = await db_store.get_record("call_2")
    assert second.status == "no-answer"
    assert second.twilio_status == "completed"


@pytest.mark.asyncio
async def test_find_by_vendor_id(db_store):
    await db_store.create_or_merge_record({"call_id": "call_1", "twilio_call_sid": "CA1", "elevenlabs_call_id": "conv_1"})

    assert (await db_store.find_by_vendor_id(VendorEnum.TWILIO, "CA1")).call_id == "call_1"
    assert (await db_store.find_by_vendor_id("elevenlabs", "conv_1")).call_id == "call_1"
    assert await db_store.find_by_vendor_id("twilio", "CA-unknown") is None
    assert await db_store.find_by_vendor_id("twilio", None) is None
    assert await db_store.find_by_vendor_id("not-a-vendor", "CA1") is None


@pytest.mark.asyncio
async def test_statistics(db_store):
    await db_store.upsert_many([
        {"call_id": "a", "status": "completed", "duration_sec": 30},
        {"call_id": "b", "status": "completed", "duration_sec": 90},
        {"call_id": "c", "status": "failed"},
        {"call_id": "d", "status": "in-progress"},
        {"call_id": "e", "status": "no-answer"},
    ])

    stats = await db_store.statistics()
    assert stats["total"] == 5
    assert stats["completed"] == 2
    assert stats["failed"] == 1
    assert stats["no_answer"] == 1
    assert stats["in_progress"] == 1
    assert stats["total_duration_sec"] == 120
    assert stats["average_duration_sec"] == 60


@pytest.mark.asyncio
async def test_call_logs_and_messages(db_store):
    await db_store.create_or_merge_record({"call_id": "call_1"})
    await db_store.add_call_log("call_1", CallLogTypeEnum.CALL_INITIATED, "started")
    await db_store.add_call_log("call_1", CallLogTypeEnum.STATUS_UPDATE, "ringing", {"status": "ringing"})

    logs = await db_store.list_call_logs("call_1")
    assert [log.type for log in logs] == ["call_initiated", "status_update"]
    assert logs[1].data == {"status": "ringing"}

    now = utcnow()
    message = {"id": "conv_1-0", "call_id": "call_1", "type": "ai", "content": "Hello", "timestamp": now}
    await db_store.add_message(message)
    await db_store.add_message({**message, "content": "Hello there"})

    messages = await db_store.list_messages("call_1")
    assert len(messages) == 1
    assert messages[0].content == "Hello there"


@pytest.mark.asyncio
async def test_unconfigured_store_degrades_gracefully(unconfigured_store):
    assert not unconfigured_store.configured
    assert await unconfigured_store.create_or_merge_record({"call_id": "call_1"}, critical=True) is False
    assert await unconfigured_store.update_record("call_1", {"status": "completed"}) is False
    assert await unconfigured_store.get_record("call_1") is None
    assert await unconfigured_store.find_by_vendor_id("twilio", "CA1") is None
    assert await unconfigured_store.list_recent() == []
    assert await unconfigured_store.create_notification({"type": "system_alert"}) is None


@pytest.mark.asyncio
async def test_critical_write_raises_when_configured_store_fails(tmp_path):
    broken = CallRecordStore(sqlite_database(tmp_path / "missing-dir" / "auralis.db"))

    with pytest.raises(StorageError):
        await broken.create_or_merge_record({"call_id": "call_1"}, critical=True)

    assert await broken.create_or_merge_record({"call_id": "call_1"}) is False
    assert await broken.update_record("call_1", {"status": "failed"}) is False
    assert await broken.find_by_vendor_id("twilio", "CA1") is None


@pytest.mark.asyncio
async def test_list_recent_and_search_by_phone(db_store):
    await db_store.upsert_many([
        {"call_id": "old", "to_number": "+16502530000", "created_at": utcnow() - timedelta(days=3)},
        {"call_id": "new", "to_number": "+16502530000"},
        {"call_id": "other", "to_number": "+16502530001"},
    ])

    assert {r.call_id for r in await db_store.list_recent(since_days=1)} == {"new", "other"}
    assert len(await db_store.list_recent(limit=2)) == 2
    assert [r.call_id for r in await db_store.search_by_phone("+16502530000")] == ["new", "old"]
