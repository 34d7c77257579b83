import asyncio
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest
import pytest_asyncio
from fastapi.testclient import TestClient
from sqlalchemy.ext.asyncio import create_async_engine
from sqlalchemy.pool import NullPool

from auralis.core.config import Settings, get_settings
from auralis.core.database import Database, set_engine
from auralis.core.errors import NotFoundError
from auralis.main import app
from auralis.services.call_store import CallRecordStore, get_call_store
from auralis.services.twilio_service import get_twilio_service
from auralis.services.voice_agent_service import get_voice_agent_service


CALL_START = datetime(2026, 10, 18, 12, 0, tzinfo=timezone.utc)


def make_settings(**overrides) -> Settings:
    values = dict(
        DATABASE_URL="",
        TWILIO_ACCOUNT_SID="ACtest",
        TWILIO_AUTH_TOKEN="twilio-token",
        TWILIO_NUMBER="+15005550006",
        ELEVENLABS_API_KEY="xi-test-key",
        ELEVENLABS_AGENT_ID="agent_test",
        ELEVENLABS_PHONE_NUMBER_ID="phnum_test",
        CALL_POLL_INTERVAL_SECONDS=0.05,
        CALL_POLL_TIMEOUT_SECONDS=5.0,
    )
    values.update(overrides)
    return Settings(**values)


def twilio_call(sid, status="completed", to="+14155550100", direction="outbound-api", duration="42"):
    return SimpleNamespace(
        sid=sid,
        to=to,
        from_="+15005550006",
        status=status,
        direction=direction,
        start_time=CALL_START,
        end_time=CALL_START + timedelta(seconds=int(duration or 0)),
        duration=duration,
        price="-0.0130",
        price_unit="USD",
        uri=f"/2010-04-01/Accounts/ACtest/Calls/{sid}.json",
        account_sid="ACtest",
        parent_call_sid=None,
        phone_number_sid=None,
        answered_by=None,
        forwarded_from=None,
        group_sid=None,
        caller_name=None,
        queue_time="0",
        trunk_sid=None,
        date_created=CALL_START,
        date_updated=CALL_START + timedelta(seconds=60),
    )


def twilio_recording(sid, call_sid, duration="40"):
    return SimpleNamespace(
        sid=sid,
        account_sid="ACtest",
        call_sid=call_sid,
        conference_sid=None,
        status="completed",
        date_created=CALL_START,
        date_updated=CALL_START,
        start_time=CALL_START,
        duration=duration,
        channels=1,
        source="OutboundAPI",
        error_code=None,
        uri=f"/2010-04-01/Accounts/ACtest/Recordings/{sid}.json",
        price_unit="USD",
        price=None,
        media_url=f"https://api.twilio.com/2010-04-01/Accounts/ACtest/Recordings/{sid}",
    )


class FakeVoiceAgentService:
    """Stands in for the ElevenLabs client; records every outbound call."""

    def __init__(self):
        self.response = {"success": True, "message": "Call initiated", "conversation_id": "conv_123", "call_sid": "CA123"}
        self.error = None
        self.calls = []
        self.agents = [{"agent_id": "agent_test", "name": "Auralis"}]
        self.conversations = [{"conversation_id": "conv_123", "agent_id": "agent_test", "status": "done"}]

    async def outbound_call(self, to_number):
        self.calls.append(to_number)
        if self.error is not None:
            raise self.error
        return dict(self.response)

    async def list_agents(self, page_size=30):
        return self.agents

    async def get_agent(self, agent_id):
        for agent in self.agents:
            if agent["agent_id"] == agent_id:
                return agent
        raise NotFoundError("Agent not found", details="The requested agent does not exist", status=404)

    async def list_conversations(self, agent_id=None, page_size=30):
        return [c for c in self.conversations if agent_id is None or c["agent_id"] == agent_id]

    async def get_conversation(self, conversation_id):
        for conversation in self.conversations:
            if conversation["conversation_id"] == conversation_id:
                return conversation
        raise NotFoundError("Conversation not found", details="The requested conversation does not exist", status=404)


class FakeTwilioService:
    def __init__(self):
        self.calls = []
        self.recordings = []
        self.list_calls_kwargs = None

    async def list_calls(self, **kwargs):
        self.list_calls_kwargs = kwargs
        return list(self.calls)

    async def fetch_call(self, call_sid):
        for call in self.calls:
            if call.sid == call_sid:
                return call
        raise NotFoundError("Call not found", details="The requested call does not exist", status=404)

    async def list_recordings(self, limit=20, call_sid=None, created_after=None, created_before=None):
        return [r for r in self.recordings if call_sid is None or r.call_sid == call_sid][:limit]

    async def fetch_recording(self, recording_sid):
        for recording in self.recordings:
            if recording.sid == recording_sid:
                return recording
        raise NotFoundError("Recording not found", details="The requested recording does not exist", status=404)


def sqlite_database(path) -> Database:
    database = Database(db_url="")
    set_engine(create_async_engine(f"sqlite+aiosqlite:///{path}", poolclass=NullPool), database)
    return database


@pytest.fixture()
def database(tmp_path):
    return sqlite_database(tmp_path / "auralis.db")


@pytest.fixture()
def store(database):
    """Store for synchronous (TestClient) tests."""
    asyncio.run(database.create_all())
    return CallRecordStore(database)


@pytest_asyncio.fixture()
async def db_store(database):
    """Store for async tests; tables are created on the test's own loop."""
    await database.create_all()
    return CallRecordStore(database)


@pytest.fixture()
def unconfigured_store():
    return CallRecordStore(Database(db_url=""))


@pytest.fixture()
def test_settings():
    return make_settings()


@pytest.fixture()
def voice_agent():
    return FakeVoiceAgentService()


@pytest.fixture()
def twilio():
    return FakeTwilioService()


@pytest.fixture()
def client(store, test_settings, voice_agent, twilio):
    app.dependency_overrides[get_call_store] = lambda: store
    app.dependency_overrides[get_settings] = lambda: test_settings
    app.dependency_overrides[get_voice_agent_service] = lambda: voice_agent
    app.dependency_overrides[get_twilio_service] = lambda: twilio
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()
