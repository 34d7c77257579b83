import pytest

from auralis.core.utils.enums import CallStatusEnum, VendorEnum
from auralis.services.status_mapper import failure_reason, is_terminal, map_status, resolve_vendor


@pytest.mark.parametrize("raw, expected", [
    ("queued", CallStatusEnum.QUEUED),
    ("ringing", CallStatusEnum.RINGING),
    ("in-progress", CallStatusEnum.IN_PROGRESS),
    ("completed", CallStatusEnum.COMPLETED),
    ("busy", CallStatusEnum.FAILED),
    ("failed", CallStatusEnum.FAILED),
    ("no-answer", CallStatusEnum.NO_ANSWER),
    ("canceled", CallStatusEnum.FAILED),
])
def test_twilio_statuses(raw, expected):
    assert map_status("twilio", raw) is expected


@pytest.mark.parametrize("raw, expected", [
    ("initiated", CallStatusEnum.INITIATING),
    ("ringing", CallStatusEnum.RINGING),
    ("in_progress", CallStatusEnum.IN_PROGRESS),
    ("completed", CallStatusEnum.COMPLETED),
    ("failed", CallStatusEnum.FAILED),
    ("no_answer", CallStatusEnum.NO_ANSWER),
    ("busy", CallStatusEnum.FAILED),
    ("cancelled", CallStatusEnum.FAILED),
    ("processing", CallStatusEnum.IN_PROGRESS),
    ("done", CallStatusEnum.COMPLETED),
])
def test_voice_agent_statuses(raw, expected):
    assert map_status("voice_agent", raw) is expected


@pytest.mark.parametrize("raw", [None, "", "   ", "ringing-ish", "SOMETHING_NEW"])
def test_unknown_status_falls_back_to_vendor_start_state(raw):
    assert map_status(VendorEnum.TWILIO, raw) is CallStatusEnum.QUEUED
    assert map_status(VendorEnum.VOICE_AGENT, raw) is CallStatusEnum.INITIATING


def test_spelling_variants_are_normalized():
    assert map_status("twilio", "  In-Progress ") is CallStatusEnum.IN_PROGRESS
    assert map_status("twilio", "inprogress") is CallStatusEnum.IN_PROGRESS
    assert map_status("elevenlabs", "noanswer") is CallStatusEnum.NO_ANSWER
    assert map_status("voice-agent", "IN_PROGRESS") is CallStatusEnum.IN_PROGRESS


def test_vendor_aliases():
    assert resolve_vendor("telephony") is VendorEnum.TWILIO
    assert resolve_vendor("ElevenLabs") is VendorEnum.VOICE_AGENT
    assert resolve_vendor("voiceAgent") is VendorEnum.VOICE_AGENT
    with pytest.raises(ValueError):
        resolve_vendor("telnyx")


def test_busy_and_canceled_keep_their_reason():
    assert failure_reason("busy") == "busy"
    assert failure_reason("canceled") == "canceled"
    assert failure_reason("cancelled") == "canceled"
    assert failure_reason("failed") is None
    assert failure_reason(None) is None


def test_terminal_statuses():
    assert is_terminal("completed")
    assert is_terminal(CallStatusEnum.FAILED)
    assert is_terminal("no-answer")
    assert not is_terminal("in-progress")
    assert not is_terminal("calling")
    assert not is_terminal(None)
    assert not is_terminal("bogus")
