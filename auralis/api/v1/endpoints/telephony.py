from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query

from auralis.core.utils.timeutils import utcnow
from auralis.services.twilio_service import TwilioService, get_twilio_service, serialize_call, serialize_recording


router = APIRouter(tags=["telephony"])


@router.get("/calls")
async def list_twilio_calls(
    page_size: int = Query(20, alias="pageSize", ge=1, le=1000),
    status: Optional[str] = Query(None),
    date_after: Optional[datetime] = Query(None, alias="dateAfter"),
    date_before: Optional[datetime] = Query(None, alias="dateBefore"),
    to: Optional[str] = Query(None),
    from_: Optional[str] = Query(None, alias="from"),
    call_sid: Optional[str] = Query(None, alias="callSid"),
    twilio: TwilioService = Depends(get_twilio_service),
):
    """List Twilio calls, or fetch one with ``callSid``."""
    if call_sid:
        call = await twilio.fetch_call(call_sid)
        return {"success": True, "call": serialize_call(call), "timestamp": utcnow().isoformat()}

    calls = await twilio.list_calls(
        limit=page_size,
        status=status,
        start_after=date_after,
        start_before=date_before,
        to=to,
        from_=from_,
    )
    return {
        "success": True,
        "calls": [serialize_call(c) for c in calls],
        "totalCount": len(calls),
        "timestamp": utcnow().isoformat(),
    }


@router.get("/recordings")
async def list_twilio_recordings(
    call_sid: Optional[str] = Query(None, alias="callSid"),
    recording_sid: Optional[str] = Query(None, alias="recordingSid"),
    page_size: int = Query(20, alias="pageSize", ge=1, le=1000),
    date_after: Optional[datetime] = Query(None, alias="dateAfter"),
    date_before: Optional[datetime] = Query(None, alias="dateBefore"),
    twilio: TwilioService = Depends(get_twilio_service),
):
    """List Twilio recordings, or fetch one with ``recordingSid``."""
    if recording_sid:
        recording = await twilio.fetch_recording(recording_sid)
        return {"success": True, "recording": serialize_recording(recording), "timestamp": utcnow().isoformat()}

    recordings = await twilio.list_recordings(
        limit=page_size,
        call_sid=call_sid,
        created_after=date_after,
        created_before=date_before,
    )
    return {
        "success": True,
        "recordings": [serialize_recording(r) for r in recordings],
        "totalCount": len(recordings),
        "timestamp": utcnow().isoformat(),
    }
