import asyncio
from typing import List, Optional

from fastapi import APIRouter, Body, Depends, Query, WebSocket, WebSocketDisconnect
from starlette.websockets import WebSocketState

from auralis.api.v1.dependencies import get_call_service, get_call_sync_service
from auralis.core.config import Settings, get_settings
from auralis.core.errors import InvalidRequestError, NotFoundError
from auralis.core.logging import console_logger
from auralis.core.utils.phone import to_e164
from auralis.core.utils.timeutils import utcnow
from auralis.models.call_record import CallRecord
from auralis.schemas.call import (
    CallListResponse,
    CallLogResponse,
    CallRecordResponse,
    CallStatisticsResponse,
    ConversationMessageResponse,
    EndCallRequest,
    InitiateCallRequest,
    InitiateCallResponse,
    SyncCallsRequest,
    SyncCallsResponse,
)
from auralis.services.call_poller import CallStatusPoller
from auralis.services.call_service import CallService
from auralis.services.call_store import CallRecordStore, get_call_store
from auralis.services.call_sync_service import CallSyncService


router = APIRouter(tags=["calls"])


@router.post("", response_model=InitiateCallResponse)
async def initiate_call(
    payload: InitiateCallRequest = Body(...),
    service: CallService = Depends(get_call_service),
):
    """Place an outbound call with the voice agent."""
    return await service.initiate_call(payload.phone_number)


@router.get("", response_model=CallListResponse)
async def list_calls(
    limit: int = Query(20, ge=1, le=500),
    since_days: Optional[float] = Query(None, alias="sinceDays", ge=0),
    to_number: Optional[str] = Query(None, alias="toNumber"),
    store: CallRecordStore = Depends(get_call_store),
    config: Settings = Depends(get_settings),
):
    """Most recent calls first. ``toNumber`` narrows the list to one callee."""
    if to_number:
        try:
            normalized = to_e164(to_number, config.DEFAULT_PHONE_REGION)
        except ValueError as e:
            raise InvalidRequestError("Invalid phone number", details=str(e))
        records = await store.search_by_phone(normalized, limit=limit, since_days=since_days)
    else:
        records = await store.list_recent(limit=limit, since_days=since_days)
    calls = [CallRecordResponse.from_record(r) for r in records]
    return CallListResponse(calls=calls, total_count=len(calls), timestamp=utcnow())


@router.get("/stats", response_model=CallStatisticsResponse)
async def call_statistics(store: CallRecordStore = Depends(get_call_store)):
    return CallStatisticsResponse(**await store.statistics())


@router.post("/sync", response_model=SyncCallsResponse)
async def sync_calls(
    payload: Optional[SyncCallsRequest] = Body(None),
    service: CallSyncService = Depends(get_call_sync_service),
):
    """Pull recent Twilio calls into the call record store."""
    return await service.sync(payload or SyncCallsRequest())


async def _get_or_404(store: CallRecordStore, call_id: str) -> CallRecord:
    record = await store.get_record(call_id)
    if record is None:
        raise NotFoundError("Call not found", details=f"No call record with id {call_id}")
    return record


@router.get("/{call_id}", response_model=CallRecordResponse)
async def get_call(call_id: str, store: CallRecordStore = Depends(get_call_store)):
    return CallRecordResponse.from_record(await _get_or_404(store, call_id))


@router.post("/{call_id}/end", response_model=CallRecordResponse)
async def end_call(
    call_id: str,
    payload: Optional[EndCallRequest] = Body(None),
    service: CallService = Depends(get_call_service),
):
    record = await service.end_call(call_id, (payload or EndCallRequest()).reason)
    return CallRecordResponse.from_record(record)


@router.get("/{call_id}/logs", response_model=List[CallLogResponse])
async def get_call_logs(call_id: str, store: CallRecordStore = Depends(get_call_store)):
    await _get_or_404(store, call_id)
    return await store.list_call_logs(call_id)


@router.get("/{call_id}/messages", response_model=List[ConversationMessageResponse])
async def get_call_messages(
    call_id: str,
    limit: int = Query(200, ge=1, le=1000),
    store: CallRecordStore = Depends(get_call_store),
):
    await _get_or_404(store, call_id)
    return await store.list_messages(call_id, limit=limit)


# ################################################################################
# LIVE STATUS
# ################################################################################


def _record_payload(record: Optional[CallRecord]):
    if record is None:
        return None
    return CallRecordResponse.from_record(record).model_dump(mode="json", by_alias=True)


async def _receive_actions(websocket: WebSocket, poller: CallStatusPoller) -> None:
    try:
        while poller.active:
            message = await websocket.receive_json()
            if isinstance(message, dict) and message.get("action") == "end":
                await poller.end_manually(message.get("reason") or "user_ended")
    except WebSocketDisconnect:
        console_logger.info("Call watcher disconnected", call_id=poller.call_id)


@router.websocket("/{call_id}/watch")
async def watch_call(
    websocket: WebSocket,
    call_id: str,
    store: CallRecordStore = Depends(get_call_store),
    config: Settings = Depends(get_settings),
):
    """Stream status changes of one call; ``{"action": "end"}`` ends it."""
    await websocket.accept()
    ended = asyncio.Event()

    async def send_status(previous, status):
        await websocket.send_json({"type": "status", "callId": call_id, "previous": previous, "status": status})

    async def send_end(record):
        try:
            await websocket.send_json({"type": "ended", "callId": call_id, "call": _record_payload(record)})
        finally:
            ended.set()

    poller = CallStatusPoller(store, call_id, on_call_end=send_end, on_status_change=send_status, config=config)
    poller.start()
    receiver = asyncio.create_task(_receive_actions(websocket, poller))
    ended_wait = asyncio.create_task(ended.wait())
    try:
        await asyncio.wait({receiver, ended_wait}, return_when=asyncio.FIRST_COMPLETED)
    finally:
        ended_wait.cancel()
        await poller.stop()
        if not receiver.done():
            receiver.cancel()

    if ended.is_set() and websocket.client_state == WebSocketState.CONNECTED:
        await websocket.close()
