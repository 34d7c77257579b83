from fastapi import APIRouter, Depends

from auralis.core.utils.timeutils import utcnow
from auralis.services.call_store import CallRecordStore, get_call_store

router = APIRouter()

@router.get("/")
async def health(store: CallRecordStore = Depends(get_call_store)):
    """Basic health check"""
    return {
        "status": "ok",
        "timestamp": utcnow().isoformat(),
        "store": "configured" if store.configured else "disabled",
    }
