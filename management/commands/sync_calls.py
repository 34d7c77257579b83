import asyncio
import sys
from pathlib import Path


def run():
    """Pull recent Twilio calls into the call record store.

    Usage:
        python manage.py sync_calls [days_back] [limit] [--recordings]
    """

    # Add the project root to Python path so we can import the app
    project_root = Path(__file__).parent.parent.parent
    sys.path.insert(0, str(project_root))

    args = [a for a in sys.argv[2:] if not a.startswith("--")]
    try:
        days_back = int(args[0]) if len(args) > 0 else None
        limit = int(args[1]) if len(args) > 1 else None
    except ValueError:
        print("Error: days_back and limit must be integers")
        return

    async def _sync():
        from auralis.core.database import dispose_engine
        from auralis.schemas.call import SyncCallsRequest
        from auralis.services.call_store import call_store
        from auralis.services.call_sync_service import CallSyncService
        from auralis.services.twilio_service import TwilioService

        try:
            service = CallSyncService(call_store, TwilioService())
            result = await service.sync(SyncCallsRequest(
                limit=limit,
                days_back=days_back,
                include_recordings="--recordings" in sys.argv,
            ))
        finally:
            await dispose_engine()

        print(result.message)
        for call in result.metadata.get("calls", []):
            print(f"  {call['callId']:<45} {call['status']:<12} {call.get('toNumber') or '-'}")

    try:
        asyncio.run(_sync())
    except ImportError as e:
        print(f"Error importing sync service: {e}")
        print("Make sure you're running this from the project root directory.")
    except Exception as e:
        print(f"Error syncing calls: {e}")

if __name__ == "__main__":
    run()
