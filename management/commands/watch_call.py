import asyncio
import sys
from pathlib import Path


def run():
    """Follow one call's status until it ends (Ctrl+C ends the call).

    Usage:
        python manage.py watch_call <call_id> [interval_seconds]
    """

    # Add the project root to Python path so we can import the app
    project_root = Path(__file__).parent.parent.parent
    sys.path.insert(0, str(project_root))

    if len(sys.argv) < 3:
        print("Usage: python manage.py watch_call <call_id> [interval_seconds]")
        return

    call_id = sys.argv[2]
    try:
        interval = float(sys.argv[3]) if len(sys.argv) > 3 else None
    except ValueError:
        print("Error: interval_seconds must be a number")
        return

    async def _watch():
        from auralis.core.database import dispose_engine
        from auralis.services.call_poller import CallStatusPoller
        from auralis.services.call_store import call_store

        if not call_store.configured:
            print("DATABASE_URL is not set; nothing to watch")
            return

        def on_status_change(previous, status):
            print(f"{call_id}: {previous or '-'} -> {status}")

        def on_call_end(record):
            if record is None:
                print(f"{call_id}: call record not found")
            else:
                print(f"{call_id}: ended with {record.status} ({record.end_reason or 'no reason'}), {record.duration_sec or 0}s")

        poller = CallStatusPoller(
            call_store,
            call_id,
            on_call_end=on_call_end,
            on_status_change=on_status_change,
            interval=interval,
        )
        poller.start()
        try:
            await poller.wait()
        except asyncio.CancelledError:
            await poller.end_manually("user_ended")
        finally:
            await dispose_engine()

    try:
        asyncio.run(_watch())
    except KeyboardInterrupt:
        print("Stopped")
    except ImportError as e:
        print(f"Error importing poller: {e}")
        print("Make sure you're running this from the project root directory.")

if __name__ == "__main__":
    run()
