import asyncio
import inspect
from typing import Any, Callable, Dict, Optional

from auralis.core.config import Settings, settings as default_settings
from auralis.core.logging import console_logger
from auralis.core.utils.enums import CallStatusEnum, PollerStateEnum
from auralis.core.utils.timeutils import utcnow
from auralis.models.call_record import CallRecord
from auralis.services.call_lifecycle import manual_end_fields
from auralis.services.call_store import CallRecordStore
from auralis.services.status_mapper import is_terminal


CallEndCallback = Callable[[Optional[CallRecord]], Any]
StatusChangeCallback = Callable[[Optional[str], str], Any]


async def _invoke(callback: Optional[Callable], *args) -> None:
    if callback is None:
        return
    try:
        result = callback(*args)
        if inspect.isawaitable(result):
            await result
    except Exception:
        console_logger.error("Call poller callback failed", exc_info=True)


class CallStatusPoller:
    """Watches one call record until it reaches a terminal status.

    The record is read immediately on ``start()`` and then every ``interval``
    seconds. ``on_call_end`` fires exactly once, with the final record (or
    None if the record vanished), whether the call ended on its own, was
    ended with ``end_manually()`` or hit the safety timeout. ``stop()``
    cancels without firing it.
    """

    def __init__(
        self,
        store: CallRecordStore,
        call_id: str,
        on_call_end: Optional[CallEndCallback] = None,
        on_status_change: Optional[StatusChangeCallback] = None,
        interval: Optional[float] = None,
        timeout: Optional[float] = None,
        config: Optional[Settings] = None,
    ):
        config = config or default_settings
        self.store = store
        self.call_id = call_id
        self.on_call_end = on_call_end
        self.on_status_change = on_status_change
        self.interval = config.CALL_POLL_INTERVAL_SECONDS if interval is None else interval
        self.timeout = config.CALL_POLL_TIMEOUT_SECONDS if timeout is None else timeout

        self.state = PollerStateEnum.IDLE
        self.last_status: Optional[str] = None
        self.reads = 0
        self._task: Optional[asyncio.Task] = None
        self._end_fired = False
        self._log = console_logger.bind(call_id=call_id)

    @property
    def active(self) -> bool:
        return self.state is PollerStateEnum.ACTIVE

    def start(self) -> asyncio.Task:
        if self.state is not PollerStateEnum.IDLE:
            raise RuntimeError(f"Poller for {self.call_id} already {self.state.value}")
        self.state = PollerStateEnum.ACTIVE
        self._task = asyncio.create_task(self._run(), name=f"call-poller-{self.call_id}")
        self._log.info("Call polling started", interval=self.interval, timeout=self.timeout)
        return self._task

    async def wait(self) -> None:
        if self._task is not None:
            await asyncio.wait({self._task})

    async def stop(self) -> None:
        """Cancel polling without writing anything or firing on_call_end."""
        if self.state is PollerStateEnum.ACTIVE:
            self.state = PollerStateEnum.ENDED
            self._log.info("Call polling stopped")
        await self._cancel_task()

    async def end_manually(self, reason: str = "user_ended") -> Optional[CallRecord]:
        """Write the call as completed, stop polling at once and fire on_call_end."""
        if self.state is PollerStateEnum.ENDED:
            return None
        self.state = PollerStateEnum.ENDED
        await self._cancel_task()

        record = await self.store.get_record(self.call_id)
        if record is not None and not is_terminal(record.status):
            record = await self._end_with(record, manual_end_fields(record, reason))
        self._log.info("Call ended manually", reason=reason)
        await self._fire_end(record)
        return record

    async def _cancel_task(self) -> None:
        task = self._task
        if task is None or task is asyncio.current_task() or task.done():
            return
        task.cancel()
        await asyncio.wait({task})

    async def _fire_end(self, record: Optional[CallRecord]) -> None:
        if self._end_fired:
            return
        self._end_fired = True
        self.state = PollerStateEnum.ENDED
        await _invoke(self.on_call_end, record)

    async def _observe(self, record: CallRecord) -> None:
        if record.status != self.last_status:
            previous, self.last_status = self.last_status, record.status
            self._log.info("Call status changed", previous=previous, status=record.status)
            await _invoke(self.on_status_change, previous, record.status)

    async def _end_with(self, record: CallRecord, fields: Dict[str, Any]) -> CallRecord:
        await self.store.update_record(self.call_id, fields)
        record = await self.store.get_record(self.call_id) or record
        if is_terminal(record.status) and record.end_reason == fields["end_reason"]:
            await self.store.notify_call_ended(record)
        return record

    async def _expire(self) -> None:
        """Fail the call with end reason timeout unless it ended since the last read."""
        record = await self.store.get_record(self.call_id)
        if record is None:
            self._log.warning("Call record not found; polling ended")
            await self._fire_end(None)
            return
        if is_terminal(record.status):
            await self._observe(record)
            self._log.info("Call ended before polling timed out", status=record.status)
            await self._fire_end(record)
            return

        self._log.warning("Call polling timed out", timeout=self.timeout)
        record = await self._end_with(record, {
            "status": CallStatusEnum.FAILED,
            "end_reason": "timeout",
            "ended_at": utcnow(),
        })
        await self._fire_end(record)

    async def _run(self) -> None:
        loop = asyncio.get_running_loop()
        deadline = loop.time() + self.timeout

        while self.state is PollerStateEnum.ACTIVE:
            try:
                record = await self.store.get_record(self.call_id)
            except Exception as e:
                self._log.error("Call status read failed", error=str(e))
            else:
                self.reads += 1
                if record is None:
                    self._log.warning("Call record not found; polling ended")
                    await self._fire_end(None)
                    return
                await self._observe(record)
                if is_terminal(record.status):
                    self._log.info("Call reached terminal status", status=record.status)
                    await self._fire_end(record)
                    return

            remaining = deadline - loop.time()
            if remaining <= 0:
                await self._expire()
                return
            await asyncio.sleep(min(self.interval, remaining))
