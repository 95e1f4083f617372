"""Local read-only mirror of the employee record store.

``refresh`` is the mirror's only writer: every fetch replaces the whole
record list. Readers take immutable snapshots or subscribe to be pushed a
new snapshot whenever the content changes.
"""

from __future__ import annotations

import asyncio
import contextlib
import json
import logging
from collections.abc import AsyncIterator
from dataclasses import dataclass, field

from ems.core.config import Settings
from ems.models.employee import Employee
from ems.services.employee_store import EmployeeStore, EmployeeStoreError, employee_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class MirrorSnapshot:
    records: tuple[Employee, ...] = ()
    version: int = 0
    loaded: bool = False
    error: str | None = None
    ids: frozenset[str] = field(default=frozenset(), compare=False)


class EmployeeMirror:
    def __init__(self, store: EmployeeStore) -> None:
        self.store = store
        self._snapshot = MirrorSnapshot()
        self._subscribers: set[asyncio.Queue[MirrorSnapshot]] = set()
        self._refresh_requested: asyncio.Event | None = None
        self._task: asyncio.Task[None] | None = None
        self.poll_interval = 5.0

    @property
    def running(self) -> bool:
        return self._task is not None and not self._task.done()

    @property
    def last_error(self) -> str | None:
        return self._snapshot.error

    def snapshot(self) -> MirrorSnapshot:
        return self._snapshot

    def get(self, employee_id: str) -> Employee | None:
        if employee_id not in self._snapshot.ids:
            return None
        return next(e for e in self._snapshot.records if e.id == employee_id)

    async def start(self, settings: Settings) -> None:
        if self.running:
            return
        if not self.store.initialized:
            logger.warning("EmployeeStore not initialized, mirror not started")
            return

        self.poll_interval = settings.MIRROR_POLL_INTERVAL_SECONDS
        self._refresh_requested = asyncio.Event()
        self._task = asyncio.create_task(self._run(), name="employee-mirror")
        logger.info("EmployeeMirror started (poll=%.1fs)", self.poll_interval)

    async def stop(self) -> None:
        if self._task:
            self._task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await self._task
        self._task = None
        self._refresh_requested = None

    def request_refresh(self) -> None:
        """Wake the poll loop early, e.g. right after a write."""
        if self._refresh_requested is not None:
            self._refresh_requested.set()

    async def refresh(self) -> MirrorSnapshot:
        current = self._snapshot
        try:
            records = tuple(await self.store.fetch_all())
        except EmployeeStoreError as e:
            logger.error("Employee subscription failed, keeping last-known list: %s", e)
            if current.error != str(e):
                self._publish(
                    MirrorSnapshot(
                        records=current.records,
                        version=current.version,
                        loaded=current.loaded,
                        error=str(e),
                        ids=current.ids,
                    )
                )
            return self._snapshot

        if current.loaded and current.error is None and records == current.records:
            return current

        changed = records != current.records
        self._publish(
            MirrorSnapshot(
                records=records,
                version=current.version + 1 if changed or not current.loaded else current.version,
                loaded=True,
                ids=frozenset(e.id for e in records),
            )
        )
        return self._snapshot

    async def subscribe(self) -> AsyncIterator[MirrorSnapshot]:
        """Yield the current snapshot, then the newest one each time the mirror changes."""
        queue: asyncio.Queue[MirrorSnapshot] = asyncio.Queue(maxsize=1)
        self._subscribers.add(queue)
        try:
            yield self._snapshot
            while True:
                yield await queue.get()
        finally:
            self._subscribers.discard(queue)

    async def stream_events(self) -> AsyncIterator[str]:
        async for snap in self.subscribe():
            if snap.error:
                yield f"event: error\ndata: {json.dumps({'error': snap.error, 'version': snap.version})}\n\n"
                continue
            payload = {
                "version": snap.version,
                "loaded": snap.loaded,
                "employees": [e.model_dump(mode="json") for e in snap.records],
            }
            yield f"event: snapshot\ndata: {json.dumps(payload)}\n\n"

    def _publish(self, snap: MirrorSnapshot) -> None:
        self._snapshot = snap
        for queue in self._subscribers:
            # a slow reader keeps only the newest snapshot
            if queue.full():
                queue.get_nowait()
            queue.put_nowait(snap)

    async def _run(self) -> None:
        while True:
            try:
                await self.refresh()
            except Exception:
                logger.exception("Employee mirror refresh crashed, retrying on next poll")
            event = self._refresh_requested
            if event is None:
                return
            with contextlib.suppress(TimeoutError):
                await asyncio.wait_for(event.wait(), timeout=self.poll_interval)
            event.clear()


employee_mirror = EmployeeMirror(employee_store)
