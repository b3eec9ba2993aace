"""
Debounced synchronization of the local working dataset.

The controller loads the dataset once, then persists every later mutation
with a full overwrite. Edits arriving within the debounce window collapse
into a single save that carries the state after the last edit. Only one save
is in flight at a time: a timer firing during a save is folded into one
follow-up save sent when the current one completes. Saves that fail are
logged and dropped; the local copy stays as the user's view.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Callable, Iterable, List, Optional

import httpx

from subtrack.client.data_service import DataService, UnreadableDatasetError
from subtrack.client.scheduler import AsyncioScheduler, Scheduler, TimerHandle
from subtrack.core.config import Settings
from subtrack.core.schemas.dataset import Dataset, Job, Payment

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE_SECONDS = 0.5


class SyncState(str, Enum):
    LOADING = "loading"
    IDLE = "idle"
    SAVE_SCHEDULED = "save_scheduled"
    SAVING = "saving"
    # Stored data could not be read; local edits are never saved over it
    DETACHED = "detached"


class SyncController:
    """Owns the client's working copy and schedules its saves."""

    def __init__(
        self,
        service: DataService,
        scheduler: Optional[Scheduler] = None,
        debounce_seconds: float = DEFAULT_DEBOUNCE_SECONDS,
    ):
        self.service = service
        self.scheduler = scheduler or AsyncioScheduler()
        self.debounce_seconds = debounce_seconds
        self.state = SyncState.LOADING
        self._dataset = Dataset.empty()
        self._pending: Optional[TimerHandle] = None
        self._worker: Optional[asyncio.Task] = None
        self._resave = False
        self._last_ok = True

    @classmethod
    def from_settings(
        cls,
        settings: Settings,
        client: Optional[httpx.AsyncClient] = None,
        scheduler: Optional[Scheduler] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ) -> "SyncController":
        """Controller talking to ``settings.api_base_url`` with the configured debounce window."""
        service = DataService(settings.api_base_url, client=client, on_unauthorized=on_unauthorized)
        return cls(service, scheduler=scheduler, debounce_seconds=settings.sync_debounce_seconds)

    @property
    def dataset(self) -> Dataset:
        return self._dataset

    @property
    def is_ready(self) -> bool:
        return self.state not in (SyncState.LOADING, SyncState.DETACHED)

    async def load(self) -> Dataset:
        """Fetch the dataset once; failures leave an empty working copy."""
        try:
            self._dataset = await self.service.fetch_data()
        except UnreadableDatasetError:
            self._dataset = Dataset.empty()
            self.state = SyncState.DETACHED
            logger.error("Stored dataset is unreadable; local changes will not be saved")
            return self._dataset

        self.state = SyncState.IDLE
        logger.info(
            "Loaded %d jobs and %d payments",
            len(self._dataset.jobs),
            len(self._dataset.payments),
        )
        return self._dataset

    # Mutations

    def _apply(self, mutate: Callable[[Dataset], None]) -> None:
        mutate(self._dataset)
        if self.is_ready:
            self._schedule_save()
        elif self.state is SyncState.DETACHED:
            logger.warning("Mutation kept locally; stored dataset is unreadable")
        else:
            logger.debug("Mutation before initial load is not persisted")

    def replace_all(self, jobs: Iterable[Job], payments: Iterable[Payment]) -> None:
        def mutate(ds: Dataset) -> None:
            ds.jobs = list(jobs)
            ds.payments = list(payments)
        self._apply(mutate)

    def upsert_job(self, job: Job) -> None:
        """Replace the job with the same id, or add it at the front."""
        self._apply(lambda ds: setattr(ds, "jobs", _upsert(ds.jobs, job)))

    def delete_job(self, job_id: str) -> None:
        self._apply(lambda ds: setattr(ds, "jobs", [j for j in ds.jobs if j.id != job_id]))

    def upsert_payment(self, payment: Payment) -> None:
        self._apply(lambda ds: setattr(ds, "payments", _upsert(ds.payments, payment)))

    def delete_payment(self, payment_id: str) -> None:
        self._apply(
            lambda ds: setattr(ds, "payments", [p for p in ds.payments if p.id != payment_id])
        )

    def import_records(self, jobs: Iterable[Job], payments: Iterable[Payment]) -> None:
        """Append imported records after the existing ones."""
        def mutate(ds: Dataset) -> None:
            ds.jobs = ds.jobs + list(jobs)
            ds.payments = ds.payments + list(payments)
        self._apply(mutate)

    # Saving

    @property
    def is_saving(self) -> bool:
        return self._worker is not None and not self._worker.done()

    def _schedule_save(self) -> None:
        if self._pending is not None:
            self._pending.cancel()
        self._pending = self.scheduler.call_later(self.debounce_seconds, self._on_timer)
        self.state = SyncState.SAVE_SCHEDULED

    def _on_timer(self) -> None:
        self._pending = None
        self._dispatch()

    def _dispatch(self) -> None:
        if self.is_saving:
            self._resave = True
            return
        self._worker = asyncio.get_running_loop().create_task(self._run_saves())

    async def _run_saves(self) -> bool:
        """Save the current state, then once more if a timer fired meanwhile."""
        while True:
            self._resave = False
            self.state = SyncState.SAVING
            # Snapshot at send time so a chained save carries the latest edits
            ok = await self._save(self._dataset.model_copy(deep=True))
            if not self._resave:
                break
        self._last_ok = ok
        self.state = SyncState.SAVE_SCHEDULED if self._pending is not None else SyncState.IDLE
        return ok

    async def _save(self, snapshot: Dataset) -> bool:
        ok = await self.service.save_data(snapshot)
        if not ok:
            logger.warning("Save failed; keeping local changes until the next save")
        return ok

    async def flush(self) -> bool:
        """Save now if a save is pending, and wait for the save in flight."""
        if self._pending is not None:
            self._pending.cancel()
            self._pending = None
            self._dispatch()
        elif not self.is_saving:
            return True
        await self.wait_for_saves()
        return self._last_ok

    async def wait_for_saves(self) -> None:
        """Wait until the dispatched save, and any save chained to it, has completed."""
        while self.is_saving:
            await self._worker


def _upsert(records: List, record) -> List:
    if any(r.id == record.id for r in records):
        return [record if r.id == record.id else r for r in records]
    return [record] + records
