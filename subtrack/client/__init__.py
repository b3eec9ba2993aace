"""Client-side synchronization with the gateway's data API."""

from subtrack.client.data_service import DataService, UnreadableDatasetError
from subtrack.client.scheduler import AsyncioScheduler, Scheduler
from subtrack.client.sync import SyncController, SyncState

__all__ = ["DataService", "UnreadableDatasetError", "AsyncioScheduler", "Scheduler", "SyncController", "SyncState"]
