"""
HTTP access to the gateway's ``/api/data`` endpoint.

A failed fetch yields an empty dataset and a failed save returns False, both
after logging. A stored document that cannot be read as a dataset is raised
rather than replaced, so it is never overwritten by an empty copy.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

import httpx
from pydantic import ValidationError

from subtrack.core.schemas.dataset import Dataset

logger = logging.getLogger(__name__)

API_PATH = "/api/data"


class NotAuthenticatedError(Exception):
    """The gateway answered 401 for a data call."""


class UnreadableDatasetError(Exception):
    """The gateway returned a document that does not parse as a dataset."""


class DataService:
    """
    Reads and overwrites the remote dataset.

    Args:
        base_url: Gateway root, e.g. ``https://subtrack.example.com``
        client: Optional preconfigured client (carries the session cookie)
        on_unauthorized: Called on a 401; the caller re-runs the login flow
    """

    def __init__(
        self,
        base_url: str,
        client: Optional[httpx.AsyncClient] = None,
        on_unauthorized: Optional[Callable[[], None]] = None,
    ):
        self._owns_client = client is None
        self.client = client or httpx.AsyncClient(base_url=base_url, timeout=15.0)
        self.on_unauthorized = on_unauthorized

    def _check(self, response: httpx.Response, action: str) -> None:
        if response.status_code == 401:
            if self.on_unauthorized is not None:
                self.on_unauthorized()
            raise NotAuthenticatedError("Not authenticated")
        if not response.is_success:
            raise RuntimeError(f"Failed to {action} data: {response.status_code}")

    async def fetch_data(self) -> Dataset:
        """
        Load the full dataset, or an empty one if the fetch fails.

        Raises:
            UnreadableDatasetError: If the gateway answered with a JSON document
                that is not shaped like a dataset
        """
        try:
            response = await self.client.get(API_PATH)
            self._check(response, "fetch")
            document = response.json()
        except (httpx.HTTPError, NotAuthenticatedError, RuntimeError, ValueError) as e:
            logger.error("Error fetching data: %s", e)
            return Dataset.empty()

        try:
            return Dataset.model_validate(document)
        except ValidationError as e:
            # Real data is stored here; never stand in an empty copy for it
            logger.error("Stored dataset is not readable: %s", e)
            raise UnreadableDatasetError(str(e)) from e

    async def save_data(self, dataset: Dataset) -> bool:
        """Overwrite the remote dataset; True on success."""
        try:
            response = await self.client.post(API_PATH, json=dataset.to_document())
            self._check(response, "save")
            return True
        except (httpx.HTTPError, NotAuthenticatedError, RuntimeError) as e:
            logger.error("Error saving data: %s", e)
            return False

    async def aclose(self) -> None:
        if self._owns_client:
            await self.client.aclose()
