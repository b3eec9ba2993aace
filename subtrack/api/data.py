"""
Data API endpoints.

Authenticated read and full overwrite of the single dataset document.
Every route re-checks the session credential; this router may be reached
without passing the gateway's page-level gate.
"""

import json
import logging
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool
from fastapi.responses import JSONResponse, PlainTextResponse

from subtrack.core.config import Settings, get_settings
from subtrack.core.errors import MalformedBodyError
from subtrack.core.schemas.dataset import EMPTY_DOCUMENT
from subtrack.core.security import require_credential, sanitize_error_message
from subtrack.core.utils.kv_store import KeyValueStore, get_store

logger = logging.getLogger(__name__)


def _reject_constant(name: str) -> Any:
    # NaN and Infinity are not JSON; a stored one would break every later read
    raise ValueError(f"Invalid JSON constant: {name}")


router = APIRouter(prefix="/api", dependencies=[Depends(require_credential)])


@router.get("/data")
def get_dataset(
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
) -> Any:
    """Return the stored dataset, or empty collections when nothing was saved yet."""
    document = store.get(settings.data_key)
    if document is None:
        return JSONResponse(content=dict(EMPTY_DOCUMENT))
    return JSONResponse(content=document)


@router.post("/data")
async def put_dataset(
    request: Request,
    store: KeyValueStore = Depends(get_store),
    settings: Settings = Depends(get_settings),
):
    """
    Overwrite the stored dataset with the request body, verbatim.

    Raises:
        MalformedBodyError: If the body is not valid JSON
    """
    body = await request.body()
    try:
        document = json.loads(body, parse_constant=_reject_constant)
    except (ValueError, UnicodeDecodeError) as e:
        logger.warning("Rejected malformed dataset body (%d bytes)", len(body))
        raise MalformedBodyError(sanitize_error_message(str(e))) from e

    await run_in_threadpool(store.put, settings.data_key, document)
    logger.info("Dataset overwritten", extra={"body_bytes": len(body)})
    return {"success": True}


@router.api_route(
    "/{path:path}",
    methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE", "OPTIONS"],
    include_in_schema=False,
)
async def api_not_found(path: str):
    return PlainTextResponse("Not found", status_code=404)
