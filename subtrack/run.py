#!/usr/bin/env python3
"""Run the SubTrack gateway"""
import uvicorn

from subtrack.core.config import settings

if __name__ == "__main__":
    uvicorn.run(
        "subtrack.main:app",
        host=settings.host,
        port=settings.port,
        reload=settings.dev_mode,
        log_level="debug" if settings.debug else "info",
    )
