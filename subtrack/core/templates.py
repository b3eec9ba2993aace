"""Shared template configuration for web routes"""

from pathlib import Path
from typing import Optional

from fastapi import Request
from fastapi.responses import HTMLResponse
from fastapi.templating import Jinja2Templates

from subtrack.core.config import settings

# Get package directory
PACKAGE_DIR = Path(__file__).parent.parent

# Create shared templates instance
templates = Jinja2Templates(directory=str(PACKAGE_DIR / "templates"))


def render_login_page(request: Request, error: Optional[str] = None) -> HTMLResponse:
    """Login form served in place of any gated page, always with status 200."""
    return templates.TemplateResponse(
        request,
        "login.html",
        {"app_name": settings.app_name, "error": error},
    )


# Export for use in routes
__all__ = ["templates", "render_login_page"]
