"""Login and logout routes.

Both are reachable without a session: they are registered ahead of the
gateway's catch-all gate.
"""

import logging

from fastapi import APIRouter, Depends, Request
from fastapi.responses import RedirectResponse

from subtrack.core.config import Settings, get_settings
from subtrack.core.logging_config import log_security_event
from subtrack.core.security import (
    SessionAuthenticator,
    apply_credential_cookie,
    get_authenticator,
    sanitize_error_message,
)
from subtrack.core.templates import render_login_page

logger = logging.getLogger(__name__)

router = APIRouter()


def _client_ip(request: Request) -> str:
    return request.client.host if request.client else "unknown"


@router.post("/login")
async def login(
    request: Request,
    authenticator: SessionAuthenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_settings),
):
    """Check the submitted password; redirect home with the session cookie on success."""
    try:
        form = await request.form()
    except Exception as e:
        logger.warning("Could not parse login form: %s", e)
        return render_login_page(request, f"Login failed: {sanitize_error_message(str(e))}")

    password = form.get("password")
    credential = authenticator.issue_credential(password if isinstance(password, str) else None)
    if credential is None:
        log_security_event("login_failed", "Login rejected: invalid password", ip_address=_client_ip(request))
        return render_login_page(request, "Invalid password")

    log_security_event("login", "Login succeeded", ip_address=_client_ip(request))
    response = RedirectResponse(url="/", status_code=302)
    apply_credential_cookie(response, credential, settings.cookie_name)
    return response


@router.api_route("/logout", methods=["GET", "POST"])
async def logout(
    request: Request,
    authenticator: SessionAuthenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_settings),
):
    log_security_event("logout", "Session cookie cleared", ip_address=_client_ip(request))
    response = RedirectResponse(url="/", status_code=302)
    apply_credential_cookie(response, authenticator.revoke(), settings.cookie_name)
    return response
