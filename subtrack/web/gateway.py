"""Catch-all page gate in front of the static content proxy."""

from fastapi import APIRouter, Depends, Request

from subtrack.core.config import Settings, get_settings
from subtrack.core.security import SessionAuthenticator, get_authenticator, is_authenticated
from subtrack.core.templates import render_login_page
from subtrack.web.proxy import StaticContentProxy, get_proxy

router = APIRouter()


@router.api_route(
    "/{path:path}",
    methods=["GET", "HEAD", "POST", "PUT", "PATCH", "DELETE"],
    include_in_schema=False,
)
async def gated_content(
    request: Request,
    path: str,
    authenticator: SessionAuthenticator = Depends(get_authenticator),
    settings: Settings = Depends(get_settings),
    proxy: StaticContentProxy = Depends(get_proxy),
):
    """
    Serve static content to authenticated sessions.

    Unauthenticated requests get the login form in place of the page,
    never a redirect.
    """
    if not is_authenticated(request, authenticator, settings.cookie_name):
        return render_login_page(request)
    return await proxy.forward(request.url.path, request.headers.get("accept"))
