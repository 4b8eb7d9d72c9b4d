"""CLI device authorization routes."""

from fastapi import APIRouter, Depends, Request

from deviceauth.auth import BrowserSession, get_browser_session
from deviceauth.models.device_auth import (
    InitiateResponse,
    PollRequest,
    PollResponse,
    VerifyRequest,
    VerifyResponse,
)
from deviceauth.services import device_auth
from deviceauth.utils.urls import resolve_base_url

router = APIRouter(prefix="/api/cli/auth", tags=["device_auth"])


@router.post("/initiate")
async def initiate(request: Request) -> InitiateResponse:
    """
    Start a device authorization flow (CLI).

    Returns the device code to poll with, the user code to show, and
    where the user should enter it.
    """
    base_url = resolve_base_url(request.headers, request.url.scheme)
    return await device_auth.initiate(base_url)


@router.post("/verify")
async def verify(
    body: VerifyRequest,
    browser: BrowserSession = Depends(get_browser_session),
) -> VerifyResponse:
    """
    Verify a user code (browser, requires session cookie).

    Links the code to the logged-in user and creates the CLI session.
    """
    return await device_auth.verify(browser.user, body.user_code, browser.session_id)


@router.post("/poll", response_model_exclude_none=True)
async def poll(body: PollRequest) -> PollResponse:
    """
    Poll for device authorization status (CLI).

    Polls faster than the advertised interval get 429.
    """
    return await device_auth.poll(body.device_code)
