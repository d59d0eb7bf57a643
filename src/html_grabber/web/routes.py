# ABOUTME: FastAPI route handlers for the grabber web API.
# ABOUTME: Exposes grab-by-URL and grab-by-HTML endpoints returning JSON pages.

import httpx
import structlog
from fastapi import APIRouter, HTTPException, Query, Request
from pydantic import BaseModel

from html_grabber.errors import BadStatusError, GrabError, TooManyRedirectsError
from html_grabber.models import GrabbedPage

log = structlog.get_logger()
router = APIRouter()


class GrabRequest(BaseModel):
    """Raw HTML to grab, with the address it came from."""

    html: str
    url: str | None = None


def _http_error(error: GrabError) -> HTTPException:
    """Map a grab failure to an HTTP error."""
    if isinstance(error, BadStatusError | TooManyRedirectsError):
        return HTTPException(status_code=502, detail=str(error))
    return HTTPException(status_code=422, detail=str(error))


@router.get("/health")
async def health():
    return {"status": "ok"}


@router.get("/api/grab", response_model=GrabbedPage, response_model_by_alias=True)
async def grab_url(request: Request, url: str = Query(..., min_length=1)):
    """Fetch a page and return its grabbed content."""
    grabber = request.app.state.grabber
    try:
        return await grabber.grab_url(url)
    except GrabError as e:
        log.warning("grab_failed", url=url, error=str(e))
        raise _http_error(e) from e
    except httpx.HTTPError as e:
        log.warning("grab_fetch_failed", url=url, error=str(e))
        raise HTTPException(status_code=502, detail=str(e)) from e


@router.post("/api/grab", response_model=GrabbedPage, response_model_by_alias=True)
async def grab_html(request: Request, payload: GrabRequest):
    """Grab the content of posted HTML."""
    grabber = request.app.state.grabber
    try:
        return await grabber.grab(payload.html, payload.url)
    except GrabError as e:
        log.warning("grab_failed", url=payload.url, error=str(e))
        raise _http_error(e) from e
    except httpx.HTTPError as e:
        log.warning("grab_fetch_failed", url=payload.url, error=str(e))
        raise HTTPException(status_code=502, detail=str(e)) from e
