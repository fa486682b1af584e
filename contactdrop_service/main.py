import asyncio
import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from starlette.exceptions import HTTPException as StarletteHTTPException
from starlette.datastructures import Headers
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from . import __version__
from .config import ContactDropSettings
from .services.rate_limiter import SlidingWindowRateLimiter
from .services.session_service import SessionService
from .storage.session_store import SessionStore
from .api import api_router

logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)


async def _sweep_worker(limiter: SlidingWindowRateLimiter, interval_seconds: int) -> None:
    # Periodically forget clients whose rate-limit window has emptied.
    while True:
        await asyncio.sleep(interval_seconds)
        evicted = limiter.sweep()
        if evicted:
            logger.info("Rate limiter sweep evicted %d idle clients", evicted)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = ContactDropSettings()
    app.state.settings = settings

    store = SessionStore(settings.sessions_path)
    limiter = SlidingWindowRateLimiter(
        window_ms=settings.rate_window_ms,
        max_requests=settings.rate_max,
    )
    app.state.session_store = store
    app.state.rate_limiter = limiter
    app.state.session_service = SessionService(store, contact_limit=settings.contact_limit)
    logger.info("Storing sessions in %s", store.sessions_dir)

    sweeper = asyncio.create_task(
        _sweep_worker(limiter, settings.rate_sweep_interval_seconds)
    )

    yield

    # Shutdown
    sweeper.cancel()
    try:
        await sweeper
    except asyncio.CancelledError:
        pass
    logger.info("Rate limiter sweep stopped")


app = FastAPI(
    title="ContactDrop Service",
    version=__version__,
    description="Collect participant contacts for time-limited sessions and export them as vCards",
    lifespan=lifespan,
)


class BodySizeLimitMiddleware:
    """Reject request bodies larger than ``max_body_bytes`` with 413.

    Checks the declared Content-Length first. Bodies sent without one are
    counted chunk by chunk and rejected as soon as they pass the limit; the
    chunks read so far are replayed to the route otherwise.
    """

    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limit = scope["app"].state.settings.max_body_bytes
        headers = Headers(scope=scope)
        declared = headers.get("content-length")

        if declared is not None:
            try:
                too_large = int(declared) > limit
            except ValueError:
                response = JSONResponse(status_code=400, content={"error": "Invalid Content-Length"})
                await response(scope, receive, send)
                return
            if too_large:
                await self._reject(scope, receive, send)
                return
            await self.app(scope, receive, send)
            return

        if scope["method"] not in ("POST", "PUT", "PATCH"):
            await self.app(scope, receive, send)
            return

        buffered = []
        received = 0
        while True:
            message = await receive()
            buffered.append(message)
            if message["type"] != "http.request":
                break
            received += len(message.get("body", b""))
            if received > limit:
                await self._reject(scope, receive, send)
                return
            if not message.get("more_body", False):
                break

        async def replay() -> Message:
            if buffered:
                return buffered.pop(0)
            return await receive()

        await self.app(scope, replay, send)

    async def _reject(self, scope: Scope, receive: Receive, send: Send) -> None:
        logger.warning("Rejected oversized body on %s", scope["path"])
        response = JSONResponse(status_code=413, content={"error": "Payload too large"})
        await response(scope, receive, send)


app.add_middleware(BodySizeLimitMiddleware)


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    return JSONResponse(status_code=422, content={"error": "Invalid input"})


app.include_router(api_router)


if __name__ == "__main__":
    import uvicorn

    settings = ContactDropSettings()
    uvicorn.run(
        "contactdrop_service.main:app",
        host=settings.host,
        port=settings.port,
    )
