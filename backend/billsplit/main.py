import logging
import time

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Receive, Scope, Send

from billsplit.api.assignments import router as assignments_router
from billsplit.api.participants import router as participants_router
from billsplit.api.receipts import router as receipts_router
from billsplit.api.sessions import router as sessions_router
from billsplit.core.config import settings
from billsplit.core.errors import AppError

logging.basicConfig(level=settings.log_level)
logger = logging.getLogger(__name__)

app = FastAPI(title="Bill Split API", version="0.1.0")

cors_origins = settings.cors_origins.split(",")


class TimingMiddleware:
    """Plain ASGI middleware that logs method, path, status and duration."""
    def __init__(self, app: ASGIApp):
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send):
        if scope["type"] != "http":
            return await self.app(scope, receive, send)

        t0 = time.perf_counter()
        status_code = 0

        async def send_wrapper(message):
            nonlocal status_code
            if message["type"] == "http.response.start":
                status_code = message["status"]
            await send(message)

        await self.app(scope, receive, send_wrapper)
        ms = int((time.perf_counter() - t0) * 1000)
        method = scope.get("method", "?")
        path = scope.get("path", "?")
        logger.info(f"{method} {path} -> {status_code} in {ms}ms")


app.add_middleware(TimingMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.exception_handler(AppError)
async def app_error_handler(request: Request, err: AppError):
    if err.http_status >= 500:
        logger.error(f"{request.method} {request.url.path} failed: {err!r} detail={err.detail}")
    else:
        logger.info(f"{request.method} {request.url.path} rejected: {err!r}")
    return JSONResponse(status_code=err.http_status, content=err.to_dict())


app.include_router(sessions_router)
app.include_router(receipts_router)
app.include_router(participants_router)
app.include_router(assignments_router)


@app.get("/api/health")
async def health():
    return {"status": "ok"}
