import asyncio
import uuid

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from tuberelay.api import download, health, info
from tuberelay.config.settings import config
from tuberelay.core.errors import RelayError
from tuberelay.core.logging import log_error, log_warning, logger, setup_logging
from tuberelay.core.state import state
from tuberelay.i18n import i18n
from tuberelay.services.ytdlp import SubprocessExecutor, YTDLPCommandBuilder
from tuberelay.utils.locale import get_locale

setup_logging()

app = FastAPI(
    title=config.api.title,
    version=config.api.version,
    docs_url="/docs" if config.api.debug else None,
    redoc_url=None
)

# CORS
app.add_middleware(
    CORSMiddleware,
    allow_origins=config.api.cors_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["Content-Disposition", "Content-Length", "X-Request-ID"],
)


@app.middleware("http")
async def request_id_middleware(request: Request, call_next):
    request.state.request_id = request.headers.get("x-request-id") or uuid.uuid4().hex
    response = await call_next(request)
    response.headers["X-Request-ID"] = request.state.request_id
    return response


def error_response(request: Request, status_code: int, key: str, **kwargs) -> JSONResponse:
    _ = i18n.translator(get_locale(request.headers.get("accept-language")))
    return JSONResponse(status_code=status_code, content={"error": _(key, **kwargs)})


@app.exception_handler(RelayError)
async def relay_error_handler(request: Request, exc: RelayError):
    if exc.status_code >= 500:
        log_error(request, f"{type(exc).__name__}: {exc.reason}")
    else:
        log_warning(request, f"{type(exc).__name__}: {exc.reason}")
    return error_response(request, exc.status_code, exc.message_key)


@app.exception_handler(RequestValidationError)
async def validation_error_handler(request: Request, exc: RequestValidationError):
    errors = exc.errors()
    reason = errors[0].get("msg", "invalid input") if errors else "invalid input"
    log_warning(request, f"Request validation failed: {reason}")
    return error_response(request, 400, "error.invalid_request", reason=reason)


@app.exception_handler(Exception)
async def unexpected_error_handler(request: Request, exc: Exception):
    log_error(request, f"Unexpected error: {type(exc).__name__}: {exc}")
    return error_response(request, 500, "error.unexpected")


# Routes
app.include_router(health.router, tags=["Health"])
app.include_router(info.router, tags=["Info"])
app.include_router(download.router, tags=["Download"])


@app.on_event("startup")
async def startup_event():
    try:
        result = await SubprocessExecutor.run(YTDLPCommandBuilder.build_version_command(), timeout=10.0)
    except (OSError, asyncio.TimeoutError) as e:
        logger.warning(f"yt-dlp not available: {e}")
        return

    if result.returncode == 0:
        state.ytdlp_version = result.stdout.decode().strip()
        logger.info(f"yt-dlp {state.ytdlp_version}")
    else:
        logger.warning(f"yt-dlp --version exited with {result.returncode}")
