import logging
import traceback
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, PlainTextResponse

from antiproxy.api.proxy import router as proxy_router
from antiproxy.core.config import settings, validate_settings
from antiproxy.core.logging import setup_logging
from antiproxy.core.metrics import metrics_response
from antiproxy.gateway.dispatcher import create_dispatcher
from antiproxy.gateway.upstream import build_http_client

# Configure logging before anything else
setup_logging()

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Startup
    validate_settings()
    client = build_http_client()
    app.state.dispatcher = create_dispatcher(client)
    logger.info("Anti-Proxy starting on http://%s:%d", settings.app_host, settings.app_port)
    logger.info("429 handling: returned to caller (no retry)")

    yield

    # Shutdown
    await client.aclose()
    logger.info("Anti-Proxy shut down")


app = FastAPI(
    title="Anti-Proxy",
    description="Serializing, rate-limited forwarder with endpoint failover",
    version="1.0.0",
    lifespan=lifespan,
)


@app.exception_handler(Exception)
async def _unhandled_exception_handler(request: Request, exc: Exception):
    tb = traceback.format_exception(type(exc), exc, exc.__traceback__)
    logger.error("Unhandled %s on %s %s:\n%s", type(exc).__name__, request.method, request.url.path, "".join(tb))
    return JSONResponse(
        status_code=500,
        content={"success": False, "data": None, "error": f"{type(exc).__name__}: {exc}", "status_code": 500},
    )


# CORS: parse allowed_origins from settings (comma-separated)
_origins = [o.strip() for o in settings.allowed_origins.split(",") if o.strip()]
app.add_middleware(
    CORSMiddleware,
    allow_origins=_origins,
    # Credentials cannot be combined with a wildcard origin
    allow_credentials="*" not in _origins,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(proxy_router)


@app.get("/health", response_class=PlainTextResponse)
async def health():
    return "OK"


@app.get("/metrics", include_in_schema=False)
async def metrics():
    return metrics_response()


def run() -> None:
    """Console entry point."""
    import uvicorn

    uvicorn.run(app, host=settings.app_host, port=settings.app_port, log_config=None)


if __name__ == "__main__":
    run()
