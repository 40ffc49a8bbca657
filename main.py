# type: ignore
# pyright: reportMissingImports=false, reportGeneralTypeErrors=false
"""
Kutu Service
============
Tracks rotating savings group (ROSCA) cycles: members contribute a fixed
amount each round and exactly one member receives the pooled payout per
round, until every member has been paid once.

Group lifecycle:
    Pending ─► Active ─► Completed
    (roster edit / reset ─► Pending, round history discarded)

Port: 8010
"""

from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from kutu.controllers import group_controller, report_controller, system_controller
from kutu.core.config import settings
from kutu.core.dependencies import get_group_repo, get_group_service
from kutu.core.exceptions import RotationError
from kutu.core.logging import get_logger
from kutu.middleware import MetricsMiddleware, RequestIDMiddleware
from kutu.schemas.groups import ErrorResponse

logger = get_logger(settings.SERVICE_NAME)


# ── Lifespan ──────────────────────────────────────────────────────────────
@asynccontextmanager
async def lifespan(application: FastAPI):
    """Load persisted groups at startup; seed samples into an empty store."""
    service = get_group_service()
    loaded = service.load_from_store()
    if loaded == 0 and settings.SEED_DEFAULT_GROUPS:
        service.seed_defaults()
    logger.info("%s v%s started with %d groups",
                settings.SERVICE_NAME, settings.SERVICE_VERSION, get_group_repo().count())
    yield
    logger.info("Shutting down")


# ── FastAPI App ───────────────────────────────────────────────────────────
app = FastAPI(
    title="Kutu Service",
    description="Rotating savings group cycles: payments, payouts and rounds.",
    version=settings.SERVICE_VERSION,
    lifespan=lifespan,
    responses={
        400: {"model": ErrorResponse, "description": "Validation error"},
        404: {"model": ErrorResponse, "description": "Group not found"},
        409: {"model": ErrorResponse, "description": "Command not allowed in current state"},
        500: {"model": ErrorResponse, "description": "Internal server error"},
    },
)

app.add_middleware(MetricsMiddleware)
app.add_middleware(RequestIDMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ── Exception handlers ───────────────────────────────────────────────────
@app.exception_handler(RotationError)
async def rotation_error_handler(request: Request, exc: RotationError):
    req_id = getattr(request.state, "request_id", None)
    if exc.status_code >= 500:
        logger.error("Group state error: %s", exc.message, extra={"request_id": req_id})
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.code, "detail": exc.message, "request_id": req_id},
    )


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    req_id = getattr(request.state, "request_id", None)
    logger.exception("Unhandled exception", extra={"request_id": req_id})
    return JSONResponse(
        status_code=500,
        content={"error": "internal_server_error", "detail": str(exc), "request_id": req_id},
    )


app.include_router(system_controller.router)
app.include_router(group_controller.router)
app.include_router(report_controller.router)


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(app, host="0.0.0.0", port=settings.SERVICE_PORT)
