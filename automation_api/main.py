from __future__ import annotations

import logging
import os
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from common.db import get_engine
from common.schema import ensure_schema

from .endpoints import (
    alerts_router,
    devices_router,
    health_router,
    logs_router,
    rules_router,
    telemetry_router,
)
from .errors import (
    AutomationError,
    NotFoundError,
    RejectedManualOverride,
    StateConflictError,
    ValidationError,
)

logging.basicConfig(
    level=os.getenv("LOG_LEVEL", "INFO"),
    format="%(asctime)s - %(levelname)s - %(name)s - %(message)s",
)
logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    ensure_schema(get_engine())
    yield


app = FastAPI(title="Farm Automation Service", version="0.1.0", lifespan=lifespan)

app.include_router(health_router)
app.include_router(telemetry_router)
app.include_router(rules_router)
app.include_router(devices_router)
app.include_router(alerts_router)
app.include_router(logs_router)


_STATUS_BY_ERROR = (
    (ValidationError, 422),
    (NotFoundError, 404),
    (RejectedManualOverride, 409),
    (StateConflictError, 409),
)


@app.exception_handler(AutomationError)
def automation_error_handler(request: Request, exc: AutomationError):
    status_code = 400
    for error_cls, code in _STATUS_BY_ERROR:
        if isinstance(exc, error_cls):
            status_code = code
            break

    body = {"detail": str(exc), "error": type(exc).__name__}
    if isinstance(exc, ValidationError):
        body["field"] = exc.field
    logger.info("[API] %s %s -> %d %s", request.method, request.url.path, status_code, type(exc).__name__)
    return JSONResponse(status_code=status_code, content=body)

