"""Unified error handling — service, source and config errors → JSON."""

from __future__ import annotations

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from greport.core.config import ConfigError
from greport.core.github import InvalidRepoFormatError
from greport.engines.source.errors import (
    RateLimitError,
    SourceError,
    SourceNetworkError,
    SourceNotFoundError,
    SourceUnauthorizedError,
)
from greport.engines.source.registry import OrgNotConfiguredError
from greport.services import NotFoundError, ServiceError, ValidationError

_STATUS_MAP: dict[type[Exception], int] = {
    NotFoundError: 404,
    ValidationError: 422,
    SourceNotFoundError: 404,
    SourceUnauthorizedError: 401,
    RateLimitError: 429,
    SourceNetworkError: 503,
    OrgNotConfiguredError: 400,
}


def _status_for(exc: Exception, default: int) -> int:
    for cls in type(exc).__mro__:
        if cls in _STATUS_MAP:
            return _STATUS_MAP[cls]
    return default


async def _service_error_handler(_request: Request, exc: ServiceError) -> JSONResponse:
    return JSONResponse(status_code=_status_for(exc, 500), content={"detail": str(exc)})


async def _source_error_handler(_request: Request, exc: SourceError) -> JSONResponse:
    status = _status_for(exc, 502)
    headers = {}
    if isinstance(exc, RateLimitError):
        headers["Retry-After"] = str(int(exc.retry_after))
    return JSONResponse(status_code=status, content={"detail": str(exc)}, headers=headers)


async def _config_error_handler(_request: Request, exc: ConfigError) -> JSONResponse:
    return JSONResponse(status_code=_status_for(exc, 500), content={"detail": str(exc)})


async def _invalid_repo_handler(_request: Request, exc: InvalidRepoFormatError) -> JSONResponse:
    return JSONResponse(status_code=422, content={"detail": str(exc)})


async def _validation_error_handler(
    _request: Request, exc: RequestValidationError
) -> JSONResponse:
    messages = []
    for err in exc.errors():
        loc = " → ".join(str(part) for part in err["loc"])
        messages.append(f"{loc}: {err['msg']}")
    return JSONResponse(status_code=422, content={"detail": "; ".join(messages)})


def register_error_handlers(app: FastAPI) -> None:
    """Register exception handlers on the app."""
    app.add_exception_handler(ServiceError, _service_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(SourceError, _source_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(ConfigError, _config_error_handler)  # type: ignore[arg-type]
    app.add_exception_handler(InvalidRepoFormatError, _invalid_repo_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_error_handler)  # type: ignore[arg-type]
