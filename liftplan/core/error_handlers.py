from datetime import datetime

from fastapi import Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from liftplan.core.exceptions import (
    AuthorizationError,
    ConflictError,
    DomainError,
    MissingContextError,
    NotFoundError,
    PlanResolutionError,
    StatsParamsError,
    UnsupportedDefinitionKindError,
    ValidationError,
)
from liftplan.core.logging import get_logger

logger = get_logger(__name__)


ERROR_STATUS_MAP: dict[type[DomainError], int] = {
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ValidationError: status.HTTP_400_BAD_REQUEST,
    ConflictError: status.HTTP_409_CONFLICT,
    AuthorizationError: status.HTTP_403_FORBIDDEN,
    PlanResolutionError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    UnsupportedDefinitionKindError: status.HTTP_422_UNPROCESSABLE_ENTITY,
    MissingContextError: status.HTTP_400_BAD_REQUEST,
    StatsParamsError: status.HTTP_400_BAD_REQUEST,
}


def error_envelope(request: Request, status_code: int, code: str, message: str, details: dict) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "data": None,
            "meta": {
                "request_id": getattr(request.state, "request_id", None),
                "timestamp": datetime.utcnow().isoformat() + "Z",
            },
            "errors": [{"code": code, "message": message, "details": details}],
        },
    )


async def domain_error_handler(request: Request, exc: DomainError) -> JSONResponse:
    status_code = ERROR_STATUS_MAP.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    if status_code >= 500:
        logger.error("unmapped_domain_error", code=exc.code, message=exc.message)
    return error_envelope(request, status_code, exc.code, exc.message, exc.details)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Malformed request bodies and query strings share the domain error envelope."""
    return error_envelope(
        request,
        status.HTTP_400_BAD_REQUEST,
        "VAL_REQUEST_001",
        "Request validation failed",
        {"errors": jsonable_encoder(exc.errors())},
    )
