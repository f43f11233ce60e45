"""
Domain error taxonomy shared by every service.

Services raise these instead of HTTPException so the same code paths can be
driven from tests or scripts without a request. register_exception_handlers()
renders each one as {"error": ..., "code": ...} with its HTTP status.
"""
import structlog
from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

logger = structlog.get_logger(__name__)


class ServiceError(Exception):
    status_code = status.HTTP_500_INTERNAL_SERVER_ERROR
    code = "internal_error"

    def __init__(self, message: str, **extra):
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_body(self) -> dict:
        return {"error": self.message, "code": self.code, **self.extra}


class ValidationError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "validation_error"


class NotFoundError(ServiceError):
    status_code = status.HTTP_404_NOT_FOUND
    code = "not_found"


class UnavailableError(ServiceError):
    """The entity exists but cannot be purchased."""
    status_code = status.HTTP_400_BAD_REQUEST
    code = "unavailable"


class InvalidStateError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "invalid_state"


class AuthenticationError(ServiceError):
    status_code = status.HTTP_401_UNAUTHORIZED
    code = "not_authenticated"


class AuthorizationError(ServiceError):
    status_code = status.HTTP_403_FORBIDDEN
    code = "forbidden"


class PaymentDeclinedError(ServiceError):
    status_code = status.HTTP_400_BAD_REQUEST
    code = "payment_failed"


class DependencyError(ServiceError):
    status_code = status.HTTP_502_BAD_GATEWAY
    code = "dependency_error"


async def service_error_handler(request: Request, exc: ServiceError) -> JSONResponse:
    headers = None
    if isinstance(exc, AuthenticationError):
        headers = {"WWW-Authenticate": "Bearer"}
    return JSONResponse(status_code=exc.status_code, content=exc.to_body(), headers=headers)


async def request_validation_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    # Malformed bodies are a ValidationError like any other missing field
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error": "Invalid request payload.",
            "code": ValidationError.code,
            "details": [
                {"loc": list(err.get("loc", ())), "msg": err.get("msg")}
                for err in exc.errors()
            ],
        },
    )


async def database_error_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("database_error", path=request.url.path, error=str(exc))
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"error": "Database operation failed.", "code": DependencyError.code},
    )


def register_exception_handlers(app: FastAPI):
    app.add_exception_handler(ServiceError, service_error_handler)
    app.add_exception_handler(RequestValidationError, request_validation_handler)
    app.add_exception_handler(SQLAlchemyError, database_error_handler)
