from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException

from app.common.exceptions import AppError
from app.common.response import ErrorResponse
from app.core.config import settings
from app.logger_config import logger


def register_error_handlers(app: FastAPI):
    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, e: AppError):
        logger.warning(f"{request.method} {request.url.path} - {type(e).__name__}: {e.message}")
        return ErrorResponse.send(message=e.message, status_code=e.status_code, details=e.details)

    @app.exception_handler(RequestValidationError)
    async def handle_validation_error(request: Request, e: RequestValidationError):
        errors = [
            {
                "field": ".".join(str(part) for part in err.get("loc", ())[1:]),
                "message": err.get("msg"),
            }
            for err in e.errors()
        ]
        return ErrorResponse.send(message="Validation failed", status_code=400, details=errors)

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, e: StarletteHTTPException):
        # Handle HTTP (e.g. 404, 405)
        message = e.detail if isinstance(e.detail, str) else "Request failed"
        if e.status_code == 404 and e.detail == "Not Found":
            message = "Route not found"
        return ErrorResponse.send(message=message, status_code=e.status_code)

    @app.exception_handler(Exception)
    async def handle_exception(request: Request, e: Exception):
        # Log the exception with traceback
        logger.exception(f"Unhandled exception occurred on {request.method} {request.url.path}")

        # Handle all other exceptions (coding, DB errors, etc.)
        return ErrorResponse.send(
            message="Internal Server Error",
            status_code=500,
            details=None if settings.is_production else str(e),
        )
