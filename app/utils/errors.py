from fastapi import FastAPI, Request, status
from starlette.exceptions import HTTPException as StarletteHTTPException
from fastapi.exceptions import RequestValidationError
import traceback
from .logging import get_logger
from .responses import ResponseBuilder

logger = get_logger()


class QueueUnavailableError(Exception):
    """Raised when the job queue substrate (broker / job store) cannot be reached."""

    def __init__(
        self,
        message: str = "Job queue is unavailable",
        error_code: str = "QUEUE_UNAVAILABLE",
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class ReferenceNotFoundError(Exception):
    """Raised when a facilitator or course offering referenced by a job cannot be resolved."""

    def __init__(
        self, message: str = "Reference not found", error_code: str = "REFERENCE_NOT_FOUND"
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class NonRetryableJobError(Exception):
    """Base class for job failures that retrying can never fix."""

    def __init__(self, message: str, error_code: str = "NON_RETRYABLE_JOB_ERROR"):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


class UnknownNotificationTypeError(NonRetryableJobError):
    def __init__(self, notification_type: str):
        super().__init__(
            f"Unknown notification type: {notification_type}",
            error_code="UNKNOWN_NOTIFICATION_TYPE",
        )
        self.notification_type = notification_type


class InvalidJobPayloadError(NonRetryableJobError):
    def __init__(self, message: str):
        super().__init__(message, error_code="INVALID_JOB_PAYLOAD")


class JobLeaseExhaustedError(NonRetryableJobError):
    def __init__(self, message: str):
        super().__init__(message, error_code="JOB_LEASE_EXHAUSTED")


class InvalidRangeError(Exception):
    """Raised for negative pagination bounds."""

    def __init__(
        self,
        message: str = "limit and offset must be non-negative",
        error_code: str = "INVALID_RANGE",
    ):
        super().__init__(message)
        self.message = message
        self.error_code = error_code


def setup_error_handlers(app: FastAPI):
    """Setup custom error handlers."""

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        logger.error(f"HTTP Exception: {exc.status_code} - {exc.detail}")
        return ResponseBuilder.error(
            request=request,
            message=str(exc.detail),
            error_code="HTTP_ERROR",
            status_code=exc.status_code,
            meta={"http_status": exc.status_code},
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_exception_handler(
        request: Request, exc: RequestValidationError
    ):
        logger.error(f"Request Validation Error: {exc.errors()}")

        # Format validation errors for better readability
        formatted_errors = []
        for error in exc.errors():
            field_path = " -> ".join(str(loc) for loc in error["loc"])
            formatted_errors.append(
                {
                    "field": field_path,
                    "message": error["msg"],
                    "type": error["type"],
                }
            )

        return ResponseBuilder.error(
            request=request,
            message="Request validation failed",
            errors=formatted_errors,
            error_code="VALIDATION_ERROR",
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        )

    @app.exception_handler(InvalidRangeError)
    async def invalid_range_exception_handler(request: Request, exc: InvalidRangeError):
        logger.error(f"Invalid Range Error: {exc.message}")

        return ResponseBuilder.error(
            request=request,
            message=exc.message,
            error_code=exc.error_code,
            status_code=status.HTTP_400_BAD_REQUEST,
            meta={"error_type": "INVALID_RANGE_ERROR"},
        )

    @app.exception_handler(QueueUnavailableError)
    async def queue_unavailable_exception_handler(
        request: Request, exc: QueueUnavailableError
    ):
        logger.error(f"Queue Unavailable Error: {exc.message}")

        return ResponseBuilder.error(
            request=request,
            message=exc.message,
            error_code=exc.error_code,
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            meta={"error_type": "QUEUE_ERROR"},
        )

    @app.exception_handler(ValueError)
    async def value_error_handler(request: Request, exc: ValueError):
        logger.error(f"Value Error: {str(exc)}")

        return ResponseBuilder.error(
            request=request,
            message=str(exc),
            error_code="VALUE_ERROR",
            status_code=status.HTTP_400_BAD_REQUEST,
            meta={"error_type": "VALUE_ERROR"},
        )

    @app.exception_handler(Exception)
    async def general_exception_handler(request: Request, exc: Exception):
        """Handle all other unhandled exceptions"""
        logger.error(f"Unhandled Exception: {str(exc)}")
        logger.error(f"Traceback: {traceback.format_exc()}")

        return ResponseBuilder.error(
            request=request,
            message="An internal server error occurred",
            error_code="INTERNAL_ERROR",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            meta={"error_type": "INTERNAL_ERROR"},
        )
