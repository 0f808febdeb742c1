from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error response schema."""

    error: str
    detail: str | None = None
    status_code: int


class AppError(Exception):
    """Base application exception."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, status_code: int | None = None) -> None:
        self.message = message
        if status_code is not None:
            self.status_code = status_code
        super().__init__(self.message)


class NotFound(AppError):
    """Employee, rule, balance, assignment or leave request is missing."""

    status_code = status.HTTP_404_NOT_FOUND


class NoBalanceConfigured(NotFound):
    """No ledger row exists for the employee, leave type and year."""


class InsufficientBalance(AppError):
    """A debit would push used past total allowed."""

    status_code = status.HTTP_400_BAD_REQUEST


class InvalidDateRange(AppError):
    """End before start, past dates, or a range outside the allowed year."""

    status_code = status.HTTP_400_BAD_REQUEST


class LeaveWindowRejected(InvalidDateRange):
    """The leave window overlaps weekends or holidays without sandwiching."""


class MissingApprover(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class MissingDocument(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class IneligibleEmployee(AppError):
    status_code = status.HTTP_400_BAD_REQUEST


class NotAuthorized(AppError):
    status_code = status.HTTP_403_FORBIDDEN


class DuplicateRule(AppError):
    status_code = status.HTTP_409_CONFLICT


class DuplicateAssignment(AppError):
    status_code = status.HTTP_409_CONFLICT


class AssignmentInUse(AppError):
    """Unassignment blocked because leave history exists for the leave type."""

    status_code = status.HTTP_409_CONFLICT


class RuleInUse(AppError):
    status_code = status.HTTP_409_CONFLICT


class InvalidStatusTransition(AppError):
    status_code = status.HTTP_409_CONFLICT


class ConcurrentUpdateConflict(AppError):
    """A ledger row changed between read and write."""

    status_code = status.HTTP_409_CONFLICT


async def _app_exception_handler(request: Request, exc: AppError) -> JSONResponse:
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(
            error=type(exc).__name__,
            detail=exc.message,
            status_code=exc.status_code,
        ).model_dump(),
    )


async def _validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content=ErrorResponse(
            error="ValidationError",
            detail=str(exc.errors()),
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        ).model_dump(),
    )


def setup_exception_handlers(app: FastAPI) -> None:
    """Register exception handlers on the application."""
    app.add_exception_handler(AppError, _app_exception_handler)  # type: ignore[arg-type]
    app.add_exception_handler(RequestValidationError, _validation_exception_handler)  # type: ignore[arg-type]
