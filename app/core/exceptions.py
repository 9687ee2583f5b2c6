"""HTTP-facing exceptions raised by routers and dependencies."""

from typing import Any

from fastapi import HTTPException


class AppError(HTTPException):
    status_code: int = 500

    def __init__(self, detail: Any = "Internal server error", headers: dict[str, str] | None = None):
        super().__init__(status_code=self.status_code, detail=detail, headers=headers)


class BadRequestError(AppError):
    status_code = 400


class UnauthorizedError(AppError):
    status_code = 401

    def __init__(self, detail: Any = "Not authenticated"):
        super().__init__(detail=detail, headers={"WWW-Authenticate": "Bearer"})


class ForbiddenError(AppError):
    status_code = 403


class NotFoundError(AppError):
    status_code = 404


class ConflictError(AppError):
    status_code = 409


class PayloadTooLargeError(AppError):
    status_code = 413


class UnsupportedMediaTypeError(AppError):
    status_code = 415


class UnprocessableError(AppError):
    status_code = 422


class BadGatewayError(AppError):
    status_code = 502


class ServiceUnavailableError(AppError):
    status_code = 503


class GatewayTimeoutError(AppError):
    status_code = 504
