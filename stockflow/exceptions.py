"""Domain exception hierarchy rendered as structured error responses."""

from __future__ import annotations


class AppException(Exception):
    """Base exception for all domain errors.

    Subclasses set ``code`` and ``status_code`` at the class level; callers
    provide ``message`` and an optional ``details`` list.
    """

    code: str = "APP_ERROR"
    status_code: int = 500

    def __init__(self, message: str, details: list[dict] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or []


class NotFoundException(AppException):
    code = "NOT_FOUND"
    status_code = 404


class InvalidStateException(AppException):
    """An operation was attempted from a status that does not permit it."""

    code = "INVALID_STATE"
    status_code = 400


class ForbiddenException(AppException):
    code = "FORBIDDEN"
    status_code = 403


class TenantRequiredException(ForbiddenException):
    code = "TENANT_REQUIRED"

    def __init__(
        self,
        message: str = "Tenant context required. Ensure you are authenticated.",
        details: list[dict] | None = None,
    ) -> None:
        super().__init__(message, details)


class UnauthorizedException(AppException):
    code = "UNAUTHORIZED"
    status_code = 401


class ValidationException(AppException):
    code = "VALIDATION_ERROR"
    status_code = 422
