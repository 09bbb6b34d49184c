"""
Custom exceptions for the license system.
"""

from __future__ import annotations


class LicenseError(Exception):
    """Base exception; carries the HTTP status it maps to."""

    status_code: int = 500

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.message = message
        if status_code is not None:
            self.status_code = status_code


class ValidationError(LicenseError):
    """Exception for missing or malformed input."""

    status_code = 400


class NotFoundError(LicenseError):
    """Exception for unknown license keys."""

    status_code = 404


class ForbiddenError(LicenseError):
    """Exception for a known license in a state that disallows the call."""

    status_code = 403


class UnauthorizedError(LicenseError):
    """Exception for a rejected administrative credential."""

    status_code = 401


class InternalError(LicenseError):
    """Exception for persistence or unexpected failures."""

    status_code = 500
