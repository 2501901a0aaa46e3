"""Error taxonomy shared by every layer.

Each error carries the HTTP status it maps to; the global handlers in
``habitbank.middleware.error_handler`` turn them into ``{"error": ...}``
responses. Nothing is retried and nothing is rolled back.
"""

from __future__ import annotations


class HabitBankError(Exception):
    """Base class for errors that surface to API callers."""

    status_code = 500

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class UnauthorizedError(HabitBankError):
    """No valid session, or the identity provider gave us nothing usable."""

    status_code = 401


class ForbiddenError(HabitBankError):
    """Session present but the role is insufficient."""

    status_code = 403


class ValidationError(HabitBankError):
    """A required field is missing or malformed."""

    status_code = 400


class InsufficientCreditsError(ValidationError):
    """Reward claim rejected because the balance is too low."""


class NotFoundError(HabitBankError):
    """Referenced user, reward or key is absent."""

    status_code = 404


class StoreError(HabitBankError):
    """The underlying key-value call failed. The raw message is preserved."""

    status_code = 500
