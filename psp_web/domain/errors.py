from __future__ import annotations

from typing import Any, Optional


class AuthenticationRequired(Exception):
    """No usable session: the visitor must sign in again."""


class GenerationError(Exception):
    """
    Single failure channel for calls to the generation functions.
    Subclasses keep the three failure tiers apart for logging and tests.
    """

    def __init__(self, message: str, *, function_name: str = ""):
        super().__init__(message)
        self.function_name = function_name


class TransportError(GenerationError):
    """The invocation itself failed (network, relay, non-2xx, authorization)."""


class ApplicationError(GenerationError):
    """The function answered 2xx but reported an `error` in its body."""


class MissingResultError(GenerationError):
    """The function answered 2xx without a field the caller needs."""

    def __init__(self, message: str, *, function_name: str = "", field: str = "", payload: Optional[Any] = None):
        super().__init__(message, function_name=function_name)
        self.field = field
        self.payload = payload


class BriefValidationError(ValueError):
    def __init__(self, message: str, missing: tuple[str, ...] = ()):
        super().__init__(message)
        self.missing = missing


class PersistenceError(RuntimeError):
    """A data store operation failed; in-memory state must be left untouched."""


class SignInError(Exception):
    """The auth provider rejected a sign-in or password-reset request."""
