# finchat/utils/errors.py
from typing import Any, Dict, Optional

class AppError(Exception):
    """Base error class for application exceptions.

    ``error`` is the fixed, client-facing message; ``detail`` carries the
    underlying cause and is only rendered for server-side failures.
    """
    error: str = "internal error"
    status_code: int = 500

    def __init__(self, message: str = "", status_code: Optional[int] = None):
        super().__init__(message or self.error)
        self.detail = message
        if status_code is not None:
            self.status_code = status_code

    def to_dict(self) -> Dict[str, Any]:
        body: Dict[str, Any] = {"error": self.error}
        if self.status_code >= 500:
            body["detail"] = self.detail or self.error
        return body


class Unauthorized(AppError):
    error = "unauthorized"
    status_code = 401


class BadRequest(AppError):
    error = 'missing "question" in body'
    status_code = 400


class StoreUnavailable(AppError):
    """A read or write against the relational store failed."""

    def __init__(self, message: str = ""):
        super().__init__(f"store unavailable: {message}")


class ContextBuildFailed(AppError):
    """Formulas, embedding or similarity search could not be produced."""

    def __init__(self, message: str = ""):
        super().__init__(f"context build failed: {message}")


class CompletionFailed(AppError):
    def __init__(self, message: str = ""):
        super().__init__(f"completion failed: {message}")


class InternalError(AppError):
    pass
