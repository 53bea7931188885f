from __future__ import annotations

from typing import Any


class AppError(Exception):
    status_code = 500
    code = "INTERNAL_ERROR"

    def __init__(self, message: str, *, details: Any = None):
        super().__init__(message)
        self.message = message
        self.details = details


class NotFoundError(AppError):
    status_code = 404
    code = "NOT_FOUND_ERROR"


class ConfigurationError(AppError):
    code = "CONFIGURATION_ERROR"


class BackingStoreError(AppError):
    status_code = 503
    code = "STORAGE_ERROR"


class ExhaustedRetriesError(AppError):
    code = "RETRY_EXHAUSTED"

    def __init__(self, message: str, *, original_error: BaseException | None = None):
        super().__init__(message, details={"original_error": repr(original_error)})
        self.original_error = original_error


class OperationTimedOutError(AppError):
    status_code = 504
    code = "TIMEOUT_ERROR"

    def __init__(self, message: str = "Operation timed out", *, timeout: float | None = None):
        super().__init__(message, details={"timeout": timeout})
        self.timeout = timeout


class CircuitOpenError(AppError):
    status_code = 503
    code = "SERVICE_UNAVAILABLE"


ERROR_MESSAGES: dict[str, str] = {
    "NETWORK_ERROR": "Unable to connect. Please check your internet connection.",
    "TIMEOUT_ERROR": "The request took too long. Please try again.",
    "AUTH_REQUIRED": "Please log in to continue.",
    "RATE_LIMIT_ERROR": "Too many requests. Please wait a moment and try again.",
    "RETRY_EXHAUSTED": "Unable to process your request right now. Please try again.",
    "SERVICE_UNAVAILABLE": "The service is temporarily unavailable. Please try again shortly.",
    "STORAGE_ERROR": "Your chat history could not be saved. Please try again.",
    "NOT_FOUND_ERROR": "That conversation or message no longer exists.",
    "CONFIGURATION_ERROR": "The application is not configured for this action.",
    "UNKNOWN_ERROR": "Something went wrong. Please try again.",
}


def user_friendly_message(error: BaseException) -> str:
    """Map an error to text that is safe to show in the chat transcript."""
    if isinstance(error, AppError):
        return ERROR_MESSAGES.get(error.code, error.message)

    text = str(error).lower()
    if "network" in text or "fetch" in text or "connection" in text:
        return ERROR_MESSAGES["NETWORK_ERROR"]
    if "timeout" in text or "timed out" in text:
        return ERROR_MESSAGES["TIMEOUT_ERROR"]
    if "rate limit" in text or "429" in text:
        return ERROR_MESSAGES["RATE_LIMIT_ERROR"]
    if "auth" in text:
        return ERROR_MESSAGES["AUTH_REQUIRED"]
    return ERROR_MESSAGES["UNKNOWN_ERROR"]
