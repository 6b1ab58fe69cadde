"""Tracker error types and the default error handler"""
from typing import Callable

ErrorHandler = Callable[[BaseException, str], str]
"""(exception, default_message) -> message shown to the user"""


class TrackerError(Exception):
    pass


class NetworkError(TrackerError):
    """Request failed, timed out or returned something unusable."""

    def __init__(self, message: str, status_code: int | None = None):
        super().__init__(message)
        self.status_code = status_code


class AuthExpiredError(NetworkError):
    pass


def default_error_handler(exc: BaseException, default_message: str) -> str:
    return default_message
