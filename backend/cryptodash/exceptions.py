"""
Domain exceptions for the trading core.

Components raise these instead of transport- or UI-specific errors. UI code
(or an HTTP layer placed in front of the library) can translate them using
the carried status code.
"""


class AppError(Exception):
    """Base application error with an HTTP-equivalent status code."""

    def __init__(self, message: str, status_code: int = 400):
        self.message = message
        self.status_code = status_code
        super().__init__(message)


class ValidationError(AppError):
    """Input validation failure (400)."""

    def __init__(self, message: str):
        super().__init__(message, status_code=400)


class NotFoundError(AppError):
    """Resource not found (404)."""

    def __init__(self, message: str = "Not found"):
        super().__init__(message, status_code=404)


class MarketDataUnavailableError(AppError):
    """Market data API unavailable (503)."""

    def __init__(self, message: str = "Market data service unavailable"):
        super().__init__(message, status_code=503)
