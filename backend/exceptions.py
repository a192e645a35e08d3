"""
Internal exception classes (never rendered to clients directly).
"""


class PlatformRequestError(Exception):
    """Raised when an ad platform rejects or fails a conversion event."""

    def __init__(self, platform: str, message: str, status_code: int | None = None):
        super().__init__(f"{platform}: {message}")
        self.platform = platform
        self.status_code = status_code


class OrderPersistenceError(Exception):
    """Raised when an order or its lines cannot be written."""
    pass
