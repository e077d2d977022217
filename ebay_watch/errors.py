# ebay_watch/errors.py
from typing import Any, Optional


class MonitorError(Exception):
    """Base class for everything the monitor raises on purpose."""


class ConfigError(MonitorError):
    pass


class AuthError(MonitorError):
    pass


class SearchError(MonitorError):
    def __init__(self, message: str, status_code: Optional[int] = None, payload: Any = None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload

    def __str__(self) -> str:
        base = super().__str__()
        if self.payload:
            return f"{base}: {self.payload}"
        return base


class MailError(MonitorError):
    pass


class PersistenceError(MonitorError):
    pass
