# occupancy_collector/exceptions.py
"""
Collector exceptions.
Every task failure maps onto one of these; none of them is fatal except
SchedulerError raised at startup.
"""
from typing import Optional


class CollectorError(Exception):
    """Base exception for all collector errors"""

    def __init__(self, message: str, details: Optional[dict] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

# ============================================================
# Fetch Exceptions
# ============================================================

class NetworkError(CollectorError):
    """Request could not be sent or the connection failed"""
    pass

class BadStatusError(CollectorError):
    """Endpoint answered with a non-200 status"""

    def __init__(self, status_code: int, url: str = ""):
        super().__init__(
            message=f"bad status code: {status_code}",
            details={"status_code": status_code, "url": url},
        )
        self.status_code = status_code

class DecodeError(CollectorError):
    """Response body is not the expected occupancy JSON"""
    pass

# ============================================================
# File Exceptions
# ============================================================

class LogFileError(CollectorError):
    """Occupancy log could not be opened, written or renamed"""

    def __init__(self, message: str, path: str):
        super().__init__(message=message, details={"path": path})
        self.path = path

# ============================================================
# Scheduler Exceptions
# ============================================================

class SchedulerError(CollectorError):
    """Scheduler could not be started"""
    pass
