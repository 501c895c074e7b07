# core/exceptions.py
from typing import Any, Dict, List, Optional


class ScraperException(Exception):
    """Base error for everything the aggregator raises on purpose."""

    status_code: int = 500
    code: str = "SCRAPER_ERROR"

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def to_dict(self) -> Dict[str, Any]:
        payload: Dict[str, Any] = {
            "code": self.code,
            "message": self.message,
            "status": self.status_code,
        }
        if self.details:
            payload["details"] = self.details
        return {"error": payload}


class FetchError(ScraperException):
    """Raised when a URL still fails after every retry attempt."""

    status_code = 502
    code = "FETCH_FAILED"

    def __init__(self, url: str, attempts: int, reason: str):
        super().__init__(
            f"Failed to fetch {url} after {attempts} attempt(s): {reason}",
            details={"url": url, "attempts": attempts},
        )
        self.url = url
        self.attempts = attempts
        self.reason = reason


class DeadlineExceeded(ScraperException):
    """The caller-supplied deadline passed before the work could start."""

    status_code = 504
    code = "DEADLINE_EXCEEDED"

    def __init__(self, url: Optional[str] = None):
        message = f"Deadline exceeded before fetching {url}" if url else "Deadline exceeded"
        super().__init__(message, details={"url": url} if url else None)
        self.url = url


class UpdateNotFoundError(ScraperException):
    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, update_id: str):
        super().__init__(f"Update '{update_id}' not found.", details={"id": update_id})
        self.update_id = update_id


class ValidationError(ScraperException):
    """Wraps FastAPI request-validation errors in the service's error shape."""

    status_code = 422
    code = "VALIDATION_ERROR"

    def __init__(self, errors: List[Any]):
        super().__init__("Request validation failed", details={"errors": errors})
        self.errors = errors
