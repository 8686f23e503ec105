"""Error taxonomy for the analytics endpoints.

Each error knows the HTTP status it maps to and the JSON body the caller
receives. Nothing in the engine retries; callers decide.
"""
from typing import Optional


class AnalyticsError(Exception):
    """Base class for errors surfaced to the analytics API caller."""

    status_code = 500

    def __init__(self, error: str, message: Optional[str] = None):
        super().__init__(error)
        self.error = error
        self.message = message

    def payload(self) -> dict:
        body = {"error": self.error}
        if self.message:
            body["message"] = self.message
        return body


class ValidationError(AnalyticsError):
    """Missing or malformed request identifiers."""

    status_code = 400


class InsufficientDataError(AnalyticsError):
    """Sample-size floor not met; the engine stays silent instead of guessing."""

    status_code = 400

    def __init__(self, message: str):
        super().__init__("Insufficient data", message)


class UpstreamReadError(AnalyticsError):
    """A source-data query failed."""

    status_code = 500
