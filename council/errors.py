"""
Error taxonomy shared by the stores, the migration runner and the API.
"""

from __future__ import annotations

from typing import Any, Optional


class CouncilError(Exception):
    """Base class for errors the API knows how to render."""

    status_code = 500

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class ValidationError(CouncilError):
    status_code = 400

    def __init__(self, message: str = "Validation failed", details: Any = None):
        super().__init__(message)
        self.details = details if details is not None else []


class Unauthorized(CouncilError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class NotFound(CouncilError):
    status_code = 404

    def __init__(self, label: str, record_id: Optional[str] = None):
        super().__init__(f"{label} not found")
        self.label = label
        self.record_id = record_id


class Conflict(CouncilError):
    status_code = 409


class StorageUnavailable(CouncilError):
    """
    Backend unreachable or misconfigured.

    The message is safe to show to callers; the underlying cause is kept on
    ``__cause__`` and only ever logged.
    """

    status_code = 500
