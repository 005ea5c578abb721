"""
Standardized error models for Artwork Storage.

Provides error codes and a serializable error payload so a request-handling
layer can surface storage failures consistently.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class ErrorCode(str, Enum):
    """Application-specific error codes for categorization."""

    # Credential errors (1xxx)
    CREDENTIAL_MISSING = "CRED_1001"
    CREDENTIAL_MALFORMED = "CRED_1002"
    CREDENTIAL_INVALID_WINDOW = "CRED_1003"

    # Provisioning errors (2xxx)
    PROVISIONING_INVALID_NAME = "PROV_2001"
    PROVISIONING_FAILED = "PROV_2002"
    PROVISIONING_TIMEOUT = "PROV_2003"

    # Listing errors (3xxx)
    LISTING_CONTAINER_NOT_FOUND = "LIST_3001"
    LISTING_FAILED = "LIST_3002"
    LISTING_TIMEOUT = "LIST_3003"

    # Configuration errors (9xxx)
    INTERNAL_CONFIGURATION_ERROR = "INT_9002"


class ErrorDetail(BaseModel):
    """Detailed information about a specific sub-error."""

    field: str | None = None
    message: str
    code: str | None = None


class ErrorResponse(BaseModel):
    """Standardized error payload.

    Example:
    {
        "error": {
            "code": "LIST_3001",
            "message": "Container 'gallery-x' not found",
            "timestamp": "2025-01-15T10:30:00Z",
            "details": [{"field": "container", "message": "gallery-x"}]
        }
    }
    """

    code: ErrorCode
    message: str
    timestamp: str = Field(default_factory=lambda: datetime.now(UTC).isoformat())
    details: list[ErrorDetail] | None = None
    # Debug info - only included in development mode
    debug: dict[str, Any] | None = Field(default=None, exclude=True)

    def to_dict(self, include_debug: bool = False) -> dict[str, Any]:
        """Convert to dictionary for a JSON response.

        Args:
            include_debug: Include debug information (only in development)
        """
        data = self.model_dump(mode="json", exclude_none=True)
        if include_debug and self.debug:
            data["debug"] = self.debug
        return {"error": data}


# HTTP status code mappings for error codes
ERROR_CODE_TO_STATUS: dict[ErrorCode, int] = {
    # 400 Bad Request
    ErrorCode.PROVISIONING_INVALID_NAME: 400,
    # 404 Not Found
    ErrorCode.LISTING_CONTAINER_NOT_FOUND: 404,
    # 500 Internal Server Error
    ErrorCode.CREDENTIAL_MISSING: 500,
    ErrorCode.CREDENTIAL_MALFORMED: 500,
    ErrorCode.CREDENTIAL_INVALID_WINDOW: 500,
    ErrorCode.INTERNAL_CONFIGURATION_ERROR: 500,
    # 502 Bad Gateway
    ErrorCode.PROVISIONING_FAILED: 502,
    ErrorCode.LISTING_FAILED: 502,
    # 504 Gateway Timeout
    ErrorCode.PROVISIONING_TIMEOUT: 504,
    ErrorCode.LISTING_TIMEOUT: 504,
}


def get_status_code(code: ErrorCode) -> int:
    """Get HTTP status code for an error code."""
    return ERROR_CODE_TO_STATUS.get(code, 500)
