"""
Exception hierarchy for Artwork Storage.

Every failure raised by the service, signer, provisioner and lister derives from
AppException and carries an ErrorCode plus the backend exception that caused it.
"""

from __future__ import annotations

from typing import Any

from art_storage.models.error_models import ErrorCode, ErrorDetail, ErrorResponse


class AppException(Exception):
    """Base application exception with error code support.

    Example:
        raise ListingError(
            code=ErrorCode.LISTING_CONTAINER_NOT_FOUND,
            message="Container not found",
            details={"container": container_name},
        )
    """

    def __init__(
        self,
        code: ErrorCode,
        message: str,
        details: dict[str, Any] | None = None,
        cause: Exception | None = None,
    ):
        self.code = code
        self.message = message
        self.details = details
        self.cause = cause
        super().__init__(message)

    def to_response(self, include_debug: bool = False) -> ErrorResponse:
        """Build the standardized error payload for this exception."""
        details = None
        if self.details:
            details = [ErrorDetail(field=k, message=str(v)) for k, v in self.details.items()]

        debug_info = None
        if include_debug:
            debug_info = {
                "exception_type": type(self).__name__,
                "cause": str(self.cause) if self.cause else None,
            }

        return ErrorResponse(code=self.code, message=self.message, details=details, debug=debug_info)

    def to_dict(self, include_debug: bool = False) -> dict[str, Any]:
        """Serialize as ``{"error": {...}}``."""
        return self.to_response(include_debug).to_dict(include_debug=include_debug)


class CredentialError(AppException):
    """Account key material is missing or malformed, or the signing window is invalid.

    Fatal for the calling operation: retrying with the same key cannot succeed.
    """

    def __init__(
        self,
        message: str = "Storage credentials are missing",
        code: ErrorCode = ErrorCode.CREDENTIAL_MISSING,
        cause: Exception | None = None,
    ):
        super().__init__(code=code, message=message, cause=cause)


class ProvisioningError(AppException):
    """The backend could not create or confirm a container."""

    def __init__(
        self,
        container_name: str,
        message: str,
        code: ErrorCode = ErrorCode.PROVISIONING_FAILED,
        cause: Exception | None = None,
    ):
        super().__init__(
            code=code,
            message=f"Container '{container_name}': {message}",
            details={"container": container_name},
            cause=cause,
        )
        self.container_name = container_name


class ListingError(AppException):
    """The container is missing or object enumeration failed."""

    def __init__(
        self,
        container_name: str,
        prefix: str,
        message: str,
        code: ErrorCode = ErrorCode.LISTING_FAILED,
        cause: Exception | None = None,
    ):
        super().__init__(
            code=code,
            message=f"Container '{container_name}': {message}",
            details={"container": container_name, "prefix": prefix},
            cause=cause,
        )
        self.container_name = container_name
        self.prefix = prefix


class ConfigurationError(AppException):
    """Storage configuration cannot be turned into a usable account."""

    def __init__(self, message: str, cause: Exception | None = None):
        super().__init__(code=ErrorCode.INTERNAL_CONFIGURATION_ERROR, message=message, cause=cause)
