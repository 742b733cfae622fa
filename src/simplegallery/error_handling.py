"""
Centralized error handling and classification for simplegallery.

This module provides the error taxonomy shared by every component, the mapping
from error kinds to HTTP status codes, and classification of raw exceptions
raised by the filesystem or the image codec.
"""

from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Any

from PIL import UnidentifiedImageError

from .logging_config import get_logger, log_error, log_security_event

logger = get_logger(__name__)


class ErrorCategory(Enum):
    """Error categories for classification and handling."""

    NOT_FOUND = "not_found"
    AUTHENTICATION = "authentication"
    AUTHORIZATION = "authorization"
    VALIDATION = "validation"
    IMAGE_PROCESSING = "image_processing"
    STORAGE = "storage"
    CONFIGURATION = "configuration"
    SYSTEM = "system"
    UNKNOWN = "unknown"


class ErrorSeverity(Enum):
    """Error severity levels."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


SEVERITY_LOG_LEVELS = {
    ErrorSeverity.LOW: "info",
    ErrorSeverity.MEDIUM: "warning",
    ErrorSeverity.HIGH: "error",
    ErrorSeverity.CRITICAL: "error",
}

CATEGORY_STATUS_CODES = {
    ErrorCategory.NOT_FOUND: 404,
    ErrorCategory.AUTHENTICATION: 401,
    ErrorCategory.AUTHORIZATION: 403,
    ErrorCategory.VALIDATION: 400,
    ErrorCategory.IMAGE_PROCESSING: 500,
    ErrorCategory.STORAGE: 500,
    ErrorCategory.CONFIGURATION: 500,
    ErrorCategory.SYSTEM: 500,
    ErrorCategory.UNKNOWN: 500,
}


@dataclass
class ErrorInfo:
    """Structured error information."""

    category: ErrorCategory
    severity: ErrorSeverity
    code: str
    message: str
    user_message: str
    status_code: int
    details: dict[str, Any]
    timestamp: datetime

    def to_dict(self) -> dict[str, Any]:
        """Convert error info to dictionary."""
        return {
            "category": self.category.value,
            "severity": self.severity.value,
            "code": self.code,
            "message": self.message,
            "user_message": self.user_message,
            "status_code": self.status_code,
            "details": self.details,
            "timestamp": self.timestamp.isoformat(),
        }


class GalleryError(Exception):
    """Base exception class for simplegallery."""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.UNKNOWN,
        severity: ErrorSeverity = ErrorSeverity.MEDIUM,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(message)
        self.category = category
        self.severity = severity
        self.code = code or f"{category.value}_error"
        self.user_message = user_message or self._generate_user_message()
        self.details = details or {}
        self.original_exception = original_exception
        self.timestamp = datetime.now()

        self._log_error()

    @property
    def status_code(self) -> int:
        return CATEGORY_STATUS_CODES.get(self.category, 500)

    def _generate_user_message(self) -> str:
        """Generate user-friendly error message."""
        user_messages = {
            ErrorCategory.NOT_FOUND: "Route not found",
            ErrorCategory.AUTHENTICATION: "Credentials rejected",
            ErrorCategory.AUTHORIZATION: "Access denied",
            ErrorCategory.VALIDATION: "Bad request",
            ErrorCategory.IMAGE_PROCESSING: "Preview could not be generated",
            ErrorCategory.STORAGE: "Storage error",
            ErrorCategory.CONFIGURATION: "Server misconfigured",
            ErrorCategory.SYSTEM: "Internal server error",
        }
        return user_messages.get(self.category, "Internal server error")

    def _log_error(self) -> None:
        """Log the error at a level derived from its severity."""
        error_context = {
            "category": self.category.value,
            "severity": self.severity.value,
            "code": self.code,
            **self.details,
        }

        if self.original_exception:
            error_context["original_exception"] = str(self.original_exception)

        log_error(self, error_context, level=SEVERITY_LOG_LEVELS[self.severity])

        if self.category == ErrorCategory.AUTHENTICATION:
            log_security_event(self.category.value, context=error_context)

    def get_error_info(self) -> ErrorInfo:
        """Get structured error information."""
        return ErrorInfo(
            category=self.category,
            severity=self.severity,
            code=self.code,
            message=str(self),
            user_message=self.user_message,
            status_code=self.status_code,
            details=self.details,
            timestamp=self.timestamp,
        )


class NotFoundError(GalleryError):
    """Requested resource path does not exist or is unreadable."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.NOT_FOUND,
            severity=ErrorSeverity.LOW,
            code=code or "route_not_found",
            user_message="Route not found",
            details=details,
            original_exception=original_exception,
        )


class SourceNotFoundError(NotFoundError):
    """Preview source file is missing or unreadable."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            code="source_not_found",
            details=details,
            original_exception=original_exception,
        )


class AuthenticationError(GalleryError):
    """Missing or invalid credentials."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.AUTHENTICATION,
            severity=ErrorSeverity.MEDIUM,
            code=code or "credentials_rejected",
            user_message=user_message or "Credentials rejected",
            details=details,
        )


class AuthorizationError(GalleryError):
    """Access policy denied the requested path."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.AUTHORIZATION,
            severity=ErrorSeverity.LOW,
            code=code or "access_denied",
            user_message="Access denied",
            details=details,
        )


class ValidationError(GalleryError):
    """Request could not be interpreted."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        user_message: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            severity=ErrorSeverity.LOW,
            code=code or "validation_failed",
            user_message=user_message or "Bad request",
            details=details,
            original_exception=original_exception,
        )


class MalformedKeyError(ValidationError):
    """Preview identifier has no ``@`` separator or no source path."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code="malformed_preview_key", details=details)


class InvalidDimensionError(ValidationError):
    """Preview dimension is not a positive base-10 integer."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message, code="invalid_preview_dimension", details=details)


class ImageProcessingError(GalleryError):
    """Source bytes could not be decoded, resized or encoded."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.IMAGE_PROCESSING,
            severity=ErrorSeverity.MEDIUM,
            code=code or "image_processing_failed",
            details=details,
            original_exception=original_exception,
        )


# Name used by the preview pipeline for undecodable sources
DecodeError = ImageProcessingError


class StorageError(GalleryError):
    """Preview root could not be written or read back."""

    def __init__(
        self,
        message: str,
        code: str | None = None,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.STORAGE,
            severity=ErrorSeverity.HIGH,
            code=code or "storage_error",
            details=details,
            original_exception=original_exception,
        )


class ConfigurationError(GalleryError):
    """Invalid process configuration."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            category=ErrorCategory.CONFIGURATION,
            severity=ErrorSeverity.CRITICAL,
            code="invalid_configuration",
            details=details,
        )


class GallerySystemError(GalleryError):
    """Unexpected failure."""

    def __init__(
        self,
        message: str,
        details: dict[str, Any] | None = None,
        original_exception: Exception | None = None,
    ):
        super().__init__(
            message=message,
            category=ErrorCategory.SYSTEM,
            severity=ErrorSeverity.CRITICAL,
            code="system_error",
            details=details,
            original_exception=original_exception,
        )


class ErrorHandler:
    """Centralized error handler for the application."""

    def __init__(self) -> None:
        self.error_counts: dict[str, int] = {}
        self.logger = get_logger(__name__)

    def handle_error(
        self,
        error: Exception,
        context: dict[str, Any] | None = None,
    ) -> ErrorInfo:
        """
        Handle and classify errors.

        Args:
            error: Exception to handle
            context: Additional context information

        Returns:
            ErrorInfo: Structured error information
        """
        context = context or {}

        if isinstance(error, GalleryError):
            error_info = error.get_error_info()
            self._track_error(error_info.code)
            return error_info

        classified_error = self.classify_error(error, context)
        error_info = classified_error.get_error_info()
        self._track_error(error_info.code)

        return error_info

    def classify_error(self, error: Exception, context: dict[str, Any]) -> GalleryError:
        """Classify a raw exception into the matching GalleryError."""
        details = {"original_type": type(error).__name__, **context}

        if isinstance(error, (FileNotFoundError, NotADirectoryError, IsADirectoryError, PermissionError)):
            return NotFoundError(str(error), details=details, original_exception=error)

        if isinstance(error, UnidentifiedImageError):
            return ImageProcessingError(str(error), details=details, original_exception=error)

        if isinstance(error, OSError):
            return StorageError(str(error), details=details, original_exception=error)

        return GallerySystemError(str(error), details=details, original_exception=error)

    def _track_error(self, error_code: str) -> None:
        """Track error occurrence for monitoring."""
        self.error_counts[error_code] = self.error_counts.get(error_code, 0) + 1

        if self.error_counts[error_code] % 10 == 0:  # Every 10th occurrence
            self.logger.warning("frequent_error_detected", error_code=error_code, count=self.error_counts[error_code])


# Global error handler instance
error_handler = ErrorHandler()


def get_error_handler() -> ErrorHandler:
    """Get the global error handler instance."""
    return error_handler
