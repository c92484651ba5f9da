"""
Custom Exceptions Module.

Exceptions raised by the pipeline stages. The pipeline orchestrator
catches all of them at its boundary and converts them into a terminal
``OCRError`` result, so they never reach the caller of ``process_image``.

Exception Hierarchy:
    InvoiceScanError (base)
    ├── InputError
    │   ├── UnsupportedFileTypeError
    │   └── ImageLoadError
    ├── RecognitionError
    │   └── RecognitionEngineNotAvailableError
    └── ScanCancelledError
"""


class InvoiceScanError(Exception):
    """
    Base exception for all invoice scan errors.

    Attributes:
        message: Diagnostic error message.
        details: Optional dictionary with additional error details.
        user_message: Actionable text shown to the person scanning.
    """

    default_user_message = "Invoice scan failed. Please enter the data manually."

    def __init__(self, message: str, details: dict = None, user_message: str = None):
        self.message = message
        self.details = details or {}
        self.user_message = user_message or self.default_user_message
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


# =============================================================================
# INPUT ERRORS
# =============================================================================

class InputError(InvoiceScanError):
    """Base exception for image input errors."""

    default_user_message = (
        "Could not read the image. Retake the photo or enter the data manually."
    )


class UnsupportedFileTypeError(InputError):
    """
    Raised when an unsupported image type is provided.

    Example:
        >>> raise UnsupportedFileTypeError(".pdf", [".jpg", ".png"])
    """

    def __init__(self, file_type: str, supported_types: list):
        message = f"Unsupported file type: '{file_type}'"
        details = {"file_type": file_type, "supported_types": supported_types}
        super().__init__(message, details)


class ImageLoadError(InputError):
    """Raised when the source image is missing, empty or corrupt."""

    def __init__(self, image_ref: str, reason: str = None):
        message = f"Failed to load image: {image_ref}"
        details = {"image_ref": image_ref, "reason": reason}
        super().__init__(message, details)


# =============================================================================
# RECOGNITION ERRORS
# =============================================================================

class RecognitionError(InvoiceScanError):
    """Raised when the engine fails or yields no text after every retry."""

    default_user_message = (
        "Text recognition failed. Retake the photo with better lighting "
        "or enter the data manually."
    )

    def __init__(self, reason: str = None, details: dict = None):
        message = "Text recognition failed"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message, details)


class RecognitionEngineNotAvailableError(RecognitionError):
    """Raised when the configured recognition engine cannot be started."""

    def __init__(self, engine_name: str):
        super().__init__(
            f"engine not available: {engine_name}",
            {"engine": engine_name}
        )


# =============================================================================
# CANCELLATION
# =============================================================================

class ScanCancelledError(InvoiceScanError):
    """Raised at a phase boundary once the caller has cancelled the scan."""

    default_user_message = "Scan cancelled"

    def __init__(self, phase: str):
        super().__init__(f"Scan cancelled before {phase}", {"phase": phase})


__all__ = [
    'InvoiceScanError',
    'InputError',
    'UnsupportedFileTypeError',
    'ImageLoadError',
    'RecognitionError',
    'RecognitionEngineNotAvailableError',
    'ScanCancelledError',
]
