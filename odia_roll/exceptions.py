"""
Custom exceptions for the Odia roll processing pipeline.

All application-specific exceptions inherit from OdiaRollError.
"""

from __future__ import annotations

from typing import Optional, Any


class OdiaRollError(Exception):
    """
    Base exception for all application errors.

    Attributes:
        message: Human-readable error message
        details: Additional error details (for debugging)
        recoverable: Whether the error can potentially be recovered from
    """

    def __init__(
        self,
        message: str,
        details: Optional[dict[str, Any]] = None,
        recoverable: bool = False
    ):
        super().__init__(message)
        self.message = message
        self.details = details or {}
        self.recoverable = recoverable

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message


class ConfigurationError(OdiaRollError):
    """
    Invalid or missing configuration.

    Examples:
        - Unknown translation engine
        - AI engine selected without an API key
    """

    def __init__(self, message: str, config_key: Optional[str] = None):
        details = {"config_key": config_key} if config_key else None
        super().__init__(message, details=details, recoverable=False)


class OCRError(OdiaRollError):
    """
    OCR processing failed.

    Examples:
        - Tesseract not installed
        - Language pack missing
        - Invalid image passed to the engine
    """

    def __init__(
        self,
        message: str,
        mode: Optional[str] = None,
        languages: Optional[str] = None
    ):
        details = {}
        if mode:
            details["mode"] = mode
        if languages:
            details["languages"] = languages
        super().__init__(message, details=details, recoverable=False)


class TesseractNotFoundError(OCRError):
    """Tesseract OCR is not installed or not accessible."""

    def __init__(self, tesseract_path: Optional[str] = None):
        message = (
            "Tesseract OCR not found. Please install Tesseract with Odia data:\n"
            "  - Windows: https://github.com/UB-Mannheim/tesseract/wiki\n"
            "  - macOS: brew install tesseract tesseract-lang\n"
            "  - Ubuntu: sudo apt install tesseract-ocr tesseract-ocr-ori"
        )
        super().__init__(message)
        if tesseract_path:
            self.details["tesseract_path_tried"] = tesseract_path


class RecognitionFailure(OdiaRollError):
    """
    Recognition returned no words for a page.

    Never fatal: the block detector moves on to its next strategy.
    """

    def __init__(self, message: str, page_number: Optional[int] = None, variant: Optional[str] = None):
        details = {}
        if page_number is not None:
            details["page_number"] = page_number
        if variant:
            details["variant"] = variant
        super().__init__(message, details=details, recoverable=True)


class CroppingError(OdiaRollError):
    """
    Failed to crop a block from a page image.

    Examples:
        - Boundary outside the image
        - Zero-sized crop
    """

    def __init__(
        self,
        message: str,
        block_id: Optional[str] = None,
        boundary: Optional[Any] = None
    ):
        details = {}
        if block_id:
            details["block_id"] = block_id
        if boundary is not None:
            details["boundary"] = str(boundary)
        super().__init__(message, details=details, recoverable=True)


class TranslationError(OdiaRollError):
    """
    External translation failed.

    The translation cache degrades to transliteration instead of raising.
    """

    def __init__(
        self,
        message: str,
        engine: Optional[str] = None,
        text: Optional[str] = None
    ):
        details = {}
        if engine:
            details["engine"] = engine
        if text:
            details["text_preview"] = text[:40]
        super().__init__(message, details=details, recoverable=True)


class DataPersistenceError(OdiaRollError):
    """
    Failed to save or load data.

    Examples:
        - File write permission denied
        - Invalid JSON format
    """

    def __init__(
        self,
        message: str,
        file_path: Optional[str] = None,
        operation: Optional[str] = None  # "save" or "load"
    ):
        details = {}
        if file_path:
            details["file_path"] = file_path
        if operation:
            details["operation"] = operation
        super().__init__(message, details=details, recoverable=False)


class ValidationError(OdiaRollError):
    """
    Record validation failed.

    Examples:
        - Invalid identifier format
        - Name too short or made of label text
        - Age out of range
    """

    def __init__(
        self,
        message: str,
        field_name: Optional[str] = None,
        field_value: Optional[Any] = None,
        expected: Optional[str] = None
    ):
        details = {}
        if field_name:
            details["field_name"] = field_name
        if field_value is not None:
            details["field_value"] = str(field_value)[:100]
        if expected:
            details["expected"] = expected
        super().__init__(message, details=details, recoverable=True)
        self.field_name = field_name or "unknown"
