"""
Custom exceptions for the PGRest query client.
"""

from typing import Any, Optional


class PGRestClientError(Exception):
    """Base exception for PGRest client errors."""
    pass


class ConfigurationError(PGRestClientError):
    """Raised when client configuration is invalid."""
    pass


class InvalidFormatError(PGRestClientError, ValueError):
    """Raised when the requested output format is not registered."""

    def __init__(self, format_name: Any):
        self.format_name = format_name
        super().__init__(f"Invalid format: {format_name}")


class SigningError(PGRestClientError):
    """Raised when the signing key cannot be derived or a MAC cannot be computed."""
    pass


class TransportError(PGRestClientError):
    """Raised when the HTTP request fails before a response is received."""
    pass


class QueryError(PGRestClientError):
    """
    Raised when the server answers a query with a non-2xx status.

    Attributes:
        http_status: HTTP status code of the response
        status_text: HTTP reason phrase
        error_message: Human readable message reported by the server
        details: Optional extra information reported by the server
        payload: The decoded error body, if it was JSON
    """

    def __init__(
        self,
        http_status: int,
        status_text: str,
        error_message: str,
        details: Optional[str] = None,
        payload: Any = None,
    ):
        self.http_status = http_status
        self.status_text = status_text
        self.error_message = error_message
        self.details = details
        self.payload = payload
        super().__init__(error_message)

    def __str__(self) -> str:
        message = f"{self.http_status} {self.status_text}: {self.error_message}"
        if self.details:
            message = f"{message} ({self.details})"
        return message


class DecodeError(PGRestClientError):
    """
    Raised when a successful response cannot be decoded in the requested format.

    Attributes:
        http_status: HTTP status code of the response
        text: Raw response body
    """

    def __init__(self, message: str, http_status: Optional[int] = None, text: Optional[str] = None):
        self.http_status = http_status
        self.text = text
        super().__init__(message)
