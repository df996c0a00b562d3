"""
PGRest Query Client

A Python client library that sends HMAC-signed queries to a PGRest server
and decodes the results as JSON, CSV, Arrow or Parquet.

Example usage:
    from pgrest_client import QueryClient

    client = QueryClient("http://localhost:8080", "your-client-id", "your-secret")
    result = client.query("SELECT * FROM weather LIMIT 10")
    print(result["data"], result["executionTime"])
"""

from .client import AsyncQueryClient, QueryClient
from .exceptions import (
    PGRestClientError,
    ConfigurationError,
    InvalidFormatError,
    SigningError,
    TransportError,
    QueryError,
    DecodeError
)
from .formats import (
    FORMATS,
    FormatDescriptor,
    OutputFormat,
    format_execution_time,
    resolve
)
from .signing import KeyMaterial, build_token, derive_key, sign
from .constants import (
    HEADER_AUTHORIZATION,
    HEADER_REQUEST_TIME,
    DEFAULT_CONFIG,
    DEFAULT_CONNECTION,
    DEFAULT_ENCODING,
    DEFAULT_FORMAT
)

__version__ = "1.0.0"
__all__ = [
    "QueryClient",
    "AsyncQueryClient",
    "PGRestClientError",
    "ConfigurationError",
    "InvalidFormatError",
    "SigningError",
    "TransportError",
    "QueryError",
    "DecodeError",
    "FORMATS",
    "FormatDescriptor",
    "OutputFormat",
    "format_execution_time",
    "resolve",
    "KeyMaterial",
    "build_token",
    "derive_key",
    "sign",
    "HEADER_AUTHORIZATION",
    "HEADER_REQUEST_TIME",
    "DEFAULT_CONFIG",
    "DEFAULT_CONNECTION",
    "DEFAULT_ENCODING",
    "DEFAULT_FORMAT"
]
