"""
Output formats supported by the PGRest query endpoint.

Each format maps to the Content-Type sent with the query and to the way the
response body is decoded. Lookup is by exact name only.
"""

import enum
import math
from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional, Union

from .exceptions import DecodeError, InvalidFormatError

ExecutionTimeFormatter = Callable[[float], Any]


class OutputFormat(str, enum.Enum):
    JSON = "json"
    JSON_DATA_ARRAY = "jsonDataArray"
    CSV = "csv"
    ARROW = "arrow"
    PARQUET = "parquet"


class ResponseKind(enum.Enum):
    JSON = "json"
    TEXT = "text"
    BINARY = "binary"


def format_execution_time(duration_ms: float) -> str:
    """
    Render a query duration for display.

    Durations under a second are shown as whole milliseconds, longer ones
    as seconds with two decimals: 450 -> "450 ms", 2530 -> "2.53 s".
    """
    if duration_ms < 1000:
        return f"{math.floor(duration_ms + 0.5)} ms"
    return f"{duration_ms / 1000:.2f} s"


def _decode_json(response, duration_ms: float,
                 formatter: Optional[ExecutionTimeFormatter]) -> Dict[str, Any]:
    try:
        result = response.json()
    except ValueError as e:
        raise DecodeError(
            f"Response body is not valid JSON: {e}",
            http_status=getattr(response, "status_code", None),
            text=response.text,
        ) from e
    if not isinstance(result, dict):
        result = {"data": result}
    render = formatter or format_execution_time
    result["executionTime"] = render(duration_ms)
    return result


def _decode_text(response, duration_ms: float,
                 formatter: Optional[ExecutionTimeFormatter]) -> str:
    return response.text


def _decode_binary(response, duration_ms: float,
                   formatter: Optional[ExecutionTimeFormatter]) -> bytes:
    return response.content


_DECODERS = {
    ResponseKind.JSON: _decode_json,
    ResponseKind.TEXT: _decode_text,
    ResponseKind.BINARY: _decode_binary,
}


@dataclass(frozen=True)
class FormatDescriptor:
    """Wire content type and decode strategy for one output format."""

    name: OutputFormat
    content_type: str
    kind: ResponseKind

    def decode(self, response, duration_ms: float,
               formatter: Optional[ExecutionTimeFormatter] = None) -> Any:
        """
        Decode a successful response.

        Args:
            response: requests or httpx response
            duration_ms: Round trip time of the query in milliseconds
            formatter: Optional replacement for :func:`format_execution_time`

        Returns:
            dict with ``executionTime`` for JSON formats, str for csv,
            bytes for arrow and parquet
        """
        return _DECODERS[self.kind](response, duration_ms, formatter)


FORMATS: Dict[OutputFormat, FormatDescriptor] = {
    descriptor.name: descriptor
    for descriptor in (
        FormatDescriptor(OutputFormat.JSON, "application/json", ResponseKind.JSON),
        # Row shape is chosen by the server from the "format" field of the body
        FormatDescriptor(OutputFormat.JSON_DATA_ARRAY, "application/json", ResponseKind.JSON),
        FormatDescriptor(OutputFormat.CSV, "text/csv", ResponseKind.TEXT),
        FormatDescriptor(OutputFormat.ARROW, "application/vnd.apache.arrow.stream", ResponseKind.BINARY),
        FormatDescriptor(OutputFormat.PARQUET, "application/octet-stream", ResponseKind.BINARY),
    )
}


def resolve(format_name: Union[str, OutputFormat]) -> FormatDescriptor:
    """
    Look up the descriptor for an output format.

    Raises:
        InvalidFormatError: If format_name is not a registered format
    """
    try:
        return FORMATS[OutputFormat(format_name)]
    except ValueError:
        raise InvalidFormatError(format_name) from None
