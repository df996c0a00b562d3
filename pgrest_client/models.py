"""
Data models for PGRest queries.

``ErrorPayload`` is a pydantic model describing the JSON error body written by
the server; the other models are plain immutable dataclasses.
"""

import json
from dataclasses import dataclass, field
from typing import Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from .constants import DEFAULT_CONNECTION, DEFAULT_ENCODING
from .formats import OutputFormat


@dataclass(frozen=True)
class ClientIdentity:
    """Server location and credentials of one client."""

    base_url: str
    client_id: str
    client_secret: Union[str, bytes] = field(repr=False)
    connection: str = DEFAULT_CONNECTION


@dataclass(frozen=True)
class QueryRequest:
    """A single query, serialized to the body that is both sent and signed."""

    query: str
    format: OutputFormat
    connection: str = DEFAULT_CONNECTION
    encoding: str = DEFAULT_ENCODING

    def to_body(self) -> bytes:
        """
        Serialize the request to its canonical JSON body.

        Keys are emitted as ``query`` then ``format`` with compact separators
        and raw UTF-8, the same bytes ``JSON.stringify`` produces.
        """
        payload = {"query": self.query, "format": OutputFormat(self.format).value}
        return json.dumps(payload, separators=(',', ':'), ensure_ascii=False).encode('utf-8')


class ErrorPayload(BaseModel):
    """JSON body returned by the server for failed requests."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    status: Optional[int] = None
    status_text: Optional[str] = Field(default=None, alias="statusText")
    error: Optional[str] = None
    details: Optional[str] = None
