"""
PGRest query client.

Builds HMAC-signed query requests compatible with the PGRest server auth
middleware, posts them to ``{base_url}/api/{connection}/query`` and decodes the
response according to the requested output format.

Two flavours share the same request construction and decoding:
:class:`QueryClient` (blocking, requests) and :class:`AsyncQueryClient`
(asyncio, httpx).
"""

import logging
import time
from typing import Any, Dict, Optional, Tuple, Union

import httpx
import requests
from pydantic import ValidationError

from .constants import (
    AUTH_SCHEME,
    DEFAULT_CONFIG,
    DEFAULT_CONNECTION,
    HEADER_ACCEPT_ENCODING,
    HEADER_AUTHORIZATION,
    HEADER_CONTENT_TYPE,
    HEADER_REQUEST_TIME,
    QUERY_PATH_TEMPLATE,
)
from .exceptions import (
    ConfigurationError,
    InvalidFormatError,
    QueryError,
    TransportError,
)
from .formats import ExecutionTimeFormatter, FormatDescriptor, OutputFormat, resolve
from .models import ClientIdentity, ErrorPayload, QueryRequest
from .signing import KeyMaterial, Secret, build_token

logger = logging.getLogger(__name__)


def _is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


class _BaseQueryClient:
    """Request construction, signing and response handling shared by both clients."""

    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: Secret,
        connection: str = DEFAULT_CONNECTION,
        **config,
    ):
        """
        Initialize the client.

        Args:
            base_url: URL of the PGRest server, with or without trailing slash
            client_id: Client ID configured on the server
            client_secret: Shared secret used to sign requests
            connection: Connection used when a query does not name one
            **config: Configuration options (timeout, format, encoding, clock)
        """
        self.identity = ClientIdentity(base_url, client_id, client_secret, connection)

        # Merge default config with user overrides
        self.config = {**DEFAULT_CONFIG, **config}
        self._validate_config()

        # Derived lazily on the first signed request
        self._key = KeyMaterial(client_secret)

    @property
    def base_url(self) -> str:
        return self.identity.base_url

    @property
    def connection(self) -> str:
        return self.identity.connection

    def _validate_config(self):
        """Validate client configuration."""
        if not self.identity.base_url:
            raise ConfigurationError("base_url cannot be empty")

        if not self.identity.client_id:
            raise ConfigurationError("client_id cannot be empty")

        if not self.identity.client_secret:
            raise ConfigurationError("client_secret cannot be empty")

        if not self.identity.connection:
            raise ConfigurationError("connection cannot be empty")

        self._validate_timeout(self.config['timeout'])

        try:
            resolve(self.config['format'])
        except InvalidFormatError as e:
            raise ConfigurationError(f"Unsupported default format: {e.format_name}") from e

        if not callable(self.config['clock']):
            raise ConfigurationError("clock must be callable")

    def _validate_timeout(self, timeout):
        """Accept None, a positive number or a (connect, read) tuple of them."""
        if timeout is None:
            return

        values = timeout if isinstance(timeout, tuple) else (timeout,)
        if isinstance(timeout, tuple) and len(timeout) != 2:
            raise ConfigurationError("timeout tuple must be (connect, read)")

        for value in values:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigurationError(f"timeout must be a number, got {value!r}")
            if value <= 0:
                raise ConfigurationError("timeout must be positive")

    def endpoint(self, connection: Optional[str] = None) -> str:
        """Return the query URL for a connection."""
        base = self.identity.base_url
        if not base.endswith('/'):
            base += '/'
        path = QUERY_PATH_TEMPLATE.format(connection=connection or self.identity.connection)
        return base + path

    def _prepare_request(
        self,
        query: str,
        connection: Optional[str],
        format: Union[str, OutputFormat, None],
        encoding: Optional[str],
    ) -> Tuple[QueryRequest, FormatDescriptor]:
        # Fails before anything touches the network
        descriptor = resolve(self.config['format'] if format is None else format)

        request = QueryRequest(
            query=query,
            format=descriptor.name,
            connection=connection or self.identity.connection,
            encoding=self.config['encoding'] if encoding is None else encoding,
        )
        return request, descriptor

    def _build_headers(
        self,
        request: QueryRequest,
        descriptor: FormatDescriptor,
        body: bytes,
    ) -> Dict[str, str]:
        """
        Build the authenticated request headers.

        The timestamp is read once and used for both the signature and the
        X-Request-Time header.

        Raises:
            SigningError: If the signing key cannot be derived
        """
        timestamp = int(self.config['clock']())
        token = build_token(self.identity.client_id, self._key.get(), body, timestamp)

        return {
            HEADER_CONTENT_TYPE: descriptor.content_type,
            HEADER_ACCEPT_ENCODING: request.encoding,
            HEADER_REQUEST_TIME: str(timestamp),
            HEADER_AUTHORIZATION: f"{AUTH_SCHEME} {token}",
        }

    def _raise_query_error(self, status_code: int, status_text: str, response):
        """
        Turn a non-2xx response into a QueryError.

        The server writes ``{"status", "statusText", "error", "details"}``;
        bodies that are not such JSON fall back to the raw text.
        """
        try:
            payload = response.json()
        except ValueError:
            payload = None

        error = None
        if isinstance(payload, dict):
            try:
                error = ErrorPayload.model_validate(payload)
            except ValidationError:
                error = None

        if error is not None and error.error is not None:
            status_text = status_text or error.status_text or ""
            message = error.error or status_text
            details = error.details
        else:
            message = response.text or status_text
            details = None

        raise QueryError(
            http_status=status_code,
            status_text=status_text or "",
            error_message=message,
            details=details,
            payload=payload,
        )

    def _handle_response(
        self,
        response,
        status_code: int,
        status_text: str,
        descriptor: FormatDescriptor,
        duration_ms: float,
        execution_time_formatter: Optional[ExecutionTimeFormatter],
    ) -> Any:
        logger.debug("Query returned %s in %.1f ms", status_code, duration_ms)

        if not _is_success(status_code):
            self._raise_query_error(status_code, status_text, response)

        return descriptor.decode(response, duration_ms, execution_time_formatter)


class QueryClient(_BaseQueryClient):
    """
    Blocking PGRest client using a requests session.

    Example:
        with QueryClient("http://localhost:8080", "pgrest", "secret") as client:
            result = client.query("SELECT 1")
            print(result["data"], result["executionTime"])
    """

    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: Secret,
        connection: str = DEFAULT_CONNECTION,
        **config,
    ):
        super().__init__(base_url, client_id, client_secret, connection, **config)

        # Create HTTP session
        self.session = requests.Session()

    def query(
        self,
        query: str,
        connection: Optional[str] = None,
        format: Union[str, OutputFormat, None] = None,
        encoding: Optional[str] = None,
        execution_time_formatter: Optional[ExecutionTimeFormatter] = None,
    ) -> Any:
        """
        Execute a query.

        Args:
            query: Query text
            connection: Connection name, defaults to the client's connection
            format: json, jsonDataArray, csv, arrow or parquet
            encoding: Accept-Encoding header, defaults to "gzip, br"
            execution_time_formatter: Callable rendering the duration in ms

        Returns:
            dict with ``executionTime`` for JSON formats, str for csv,
            bytes for arrow and parquet

        Raises:
            InvalidFormatError: If the format is not supported
            SigningError: If the request cannot be signed
            TransportError: If the HTTP request fails
            QueryError: If the server answers with a non-2xx status
        """
        request, descriptor = self._prepare_request(query, connection, format, encoding)
        body = request.to_body()
        headers = self._build_headers(request, descriptor, body)
        url = self.endpoint(request.connection)

        logger.debug("POST %s (format=%s)", url, descriptor.name.value)
        start = time.perf_counter()
        try:
            response = self.session.request(
                'POST', url, data=body, headers=headers, timeout=self.config['timeout']
            )
        except requests.RequestException as e:
            raise TransportError(f"HTTP request failed: {e}") from e
        duration_ms = (time.perf_counter() - start) * 1000

        return self._handle_response(
            response,
            response.status_code,
            response.reason,
            descriptor,
            duration_ms,
            execution_time_formatter,
        )

    def close(self):
        """Close HTTP session."""
        if self.session:
            self.session.close()

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()


class AsyncQueryClient(_BaseQueryClient):
    """
    Non-blocking PGRest client using an httpx.AsyncClient.

    Queries may run concurrently on one instance; the signing key is the
    only shared state and is derived once.
    """

    def __init__(
        self,
        base_url: str,
        client_id: str,
        client_secret: Secret,
        connection: str = DEFAULT_CONNECTION,
        client: Optional[httpx.AsyncClient] = None,
        **config,
    ):
        """
        Initialize the client.

        Args:
            client: Optional httpx.AsyncClient to send requests with. A client
                    passed in is left open by :meth:`aclose`.
        """
        super().__init__(base_url, client_id, client_secret, connection, **config)

        self._owns_client = client is None
        self.client = client if client is not None else httpx.AsyncClient()

    async def query(
        self,
        query: str,
        connection: Optional[str] = None,
        format: Union[str, OutputFormat, None] = None,
        encoding: Optional[str] = None,
        execution_time_formatter: Optional[ExecutionTimeFormatter] = None,
    ) -> Any:
        """Execute a query. Same arguments, result and errors as :meth:`QueryClient.query`."""
        request, descriptor = self._prepare_request(query, connection, format, encoding)
        body = request.to_body()
        headers = self._build_headers(request, descriptor, body)
        url = self.endpoint(request.connection)

        logger.debug("POST %s (format=%s)", url, descriptor.name.value)
        start = time.perf_counter()
        try:
            response = await self.client.request(
                'POST', url, content=body, headers=headers, timeout=self.config['timeout']
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise TransportError(f"HTTP request failed: {e}") from e
        duration_ms = (time.perf_counter() - start) * 1000

        return self._handle_response(
            response,
            response.status_code,
            response.reason_phrase,
            descriptor,
            duration_ms,
            execution_time_formatter,
        )

    async def aclose(self):
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.aclose()
