"""
Run a single query against a PGRest server.

    python -m pgrest_client "SELECT * FROM weather LIMIT 10"
    python -m pgrest_client --format parquet --output weather.parquet "SELECT ..."

Server URL and credentials are read from PGREST_URL, PGREST_CLIENT_ID,
PGREST_CLIENT_SECRET and PGREST_CONNECTION unless given as options.
"""

import argparse
import json
import logging
import os
import sys
from typing import List, Optional

from .client import QueryClient
from .constants import DEFAULT_CONNECTION, DEFAULT_ENCODING
from .exceptions import PGRestClientError, QueryError
from .formats import OutputFormat

logger = logging.getLogger(__name__)

DEFAULT_QUERY = "SELECT 1 AS result"

_BINARY_FORMATS = (OutputFormat.ARROW.value, OutputFormat.PARQUET.value)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pgrest_client",
        description="Execute a query against a PGRest server",
    )

    parser.add_argument(
        "query",
        nargs="?",
        default=DEFAULT_QUERY,
        help="Query to execute",
    )

    parser.add_argument(
        "--url",
        default=os.environ.get("PGREST_URL", "http://localhost:8080"),
        help="PGRest server URL (env: PGREST_URL)",
    )

    parser.add_argument(
        "--client-id",
        default=os.environ.get("PGREST_CLIENT_ID"),
        help="Client ID (env: PGREST_CLIENT_ID)",
    )

    parser.add_argument(
        "--client-secret",
        default=os.environ.get("PGREST_CLIENT_SECRET"),
        help="Client secret (env: PGREST_CLIENT_SECRET)",
    )

    parser.add_argument(
        "--connection",
        default=os.environ.get("PGREST_CONNECTION", DEFAULT_CONNECTION),
        help="Connection name (env: PGREST_CONNECTION)",
    )

    parser.add_argument(
        "--format",
        default=OutputFormat.JSON.value,
        choices=[f.value for f in OutputFormat],
        help="Response format",
    )

    parser.add_argument(
        "--encoding",
        default=DEFAULT_ENCODING,
        help="Accept-Encoding sent with the query",
    )

    parser.add_argument(
        "--output",
        help="File to write the result to, required for arrow and parquet",
    )

    parser.add_argument(
        "--log-level",
        default="WARNING",
        help="Logging level",
    )

    return parser


def setup_logging(level: str):
    """Applies basic logging configuration."""
    logging.basicConfig(level=level.upper())


def print_result(result, output: Optional[str] = None):
    """Print a decoded result, or write it to output."""
    if isinstance(result, bytes):
        with open(output, "wb") as f:
            f.write(result)
        print(f"Wrote {len(result)} bytes to {output}")
        return

    if isinstance(result, str):
        if output:
            with open(output, "w", encoding="utf-8") as f:
                f.write(result)
        else:
            print(result)
        return

    execution_time = result.pop("executionTime", None)
    if "columns" in result:
        # jsonDataArray rows are positional
        rows = {"columns": result["columns"], "data": result.get("data", [])}
    else:
        rows = result.get("data", result)
    text = json.dumps(rows, indent=2, default=str)
    if output:
        with open(output, "w", encoding="utf-8") as f:
            f.write(text)
    else:
        print(text)
    print(f"Execution time: {execution_time}")


def print_query_error(error: QueryError):
    print("--------------------------------", file=sys.stderr)
    print(f"{error.http_status} - {error.status_text}", file=sys.stderr)
    print("--------------------------------", file=sys.stderr)
    print(f"Message: {error.error_message}", file=sys.stderr)
    if error.details:
        print(f"Details: {error.details}", file=sys.stderr)


def main(argv: Optional[List[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)
    setup_logging(args.log_level)

    if not args.client_id or not args.client_secret:
        parser.error("client id and secret are required (--client-id/--client-secret)")

    if args.format in _BINARY_FORMATS and not args.output:
        parser.error(f"--output is required for format {args.format}")

    try:
        with QueryClient(args.url, args.client_id, args.client_secret, args.connection) as client:
            result = client.query(args.query, format=args.format, encoding=args.encoding)
    except QueryError as e:
        print_query_error(e)
        return 1
    except PGRestClientError as e:
        logger.error(f"Query failed: {e}")
        return 1

    print_result(result, args.output)
    return 0


if __name__ == "__main__":
    sys.exit(main())
