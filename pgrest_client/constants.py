"""
Constants for the PGRest query client.
Header names and defaults match the PGRest server and its JavaScript client.
"""

import time

# HTTP Headers
HEADER_AUTHORIZATION = "Authorization"
HEADER_CONTENT_TYPE = "Content-Type"
HEADER_ACCEPT_ENCODING = "Accept-Encoding"
HEADER_REQUEST_TIME = "X-Request-Time"

AUTH_SCHEME = "Bearer"

# Query endpoint, relative to the server base URL
QUERY_PATH_TEMPLATE = "api/{connection}/query"

DEFAULT_CONNECTION = "default"
DEFAULT_FORMAT = "json"
DEFAULT_ENCODING = "gzip, br"

# Default configuration values
DEFAULT_CONFIG = {
    'timeout': 30,                 # HTTP timeout in seconds
    'format': DEFAULT_FORMAT,      # Output format used when query() gets none
    'encoding': DEFAULT_ENCODING,  # Accept-Encoding sent with every query
    'clock': time.time,            # Wall clock, seconds since the epoch
}
