"""
HMAC request signing compatible with the PGRest server auth middleware.

The server recomputes HMAC-SHA256(secret, body + X-Request-Time) and compares
it with the token carried in the Authorization header:

    token = base64(client_id + "." + base64(hmac))
"""

import base64
import hashlib
import hmac
import threading
from typing import Optional, Union

from .exceptions import SigningError

Secret = Union[str, bytes]


def derive_key(secret: Secret) -> hmac.HMAC:
    """
    Derive a reusable HMAC-SHA256 signing key from the shared secret.

    The returned object has been keyed but not fed any data; callers sign
    on a copy of it (see :func:`sign`).

    Args:
        secret: Shared client secret, str secrets are UTF-8 encoded

    Returns:
        Keyed HMAC object

    Raises:
        SigningError: If the secret is not usable as key material
    """
    if isinstance(secret, str):
        secret = secret.encode('utf-8')
    if not isinstance(secret, (bytes, bytearray)):
        raise SigningError(
            f"client secret must be str or bytes, got {type(secret).__name__}"
        )
    try:
        return hmac.new(bytes(secret), digestmod=hashlib.sha256)
    except (TypeError, ValueError) as e:
        raise SigningError(f"Could not derive signing key: {e}") from e


def sign(key: hmac.HMAC, message: bytes) -> bytes:
    """Compute the 32 byte HMAC-SHA256 of message with a derived key."""
    try:
        mac = key.copy()
        mac.update(message)
        return mac.digest()
    except (AttributeError, TypeError) as e:
        raise SigningError(f"Could not sign message: {e}") from e


def build_token(
    client_id: str,
    key: hmac.HMAC,
    body: Optional[bytes],
    timestamp: int,
) -> str:
    """
    Build the bearer token for one request.

    Args:
        client_id: Client identifier known to the server
        key: Signing key from :func:`derive_key`
        body: Exact request body bytes, empty or None when there is no body
        timestamp: Unix time in whole seconds, sent as X-Request-Time

    Returns:
        Base64 token to send as ``Authorization: Bearer <token>``
    """
    message = str(timestamp).encode('utf-8')
    if body:
        message = body + message

    hmac_value = base64.b64encode(sign(key, message)).decode('ascii')
    credentials = f"{client_id}.{hmac_value}".encode('utf-8')
    return base64.b64encode(credentials).decode('ascii')


class KeyMaterial:
    """
    Lazily derived signing key, cached for the lifetime of a client.

    The key is derived on first use. A failed derivation is remembered and
    raised again on every later call; build a new client to recover.
    """

    def __init__(self, secret: Secret):
        self._secret = secret
        self._key: Optional[hmac.HMAC] = None
        self._error: Optional[SigningError] = None
        self._lock = threading.Lock()

    @property
    def derived(self) -> bool:
        return self._key is not None

    def get(self) -> hmac.HMAC:
        """Return the cached key, deriving it on first call."""
        key = self._key
        if key is not None:
            return key

        with self._lock:
            if self._key is None:
                if self._error is not None:
                    raise self._error
                try:
                    self._key = derive_key(self._secret)
                except SigningError as e:
                    self._error = e
                    raise
            return self._key
