"""
Webhook authenticity: HMAC-SHA256 over "<timestamp>.<raw body>".

Timestamps are Unix epoch milliseconds. A request is authentic only when the
timestamp is inside the replay window and the signature matches.
"""

import hashlib
import hmac
import math
import time

SIGNATURE_PREFIX = "sha256="
DEFAULT_TOLERANCE_SECONDS = 300


def _as_bytes(value: str | bytes) -> bytes:
    return value if isinstance(value, bytes) else value.encode("utf-8")


def sign(secret: str | bytes, timestamp: str | int, body: str | bytes) -> str:
    """Compute the signature header value for `body` sent at `timestamp`."""
    message = _as_bytes(str(timestamp)) + b"." + _as_bytes(body)
    digest = hmac.new(_as_bytes(secret), message, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_PREFIX}{digest}"


def now_ms() -> int:
    return int(time.time() * 1000)


def verify(
    secret: str | bytes,
    timestamp: str | int | None,
    body: str | bytes,
    signature_header: str | None,
    tolerance_seconds: int = DEFAULT_TOLERANCE_SECONDS,
    current_ms: int | None = None,
) -> bool:
    """Return True when `signature_header` authenticates `body` at `timestamp`.

    Never raises on malformed input.
    """
    if timestamp is None or not signature_header:
        return False

    try:
        ts = float(timestamp)
    except (TypeError, ValueError):
        return False
    if not math.isfinite(ts):
        return False

    now = now_ms() if current_ms is None else current_ms
    if abs(now - ts) > tolerance_seconds * 1000:
        return False

    expected = sign(secret, timestamp, body).encode("utf-8")
    provided = signature_header.encode("utf-8")

    # compare_digest leaks length; reject unequal lengths up front
    if len(expected) != len(provided):
        return False
    return hmac.compare_digest(expected, provided)
