"""Request verification for inbound slash-command webhooks.

Implements the platform's request signing scheme: every request
carries ``X-Slack-Request-Timestamp`` and ``X-Slack-Signature``, where
the signature is ``v0=`` followed by the hex HMAC-SHA256 of
``v0:<timestamp>:<raw body>`` keyed with the app's signing secret.

Requests outside the replay window or with a mismatched signature are
rejected with a VerificationError. The reason is logged here and never
returned to the network caller.
"""

import hashlib
import hmac
import re
import time
from typing import Mapping, Optional, Union

import structlog

from .config import REPLAY_WINDOW_SECONDS
from .exceptions import VerificationError, VerificationFailure

logger = structlog.get_logger("slashbot.security")

SIGNATURE_HEADER = "X-Slack-Signature"
TIMESTAMP_HEADER = "X-Slack-Request-Timestamp"
FORM_CONTENT_TYPE = "application/x-www-form-urlencoded"
SIGNATURE_VERSION = "v0"

# ASCII digits only, bounded to the width of a signed 64-bit integer
_TIMESTAMP_PATTERN = re.compile(r"[+-]?[0-9]{1,19}")
_TIMESTAMP_LIMIT = 2 ** 63


def _get_header(headers: Mapping[str, str], name: str) -> str:
    """Case-insensitive header lookup that also works on plain dicts."""
    value = headers.get(name)
    if value is None:
        lowered = name.lower()
        for key, candidate in headers.items():
            if key.lower() == lowered:
                value = candidate
                break
    return (value or "").strip()


def _media_type(content_type: str) -> str:
    return content_type.split(";", 1)[0].strip().lower()


def compute_signature(
    signing_secret: Union[str, bytes], timestamp: str, body: bytes
) -> str:
    """Return the ``v0=<hex>`` signature the platform would send for a request."""
    if isinstance(signing_secret, str):
        signing_secret = signing_secret.encode("utf-8")
    base_string = f"{SIGNATURE_VERSION}:{timestamp}:".encode("utf-8") + body
    digest = hmac.new(signing_secret, base_string, hashlib.sha256).hexdigest()
    return f"{SIGNATURE_VERSION}={digest}"


def signatures_match(expected: str, provided: str) -> bool:
    """Constant-time comparison of two signature strings."""
    return hmac.compare_digest(
        expected.encode("utf-8"), provided.encode("utf-8")
    )


def _reject(reason: VerificationFailure, **context) -> VerificationError:
    logger.warning("request_verification_failed", reason=reason.value, **context)
    return VerificationError(reason, **context)


def verify_request(
    method: str,
    headers: Mapping[str, str],
    body: bytes,
    signing_secret: Union[str, bytes],
    now: Optional[float] = None,
    replay_window: int = REPLAY_WINDOW_SECONDS,
) -> bytes:
    """Authenticate a webhook request.

    Args:
        method: HTTP method of the request.
        headers: Request headers (any case).
        body: Raw request body exactly as received.
        signing_secret: The app's signing secret.
        now: Current Unix time; defaults to ``time.time()``.
        replay_window: Maximum accepted clock skew in seconds.

    Returns:
        The body bytes, unchanged, for parsing.

    Raises:
        VerificationError: At the first failed check.
    """
    if method != "POST":
        raise _reject(VerificationFailure.METHOD_NOT_ALLOWED, method=method)

    content_type = _get_header(headers, "Content-Type")
    if _media_type(content_type) != FORM_CONTENT_TYPE:
        raise _reject(
            VerificationFailure.UNSUPPORTED_CONTENT_TYPE, content_type=content_type
        )

    signature = _get_header(headers, SIGNATURE_HEADER)
    if not signature:
        raise _reject(VerificationFailure.MISSING_SIGNATURE)

    timestamp = _get_header(headers, TIMESTAMP_HEADER)
    if not timestamp:
        raise _reject(VerificationFailure.MISSING_TIMESTAMP)

    if not _TIMESTAMP_PATTERN.fullmatch(timestamp):
        raise _reject(VerificationFailure.INVALID_TIMESTAMP)
    request_time = int(timestamp)
    if not -_TIMESTAMP_LIMIT <= request_time < _TIMESTAMP_LIMIT:
        raise _reject(VerificationFailure.INVALID_TIMESTAMP)

    if now is None:
        now = time.time()
    skew = abs(now - request_time)
    if skew > replay_window:
        raise _reject(VerificationFailure.STALE_TIMESTAMP, skew_seconds=int(skew))

    expected = compute_signature(signing_secret, timestamp, body)
    if not signatures_match(expected, signature):
        raise _reject(VerificationFailure.SIGNATURE_MISMATCH)

    return body
