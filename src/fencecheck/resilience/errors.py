"""Error classification for structured error handling.

Classifies exceptions by category so log lines say *why* the
classification service or a file operation failed:
- transient network trouble vs a server that is up but failing
- timeouts vs client-side mistakes (bad model name → 404)
"""

from __future__ import annotations

import asyncio
from enum import Enum

import httpx


class ErrorClass(Enum):
    TRANSIENT = "transient"  # connection refused, reset
    SERVER = "server"  # 500, 502, 503
    TIMEOUT = "timeout"  # deadline exceeded
    CLIENT = "client"  # 400, 404 (unknown model)
    UNKNOWN = "unknown"


def classify_error(error: BaseException) -> ErrorClass:
    """Classify an error to determine how it is reported.

    Checks httpx types and structured attributes first, falls back
    to string matching for untyped exceptions.
    """
    # 1. httpx exception hierarchy
    if isinstance(error, httpx.TimeoutException):
        return ErrorClass.TIMEOUT
    if isinstance(error, httpx.HTTPStatusError):
        return _from_status(error.response.status_code)
    if isinstance(error, httpx.TransportError):
        return ErrorClass.TRANSIENT

    # 2. Structured status_code attribute
    status_code = getattr(error, "status_code", None)
    if isinstance(status_code, int):
        return _from_status(status_code)

    # 3. Builtin timeout types
    if isinstance(error, (TimeoutError, asyncio.TimeoutError)):
        return ErrorClass.TIMEOUT

    # 4. Fall back to string matching
    msg = str(error).lower()

    if "timeout" in msg or "timed out" in msg:
        return ErrorClass.TIMEOUT
    if any(code in msg for code in ("500", "502", "503", "504")):
        return ErrorClass.SERVER
    if "econnrefused" in msg or "connection" in msg:
        return ErrorClass.TRANSIENT
    if any(code in msg for code in ("400", "401", "403", "404")):
        return ErrorClass.CLIENT

    return ErrorClass.UNKNOWN


def _from_status(status_code: int) -> ErrorClass:
    if status_code == 429:
        return ErrorClass.TRANSIENT
    if 400 <= status_code < 500:
        return ErrorClass.CLIENT
    if 500 <= status_code < 600:
        return ErrorClass.SERVER
    return ErrorClass.UNKNOWN


class DiscoveryError(RuntimeError):
    """The list of documents to validate could not be produced."""


class FixError(RuntimeError):
    """A fence line could not be rewritten."""
