from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from botocore.exceptions import ClientError, EndpointConnectionError, HTTPClientError
from botocore.exceptions import ConnectionError as BotocoreConnectionError


TRANSIENT_ERROR_CODES = frozenset(
    {
        "TooManyRequestsException",
        "ThrottlingException",
        "NetworkingError",
        "UnknownEndpoint",
    }
)


class ErrorKind(str, Enum):
    """Retry disposition of a remote error."""

    TRANSIENT = "transient"
    FATAL = "fatal"


@dataclass(frozen=True)
class ErrorClassification:
    """Classified remote error."""

    kind: ErrorKind
    error_code: Optional[str]

    @property
    def is_retryable(self) -> bool:
        return self.kind is ErrorKind.TRANSIENT


def classify_error_code(error_code: Optional[str]) -> ErrorKind:
    """Map a remote error code to TRANSIENT or FATAL.

    Unknown and missing codes are FATAL.
    """
    if error_code in TRANSIENT_ERROR_CODES:
        return ErrorKind.TRANSIENT
    return ErrorKind.FATAL


def extract_error_code(exc: BaseException) -> Optional[str]:
    """Return the remote error code carried by an exception, if any."""
    if isinstance(exc, ClientError):
        return exc.response.get("Error", {}).get("Code")
    if isinstance(exc, EndpointConnectionError):
        return "UnknownEndpoint"
    if isinstance(exc, (BotocoreConnectionError, HTTPClientError)):
        return "NetworkingError"
    code = getattr(exc, "code", None)
    return code if isinstance(code, str) else None


def classify_exception(exc: BaseException) -> ErrorClassification:
    """Classify an exception raised by a remote call."""
    error_code = extract_error_code(exc)
    return ErrorClassification(kind=classify_error_code(error_code), error_code=error_code)
