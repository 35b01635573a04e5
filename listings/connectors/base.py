"""Connector errors and shared helpers for the eBay APIs."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, List, Optional


class ConnectorError(Exception):
    """Base connector error."""


class TransientError(ConnectorError):
    """Retryable error (e.g., rate limit, network hiccup)."""


class PermanentError(ConnectorError):
    """Non-retryable error (e.g., 4xx semantics)."""


class AuthenticationError(ConnectorError):
    """The upstream rejected the bearer token."""


@dataclass(frozen=True)
class EbayErrorEntry:
    short_message: str = ""
    long_message: str = ""
    error_code: str = ""
    severity: str = ""


class EbayApiError(ConnectorError):
    """eBay answered with ``Ack=Failure``."""

    def __init__(self, message: str, errors: Optional[List[EbayErrorEntry]] = None) -> None:
        super().__init__(message)
        self.errors: List[EbayErrorEntry] = list(errors or [])


def first(value: Any) -> Any:
    """Unwrap the singleton lists the eBay JSON formats wrap every field in."""
    if isinstance(value, list):
        return value[0] if value else None
    return value


def as_list(value: Any) -> List[Any]:
    if value is None:
        return []
    if isinstance(value, list):
        return value
    return [value]
