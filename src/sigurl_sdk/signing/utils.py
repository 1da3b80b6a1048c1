"""
Utility functions for signed URLs

URL parsing, query collapsing, date formatting and timing helpers shared by
the signer and the verifier.
"""

import re
import time
from datetime import datetime, tzinfo
from typing import List, Tuple
from urllib.parse import SplitResult, parse_qsl, urlsplit

from ..exceptions import ErrorCodes, IllegalParameterError, MalformedURLError
from .types import DATE_FORMAT, QueryParams

_DATE_PATTERN = re.compile(r'[0-9]{8}T[0-9]{6}Z')
_EXPIRES_PATTERN = re.compile(r'[0-9]+')


def parse_url(url: str) -> SplitResult:
    """
    Split a URL into its components.

    Args:
        url: Absolute or relative URL

    Returns:
        SplitResult: Parsed URL

    Raises:
        MalformedURLError: If the URL cannot be parsed
    """
    if not isinstance(url, str):
        raise MalformedURLError(
            f"URL must be a string, got {type(url).__name__}",
            ErrorCodes.MALFORMED_URL
        )

    if not url or any(ch in url for ch in ('\x00', '\r', '\n')):
        raise MalformedURLError(
            "URL is empty or contains control characters",
            ErrorCodes.MALFORMED_URL,
            {"url": url}
        )

    # The canonical message is signed as UTF-8
    try:
        url.encode('utf-8')
    except UnicodeEncodeError as e:
        raise MalformedURLError(
            "URL cannot be encoded as UTF-8",
            ErrorCodes.MALFORMED_URL,
            {"original_error": str(e)}
        ) from e

    try:
        parsed = urlsplit(url)
        # Accessing the port validates it
        parsed.port
    except ValueError as e:
        raise MalformedURLError(
            f"Failed to parse URL: {e}",
            ErrorCodes.MALFORMED_URL,
            {"url": url, "original_error": str(e)}
        ) from e

    if parsed.scheme and not parsed.netloc and not parsed.path:
        raise MalformedURLError(
            f"URL has a scheme but no host or path: {url}",
            ErrorCodes.MALFORMED_URL,
            {"url": url}
        )

    return parsed


def parse_query_pairs(query: str) -> List[Tuple[str, str]]:
    """Decode a query string into ordered (key, value) pairs, blanks kept"""
    return parse_qsl(query, keep_blank_values=True)


def collapse_query(query: str) -> QueryParams:
    """
    Decode a query string keeping only the first value of each key.

    Args:
        query: Raw query string (without ``?``)

    Returns:
        dict: key -> first value
    """
    params: QueryParams = {}
    for key, value in parse_query_pairs(query):
        if key not in params:
            params[key] = value
    return params


def format_date(value: datetime, zone: tzinfo) -> str:
    """
    Format an issue date as ``yyyyMMdd'T'HHmmss'Z'`` in the reference zone.

    Naive datetimes are taken to already be in ``zone``.
    """
    if value.tzinfo is None:
        value = value.replace(tzinfo=zone)
    return value.astimezone(zone).strftime(DATE_FORMAT)


def parse_date(text: str, zone: tzinfo) -> datetime:
    """
    Parse an issue date written by ``format_date``.

    Raises:
        IllegalParameterError: If the text does not match the fixed pattern
    """
    if not isinstance(text, str) or not _DATE_PATTERN.fullmatch(text):
        raise IllegalParameterError(
            f"Date does not match yyyyMMdd'T'HHmmss'Z': {text!r}",
            ErrorCodes.ILLEGAL_PARAMETER,
            {"parameter": "Date", "value": text}
        )
    try:
        parsed = datetime.strptime(text, DATE_FORMAT)
    except ValueError as e:
        raise IllegalParameterError(
            f"Invalid date: {text!r}",
            ErrorCodes.ILLEGAL_PARAMETER,
            {"parameter": "Date", "value": text, "original_error": str(e)}
        ) from e
    return parsed.replace(tzinfo=zone)


def parse_expires(text: str) -> int:
    """
    Parse the Expires value as a positive decimal integer.

    Raises:
        IllegalParameterError: If the text is not a positive integer
    """
    if not isinstance(text, str) or not _EXPIRES_PATTERN.fullmatch(text) or int(text) <= 0:
        raise IllegalParameterError(
            f"Expires must be a positive integer: {text!r}",
            ErrorCodes.ILLEGAL_PARAMETER,
            {"parameter": "Expires", "value": text}
        )
    return int(text)


class PerformanceTimer:
    """Simple performance timer for monitoring signing operations."""

    def __init__(self):
        self.start_time = time.perf_counter()

    def elapsed_ms(self) -> float:
        """Get elapsed time in milliseconds."""
        return (time.perf_counter() - self.start_time) * 1000
