"""
Canonical message construction for signed URLs

The canonical form of a URL is the exact string that gets signed. Verification
rebuilds it from the received URL, so every choice here (key order, value
collapsing, escaping) must produce the same bytes on both sides.
"""

from typing import Mapping
from urllib.parse import SplitResult, urlencode

from .utils import collapse_query, parse_url


class CanonicalMessageBuilder:
    """
    Renders ``scheme://host/path?sorted-query#fragment``.

    Each part is emitted only when present. Query keys are sorted, and each
    key carries a single value.
    """

    def __init__(self, url: SplitResult):
        self.url = url

    def build(self, params: Mapping[str, str]) -> str:
        parts = []

        if self.url.scheme:
            parts.append(f"{self.url.scheme}://")

        if self.url.netloc:
            parts.append(self.url.netloc)

        parts.append(self.url.path)

        query = encode_query(params)
        if query:
            parts.append(f"?{query}")

        if self.url.fragment:
            parts.append(f"#{self.url.fragment}")

        return ''.join(parts)


def encode_query(params: Mapping[str, str]) -> str:
    """
    Encode query parameters with keys in lexicographic order.

    Spaces become ``+`` and every character outside ``A-Za-z0-9-_.~`` is
    percent-escaped.
    """
    return urlencode(sorted(params.items()))


def canonicalize(url: str, params: Mapping[str, str]) -> str:
    """
    Build the canonical message for a URL and an explicit parameter set.

    Args:
        url: URL providing scheme, host, path and fragment
        params: Query parameters to render (the URL's own query is ignored)

    Returns:
        str: Canonical message
    """
    return CanonicalMessageBuilder(parse_url(url)).build(params)


def canonicalize_url(url: str) -> str:
    """Canonical form of a URL using its own query, multi-values collapsed"""
    parsed = parse_url(url)
    return CanonicalMessageBuilder(parsed).build(collapse_query(parsed.query))
