"""
SigURL Python SDK - URL Signing Module

RSA-SHA256 signed URLs with reserved, prefixed query parameters.
This module provides the canonical message format, the reserved parameter
namespace and the signer that produces signed URLs.
"""

from .types import (
    SignatureAlgorithm,
    SignatureEncoding,
    ReservedParameter,
    REQUIRED_PARAMETERS,
    DATE_FORMAT,
    SignedInfo,
)

from .utils import (
    parse_url,
    parse_query_pairs,
    collapse_query,
    format_date,
    parse_date,
    parse_expires,
)

from .canonical_message import (
    CanonicalMessageBuilder,
    encode_query,
    canonicalize,
    canonicalize_url,
)

from .parameters import (
    DEFAULT_PREFIX,
    ParameterNamespace,
    ReservedParameters,
)

from .signing_config import (
    SignedURLConfig,
    DEFAULT_SLOW_OPERATION_MS,
)

from .url_signer import (
    URLSigner,
    MAX_EXPIRES,
)

# Public API exports
__all__ = [
    # Core signing functionality
    'URLSigner',
    'MAX_EXPIRES',
    # Types
    'SignatureAlgorithm',
    'SignatureEncoding',
    'ReservedParameter',
    'REQUIRED_PARAMETERS',
    'DATE_FORMAT',
    'SignedInfo',
    # Configuration
    'SignedURLConfig',
    'DEFAULT_SLOW_OPERATION_MS',
    # Canonical form
    'CanonicalMessageBuilder',
    'encode_query',
    'canonicalize',
    'canonicalize_url',
    # Reserved parameters
    'DEFAULT_PREFIX',
    'ParameterNamespace',
    'ReservedParameters',
    # Utilities
    'parse_url',
    'parse_query_pairs',
    'collapse_query',
    'format_date',
    'parse_date',
    'parse_expires',
]
