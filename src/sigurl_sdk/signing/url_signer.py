"""
Signed URL generation

``URLSigner`` turns an ordinary URL into a signed URL: it adds the reserved
parameters, canonicalizes, signs the canonical message with RSA-SHA256 and
appends the encoded signature.
"""

import logging
from datetime import datetime
from typing import TYPE_CHECKING, Optional

from cryptography.hazmat.primitives.asymmetric import rsa

from ..crypto.rsa import sign_message
from ..exceptions import (
    ErrorCodes,
    IllegalParameterError,
    KeyNotSetError,
    ParameterCollisionError,
    SigURLError,
)
from .canonical_message import CanonicalMessageBuilder
from .parameters import ParameterNamespace
from .types import ReservedParameter
from .utils import PerformanceTimer, collapse_query, parse_query_pairs, parse_url

if TYPE_CHECKING:
    from .signing_config import SignedURLConfig

logger = logging.getLogger(__name__)

MAX_EXPIRES = 2 ** 32 - 1


class URLSigner:
    """
    Signs URLs with a fixed RSA private key and configuration.

    Instances hold only read-only state and may be shared between threads.
    """

    def __init__(self, config: 'SignedURLConfig', private_key: Optional[rsa.RSAPrivateKey]):
        self.config = config
        self.private_key = private_key
        self.namespace = ParameterNamespace(config.prefix)

    def sign(self, url: str, issue_time: datetime, expires: int) -> str:
        """
        Produce a signed URL.

        Args:
            url: URL to sign; must not already carry reserved parameters
            issue_time: Start of the validity window
            expires: Validity duration in seconds (> 0)

        Returns:
            str: Canonical signed URL

        Raises:
            KeyNotSetError: If no private key is configured
            MalformedURLError: If the URL cannot be parsed
            ParameterCollisionError: If the URL already carries reserved keys
            IllegalParameterError: If ``expires`` or ``issue_time`` is invalid
        """
        timer = PerformanceTimer()

        if self.private_key is None:
            raise KeyNotSetError(
                "Private key not set",
                ErrorCodes.PRIVATE_KEY_NOT_SET
            )

        parsed = parse_url(url)

        pairs = parse_query_pairs(parsed.query)
        collisions = self.namespace.find_collisions(k for k, _ in pairs)
        if collisions:
            raise ParameterCollisionError(
                f"URL already carries reserved parameters: {', '.join(collisions)}",
                ErrorCodes.PARAMETER_COLLISION,
                {"keys": collisions}
            )

        self._validate_claims(issue_time, expires)

        policy = self.config.custom_policy
        params = collapse_query(parsed.query)
        params.update(self.namespace.build_reserved(
            issue_time,
            expires,
            self.config.timezone,
            None if policy.is_default else policy.to_json()
        ))

        builder = CanonicalMessageBuilder(parsed)
        message = builder.build(params)

        signature = self._sign_message(message)
        params[self.namespace.param_key(ReservedParameter.SIGNATURE)] = signature
        signed_url = builder.build(params)

        elapsed_ms = timer.elapsed_ms()
        if elapsed_ms > self.config.slow_operation_ms:
            logger.warning(f"Signing operation took {elapsed_ms:.2f}ms (target: <{self.config.slow_operation_ms}ms)")
        logger.debug("Signed URL for %s://%s%s", parsed.scheme, parsed.netloc, parsed.path)

        return signed_url

    def _validate_claims(self, issue_time: datetime, expires: int) -> None:
        if not isinstance(issue_time, datetime):
            raise IllegalParameterError(
                f"Issue time must be a datetime, got {type(issue_time).__name__}",
                ErrorCodes.ILLEGAL_PARAMETER,
                {"parameter": "Date"}
            )

        if isinstance(expires, bool) or not isinstance(expires, int) or not 0 < expires <= MAX_EXPIRES:
            raise IllegalParameterError(
                f"Expires must be an integer between 1 and {MAX_EXPIRES}: {expires!r}",
                ErrorCodes.ILLEGAL_PARAMETER,
                {"parameter": "Expires", "value": repr(expires)}
            )

    def _sign_message(self, message: str) -> str:
        """
        Sign a canonical message and encode the signature.

        Raises:
            SigURLError: If the cryptographic operation fails
        """
        try:
            signature_bytes = sign_message(self.private_key, message)
        except (ValueError, TypeError) as e:
            raise SigURLError(
                f"Message signing failed: {e}",
                ErrorCodes.SIGNING_FAILED,
                {"original_error": str(e)}
            ) from e
        return self.config.encoding.encode(signature_bytes)
