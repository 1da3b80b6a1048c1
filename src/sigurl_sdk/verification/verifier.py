"""
Signed URL verification

``URLVerifier`` checks a signed URL in a fixed order and stops at the first
failure:

1. parse the URL
2. extract and validate the reserved parameters
3. rebuild the canonical message without the signature
4. check the validity window against the clock
5. check the RSA signature
6. run the policy rules (IP address, time slot, caller rules)
"""

import logging
from datetime import datetime, timezone
from typing import TYPE_CHECKING, Optional

from cryptography.hazmat.primitives.asymmetric import rsa

from ..clock import Clock, SystemClock
from ..crypto.rsa import verify_signature
from ..exceptions import (
    BeforeStartDateError,
    ErrorCodes,
    ExpiredError,
    IllegalParameterError,
    InvalidPolicyError,
    KeyNotSetError,
    SigURLError,
    SignatureEncodingError,
    SignatureInvalidError,
)
from ..signing.canonical_message import CanonicalMessageBuilder
from ..signing.parameters import ParameterNamespace
from ..signing.types import ReservedParameter, SignedInfo
from ..signing.utils import PerformanceTimer, collapse_query, parse_url
from .policies import CustomPolicy, PolicyEvaluator
from .types import RequestContext, VerificationContext, VerificationResult

if TYPE_CHECKING:
    from ..signing.signing_config import SignedURLConfig

logger = logging.getLogger(__name__)


class URLVerifier:
    """
    Verifies signed URLs against an RSA public key and configuration.

    Instances hold only read-only state and may be shared between threads.
    """

    def __init__(
        self,
        config: 'SignedURLConfig',
        public_key: Optional[rsa.RSAPublicKey],
        clock: Optional[Clock] = None
    ):
        self.config = config
        self.public_key = public_key
        self.clock = clock or SystemClock()
        self.namespace = ParameterNamespace(config.prefix)
        self.evaluator = PolicyEvaluator(config.extra_rules)

    def signed_info_from_url(self, url: str) -> SignedInfo:
        """
        Read the claims embedded in a signed URL without verifying them.

        Raises:
            MalformedURLError: If the URL cannot be parsed
            MissingParameterError: If a reserved parameter is absent
            IllegalParameterError: If a reserved parameter is malformed
        """
        parsed = parse_url(url)
        params = collapse_query(parsed.query)
        reserved = self.namespace.extract_reserved(params, self.config.timezone)

        message = CanonicalMessageBuilder(parsed).build(self.namespace.without_signature(params))

        return SignedInfo(
            date=reserved.date,
            expires=reserved.expires,
            signature=reserved.signature,
            message=message,
            custom_policy=reserved.raw_policy,
        )

    def verify(self, url: str, context: Optional[RequestContext] = None) -> SignedInfo:
        """
        Verify a signed URL.

        Args:
            url: Signed URL as received
            context: Request facts for the policy rules

        Returns:
            SignedInfo: The verified claims

        Raises:
            SigURLError: The first failing check, as its specific subclass
        """
        timer = PerformanceTimer()
        request = context or RequestContext()

        try:
            signed_info = self.signed_info_from_url(url)
            policy = self._declared_policy(signed_info)

            now = self._now()
            self._check_validity_window(signed_info, now)
            self._check_signature(signed_info)

            self.evaluator.evaluate(VerificationContext(
                request=request,
                signed_info=signed_info,
                policy=policy,
                now=now
            ))
        except SigURLError as error:
            logger.debug("Signed URL rejected: %s", error.error_code)
            raise

        elapsed_ms = timer.elapsed_ms()
        if elapsed_ms > self.config.slow_operation_ms:
            logger.warning(f"Verification took {elapsed_ms:.2f}ms (target: <{self.config.slow_operation_ms}ms)")

        return signed_info

    def check(self, url: str, context: Optional[RequestContext] = None) -> VerificationResult:
        """Verify without raising; failures are reported in the result"""
        try:
            return VerificationResult.create_valid(self.verify(url, context))
        except SigURLError as error:
            return VerificationResult.create_error(error)

    def _now(self) -> datetime:
        now = self.clock.now()
        if now.tzinfo is None:
            now = now.replace(tzinfo=timezone.utc)
        return now

    def _declared_policy(self, signed_info: SignedInfo) -> CustomPolicy:
        """The policy embedded in the URL, else the configured one"""
        if signed_info.custom_policy is None:
            return self.config.custom_policy

        try:
            return CustomPolicy.from_json(signed_info.custom_policy)
        except InvalidPolicyError as e:
            raise IllegalParameterError(
                f"Malformed custom policy: {e.message}",
                ErrorCodes.ILLEGAL_PARAMETER,
                {"parameter": self.namespace.param_key(ReservedParameter.CUSTOM_POLICY), **e.details}
            ) from e

    def _check_validity_window(self, signed_info: SignedInfo, now: datetime) -> None:
        if now < signed_info.date:
            raise BeforeStartDateError(
                "Before the start date",
                ErrorCodes.BEFORE_START_DATE,
                {"date": signed_info.date.isoformat(), "now": now.isoformat()}
            )

        if now > signed_info.expires_at:
            raise ExpiredError(
                "URL has expired",
                ErrorCodes.EXPIRED,
                {"expires_at": signed_info.expires_at.isoformat(), "now": now.isoformat()}
            )

    def _check_signature(self, signed_info: SignedInfo) -> None:
        if self.public_key is None:
            raise KeyNotSetError(
                "Public key not set",
                ErrorCodes.PUBLIC_KEY_NOT_SET
            )

        # Raises SignatureEncodingError before any cryptographic work
        signature_bytes = signed_info.signature_bytes(self.config.encoding)

        # Hex text is also valid Base64, so decoding alone cannot catch every mismatch
        expected_length = (self.public_key.key_size + 7) // 8
        if len(signature_bytes) != expected_length:
            raise SignatureEncodingError(
                f"Decoded signature is {len(signature_bytes)} bytes, expected {expected_length}",
                ErrorCodes.SIGNATURE_ENCODING,
                {"encoding": self.config.encoding.value}
            )

        if not verify_signature(self.public_key, signed_info.message, signature_bytes):
            raise SignatureInvalidError(
                "Signature does not match",
                ErrorCodes.SIGNATURE_INVALID
            )
