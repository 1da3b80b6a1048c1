"""
High-level integration module for SigURL SDK

This module provides the ``SigURL`` facade that combines key loading,
configuration, signing and verification behind the two public operations
``sign`` and ``verify``.
"""

import logging
from datetime import datetime
from typing import Optional, Union

from .clock import Clock, SystemClock
from .crypto.rsa import load_private_key, load_public_key
from .signing.signing_config import SignedURLConfig
from .signing.types import SignedInfo
from .signing.url_signer import URLSigner
from .verification.types import RequestContext, VerificationResult
from .verification.verifier import URLVerifier

logger = logging.getLogger(__name__)

KeyInput = Union[str, bytes]


class SigURL:
    """
    Signed URL facade.

    Keys are parsed once at construction; a missing key only fails the
    operation that needs it (``KeyNotSetError``). Instances are immutable
    after construction and may be shared between threads.
    """

    def __init__(
        self,
        private_key: Optional[KeyInput] = None,
        public_key: Optional[KeyInput] = None,
        config: Optional[SignedURLConfig] = None,
        clock: Optional[Clock] = None
    ):
        """
        Initialize SigURL.

        Args:
            private_key: RSA private key bytes (PEM or DER), needed for signing
            public_key: RSA public key or certificate bytes, needed for verifying
            config: Signed URL configuration (defaults apply if omitted)
            clock: Time source for default issue times and verification

        Raises:
            InvalidKeyError: If key bytes are given but cannot be parsed as RSA keys
        """
        self.config = config or SignedURLConfig()
        self.clock = clock or SystemClock()

        self._private_key = load_private_key(private_key) if private_key is not None else None
        self._public_key = load_public_key(public_key) if public_key is not None else None

        self.signer = URLSigner(self.config, self._private_key)
        self.verifier = URLVerifier(self.config, self._public_key, self.clock)

        logger.debug(
            "SigURL initialized (prefix=%s, encoding=%s, signing=%s, verifying=%s)",
            self.config.prefix,
            self.config.encoding.value,
            self._private_key is not None,
            self._public_key is not None,
        )

    @property
    def can_sign(self) -> bool:
        return self._private_key is not None

    @property
    def can_verify(self) -> bool:
        return self._public_key is not None

    def sign(self, url: str, issue_time: Optional[datetime], expires: int) -> str:
        """
        Produce a signed URL valid for ``expires`` seconds from ``issue_time``.

        Pass ``None`` as ``issue_time`` to use the clock's current time.
        """
        if issue_time is None:
            issue_time = self.clock.now()
        return self.signer.sign(url, issue_time, expires)

    def verify(self, url: str, context: Optional[RequestContext] = None) -> SignedInfo:
        """
        Verify a signed URL, raising the typed error of the first failing check.

        Returns:
            SignedInfo: The verified claims
        """
        return self.verifier.verify(url, context)

    def signed_info_from_url(self, url: str) -> SignedInfo:
        """Read a signed URL's claims without verifying them"""
        return self.verifier.signed_info_from_url(url)

    def check(self, url: str, context: Optional[RequestContext] = None) -> VerificationResult:
        """Verify a signed URL without raising"""
        return self.verifier.check(url, context)

    def is_valid(self, url: str, context: Optional[RequestContext] = None) -> bool:
        return self.check(url, context).is_valid


def create_sigurl(
    private_key: Optional[KeyInput] = None,
    public_key: Optional[KeyInput] = None,
    clock: Optional[Clock] = None,
    **config_options
) -> SigURL:
    """
    Create a SigURL instance, building its configuration from keyword options.

    Args:
        private_key: RSA private key bytes
        public_key: RSA public key or certificate bytes
        clock: Optional time source
        **config_options: ``SignedURLConfig`` fields

    Returns:
        SigURL: Configured instance
    """
    return SigURL(
        private_key=private_key,
        public_key=public_key,
        config=SignedURLConfig(**config_options),
        clock=clock
    )
