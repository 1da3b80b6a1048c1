"""
Type definitions for signed URL functionality

This module provides the enums and data classes shared by the signer, the
verifier and the parameter namespace.
"""

import base64
import binascii
from datetime import datetime, timedelta
from typing import Dict, List, Optional
from dataclasses import dataclass
from enum import Enum

from ..exceptions import ErrorCodes, SignatureEncodingError


class SignatureAlgorithm(str, Enum):
    """Signature algorithm identifiers written to the Algorithm parameter"""
    RSA_SHA256 = "RSA-SHA256"


class SignatureEncoding(str, Enum):
    """Text encodings for raw signature bytes"""
    HEX = "Hex"
    BASE64 = "Base64"

    @classmethod
    def parse(cls, value) -> 'SignatureEncoding':
        """Accept an enum member or its name/value in any letter case"""
        if isinstance(value, cls):
            return value
        if isinstance(value, str):
            for member in cls:
                if value.lower() in (member.value.lower(), member.name.lower()):
                    return member
        raise ValueError(f"Unsupported signature encoding: {value!r}")

    def encode(self, signature: bytes) -> str:
        if self is SignatureEncoding.BASE64:
            return base64.b64encode(signature).decode('ascii')
        return signature.hex()

    def decode(self, text: str) -> bytes:
        """
        Decode signature text.

        Only the exact text ``encode`` would produce is accepted, so upper-case
        hex or Base64 with non-zero padding bits is rejected.

        Raises:
            SignatureEncodingError: If the text is not valid for this encoding
        """
        try:
            if self is SignatureEncoding.BASE64:
                raw = base64.b64decode(text.encode('ascii'), validate=True)
            else:
                raw = binascii.unhexlify(text.encode('ascii'))
        except (binascii.Error, ValueError, UnicodeEncodeError) as e:
            raise SignatureEncodingError(
                f"Signature is not valid {self.value} text",
                ErrorCodes.SIGNATURE_ENCODING,
                {"encoding": self.value, "original_error": str(e)}
            ) from e

        if self.encode(raw) != text:
            raise SignatureEncodingError(
                f"Signature is not canonical {self.value} text",
                ErrorCodes.SIGNATURE_ENCODING,
                {"encoding": self.value}
            )
        return raw


class ReservedParameter(str, Enum):
    """Names of the reserved query parameters, before prefixing"""
    ALGORITHM = "Algorithm"
    DATE = "Date"
    EXPIRES = "Expires"
    SIGNATURE = "Signature"
    CUSTOM_POLICY = "CustomPolicy"


# Parameters that must be present on every signed URL
REQUIRED_PARAMETERS: List[ReservedParameter] = [
    ReservedParameter.ALGORITHM,
    ReservedParameter.DATE,
    ReservedParameter.EXPIRES,
    ReservedParameter.SIGNATURE,
]

# yyyyMMdd'T'HHmmss'Z'
DATE_FORMAT = "%Y%m%dT%H%M%SZ"

QueryParams = Dict[str, str]


@dataclass(frozen=True)
class SignedInfo:
    """
    Claims embedded in a signed URL

    Attributes:
        date: Issue date, timezone-aware in the configured reference zone
        expires: Validity duration in seconds from ``date`` (> 0)
        signature: Signature text as found in the URL
        message: Canonical message rebuilt from the URL, signature removed
        custom_policy: Raw CustomPolicy JSON if the URL carries one
    """
    date: datetime
    expires: int
    signature: str
    message: str
    custom_policy: Optional[str] = None

    @property
    def expires_at(self) -> datetime:
        return self.date + timedelta(seconds=self.expires)

    def signature_bytes(self, encoding: SignatureEncoding) -> bytes:
        return SignatureEncoding.parse(encoding).decode(self.signature)
