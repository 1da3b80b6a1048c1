"""
RSA key handling and PKCS#1 v1.5 signatures for SigURL Python SDK

This module wraps the cryptography package for the one signature scheme the
SDK supports: RSA PKCS#1 v1.5 over a SHA-256 digest of the UTF-8 message.
"""

import sys
import secrets
import platform
from enum import Enum
from typing import Any, Callable, Dict, Optional, Tuple, Union
from dataclasses import dataclass

from cryptography import x509
from cryptography.exceptions import InvalidSignature, UnsupportedAlgorithm
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import padding, rsa

from ..exceptions import ErrorCodes, InvalidKeyError, UnsupportedPlatformError

DEFAULT_KEY_SIZE = 2048
MIN_KEY_SIZE = 1024
PUBLIC_EXPONENT = 65537

KeyData = Union[str, bytes]


class KeyFormat(str, Enum):
    """Key container encodings"""
    PEM = "pem"
    DER = "der"


class PublicKeyFormat(str, Enum):
    """Public key container layouts"""
    SUBJECT_PUBLIC_KEY_INFO = "spki"
    PKCS1 = "pkcs1"


@dataclass
class RSAKeyPair:
    """
    Serialized RSA key pair.

    Attributes:
        private_key: PKCS#1 private key (PEM or DER bytes)
        public_key: Public key as SubjectPublicKeyInfo or PKCS#1 (PEM or DER bytes)
    """
    private_key: bytes
    public_key: bytes

    def __post_init__(self):
        if not isinstance(self.private_key, bytes):
            raise InvalidKeyError("Private key must be bytes", "INVALID_PRIVATE_KEY_TYPE")
        if not isinstance(self.public_key, bytes):
            raise InvalidKeyError("Public key must be bytes", "INVALID_PUBLIC_KEY_TYPE")


def check_platform_compatibility() -> Dict[str, Any]:
    """
    Check platform compatibility for RSA operations.

    Returns:
        dict: Compatibility information including RSA support, secure random
              availability, and platform details
    """
    compatibility = {
        'cryptography_available': True,
        'rsa_supported': False,
        'secure_random_available': hasattr(secrets, 'token_bytes'),
        'platform_info': {
            'system': platform.system(),
            'python_version': sys.version,
            'architecture': platform.architecture()[0],
        }
    }

    try:
        private_key = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=MIN_KEY_SIZE)
        signature = private_key.sign(b"compatibility", padding.PKCS1v15(), hashes.SHA256())
        private_key.public_key().verify(signature, b"compatibility", padding.PKCS1v15(), hashes.SHA256())
        compatibility['rsa_supported'] = True
    except (UnsupportedAlgorithm, InvalidSignature, ValueError):
        compatibility['rsa_supported'] = False

    return compatibility


def _to_bytes(key_data: KeyData) -> bytes:
    if isinstance(key_data, str):
        return key_data.encode('ascii')
    if isinstance(key_data, (bytes, bytearray)):
        return bytes(key_data)
    raise InvalidKeyError(
        f"Key data must be str or bytes, got {type(key_data).__name__}",
        ErrorCodes.INVALID_KEY
    )


def _is_pem(data: bytes) -> bool:
    return data.lstrip().startswith(b"-----BEGIN")


def generate_key_pair(
    key_size: int = DEFAULT_KEY_SIZE,
    *,
    key_format: KeyFormat = KeyFormat.PEM,
    public_format: PublicKeyFormat = PublicKeyFormat.SUBJECT_PUBLIC_KEY_INFO,
) -> RSAKeyPair:
    """
    Generate an RSA key pair.

    Args:
        key_size: Modulus size in bits (at least 1024)
        key_format: PEM or DER serialization
        public_format: Container for the public key

    Returns:
        RSAKeyPair: Serialized private and public keys

    Raises:
        InvalidKeyError: If the key size is unsupported
    """
    if not isinstance(key_size, int) or key_size < MIN_KEY_SIZE:
        raise InvalidKeyError(
            f"Key size must be an integer of at least {MIN_KEY_SIZE} bits",
            "INVALID_KEY_SIZE",
            {"key_size": key_size}
        )

    private_key_obj = rsa.generate_private_key(public_exponent=PUBLIC_EXPONENT, key_size=key_size)
    encoding = serialization.Encoding.PEM if key_format == KeyFormat.PEM else serialization.Encoding.DER

    private_key_bytes = private_key_obj.private_bytes(
        encoding=encoding,
        format=serialization.PrivateFormat.TraditionalOpenSSL,
        encryption_algorithm=serialization.NoEncryption()
    )

    if public_format == PublicKeyFormat.PKCS1:
        container = serialization.PublicFormat.PKCS1
    else:
        container = serialization.PublicFormat.SubjectPublicKeyInfo

    public_key_bytes = private_key_obj.public_key().public_bytes(encoding=encoding, format=container)

    return RSAKeyPair(private_key=private_key_bytes, public_key=public_key_bytes)


def load_private_key(key_data: KeyData) -> rsa.RSAPrivateKey:
    """
    Parse an unencrypted RSA private key (PKCS#1 or PKCS#8, PEM or DER).

    Raises:
        InvalidKeyError: If the bytes are not a private key or the key is not RSA
    """
    data = _to_bytes(key_data)
    loader = serialization.load_pem_private_key if _is_pem(data) else serialization.load_der_private_key

    try:
        key = loader(data, password=None)
    except (ValueError, TypeError, UnsupportedAlgorithm) as e:
        raise InvalidKeyError(
            f"Failed to parse private key: {e}",
            ErrorCodes.INVALID_KEY,
            {"original_error": str(e)}
        ) from e

    if not isinstance(key, rsa.RSAPrivateKey):
        raise InvalidKeyError(
            f"Unsupported private key type: {type(key).__name__}",
            ErrorCodes.UNSUPPORTED_KEY_TYPE,
            {"key_type": type(key).__name__}
        )
    return key


def _load_public_key_container(data: bytes):
    if _is_pem(data):
        return serialization.load_pem_public_key(data)
    return serialization.load_der_public_key(data)


def _load_certificate_public_key(data: bytes):
    if _is_pem(data):
        return x509.load_pem_x509_certificate(data).public_key()
    return x509.load_der_x509_certificate(data).public_key()


# Tried in order; the next loader runs only when the previous one rejects the
# structure of the input with ValueError.
PUBLIC_KEY_LOADERS: Tuple[Tuple[str, Callable[[bytes], Any]], ...] = (
    ('public-key', _load_public_key_container),
    ('x509-certificate', _load_certificate_public_key),
)


def load_public_key(key_data: KeyData) -> rsa.RSAPublicKey:
    """
    Parse an RSA public key.

    The bytes are first read as a public key container (SubjectPublicKeyInfo
    or PKCS#1, PEM or DER). Only if that loader rejects the structure is the
    input read as an X.509 certificate.

    Raises:
        InvalidKeyError: If no loader accepts the bytes or the key is not RSA
    """
    data = _to_bytes(key_data)
    failures: Dict[str, str] = {}
    key = None

    for name, loader in PUBLIC_KEY_LOADERS:
        try:
            key = loader(data)
            break
        except ValueError as e:
            failures[name] = str(e)
        except UnsupportedAlgorithm as e:
            raise InvalidKeyError(
                f"Unsupported public key algorithm: {e}",
                ErrorCodes.UNSUPPORTED_KEY_TYPE,
                {"format": name}
            ) from e

    if key is None:
        raise InvalidKeyError(
            "Failed to parse public key in any supported format",
            ErrorCodes.INVALID_KEY,
            {"attempts": failures}
        )

    if not isinstance(key, rsa.RSAPublicKey):
        raise InvalidKeyError(
            f"Unsupported public key type: {type(key).__name__}",
            ErrorCodes.UNSUPPORTED_KEY_TYPE,
            {"key_type": type(key).__name__}
        )
    return key


def _message_bytes(message: Union[str, bytes]) -> bytes:
    if isinstance(message, str):
        return message.encode('utf-8')
    return message


def sign_message(private_key: rsa.RSAPrivateKey, message: Union[str, bytes]) -> bytes:
    """
    Sign a message with RSA PKCS#1 v1.5 over SHA-256.

    Args:
        private_key: Loaded RSA private key
        message: Message to sign (strings are UTF-8 encoded)

    Returns:
        bytes: Raw signature, the size of the key modulus
    """
    return private_key.sign(_message_bytes(message), padding.PKCS1v15(), hashes.SHA256())


def verify_signature(public_key: rsa.RSAPublicKey, message: Union[str, bytes], signature: bytes) -> bool:
    """
    Verify an RSA PKCS#1 v1.5 / SHA-256 signature.

    Returns:
        bool: True if the signature matches, False otherwise
    """
    if not isinstance(signature, bytes):
        return False

    try:
        public_key.verify(signature, _message_bytes(message), padding.PKCS1v15(), hashes.SHA256())
        return True
    except InvalidSignature:
        return False


def ensure_rsa_available() -> None:
    """
    Raise if the cryptography backend cannot perform RSA operations.

    Raises:
        UnsupportedPlatformError: If RSA signing is unavailable
    """
    if not check_platform_compatibility()['rsa_supported']:
        raise UnsupportedPlatformError(
            "RSA signatures are not supported by the installed cryptography backend",
            ErrorCodes.CRYPTOGRAPHY_UNAVAILABLE
        )
