"""
Cryptographic operations for SigURL Python SDK
"""

from .rsa import (
    RSAKeyPair,
    KeyFormat,
    PublicKeyFormat,
    generate_key_pair,
    load_private_key,
    load_public_key,
    sign_message,
    verify_signature,
    check_platform_compatibility,
    ensure_rsa_available,
)

__all__ = [
    'RSAKeyPair',
    'KeyFormat',
    'PublicKeyFormat',
    'generate_key_pair',
    'load_private_key',
    'load_public_key',
    'sign_message',
    'verify_signature',
    'check_platform_compatibility',
    'ensure_rsa_available',
]
