"""
SigURL Python SDK
RSA-SHA256 signed URLs with expiry, IP address and time slot policies
"""

from .version import __version__
from .crypto.rsa import (
    RSAKeyPair,
    KeyFormat,
    PublicKeyFormat,
    generate_key_pair,
    load_private_key,
    load_public_key,
    check_platform_compatibility,
    sign_message,
    verify_signature,
)
from .clock import (
    Clock,
    SystemClock,
    FixedClock,
)
from .exceptions import (
    ErrorCodes,
    SigURLError,
    ConfigurationError,
    InvalidConfigError,
    InvalidKeyError,
    KeyNotSetError,
    InvalidPolicyError,
    UnsupportedPlatformError,
    MalformedURLError,
    ParameterError,
    MissingParameterError,
    IllegalParameterError,
    ParameterCollisionError,
    VerificationError,
    BeforeStartDateError,
    ExpiredError,
    SignatureInvalidError,
    SignatureEncodingError,
    PolicyViolationError,
)
# Signing must be imported before verification; its config pulls in the policies
from .signing import (
    URLSigner,
    SignedURLConfig,
    SignatureAlgorithm,
    SignatureEncoding,
    ReservedParameter,
    SignedInfo,
    DEFAULT_PREFIX,
    ParameterNamespace,
    canonicalize,
    canonicalize_url,
)
from .verification import (
    URLVerifier,
    RequestContext,
    VerificationContext,
    VerificationRule,
    VerificationRuleResult,
    VerificationResult,
    VerificationStatus,
    IpAddressPolicyType,
    TimeSlotPolicyType,
    IpAddressPolicy,
    TimeSlotPolicy,
    CustomPolicy,
)
from .integration import (
    SigURL,
    create_sigurl,
)


# Initialize the SDK
def initialize_sdk():
    """
    Initialize the SigURL SDK and check platform compatibility.

    Returns:
        dict: Compatibility information with 'compatible' (bool) and 'warnings' (list)
    """
    warnings = []
    compatible = True

    try:
        compat_info = check_platform_compatibility()
        if not compat_info['cryptography_available']:
            warnings.append('Cryptography package not available - signing will fail')
            compatible = False

        if not compat_info['secure_random_available']:
            warnings.append('Secure random generation not available - key generation may be insecure')
            compatible = False

        if not compat_info['rsa_supported']:
            warnings.append('RSA PKCS#1 v1.5 / SHA-256 not supported by cryptography backend - check version')
            compatible = False

    except Exception as e:
        warnings.append(f'Platform compatibility check failed: {e}')
        compatible = False

    return {
        'compatible': compatible,
        'warnings': warnings
    }


def is_compatible():
    """
    Quick synchronous compatibility check.

    Returns:
        bool: True if platform is compatible with basic SDK functionality
    """
    return initialize_sdk()['compatible']


# Public API exports
__all__ = [
    '__version__',
    'initialize_sdk',
    'is_compatible',
    # Facade
    'SigURL',
    'create_sigurl',
    # Keys
    'RSAKeyPair',
    'KeyFormat',
    'PublicKeyFormat',
    'generate_key_pair',
    'load_private_key',
    'load_public_key',
    'check_platform_compatibility',
    'sign_message',
    'verify_signature',
    # Clock
    'Clock',
    'SystemClock',
    'FixedClock',
    # Exceptions
    'ErrorCodes',
    'SigURLError',
    'ConfigurationError',
    'InvalidConfigError',
    'InvalidKeyError',
    'KeyNotSetError',
    'InvalidPolicyError',
    'UnsupportedPlatformError',
    'MalformedURLError',
    'ParameterError',
    'MissingParameterError',
    'IllegalParameterError',
    'ParameterCollisionError',
    'VerificationError',
    'BeforeStartDateError',
    'ExpiredError',
    'SignatureInvalidError',
    'SignatureEncodingError',
    'PolicyViolationError',
    # Signing
    'URLSigner',
    'SignedURLConfig',
    'SignatureAlgorithm',
    'SignatureEncoding',
    'ReservedParameter',
    'SignedInfo',
    'DEFAULT_PREFIX',
    'ParameterNamespace',
    'canonicalize',
    'canonicalize_url',
    # Verification
    'URLVerifier',
    'RequestContext',
    'VerificationContext',
    'VerificationRule',
    'VerificationRuleResult',
    'VerificationResult',
    'VerificationStatus',
    'IpAddressPolicyType',
    'TimeSlotPolicyType',
    'IpAddressPolicy',
    'TimeSlotPolicy',
    'CustomPolicy',
]
