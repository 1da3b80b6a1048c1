"""
Exception classes for SigURL Python SDK

Every failure the SDK surfaces is a subclass of ``SigURLError`` carrying a
machine-readable ``error_code`` so callers can branch on the cause without
inspecting message text.
"""

from typing import Optional, Dict, Any


class ErrorCodes:
    """Standard error codes for signing and verification"""

    # Configuration errors
    INVALID_CONFIG = "INVALID_CONFIG"
    INVALID_POLICY = "INVALID_POLICY"
    INVALID_KEY = "INVALID_KEY"
    UNSUPPORTED_KEY_TYPE = "UNSUPPORTED_KEY_TYPE"
    PRIVATE_KEY_NOT_SET = "PRIVATE_KEY_NOT_SET"
    PUBLIC_KEY_NOT_SET = "PUBLIC_KEY_NOT_SET"
    CRYPTOGRAPHY_UNAVAILABLE = "CRYPTOGRAPHY_UNAVAILABLE"

    # URL and parameter errors
    MALFORMED_URL = "MALFORMED_URL"
    MISSING_PARAMETER = "MISSING_PARAMETER"
    ILLEGAL_PARAMETER = "ILLEGAL_PARAMETER"
    PARAMETER_COLLISION = "PARAMETER_COLLISION"

    # Verification errors
    BEFORE_START_DATE = "BEFORE_START_DATE"
    EXPIRED = "EXPIRED"
    SIGNATURE_INVALID = "SIGNATURE_INVALID"
    SIGNATURE_ENCODING = "SIGNATURE_ENCODING"
    POLICY_VIOLATION = "POLICY_VIOLATION"

    # General errors
    SIGNING_FAILED = "SIGNING_FAILED"


class SigURLError(Exception):
    """Base exception for all SigURL SDK errors"""

    default_code = "UNKNOWN_ERROR"

    def __init__(self, message: str, error_code: Optional[str] = None, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.error_code = error_code or self.default_code
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} (code: {self.error_code}, details: {self.details})"
        return f"{self.message} (code: {self.error_code})"

    def __repr__(self) -> str:
        return f"{type(self).__name__}(message='{self.message}', error_code='{self.error_code}', details={self.details})"

    def to_dict(self) -> Dict[str, Any]:
        return {
            'code': self.error_code,
            'message': self.message,
            'details': dict(self.details),
        }


class ConfigurationError(SigURLError):
    """Exception raised for invalid SDK configuration"""
    default_code = ErrorCodes.INVALID_CONFIG


class InvalidConfigError(ConfigurationError):
    """Exception raised when a configuration value fails validation"""
    default_code = ErrorCodes.INVALID_CONFIG


class InvalidKeyError(ConfigurationError):
    """Exception raised when key bytes cannot be parsed or are not RSA keys"""
    default_code = ErrorCodes.INVALID_KEY


class KeyNotSetError(ConfigurationError):
    """Exception raised when an operation needs a key that was not configured"""
    default_code = ErrorCodes.PRIVATE_KEY_NOT_SET


class InvalidPolicyError(ConfigurationError):
    """Exception raised for invalid custom policy definitions"""
    default_code = ErrorCodes.INVALID_POLICY


class UnsupportedPlatformError(SigURLError):
    """Exception raised when platform features are not supported"""
    default_code = ErrorCodes.CRYPTOGRAPHY_UNAVAILABLE


class MalformedURLError(SigURLError):
    """Exception raised when a URL cannot be parsed"""
    default_code = ErrorCodes.MALFORMED_URL


class ParameterError(SigURLError):
    """Base class for reserved query parameter errors"""
    default_code = ErrorCodes.ILLEGAL_PARAMETER


class MissingParameterError(ParameterError):
    """Exception raised when a reserved parameter is absent from the query"""
    default_code = ErrorCodes.MISSING_PARAMETER


class IllegalParameterError(ParameterError):
    """Exception raised when a reserved parameter is present but malformed"""
    default_code = ErrorCodes.ILLEGAL_PARAMETER


class ParameterCollisionError(ParameterError):
    """Exception raised when signing a URL that already carries reserved parameters"""
    default_code = ErrorCodes.PARAMETER_COLLISION


class VerificationError(SigURLError):
    """Base class for verification failures"""
    default_code = "VERIFICATION_FAILED"


class BeforeStartDateError(VerificationError):
    """Exception raised when a URL is used before its issue date"""
    default_code = ErrorCodes.BEFORE_START_DATE


class ExpiredError(VerificationError):
    """Exception raised when a URL is used after its validity window"""
    default_code = ErrorCodes.EXPIRED


class SignatureInvalidError(VerificationError):
    """Exception raised when the cryptographic signature check fails"""
    default_code = ErrorCodes.SIGNATURE_INVALID


class SignatureEncodingError(SignatureInvalidError):
    """Exception raised when the signature text cannot be decoded with the configured encoding"""
    default_code = ErrorCodes.SIGNATURE_ENCODING


class PolicyViolationError(VerificationError):
    """Exception raised when a policy rule rejects the request"""

    default_code = ErrorCodes.POLICY_VIOLATION

    def __init__(self, message: str, kind: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message, ErrorCodes.POLICY_VIOLATION, {'kind': kind, **(details or {})})
        self.kind = kind
