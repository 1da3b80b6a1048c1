"""
Configuration for signed URL signing and verification

``SignedURLConfig`` is the single, immutable configuration value shared by the
signer and the verifier. It is validated on construction.
"""

import re
from datetime import timezone, tzinfo
from typing import Tuple, Union
from dataclasses import dataclass, field

from ..exceptions import ErrorCodes, InvalidConfigError
from ..verification.policies import CustomPolicy
from ..verification.types import VerificationRule
from .parameters import DEFAULT_PREFIX
from .types import SignatureEncoding

# Prefixes are written into query keys unescaped, so only URL-unreserved
# characters are accepted.
_PREFIX_PATTERN = re.compile(r'^[A-Za-z0-9][A-Za-z0-9._~-]*$')

DEFAULT_SLOW_OPERATION_MS = 50.0


@dataclass(frozen=True)
class SignedURLConfig:
    """
    Signed URL configuration

    Attributes:
        prefix: Prefix of the reserved query keys (``{prefix}-Date`` ...)
        encoding: Text encoding of the signature parameter
        timezone: Reference zone for formatting and parsing the Date parameter
        custom_policy: Policy applied to URLs that do not embed their own
        extra_rules: Caller-registered rules run after the built-in policies
        slow_operation_ms: Sign/verify duration above which a warning is logged
    """
    prefix: str = DEFAULT_PREFIX
    encoding: Union[SignatureEncoding, str] = SignatureEncoding.HEX
    timezone: tzinfo = timezone.utc
    custom_policy: CustomPolicy = field(default_factory=CustomPolicy)
    extra_rules: Tuple[VerificationRule, ...] = ()
    slow_operation_ms: float = DEFAULT_SLOW_OPERATION_MS

    def __post_init__(self):
        if not isinstance(self.prefix, str) or not _PREFIX_PATTERN.match(self.prefix):
            raise InvalidConfigError(
                f"Prefix must be non-empty and use only A-Z a-z 0-9 . _ ~ -: {self.prefix!r}",
                ErrorCodes.INVALID_CONFIG,
                {"field": "prefix"}
            )

        try:
            object.__setattr__(self, 'encoding', SignatureEncoding.parse(self.encoding))
        except ValueError as e:
            raise InvalidConfigError(str(e), ErrorCodes.INVALID_CONFIG, {"field": "encoding"}) from e

        if not isinstance(self.timezone, tzinfo):
            raise InvalidConfigError(
                "Timezone must be a datetime.tzinfo instance",
                ErrorCodes.INVALID_CONFIG,
                {"field": "timezone"}
            )

        if not isinstance(self.custom_policy, CustomPolicy):
            raise InvalidConfigError(
                "Custom policy must be a CustomPolicy instance",
                ErrorCodes.INVALID_CONFIG,
                {"field": "custom_policy"}
            )

        rules = tuple(self.extra_rules)
        for rule in rules:
            if not isinstance(rule, VerificationRule):
                raise InvalidConfigError(
                    f"Extra rules must be VerificationRule instances, got {type(rule).__name__}",
                    ErrorCodes.INVALID_CONFIG,
                    {"field": "extra_rules"}
                )
        object.__setattr__(self, 'extra_rules', rules)

        if self.slow_operation_ms <= 0:
            raise InvalidConfigError(
                "Slow operation threshold must be positive",
                ErrorCodes.INVALID_CONFIG,
                {"field": "slow_operation_ms"}
            )
