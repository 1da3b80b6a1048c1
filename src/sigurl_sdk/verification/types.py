"""
Type definitions for signed URL verification

This module provides the context objects handed to verification rules and the
result types returned by non-raising verification.
"""

from datetime import datetime
from typing import TYPE_CHECKING, Any, Callable, Dict, Optional, Union
from dataclasses import dataclass, field
from enum import Enum

from ..exceptions import SigURLError

if TYPE_CHECKING:
    from ..signing.types import SignedInfo
    from .policies import CustomPolicy


class VerificationStatus(str, Enum):
    """Verification result status"""
    VALID = "valid"
    INVALID = "invalid"


@dataclass(frozen=True)
class RequestContext:
    """
    Facts about the request presenting a signed URL

    Attributes:
        client_ip: Address of the caller, checked by the IP address policy
        metadata: Free-form values for caller-registered rules
    """
    client_ip: Optional[str] = None
    metadata: Dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class VerificationContext:
    """Everything a verification rule may inspect"""
    request: RequestContext
    signed_info: 'SignedInfo'
    policy: 'CustomPolicy'
    now: datetime


@dataclass
class VerificationRuleResult:
    """Verification rule result"""
    passed: bool
    message: Optional[str] = None
    details: Optional[Dict[str, Any]] = None

    def __post_init__(self):
        """Initialize default details if None"""
        if self.details is None:
            self.details = {}


RuleOutcome = Union[VerificationRuleResult, bool]
VerificationRuleValidator = Callable[[VerificationContext], RuleOutcome]


@dataclass(frozen=True)
class VerificationRule:
    """
    Named pass/fail predicate run after the signature check

    ``validate`` may return a ``VerificationRuleResult`` or a plain bool.
    """
    name: str
    validate: VerificationRuleValidator
    description: str = ""

    def __post_init__(self):
        """Validate rule after initialization"""
        if not self.name:
            raise ValueError("Rule name cannot be empty")
        if not callable(self.validate):
            raise ValueError("Validate must be callable")

    def evaluate(self, context: VerificationContext) -> VerificationRuleResult:
        outcome = self.validate(context)
        if isinstance(outcome, VerificationRuleResult):
            return outcome
        return VerificationRuleResult(passed=bool(outcome))


@dataclass
class VerificationResult:
    """Outcome of a non-raising verification"""
    status: VerificationStatus
    signed_info: Optional['SignedInfo'] = None
    error: Optional[Dict[str, Any]] = None

    @property
    def is_valid(self) -> bool:
        return self.status is VerificationStatus.VALID

    @classmethod
    def create_valid(cls, signed_info: 'SignedInfo') -> 'VerificationResult':
        return cls(status=VerificationStatus.VALID, signed_info=signed_info)

    @classmethod
    def create_error(cls, error: SigURLError, signed_info: Optional['SignedInfo'] = None) -> 'VerificationResult':
        """Create error result"""
        return cls(
            status=VerificationStatus.INVALID,
            signed_info=signed_info,
            error=error.to_dict()
        )
