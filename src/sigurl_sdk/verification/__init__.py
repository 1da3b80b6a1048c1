"""
Signed URL verification module for the SigURL Python SDK

This module provides:
- The verifier that checks the validity window, signature and policies
- IP address and time slot policies, embeddable in signed URLs
- Verification rule and result types for caller-registered checks
"""

# Export types
from .types import (
    VerificationStatus,
    RequestContext,
    VerificationContext,
    VerificationRule,
    VerificationRuleResult,
    VerificationResult,
)

# Export policies
from .policies import (
    IpAddressPolicyType,
    TimeSlotPolicyType,
    IpAddressPolicy,
    TimeSlotPolicy,
    CustomPolicy,
    PolicyEvaluator,
    BUILTIN_RULES,
    create_ip_address_rule,
    create_time_slot_rule,
    parse_policy_address,
)

# Export core verifier
from .verifier import URLVerifier

__all__ = [
    # Types
    'VerificationStatus',
    'RequestContext',
    'VerificationContext',
    'VerificationRule',
    'VerificationRuleResult',
    'VerificationResult',

    # Policies
    'IpAddressPolicyType',
    'TimeSlotPolicyType',
    'IpAddressPolicy',
    'TimeSlotPolicy',
    'CustomPolicy',
    'PolicyEvaluator',
    'BUILTIN_RULES',
    'create_ip_address_rule',
    'create_time_slot_rule',
    'parse_policy_address',

    # Verifier
    'URLVerifier',
]
