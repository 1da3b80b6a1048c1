"""
Custom access policies for signed URLs

A ``CustomPolicy`` holds two independent sub-policies, each a tagged value:

* IP address: ``Any``, ``Allow{addresses}`` or ``Deny{addresses}``
* Time slot: ``Any`` or ``Check{start, end}``

Policies are evaluated as an ordered chain of ``VerificationRule`` objects
(IP address, then time slot, then any caller-registered rules); the first
failing rule stops evaluation.

The time-slot ``Check`` kind is accepted and serialized but its bounds are
not enforced. Its rule always passes and reports ``enforced: False``.
"""

import json
import ipaddress
import logging
from datetime import time
from enum import Enum
from typing import Any, FrozenSet, Iterable, List, Optional, Sequence, Union
from dataclasses import dataclass, field

from ..exceptions import ErrorCodes, InvalidPolicyError, PolicyViolationError
from .types import (
    VerificationContext,
    VerificationRule,
    VerificationRuleResult,
)

logger = logging.getLogger(__name__)

IPAddress = Union[ipaddress.IPv4Address, ipaddress.IPv6Address]

_TIME_FORMAT = "%H:%M:%S"


class IpAddressPolicyType(str, Enum):
    """IP address policy kinds"""
    ANY = "Any"
    ALLOW = "Allow"
    DENY = "Deny"


class TimeSlotPolicyType(str, Enum):
    """Time-slot policy kinds"""
    ANY = "Any"
    CHECK = "Check"


def _is_loopback(address: IPAddress) -> bool:
    # Includes IPv4-mapped forms such as ::ffff:127.0.0.1
    mapped = getattr(address, 'ipv4_mapped', None)
    return address.is_loopback or (mapped is not None and mapped.is_loopback)


def parse_policy_address(value: Any) -> IPAddress:
    """
    Parse an address for an allow/deny list.

    Raises:
        InvalidPolicyError: If the value is not a literal IP or is a loopback address
    """
    if not isinstance(value, str):
        raise InvalidPolicyError(
            f"IP address must be a string, got {type(value).__name__}",
            ErrorCodes.INVALID_POLICY,
            {"value": repr(value)}
        )
    try:
        address = ipaddress.ip_address(value.strip())
    except ValueError as e:
        raise InvalidPolicyError(
            f"Not a literal IP address: {value!r}",
            ErrorCodes.INVALID_POLICY,
            {"value": value}
        ) from e

    if _is_loopback(address):
        raise InvalidPolicyError(
            f"Loopback addresses cannot be registered: {value}",
            ErrorCodes.INVALID_POLICY,
            {"value": value}
        )
    return address


@dataclass(frozen=True)
class IpAddressPolicy:
    """IP address sub-policy"""
    type: IpAddressPolicyType = IpAddressPolicyType.ANY
    addresses: FrozenSet[IPAddress] = field(default_factory=frozenset)

    def __post_init__(self):
        try:
            kind = IpAddressPolicyType(self.type)
        except ValueError as e:
            raise InvalidPolicyError(
                f"Unknown IP address policy type: {self.type!r}",
                ErrorCodes.INVALID_POLICY
            ) from e
        object.__setattr__(self, 'type', kind)

        addresses = frozenset(
            a if isinstance(a, (ipaddress.IPv4Address, ipaddress.IPv6Address)) else parse_policy_address(a)
            for a in self.addresses
        )
        for address in addresses:
            if _is_loopback(address):
                raise InvalidPolicyError(
                    f"Loopback addresses cannot be registered: {address}",
                    ErrorCodes.INVALID_POLICY,
                    {"value": str(address)}
                )
        object.__setattr__(self, 'addresses', addresses)

        if kind is IpAddressPolicyType.ANY and addresses:
            raise InvalidPolicyError(
                "IP address policy 'Any' takes no addresses",
                ErrorCodes.INVALID_POLICY
            )
        if kind is not IpAddressPolicyType.ANY and not addresses:
            raise InvalidPolicyError(
                f"IP address policy '{kind.value}' requires at least one address",
                ErrorCodes.INVALID_POLICY
            )

    @classmethod
    def any(cls) -> 'IpAddressPolicy':
        return cls()

    @classmethod
    def allow(cls, addresses: Iterable[str]) -> 'IpAddressPolicy':
        return cls(IpAddressPolicyType.ALLOW, frozenset(parse_policy_address(a) for a in addresses))

    @classmethod
    def deny(cls, addresses: Iterable[str]) -> 'IpAddressPolicy':
        return cls(IpAddressPolicyType.DENY, frozenset(parse_policy_address(a) for a in addresses))

    @property
    def values(self) -> List[str]:
        """Addresses as sorted strings, the form written to JSON"""
        return sorted(str(a) for a in self.addresses)

    def evaluate(self, client_ip: Optional[str]) -> VerificationRuleResult:
        if self.type is IpAddressPolicyType.ANY:
            return VerificationRuleResult(passed=True, message='Any IP address allowed')

        address = _parse_client_ip(client_ip)
        listed = address is not None and address in self.addresses

        if self.type is IpAddressPolicyType.ALLOW and not listed:
            return VerificationRuleResult(
                passed=False,
                message='IP not allowed',
                details={'client_ip': client_ip}
            )
        if self.type is IpAddressPolicyType.DENY and listed:
            return VerificationRuleResult(
                passed=False,
                message='IP denied',
                details={'client_ip': client_ip}
            )
        return VerificationRuleResult(passed=True, message='IP address policy satisfied')


def _parse_client_ip(client_ip: Optional[str]) -> Optional[IPAddress]:
    if not client_ip:
        return None
    try:
        return ipaddress.ip_address(client_ip.strip())
    except ValueError:
        logger.debug("Client IP %r is not a literal address", client_ip)
        return None


def _parse_time(value: Any) -> time:
    if isinstance(value, time):
        return value
    if isinstance(value, str):
        try:
            return time.fromisoformat(value)
        except ValueError as e:
            raise InvalidPolicyError(
                f"Invalid time of day: {value!r}",
                ErrorCodes.INVALID_POLICY,
                {"value": value}
            ) from e
    raise InvalidPolicyError(
        f"Time of day must be a string or datetime.time, got {type(value).__name__}",
        ErrorCodes.INVALID_POLICY
    )


@dataclass(frozen=True)
class TimeSlotPolicy:
    """
    Time-slot sub-policy

    ``Check`` records its bounds but does not enforce them.
    """
    type: TimeSlotPolicyType = TimeSlotPolicyType.ANY
    start: Optional[time] = None
    end: Optional[time] = None

    def __post_init__(self):
        try:
            kind = TimeSlotPolicyType(self.type)
        except ValueError as e:
            raise InvalidPolicyError(
                f"Unknown time-slot policy type: {self.type!r}",
                ErrorCodes.INVALID_POLICY
            ) from e
        object.__setattr__(self, 'type', kind)

        if kind is TimeSlotPolicyType.ANY:
            if self.start is not None or self.end is not None:
                raise InvalidPolicyError(
                    "Time-slot policy 'Any' takes no bounds",
                    ErrorCodes.INVALID_POLICY
                )
            return

        if self.start is None or self.end is None:
            raise InvalidPolicyError(
                "Time-slot policy 'Check' requires start and end",
                ErrorCodes.INVALID_POLICY
            )
        object.__setattr__(self, 'start', _parse_time(self.start))
        object.__setattr__(self, 'end', _parse_time(self.end))

    @classmethod
    def any(cls) -> 'TimeSlotPolicy':
        return cls()

    @classmethod
    def check(cls, start: Union[str, time], end: Union[str, time]) -> 'TimeSlotPolicy':
        return cls(TimeSlotPolicyType.CHECK, start, end)

    @property
    def values(self) -> List[str]:
        if self.type is TimeSlotPolicyType.ANY:
            return []
        return [self.start.strftime(_TIME_FORMAT), self.end.strftime(_TIME_FORMAT)]

    def evaluate(self) -> VerificationRuleResult:
        if self.type is TimeSlotPolicyType.ANY:
            return VerificationRuleResult(passed=True, message='Any time slot allowed')

        logger.warning(
            "Time-slot policy %s-%s is declared but not enforced",
            self.start, self.end
        )
        return VerificationRuleResult(
            passed=True,
            message='Time-slot bounds are not enforced',
            details={'enforced': False, 'start': self.values[0], 'end': self.values[1]}
        )


@dataclass(frozen=True)
class CustomPolicy:
    """IP address and time-slot policies carried together"""
    ip_address: IpAddressPolicy = field(default_factory=IpAddressPolicy)
    time_slot: TimeSlotPolicy = field(default_factory=TimeSlotPolicy)

    @property
    def is_default(self) -> bool:
        return (
            self.ip_address.type is IpAddressPolicyType.ANY
            and self.time_slot.type is TimeSlotPolicyType.ANY
        )

    def with_ip_address_policy(self, policy: IpAddressPolicy) -> 'CustomPolicy':
        return CustomPolicy(ip_address=policy, time_slot=self.time_slot)

    def with_time_slot_policy(self, policy: TimeSlotPolicy) -> 'CustomPolicy':
        return CustomPolicy(ip_address=self.ip_address, time_slot=policy)

    def to_dict(self) -> dict:
        return {
            'Statement': {
                'IpAddress': {'Type': self.ip_address.type.value, 'Value': self.ip_address.values},
                'TimeSlot': {'Type': self.time_slot.type.value, 'Value': self.time_slot.values},
            }
        }

    def to_json(self) -> str:
        """Compact JSON written to the CustomPolicy query parameter"""
        return json.dumps(self.to_dict(), separators=(',', ':'))

    @classmethod
    def from_dict(cls, data: Any) -> 'CustomPolicy':
        """
        Build a policy from its ``{"Statement": ...}`` form.

        Raises:
            InvalidPolicyError: If the structure or any value is invalid
        """
        try:
            statement = data['Statement']
            ip_section = statement.get('IpAddress') or {'Type': 'Any'}
            slot_section = statement.get('TimeSlot') or {'Type': 'Any'}
            ip_type = ip_section['Type']
            ip_values = ip_section.get('Value') or []
            slot_type = slot_section['Type']
            slot_values = slot_section.get('Value') or []
        except (KeyError, TypeError, AttributeError) as e:
            raise InvalidPolicyError(
                f"Malformed custom policy: {e}",
                ErrorCodes.INVALID_POLICY,
                {"original_error": str(e)}
            ) from e

        if not isinstance(ip_values, list) or not isinstance(slot_values, list):
            raise InvalidPolicyError(
                "Policy values must be lists",
                ErrorCodes.INVALID_POLICY
            )

        ip_policy = IpAddressPolicy(ip_type, frozenset(parse_policy_address(v) for v in ip_values))

        if slot_type == TimeSlotPolicyType.CHECK.value:
            if len(slot_values) != 2:
                raise InvalidPolicyError(
                    "Time-slot policy 'Check' requires exactly [start, end]",
                    ErrorCodes.INVALID_POLICY
                )
            slot_policy = TimeSlotPolicy.check(slot_values[0], slot_values[1])
        else:
            if slot_values:
                raise InvalidPolicyError(
                    f"Time-slot policy {slot_type!r} takes no values",
                    ErrorCodes.INVALID_POLICY
                )
            slot_policy = TimeSlotPolicy(slot_type)

        return cls(ip_address=ip_policy, time_slot=slot_policy)

    @classmethod
    def from_json(cls, text: str) -> 'CustomPolicy':
        try:
            data = json.loads(text)
        except (TypeError, ValueError) as e:
            raise InvalidPolicyError(
                f"Custom policy is not valid JSON: {e}",
                ErrorCodes.INVALID_POLICY,
                {"original_error": str(e)}
            ) from e
        return cls.from_dict(data)


def create_ip_address_rule() -> VerificationRule:
    """Rule checking the declared IP address policy against the client IP"""

    def validate_ip_address(context: VerificationContext) -> VerificationRuleResult:
        return context.policy.ip_address.evaluate(context.request.client_ip)

    return VerificationRule(
        name='ip-address',
        description='Client IP must satisfy the allow/deny list',
        validate=validate_ip_address
    )


def create_time_slot_rule() -> VerificationRule:
    """Rule for the declared time-slot policy (bounds not enforced)"""

    def validate_time_slot(context: VerificationContext) -> VerificationRuleResult:
        return context.policy.time_slot.evaluate()

    return VerificationRule(
        name='time-slot',
        description='Time-slot policy placeholder; bounds are not enforced',
        validate=validate_time_slot
    )


BUILTIN_RULES = (create_ip_address_rule(), create_time_slot_rule())


class PolicyEvaluator:
    """Runs the built-in policy rules followed by caller-registered rules"""

    def __init__(self, extra_rules: Sequence[VerificationRule] = ()):
        self.rules: List[VerificationRule] = list(BUILTIN_RULES) + list(extra_rules)

    def evaluate(self, context: VerificationContext) -> List[VerificationRuleResult]:
        """
        Evaluate every rule in order.

        Returns:
            list: Results of all rules (all passed)

        Raises:
            PolicyViolationError: On the first failing rule, ``kind`` set to its name
        """
        results = []
        for rule in self.rules:
            result = rule.evaluate(context)
            if not result.passed:
                raise PolicyViolationError(
                    result.message or f"Policy rule '{rule.name}' failed",
                    rule.name,
                    result.details
                )
            results.append(result)
        return results
