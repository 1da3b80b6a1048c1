"""
Reserved query parameter namespace

All signed URL parameters live under a configurable prefix
(``{prefix}-Algorithm``, ``{prefix}-Date``, ...). This module writes them when
signing and reads and validates them when verifying.
"""

from datetime import datetime, tzinfo
from typing import Iterable, List, Optional, Union
from dataclasses import dataclass

from ..exceptions import ErrorCodes, IllegalParameterError, MissingParameterError
from .types import (
    QueryParams,
    REQUIRED_PARAMETERS,
    ReservedParameter,
    SignatureAlgorithm,
)
from .utils import format_date, parse_date, parse_expires

DEFAULT_PREFIX = "X-Sig"


@dataclass(frozen=True)
class ReservedParameters:
    """Validated reserved parameters read from a URL"""
    algorithm: SignatureAlgorithm
    date: datetime
    expires: int
    signature: str
    raw_policy: Optional[str] = None


class ParameterNamespace:
    """Prefixed reserved keys and their value encodings"""

    def __init__(self, prefix: str = DEFAULT_PREFIX):
        self.prefix = prefix

    def param_key(self, name: Union[ReservedParameter, str]) -> str:
        """Return the prefixed query key for a reserved parameter name"""
        if isinstance(name, ReservedParameter):
            name = name.value
        return f"{self.prefix}-{name}"

    @property
    def reserved_keys(self) -> List[str]:
        return [self.param_key(p) for p in ReservedParameter]

    def find_collisions(self, keys: Iterable[str]) -> List[str]:
        """
        Return the query keys that clash with a reserved key.

        The comparison ignores letter case so that ``x-sig-date`` cannot sit
        next to ``X-Sig-Date``.
        """
        reserved = {k.lower() for k in self.reserved_keys}
        return [k for k in keys if k.lower() in reserved]

    def check_no_collision(self, keys: Iterable[str]) -> bool:
        return not self.find_collisions(keys)

    def build_reserved(
        self,
        issue_time: datetime,
        expires: int,
        zone: tzinfo,
        custom_policy: Optional[str] = None
    ) -> QueryParams:
        """
        Build the reserved parameters written before signing.

        The Signature parameter is not included; it is added once the
        canonical message has been signed.
        """
        params = {
            self.param_key(ReservedParameter.ALGORITHM): SignatureAlgorithm.RSA_SHA256.value,
            self.param_key(ReservedParameter.DATE): format_date(issue_time, zone),
            self.param_key(ReservedParameter.EXPIRES): str(expires),
        }
        if custom_policy is not None:
            params[self.param_key(ReservedParameter.CUSTOM_POLICY)] = custom_policy
        return params

    def extract_reserved(self, params: QueryParams, zone: tzinfo) -> ReservedParameters:
        """
        Read and validate the reserved parameters of a collapsed query.

        Raises:
            MissingParameterError: If a required parameter is absent or empty
            IllegalParameterError: If a parameter is present but malformed
        """
        missing = [
            self.param_key(p) for p in REQUIRED_PARAMETERS
            if not params.get(self.param_key(p))
        ]
        if missing:
            raise MissingParameterError(
                f"Missing signed URL parameters: {', '.join(missing)}",
                ErrorCodes.MISSING_PARAMETER,
                {"missing": missing}
            )

        algorithm = params[self.param_key(ReservedParameter.ALGORITHM)]
        if algorithm != SignatureAlgorithm.RSA_SHA256.value:
            raise IllegalParameterError(
                f"Unsupported algorithm: {algorithm!r}",
                ErrorCodes.ILLEGAL_PARAMETER,
                {"parameter": self.param_key(ReservedParameter.ALGORITHM), "value": algorithm}
            )

        expires = parse_expires(params[self.param_key(ReservedParameter.EXPIRES)])
        date = parse_date(params[self.param_key(ReservedParameter.DATE)], zone)

        return ReservedParameters(
            algorithm=SignatureAlgorithm.RSA_SHA256,
            date=date,
            expires=expires,
            signature=params[self.param_key(ReservedParameter.SIGNATURE)],
            raw_policy=params.get(self.param_key(ReservedParameter.CUSTOM_POLICY)) or None,
        )

    def without_signature(self, params: QueryParams) -> QueryParams:
        """Copy of ``params`` with the Signature parameter removed"""
        signature_key = self.param_key(ReservedParameter.SIGNATURE)
        return {k: v for k, v in params.items() if k != signature_key}

    def strip_reserved(self, params: QueryParams) -> QueryParams:
        """Copy of ``params`` with every reserved parameter removed"""
        reserved = set(self.reserved_keys)
        return {k: v for k, v in params.items() if k not in reserved}
