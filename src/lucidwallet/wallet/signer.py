"""
Policy-bound signer.

The signer is the single point where a prepared transaction becomes an
authorized, signable action. Every request is checked against the
ConsentScope granted for the session; the first violated rule rejects the
request with its own code.
"""

from __future__ import annotations

import hashlib
import json
import logging
import time
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Callable, Optional

from pydantic import BaseModel  # pyright: ignore[reportMissingImports]

from lucidwallet.models.consent import ConsentScope
from .audit_log import AuditLog

logger = logging.getLogger(__name__)


class PolicyCode(str, Enum):
    CHAIN_NOT_ALLOWED = "chain_not_allowed"
    CONSENT_EXPIRED = "consent_expired"
    SPENDER_NOT_ALLOWED = "spender_not_allowed"
    TOKEN_NOT_ALLOWED = "token_not_allowed"
    AMOUNT_EXCEEDS_SCOPE = "amount_exceeds_scope"
    INVALID_AMOUNT = "invalid_amount"


class PolicyViolation(Exception):
    def __init__(self, code: PolicyCode, detail: str = ""):
        self.code = code.value
        self.detail = detail
        super().__init__(code.value if not detail else f"{code.value}:{detail}")


class SignRequest(BaseModel):
    chain: str
    to: str
    data: str
    value: Optional[str] = None
    token: Optional[str] = None
    amount: Optional[str] = None
    spender: Optional[str] = None


class SignResult(BaseModel):
    signed_tx: str


def _now_ms() -> int:
    return int(time.time() * 1000)


def _parse_amount(raw: str, what: str) -> Decimal:
    try:
        value = Decimal(str(raw).strip())
    except (InvalidOperation, ValueError):
        raise PolicyViolation(PolicyCode.INVALID_AMOUNT, what)
    if not value.is_finite():
        raise PolicyViolation(PolicyCode.INVALID_AMOUNT, what)
    return value


class PolicySigner:
    """
    Signs transactions only inside a previously granted ConsentScope.

    The scope is frozen, so one signer can serve any number of sign calls
    for its session without locking.
    """

    def __init__(
        self,
        scope: ConsentScope,
        *,
        audit_log: Optional[AuditLog] = None,
        clock: Optional[Callable[[], int]] = None,
    ) -> None:
        self.scope = scope
        self.audit_log = audit_log
        self._clock = clock or _now_ms

    def check(self, request: SignRequest) -> None:
        """Raise PolicyViolation for the first scope rule the request breaks."""
        scope = self.scope
        if request.chain != scope.chain:
            raise PolicyViolation(PolicyCode.CHAIN_NOT_ALLOWED)
        if self._clock() > scope.expiry:
            raise PolicyViolation(PolicyCode.CONSENT_EXPIRED)
        if request.spender and request.spender not in scope.spender_allowlist:
            raise PolicyViolation(PolicyCode.SPENDER_NOT_ALLOWED)
        if request.token and request.token not in scope.tokens:
            raise PolicyViolation(PolicyCode.TOKEN_NOT_ALLOWED)
        if request.amount:
            requested = _parse_amount(request.amount, "amount")
            ceiling = _parse_amount(scope.max_amount, "max_amount")
            if requested > ceiling:
                raise PolicyViolation(PolicyCode.AMOUNT_EXCEEDS_SCOPE)

    async def sign(self, request: SignRequest) -> SignResult:
        if isinstance(request, dict):
            request = SignRequest.model_validate(request)
        try:
            self.check(request)
        except PolicyViolation as exc:
            logger.warning("sign rejected: code=%s chain=%s to=%s", exc.code, request.chain, request.to)
            self._audit("sign_rejected", request, code=exc.code)
            raise

        signed = "0x" + hashlib.sha256(
            json.dumps(request.model_dump(exclude_none=True), sort_keys=True).encode("utf-8")
        ).hexdigest()
        self._audit("sign_approved", request)
        logger.info("sign approved: chain=%s to=%s", request.chain, request.to)
        return SignResult(signed_tx=signed)

    def _audit(self, event: str, request: SignRequest, **extra) -> None:
        if self.audit_log is None:
            return
        payload = request.model_dump(exclude_none=True)
        payload.update(extra)
        self.audit_log.record(event, payload, timestamp=self._clock())
