"""Payment status state machine shared by installments, rent and condo fees.

Lifecycle:

    pendente -> pagamento_informado -> pago

with owner-only reverts pago -> pagamento_informado and
pagamento_informado -> pendente. Only an Owner may set pago. A record may only
be pagamento_informado while it carries evidence (a proof-of-payment file).

This module is pure: it decides whether a transition is legal and what the
resulting fields are. Persistence lives in ipe.services.payable_service.
"""

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable

from ipe.models.payable import PaymentStatus
from ipe.models.user import Role
from ipe.services.errors import DataValidationError, InvalidTransitionError, PermissionDeniedError

Clock = Callable[[], datetime]


def utc_now() -> datetime:
    """Default clock."""
    return datetime.now(timezone.utc)


PENDENTE = PaymentStatus.PENDENTE
INFORMADO = PaymentStatus.PAGAMENTO_INFORMADO
PAGO = PaymentStatus.PAGO

OWNER_ONLY = frozenset({Role.OWNER})
ANY_ROLE = frozenset({Role.OWNER, Role.BUYER})


@dataclass(frozen=True)
class TransitionRule:
    """Who may take an edge and whether evidence must be present afterwards."""

    allowed_roles: frozenset[Role]
    requires_evidence: bool = False


# (from, to) -> rule. Same-status requests are re-validated, not skipped:
# re-confirming pago re-stamps paid_at.
TRANSITIONS: dict[tuple[PaymentStatus, PaymentStatus], TransitionRule] = {
    (PENDENTE, INFORMADO): TransitionRule(ANY_ROLE, requires_evidence=True),
    (PENDENTE, PAGO): TransitionRule(OWNER_ONLY),
    (INFORMADO, PAGO): TransitionRule(OWNER_ONLY),
    (PAGO, INFORMADO): TransitionRule(OWNER_ONLY, requires_evidence=True),
    (INFORMADO, PENDENTE): TransitionRule(OWNER_ONLY),
    (PAGO, PAGO): TransitionRule(OWNER_ONLY),
    (INFORMADO, INFORMADO): TransitionRule(ANY_ROLE, requires_evidence=True),
    (PENDENTE, PENDENTE): TransitionRule(OWNER_ONLY),
}


@dataclass(frozen=True)
class TransitionPlan:
    """Resulting field values of an accepted transition."""

    source: PaymentStatus
    target: PaymentStatus
    paid_at: datetime | None
    store_evidence: bool


def parse_status(value: str | PaymentStatus) -> PaymentStatus:
    """Coerce a requested status string into a PaymentStatus.

    Raises:
        DataValidationError: value is not one of the three lifecycle states
    """
    if isinstance(value, PaymentStatus):
        return value
    try:
        return PaymentStatus(str(value or "").strip())
    except ValueError:
        valid = ", ".join(s.value for s in PaymentStatus)
        raise DataValidationError(
            f"Unknown payment status {value!r}. Valid values: {valid}"
        ) from None


def plan_transition(
    current: PaymentStatus,
    requested: str | PaymentStatus,
    role: Role,
    has_existing_evidence: bool,
    has_uploaded_evidence: bool,
    now: datetime,
) -> TransitionPlan:
    """Validate a status change and compute its side effects.

    Checks run in a fixed order so every rejection is deterministic:
    unknown status, non-owner asking for pago, illegal edge, role not allowed
    on the edge, missing evidence.

    Args:
        current: Status the record is in now
        requested: Target status as sent by the caller
        role: Caller role resolved from the auth token
        has_existing_evidence: Record already references a proof file
        has_uploaded_evidence: Caller sent a new proof file with the request
        now: Timestamp used for paid_at

    Returns:
        TransitionPlan with target status and the new paid_at

    Raises:
        DataValidationError: unknown target status or missing evidence
        InvalidTransitionError: (current, target) is not a lifecycle edge
        PermissionDeniedError: role may not take this edge
    """
    target = parse_status(requested)

    if target is PAGO and role is not Role.OWNER:
        raise PermissionDeniedError("Only the owner can confirm a payment")

    rule = TRANSITIONS.get((current, target))
    if rule is None:
        raise InvalidTransitionError(
            f"Cannot change payment status from {current.value} to {target.value}"
        )

    if role not in rule.allowed_roles:
        raise PermissionDeniedError(
            f"Role {role.value} cannot change payment status from {current.value} to {target.value}"
        )

    if rule.requires_evidence and not (has_existing_evidence or has_uploaded_evidence):
        raise DataValidationError(
            "A proof of payment file is required to inform a payment", code="evidence_required"
        )

    return TransitionPlan(
        source=current,
        target=target,
        paid_at=now if target is PAGO else None,
        store_evidence=has_uploaded_evidence,
    )


def allowed_targets(current: PaymentStatus, role: Role) -> list[PaymentStatus]:
    """List statuses a role may request from the current one (for UI hints)."""
    return [
        target
        for (source, target), rule in TRANSITIONS.items()
        if source is current and target is not current and role in rule.allowed_roles
    ]


__all__ = [
    "Clock",
    "TRANSITIONS",
    "TransitionPlan",
    "TransitionRule",
    "allowed_targets",
    "parse_status",
    "plan_transition",
    "utc_now",
]
