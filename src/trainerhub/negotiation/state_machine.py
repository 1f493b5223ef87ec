# src/trainerhub/negotiation/state_machine.py
"""
Training-request negotiation rules (pure, no I/O).

States:
- PENDING  : initial; both parties may counter-offer.
- ACCEPTED : the company confirmed (with or without the trainer's formal accept). Prices are locked.
- DECLINED : terminal.
- GEBUCHT  : booked; terminal. Reached only from ACCEPTED via `confirm_booking`.

Each function validates its guard, mutates the request-like object in place and returns a
`Transition`. A failed guard raises before anything is touched, so a rejected call never leaves
a half-applied change behind.

Side effects of reaching ACCEPTED (declining siblings, notifications) are NOT done here; the
service layer fires them when `Transition.newly_accepted` is true.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Protocol

from trainerhub.domain.errors import (
    AlreadyAcceptedError,
    InvalidTransitionError,
    LockedError,
    NotPendingError,
    ValidationError,
)
from trainerhub.domain.models import RequestStatus

# Prices may no longer change once the company has confirmed.
LOCKED_STATES = frozenset({RequestStatus.ACCEPTED, RequestStatus.GEBUCHT})
TERMINAL_STATES = frozenset({RequestStatus.DECLINED, RequestStatus.GEBUCHT})


class NegotiableRequest(Protocol):
    status: RequestStatus
    trainer_accepted: bool
    counter_price: float | None
    company_counter_price: float | None


@dataclass(frozen=True)
class Transition:
    previous: RequestStatus
    current: RequestStatus

    @property
    def changed(self) -> bool:
        return self.previous is not self.current

    @property
    def newly_accepted(self) -> bool:
        return self.current is RequestStatus.ACCEPTED and self.previous is not RequestStatus.ACCEPTED


def _validate_price(price: float) -> float:
    try:
        value = float(price)
    except (TypeError, ValueError):
        raise ValidationError(f"Price must be numeric, got {price!r}") from None
    if not math.isfinite(value) or value <= 0:
        raise ValidationError("Price must be a positive number")
    return value


def _require_pending_for_price(request: NegotiableRequest) -> None:
    if request.status in LOCKED_STATES:
        raise LockedError(f"Request is {request.status.value}; prices are locked")
    if request.status is not RequestStatus.PENDING:
        raise NotPendingError(f"Request must be pending to change prices (is {request.status.value})")


def trainer_counter_offer(request: NegotiableRequest, price: float) -> Transition:
    """Trainer proposes a rate; replaces any earlier trainer counter-offer."""
    value = _validate_price(price)
    _require_pending_for_price(request)
    if request.trainer_accepted:
        raise AlreadyAcceptedError("Trainer already accepted this request; counter-offers are closed")
    request.counter_price = value
    return Transition(request.status, request.status)


def company_counter_offer(request: NegotiableRequest, price: float) -> Transition:
    """Company proposes a rate; replaces any earlier company counter-offer."""
    value = _validate_price(price)
    _require_pending_for_price(request)
    request.company_counter_price = value
    return Transition(request.status, request.status)


def trainer_accept(request: NegotiableRequest) -> Transition:
    """Trainer agrees. Status stays as is; the company decides."""
    if request.trainer_accepted:
        raise AlreadyAcceptedError("Trainer already accepted this request")
    if request.status in TERMINAL_STATES:
        raise InvalidTransitionError(f"Cannot accept a request that is {request.status.value}")
    request.trainer_accepted = True
    return Transition(request.status, request.status)


def company_accept(request: NegotiableRequest) -> Transition:
    """Company confirms; works whether or not the trainer has accepted yet."""
    previous = request.status
    if previous is RequestStatus.ACCEPTED:
        return Transition(previous, previous)
    if previous is not RequestStatus.PENDING:
        raise InvalidTransitionError(f"Cannot accept a request that is {previous.value}")
    request.status = RequestStatus.ACCEPTED
    return Transition(previous, request.status)


def decline(request: NegotiableRequest) -> Transition:
    """Either party ends the negotiation. Declining twice is a no-op."""
    previous = request.status
    if previous is RequestStatus.GEBUCHT:
        raise InvalidTransitionError("Request is already booked and cannot be declined")
    request.status = RequestStatus.DECLINED
    return Transition(previous, request.status)


def confirm_booking(request: NegotiableRequest) -> Transition:
    """Company turns an agreed request into a final booking."""
    previous = request.status
    if previous is not RequestStatus.ACCEPTED:
        raise InvalidTransitionError(f"Only accepted requests can be booked (is {previous.value})")
    request.status = RequestStatus.GEBUCHT
    return Transition(previous, request.status)
