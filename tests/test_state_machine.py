from dataclasses import dataclass

import pytest

from trainerhub.domain.errors import (
    AlreadyAcceptedError,
    InvalidTransitionError,
    LockedError,
    NotPendingError,
    ValidationError,
)
from trainerhub.domain.models import RequestStatus
from trainerhub.negotiation import state_machine as sm


@dataclass
class FakeRequest:
    status: RequestStatus = RequestStatus.PENDING
    trainer_accepted: bool = False
    counter_price: float | None = None
    company_counter_price: float | None = None


def test_trainer_counter_offer_keeps_request_pending():
    req = FakeRequest()
    t = sm.trainer_counter_offer(req, 900)
    assert req.counter_price == 900
    assert req.status is RequestStatus.PENDING
    assert not t.changed


def test_latest_counter_offer_replaces_previous_one():
    req = FakeRequest()
    sm.trainer_counter_offer(req, 900)
    sm.trainer_counter_offer(req, 950)
    sm.company_counter_offer(req, 800)
    sm.company_counter_offer(req, 820)
    assert req.counter_price == 950
    assert req.company_counter_price == 820


def test_trainer_cannot_counter_after_own_accept():
    req = FakeRequest(trainer_accepted=True)
    with pytest.raises(AlreadyAcceptedError):
        sm.trainer_counter_offer(req, 900)
    assert req.counter_price is None


@pytest.mark.parametrize("status", [RequestStatus.ACCEPTED, RequestStatus.GEBUCHT])
def test_prices_are_locked_after_acceptance(status):
    req = FakeRequest(status=status, counter_price=900, company_counter_price=880)
    with pytest.raises(LockedError):
        sm.trainer_counter_offer(req, 1000)
    with pytest.raises(LockedError):
        sm.company_counter_offer(req, 700)
    assert (req.counter_price, req.company_counter_price) == (900, 880)


def test_counter_offer_on_declined_request_must_be_pending():
    with pytest.raises(NotPendingError):
        sm.company_counter_offer(FakeRequest(status=RequestStatus.DECLINED), 700)


@pytest.mark.parametrize("price", [0, -10, float("nan"), float("inf"), "abc", None])
def test_invalid_prices_are_rejected(price):
    req = FakeRequest()
    with pytest.raises(ValidationError):
        sm.trainer_counter_offer(req, price)
    assert req.counter_price is None


def test_trainer_accept_sets_flag_only():
    req = FakeRequest()
    t = sm.trainer_accept(req)
    assert req.trainer_accepted is True
    assert req.status is RequestStatus.PENDING
    assert not t.newly_accepted


def test_duplicate_trainer_accept_is_rejected_without_change():
    req = FakeRequest(trainer_accepted=True, counter_price=900)
    with pytest.raises(AlreadyAcceptedError, match="already accepted"):
        sm.trainer_accept(req)
    assert req == FakeRequest(trainer_accepted=True, counter_price=900)


@pytest.mark.parametrize("trainer_accepted", [True, False])
def test_company_accept_moves_to_accepted(trainer_accepted):
    req = FakeRequest(trainer_accepted=trainer_accepted)
    t = sm.company_accept(req)
    assert req.status is RequestStatus.ACCEPTED
    assert t.newly_accepted


def test_company_accept_twice_is_not_newly_accepted():
    req = FakeRequest(status=RequestStatus.ACCEPTED)
    t = sm.company_accept(req)
    assert req.status is RequestStatus.ACCEPTED
    assert not t.newly_accepted


@pytest.mark.parametrize("status", [RequestStatus.DECLINED, RequestStatus.GEBUCHT])
def test_company_cannot_accept_terminal_requests(status):
    with pytest.raises(InvalidTransitionError):
        sm.company_accept(FakeRequest(status=status))


@pytest.mark.parametrize("status", [RequestStatus.PENDING, RequestStatus.ACCEPTED, RequestStatus.DECLINED])
def test_decline_ends_negotiation(status):
    req = FakeRequest(status=status)
    sm.decline(req)
    assert req.status is RequestStatus.DECLINED


def test_redecline_is_a_no_op():
    req = FakeRequest(status=RequestStatus.DECLINED)
    t = sm.decline(req)
    assert not t.changed


def test_booked_request_cannot_be_declined():
    req = FakeRequest(status=RequestStatus.GEBUCHT)
    with pytest.raises(InvalidTransitionError):
        sm.decline(req)
    assert req.status is RequestStatus.GEBUCHT


def test_booking_only_from_accepted():
    req = FakeRequest(status=RequestStatus.ACCEPTED)
    sm.confirm_booking(req)
    assert req.status is RequestStatus.GEBUCHT

    with pytest.raises(InvalidTransitionError):
        sm.confirm_booking(FakeRequest())


def test_status_parse_accepts_aliases():
    assert RequestStatus.parse("accepted") is RequestStatus.ACCEPTED
    assert RequestStatus.parse("Booked") is RequestStatus.GEBUCHT
    assert RequestStatus.parse("gebucht") is RequestStatus.GEBUCHT
    with pytest.raises(ValueError):
        RequestStatus.parse("maybe")
