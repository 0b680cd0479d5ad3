from __future__ import annotations

import pytest
from services.sales.app.models.order import PaymentMethod
from services.sales.app.services.confirmation import ConfirmationOrchestrator, ConfirmationState
from services.sales.app.services.errors import (
    ConfirmationBusyError,
    ServerError,
    ValidationError,
)
from services.sales.app.services.session import PaymentState

BUYER = {"fullName": "Aziz Rakhimov", "primaryPhone": "+998901112233"}


def test_commit_reads_payment_as_last_set() -> None:
    payment = PaymentState()
    orchestrator = ConfirmationOrchestrator(payment)
    seen: list[PaymentMethod] = []

    orchestrator.request(title="Sale", message="?", on_confirm=lambda p: seen.append(p.method))
    orchestrator.set_payment_method("card")
    orchestrator.confirm()

    assert seen == [PaymentMethod.CARD]
    assert orchestrator.state == ConfirmationState.IDLE
    assert orchestrator.pending is None
    assert payment.method == PaymentMethod.CASH


def test_installment_profile_is_retained_after_cancel() -> None:
    payment = PaymentState()
    orchestrator = ConfirmationOrchestrator(payment)
    orchestrator.request(title="Sale", message="?", on_confirm=lambda p: None)
    orchestrator.set_payment_method(PaymentMethod.INSTALLMENT)
    orchestrator.set_buyer_profile(BUYER)

    orchestrator.cancel()

    assert orchestrator.state == ConfirmationState.IDLE
    assert payment.method == PaymentMethod.INSTALLMENT
    assert payment.buyer_profile is not None
    assert payment.buyer_profile.full_name == "Aziz Rakhimov"


def test_switching_away_from_installment_drops_the_profile() -> None:
    payment = PaymentState()
    orchestrator = ConfirmationOrchestrator(payment)
    orchestrator.set_payment_method("installment")
    orchestrator.set_buyer_profile(BUYER)

    orchestrator.set_payment_method("cash")

    assert payment.buyer_profile is None


def test_failed_commit_still_closes_the_dialog() -> None:
    orchestrator = ConfirmationOrchestrator(PaymentState())

    def _boom(payment: PaymentState) -> None:
        raise ServerError("backend down", status_code=500)

    orchestrator.request(title="Sale", message="?", on_confirm=_boom)
    with pytest.raises(ServerError):
        orchestrator.confirm()

    assert orchestrator.state == ConfirmationState.IDLE
    assert orchestrator.pending is None


def test_request_while_committing_is_refused() -> None:
    orchestrator = ConfirmationOrchestrator(PaymentState())
    errors: list[Exception] = []

    def _reenter(payment: PaymentState) -> None:
        try:
            orchestrator.request(title="Other", message="?", on_confirm=lambda p: None)
        except ConfirmationBusyError as e:
            errors.append(e)

    orchestrator.request(title="Sale", message="?", on_confirm=_reenter)
    orchestrator.confirm()

    assert len(errors) == 1
    assert orchestrator.state == ConfirmationState.IDLE


def test_new_request_replaces_the_open_one() -> None:
    orchestrator = ConfirmationOrchestrator(PaymentState())
    ran: list[str] = []

    orchestrator.request(title="First", message="?", on_confirm=lambda p: ran.append("first"))
    orchestrator.request(title="Second", message="?", on_confirm=lambda p: ran.append("second"))
    orchestrator.confirm()

    assert ran == ["second"]


def test_confirm_without_pending_is_rejected() -> None:
    with pytest.raises(ValidationError):
        ConfirmationOrchestrator(PaymentState()).confirm()


@pytest.mark.parametrize(
    "profile",
    [
        {"fullName": " ", "primaryPhone": "+998901112233"},
        {"fullName": "A", "primaryPhone": "1", "passportSeries": "aa1234567"},
        {"fullName": "A", "primaryPhone": "1", "birthDate": "01.02.1990"},
        {"fullName": "A", "primaryPhone": "1", "installmentDurationMonths": 7},
    ],
)
def test_invalid_buyer_profile_is_a_validation_error(profile: dict) -> None:
    payment = PaymentState()
    with pytest.raises(ValidationError):
        ConfirmationOrchestrator(payment).set_buyer_profile(profile)
    assert payment.buyer_profile is None


def test_cancel_without_pending_is_a_no_op() -> None:
    payment = PaymentState(method=PaymentMethod.CARD)
    ConfirmationOrchestrator(payment).cancel()
    assert payment.method == PaymentMethod.CARD
