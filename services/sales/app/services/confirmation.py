"""Reusable "are you sure?" workflow.

Draft confirmation, direct sale, draft deletion and sale cancellation all go through the
same single-instance dialog. The orchestrator does not know which operation it commits;
the caller binds that through ``on_confirm``, which receives the live ``PaymentState``.

States::

    IDLE --request--> OPEN --confirm--> COMMITTING --done/failed--> IDLE
                      OPEN --cancel---> IDLE
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import Enum
from typing import Any

import pydantic
from services.sales.app.models.buyer import BuyerProfile
from services.sales.app.models.order import PaymentMethod
from services.sales.app.services.errors import ConfirmationBusyError, ValidationError
from services.sales.app.services.session import PaymentState

logger = logging.getLogger(__name__)


class ConfirmationState(str, Enum):
    IDLE = "IDLE"
    OPEN = "OPEN"
    COMMITTING = "COMMITTING"


@dataclass(frozen=True, slots=True)
class PendingConfirmation:
    title: str
    message: str
    on_confirm: Callable[[PaymentState], Any]
    require_payment_method_choice: bool = False

    # Amount the installment schedule preview is computed for, when relevant.
    amount: float | None = None


class ConfirmationOrchestrator:
    def __init__(self, payment: PaymentState) -> None:
        self._payment = payment
        self._pending: PendingConfirmation | None = None
        self._state = ConfirmationState.IDLE

    @property
    def state(self) -> ConfirmationState:
        return self._state

    @property
    def pending(self) -> PendingConfirmation | None:
        return self._pending

    @property
    def payment(self) -> PaymentState:
        return self._payment

    def request(
        self,
        *,
        title: str,
        message: str,
        on_confirm: Callable[[PaymentState], Any],
        require_payment_method_choice: bool = False,
        amount: float | None = None,
    ) -> PendingConfirmation:
        if self._state == ConfirmationState.COMMITTING:
            raise ConfirmationBusyError()

        # An open dialog is replaced, never stacked.
        self._pending = PendingConfirmation(
            title=title,
            message=message,
            on_confirm=on_confirm,
            require_payment_method_choice=require_payment_method_choice,
            amount=amount,
        )
        self._state = ConfirmationState.OPEN
        return self._pending

    def set_payment_method(self, method: PaymentMethod | str) -> None:
        self._payment.set_method(PaymentMethod(method))

    def set_buyer_profile(self, profile: BuyerProfile | dict[str, Any]) -> BuyerProfile:
        if not isinstance(profile, BuyerProfile):
            try:
                profile = BuyerProfile.model_validate(profile)
            except pydantic.ValidationError as e:
                raise ValidationError(f"Invalid buyer details: {e}") from e
        self._payment.buyer_profile = profile
        return profile

    def clear_buyer_profile(self) -> None:
        self._payment.buyer_profile = None

    def confirm(self) -> Any:
        if self._state == ConfirmationState.COMMITTING:
            raise ConfirmationBusyError()
        if self._state != ConfirmationState.OPEN or self._pending is None:
            raise ValidationError("There is nothing to confirm")

        pending = self._pending
        self._state = ConfirmationState.COMMITTING
        logger.debug("Committing confirmation %r", pending.title)
        try:
            return pending.on_confirm(self._payment)
        finally:
            self._close()

    def cancel(self) -> None:
        if self._state == ConfirmationState.COMMITTING:
            raise ConfirmationBusyError()
        if self._state == ConfirmationState.OPEN:
            self._close()

    def _close(self) -> None:
        self._pending = None
        self._state = ConfirmationState.IDLE
        # Installment buyer data survives so the agent can reopen and adjust it.
        if not self._payment.retains_profile():
            self._payment.reset()
