from __future__ import annotations

import logging
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from services.sales.app.models.buyer import DEFAULT_INSTALLMENT_MONTHS, BuyerProfile
from services.sales.app.models.order import (
    DirectSaleRequest,
    DraftConfirmRequest,
    InstallmentOrderRequest,
    PaymentMethod,
)
from services.sales.app.services.backend_base import CatalogBackend
from services.sales.app.services.drafts import DraftLifecycleManager
from services.sales.app.services.errors import EmptyCartError, ValidationError
from services.sales.app.services.identity import resolve_actor_id
from services.sales.app.services.session import PaymentState, SaleSession

logger = logging.getLogger(__name__)

MISSING_BUYER_MESSAGE = "Buyer details are required for an installment sale"


@dataclass(frozen=True, slots=True)
class DirectSaleResult:
    payment_method: PaymentMethod
    total: float
    order: dict[str, Any]

    @property
    def order_id(self) -> str | None:
        return self.order.get("_id") or self.order.get("id")


@dataclass(frozen=True, slots=True)
class DraftConfirmResult:
    draft_id: str
    payment_method: PaymentMethod
    store_owner: str
    message: str


def _installment_terms(profile: BuyerProfile) -> tuple[int, str]:
    duration = profile.installment_duration_months or DEFAULT_INSTALLMENT_MONTHS
    start_date = profile.start_date or datetime.now(timezone.utc).isoformat()
    return duration, start_date


class FinalizationEngine:
    """Turns a cart or a saved draft into a completed sale.

    ``payment`` is the session's live payment cell, read at the moment the sale commits.
    """

    def __init__(self, backend: CatalogBackend, drafts: DraftLifecycleManager) -> None:
        self._backend = backend
        self._drafts = drafts

    def finalize_direct(self, session: SaleSession, payment: PaymentState) -> DirectSaleResult:
        cart = session.cart
        if cart.is_empty():
            raise EmptyCartError()

        products = cart.to_payload()
        method = payment.method
        profile = payment.buyer_profile
        if method == PaymentMethod.INSTALLMENT and profile is None:
            raise ValidationError(MISSING_BUYER_MESSAGE)

        total = cart.total()
        with session.authorized() as token:
            actor_id = resolve_actor_id(token)

            if method == PaymentMethod.INSTALLMENT:
                duration, start_date = _installment_terms(profile)
                body = InstallmentOrderRequest(
                    products=products,
                    store_owner=actor_id,
                    installment_duration_months=duration,
                    start_date=start_date,
                    customer=profile.to_customer(),
                )
                order = self._backend.create_installment_order(token, body.to_wire())
            else:
                body = DirectSaleRequest(
                    store_owner=actor_id,
                    products=products,
                    total_sum=total,
                    payment_method=method,
                )
                order = self._backend.create_direct_sale(token, body.to_wire())

        logger.info("Direct sale completed: method=%s lines=%d", method.value, len(products))

        session.reset_composition()
        payment.reset()
        return DirectSaleResult(
            payment_method=method,
            total=total,
            order=order if isinstance(order, dict) else {},
        )

    def confirm_draft(
        self, session: SaleSession, draft_id: str, payment: PaymentState
    ) -> DraftConfirmResult:
        draft = session.find_draft(draft_id)
        profile = payment.buyer_profile
        installment = payment.wants_installment()
        if installment and profile is None:
            raise ValidationError(MISSING_BUYER_MESSAGE)

        with session.authorized() as token:
            actor_id = resolve_actor_id(token)

            if not session.cart.is_empty():
                shop_id = session.cart.first_shop_id()
            elif draft is not None and draft.products and draft.products[0].shop is not None:
                shop_id = draft.products[0].shop.id
            else:
                shop_id = None
            store_owner = shop_id or actor_id

            body = DraftConfirmRequest(payment_method=payment.method, store_owner=store_owner)
            if installment:
                if payment.method != PaymentMethod.INSTALLMENT:
                    # Buyer data on file means an installment sale.
                    logger.warning(
                        "Draft %s: buyer profile present, confirming as installment "
                        "although method is %s",
                        draft_id,
                        payment.method.value,
                    )
                duration, start_date = _installment_terms(profile)
                body.payment_method = PaymentMethod.INSTALLMENT
                body.installment_duration_months = duration
                body.start_date = start_date
                body.customer = profile.to_customer()

            data = self._backend.confirm_draft(token, draft_id, body.to_wire())

        message = ""
        if isinstance(data, dict):
            message = str(data.get("message") or "")

        logger.info("Draft %s confirmed: method=%s", draft_id, body.payment_method.value)

        # A confirmed draft can no longer be updated.
        if session.editing_draft_id == draft_id:
            session.reset_composition()
        self._drafts.refresh_quietly(session)
        payment.reset()
        return DraftConfirmResult(
            draft_id=draft_id,
            payment_method=body.payment_method,
            store_owner=store_owner,
            message=message or "Sale confirmed",
        )
