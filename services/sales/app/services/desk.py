"""Operation boundary between an agent UI and the sales engine.

Every user-triggered operation runs inside ``_operation``: it refuses to start while the
same operation is still loading, turns a ``SaleError`` into an error notice on the session
(and a journal entry) and re-raises it so the caller still sees the failure.
"""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from datetime import date
from typing import Any

import pydantic
from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from packages.shared.schemas.notice_v1 import NoticeCategoryV1
from services.sales.app.models.buyer import DEFAULT_INSTALLMENT_MONTHS, BuyerProfile
from services.sales.app.models.catalog import ProductRecord
from services.sales.app.models.draft import DraftOrder
from services.sales.app.models.order import PaymentMethod, SalesPage
from services.sales.app.services.backend_base import CatalogBackend
from services.sales.app.services.cart import LineItem, LoadResult
from services.sales.app.services.confirmation import ConfirmationOrchestrator, PendingConfirmation
from services.sales.app.services.drafts import DraftLifecycleManager
from services.sales.app.services.errors import (
    AuthError,
    EmptyCartError,
    NotFoundError,
    OperationInProgressError,
    SaleError,
    ServerError,
    ValidationError,
)
from services.sales.app.services.finalization import FinalizationEngine
from services.sales.app.services.history import CancelResult, SalesHistory
from services.sales.app.services.installment import ScheduleEntry, build_schedule
from services.sales.app.services.journal import NullJournal, SaleJournal
from services.sales.app.services.session import PaymentState, SaleSession

logger = logging.getLogger(__name__)


def _fmt_amount(value: float) -> str:
    return f"{value:,.2f}"


def _parse_start(raw: str | None) -> date:
    if not raw:
        return date.today()
    try:
        return date.fromisoformat(raw[:10])
    except ValueError as e:
        raise ValidationError(f"Invalid installment start date: {raw!r}") from e


class SalesDesk:
    def __init__(
        self,
        session: SaleSession,
        backend: CatalogBackend,
        *,
        journal: SaleJournal | None = None,
        session_id: str = "local",
    ) -> None:
        self.session = session
        self.session_id = session_id
        self._backend = backend
        self._journal = journal or NullJournal()

        self.drafts = DraftLifecycleManager(backend)
        self.finalization = FinalizationEngine(backend, self.drafts)
        self.history = SalesHistory(backend)
        self.confirmation = ConfirmationOrchestrator(session.payment)

    @property
    def payment(self) -> PaymentState:
        return self.session.payment

    @property
    def pending(self) -> PendingConfirmation | None:
        return self.confirmation.pending

    @contextmanager
    def _operation(self, name: str, failure_title: str) -> Iterator[None]:
        session = self.session
        if name in session.loading:
            raise OperationInProgressError(name)

        session.loading.add(name)
        try:
            yield
        except SaleError as e:
            session.notify(NoticeCategoryV1.ERROR, failure_title, str(e))
            self._journal.record(
                EventTypeV1.OPERATION_FAILED,
                entity_type=EntityTypeV1.SESSION,
                entity_id=self.session_id,
                payload={"operation": name, "error": type(e).__name__, "message": str(e)},
            )
            if isinstance(e, AuthError):
                self._journal.record(
                    EventTypeV1.SESSION_SIGNED_OUT,
                    entity_type=EntityTypeV1.SESSION,
                    entity_id=self.session_id,
                )
            logger.warning("Operation %s failed: %s: %s", name, type(e).__name__, e)
            raise
        finally:
            session.loading.discard(name)

    # Composition

    def select_product(self, product_id: str) -> ProductRecord:
        with self._operation("select_product", "Could not load product"):
            product = self._fetch_product(product_id)
            self.session.selection.product = product
            return product

    def set_quantity_input(self, raw: str) -> None:
        self.session.selection.quantity_input = raw

    def add_to_cart(
        self, product_id: str | None = None, quantity: str | float | None = None
    ) -> LineItem:
        with self._operation("add_to_cart", "Could not add to cart"):
            selection = self.session.selection
            if product_id and (selection.product is None or selection.product.id != product_id):
                selection.product = self._fetch_product(product_id)
            if selection.product is None:
                raise ValidationError("Select a product first")

            raw_quantity = selection.quantity_input if quantity is None else quantity
            line = self.session.cart.add_or_increment(selection.product, raw_quantity)
            selection.reset()

            self.session.notify(
                NoticeCategoryV1.SUCCESS,
                "Added to cart",
                f"{line.product.name}: {line.quantity:g} {line.product.unit}",
            )
            return line

    def remove_from_cart(self, index: int) -> LineItem:
        with self._operation("remove_from_cart", "Could not remove item"):
            return self.session.cart.remove(index)

    def clear_cart(self) -> None:
        self.session.reset_composition()

    # Drafts

    def refresh_drafts(self) -> list[DraftOrder]:
        with self._operation("drafts", "Could not load drafts"):
            return self.drafts.list(self.session)

    def save_draft(self) -> DraftOrder:
        with self._operation("save_draft", "Could not save draft"):
            updating = self.session.editing_draft_id is not None
            saved = self.drafts.save(self.session)

            self._journal.record(
                EventTypeV1.DRAFT_UPDATED if updating else EventTypeV1.DRAFT_SAVED,
                entity_type=EntityTypeV1.DRAFT,
                entity_id=saved.id,
                payload={"lines": len(saved.products), "total": saved.total},
            )
            self.session.notify(
                NoticeCategoryV1.SUCCESS,
                "Draft updated" if updating else "Draft saved",
                f"Draft total {_fmt_amount(saved.total)}",
            )
            return saved

    def edit_draft(self, draft_id: str) -> LoadResult:
        with self._operation("edit_draft", "Could not open draft"):
            draft = self._find_or_list_draft(draft_id)
            result = self.drafts.load_for_edit(self.session, draft)
            if result.skipped:
                self.session.notify(
                    NoticeCategoryV1.INFO,
                    "Draft partially loaded",
                    f"{result.skipped} product(s) could not be loaded and were skipped",
                )
            self._journal.record(
                EventTypeV1.DRAFT_LOADED,
                entity_type=EntityTypeV1.DRAFT,
                entity_id=draft.id,
                payload={"loaded": result.loaded, "skipped": result.skipped},
            )
            return result

    def request_delete_draft(self, draft_id: str) -> PendingConfirmation:
        with self._operation("dialog", "Could not open confirmation"):
            return self.confirmation.request(
                title="Delete draft",
                message="The saved draft will be removed. Continue?",
                on_confirm=lambda payment: self._commit_delete_draft(draft_id),
            )

    def request_confirm_draft(self, draft_id: str) -> PendingConfirmation:
        with self._operation("dialog", "Could not open confirmation"):
            draft = self._find_or_list_draft(draft_id)
            return self.confirmation.request(
                title="Confirm sale",
                message=f"Complete the sale of draft #{draft.sequence_number or draft.id}?",
                on_confirm=lambda payment: self._commit_confirm_draft(draft_id, payment),
                require_payment_method_choice=True,
                amount=draft.total,
            )

    # Sales

    def request_direct_sale(self) -> PendingConfirmation:
        with self._operation("dialog", "Could not open confirmation"):
            cart = self.session.cart
            if cart.is_empty():
                raise EmptyCartError()
            return self.confirmation.request(
                title="Complete sale",
                message=f"Sell {len(cart)} item(s) for {_fmt_amount(cart.total())}?",
                on_confirm=self._commit_direct_sale,
                require_payment_method_choice=True,
                amount=cart.total(),
            )

    def load_sales(
        self,
        *,
        page: int = 1,
        limit: int = 10,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> SalesPage:
        with self._operation("sales", "Could not load sales"):
            return self.history.load(
                self.session, page=page, limit=limit, start_date=start_date, end_date=end_date
            )

    def request_cancel_sale(self, order_id: str, reason: str | None = None) -> PendingConfirmation:
        with self._operation("dialog", "Could not open confirmation"):
            return self.confirmation.request(
                title="Cancel sale",
                message="The sale will be cancelled and its stock returned. Continue?",
                on_confirm=lambda payment: self._commit_cancel_sale(order_id, reason),
            )

    # Payment and dialog

    def set_payment_method(self, method: PaymentMethod | str) -> PaymentState:
        with self._operation("payment", "Invalid payment method"):
            try:
                self.confirmation.set_payment_method(method)
            except ValueError as e:
                raise ValidationError(f"Unknown payment method: {method!r}") from e
            return self.payment

    def set_buyer_profile(self, profile: BuyerProfile | dict[str, Any]) -> BuyerProfile:
        with self._operation("payment", "Invalid buyer details"):
            return self.confirmation.set_buyer_profile(profile)

    def clear_buyer_profile(self) -> None:
        self.confirmation.clear_buyer_profile()

    def installment_schedule(self) -> list[ScheduleEntry]:
        with self._operation("schedule", "Could not build schedule"):
            pending = self.pending
            if pending is not None and pending.amount is not None:
                amount = pending.amount
            else:
                amount = self.session.cart.total()

            profile = self.payment.buyer_profile
            duration = DEFAULT_INSTALLMENT_MONTHS
            start = None
            if profile is not None:
                duration = profile.installment_duration_months or DEFAULT_INSTALLMENT_MONTHS
                start = profile.start_date
            return build_schedule(amount, duration, _parse_start(start))

    def confirm(self) -> Any:
        pending = self.pending
        title = pending.title if pending is not None else "Confirmation"
        with self._operation("confirm", f"{title} failed"):
            return self.confirmation.confirm()

    def cancel_confirmation(self) -> None:
        with self._operation("dialog", "Could not close confirmation"):
            self.confirmation.cancel()

    # Commit handlers bound into the confirmation dialog

    def _commit_direct_sale(self, payment: PaymentState):
        result = self.finalization.finalize_direct(self.session, payment)
        installment = result.payment_method == PaymentMethod.INSTALLMENT

        self._journal.record(
            EventTypeV1.INSTALLMENT_CREATED if installment else EventTypeV1.SALE_COMPLETED,
            entity_type=EntityTypeV1.SALE,
            entity_id=result.order_id or "unknown",
            payload={"total": result.total, "payment_method": result.payment_method.value},
        )
        self._journal.receipt(
            kind="DIRECT_SALE",
            external_reference_id=result.order_id,
            total=result.total,
            payment_method=result.payment_method.value,
        )
        self.session.notify(
            NoticeCategoryV1.SUCCESS,
            "Installment created" if installment else "Sale completed",
            f"{result.payment_method.value} sale of {_fmt_amount(result.total)}",
        )
        return result

    def _commit_confirm_draft(self, draft_id: str, payment: PaymentState):
        draft = self.session.find_draft(draft_id)
        total = draft.total if draft is not None else 0.0

        result = self.finalization.confirm_draft(self.session, draft_id, payment)

        self._journal.record(
            EventTypeV1.DRAFT_CONFIRMED,
            entity_type=EntityTypeV1.DRAFT,
            entity_id=draft_id,
            payload={"payment_method": result.payment_method.value, "store_owner": result.store_owner},
        )
        self._journal.receipt(
            kind="DRAFT_SALE",
            external_reference_id=draft_id,
            total=total,
            payment_method=result.payment_method.value,
        )
        self.session.notify(NoticeCategoryV1.SUCCESS, "Sale confirmed", result.message)
        return result

    def _commit_delete_draft(self, draft_id: str) -> None:
        self.drafts.delete(self.session, draft_id)
        self._journal.record(
            EventTypeV1.DRAFT_DELETED, entity_type=EntityTypeV1.DRAFT, entity_id=draft_id
        )
        self.session.notify(NoticeCategoryV1.SUCCESS, "Draft deleted", "The draft was removed")

    def _commit_cancel_sale(self, order_id: str, reason: str | None) -> CancelResult:
        result = self.history.cancel(self.session, order_id, reason)

        self._journal.record(
            EventTypeV1.SALE_CANCELLED,
            entity_type=EntityTypeV1.SALE,
            entity_id=order_id,
            payload={"reason": result.reason, "restored": len(result.restored_products)},
        )
        self.session.notify(NoticeCategoryV1.SUCCESS, "Sale cancelled", result.reason)
        for item in result.restored_products:
            self.session.notify(
                NoticeCategoryV1.INFO,
                "Stock restored",
                f"{item.name}: +{item.restored_quantity:g} (now {item.new_inventory:g})",
            )
        return result

    def _find_or_list_draft(self, draft_id: str) -> DraftOrder:
        """Look in the cached draft list first, then in a fresh one from the server."""

        draft = self.session.find_draft(draft_id)
        if draft is None:
            draft = next((d for d in self.drafts.list(self.session) if d.id == draft_id), None)
        if draft is None:
            raise NotFoundError("Draft not found")
        return draft

    def _fetch_product(self, product_id: str) -> ProductRecord:
        with self.session.authorized() as token:
            raw = self._backend.get_product(token, product_id)
        try:
            return ProductRecord.model_validate(raw)
        except pydantic.ValidationError as e:
            raise ServerError(f"Unexpected product payload from server: {e}") from e
