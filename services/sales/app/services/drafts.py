from __future__ import annotations

import logging

import pydantic
from services.sales.app.models.catalog import ProductRecord
from services.sales.app.models.draft import DraftOrder
from services.sales.app.models.order import DraftSaveRequest
from services.sales.app.services.backend_base import CatalogBackend
from services.sales.app.services.cart import LoadResult
from services.sales.app.services.errors import (
    AuthError,
    BackendError,
    EmptyCartError,
    NoValidProductsError,
    ServerError,
)
from services.sales.app.services.identity import resolve_actor_id
from services.sales.app.services.session import SaleSession

logger = logging.getLogger(__name__)


class DraftLifecycleManager:
    """Maps the session cart to persisted drafts: list, save, load-for-edit, delete."""

    def __init__(self, backend: CatalogBackend) -> None:
        self._backend = backend

    def list(self, session: SaleSession) -> list[DraftOrder]:
        with session.authorized() as token:
            data = self._backend.list_drafts(token)

        drafts: list[DraftOrder] = []
        for raw in data if isinstance(data, list) else []:
            try:
                drafts.append(DraftOrder.model_validate(raw))
            except pydantic.ValidationError as e:
                logger.warning("Skipping unreadable draft from backend: %s", e)

        session.drafts = drafts
        return drafts

    def save(self, session: SaleSession) -> DraftOrder:
        """Create a new draft from the cart, or update the draft being edited."""

        if session.cart.is_empty():
            raise EmptyCartError()

        # Raises ValidationError for a line without a product id, before any request.
        products = session.cart.to_payload()
        editing_draft_id = session.editing_draft_id

        with session.authorized() as token:
            body = DraftSaveRequest(
                store_owner=resolve_actor_id(token),
                products=products,
                total_sum=session.cart.total(),
            ).to_wire()

            if editing_draft_id:
                data = self._backend.update_draft(token, editing_draft_id, body)
            else:
                data = self._backend.create_draft(token, body)

        try:
            saved = DraftOrder.model_validate(data)
        except pydantic.ValidationError as e:
            raise ServerError(f"Unexpected draft payload from server: {e}") from e

        logger.info(
            "Draft %s %s with %d line(s)",
            saved.id,
            "updated" if editing_draft_id else "created",
            len(products),
        )

        session.reset_composition()
        self.refresh_quietly(session)
        return saved

    def load_for_edit(self, session: SaleSession, draft: DraftOrder) -> LoadResult:
        """Load ``draft`` into the cart using current product data.

        Each product is re-fetched by id so price and stock are current. A failed fetch
        only drops that line. The cart is left untouched when nothing can be loaded.
        """

        product_ids = [
            pid for pid in (line.resolved_product_id() for line in draft.products) if pid
        ]
        if not product_ids:
            raise NoValidProductsError("No valid products found in draft to edit")

        products: dict[str, ProductRecord] = {}
        with session.authorized() as token:
            for product_id in dict.fromkeys(product_ids):
                try:
                    raw = self._backend.get_product(token, product_id)
                    record = dict(raw) if isinstance(raw, dict) else {}
                    record.pop("id", None)
                    record["_id"] = product_id
                    products[product_id] = ProductRecord.model_validate(record)
                except AuthError:
                    raise
                except (BackendError, pydantic.ValidationError) as e:
                    logger.warning("Could not load product %s for draft %s: %s", product_id, draft.id, e)

        if not products:
            raise NoValidProductsError("None of the draft's products could be loaded")

        result = session.cart.load_from(draft, products)
        session.selection.reset()
        session.editing_draft_id = draft.id

        logger.info(
            "Draft %s loaded for edit (%d line(s), %d skipped)",
            draft.id,
            result.loaded,
            result.skipped,
        )
        return result

    def delete(self, session: SaleSession, draft_id: str) -> None:
        with session.authorized() as token:
            self._backend.delete_draft(token, draft_id)

        if session.editing_draft_id == draft_id:
            session.reset_composition()

        session.drafts = [d for d in session.drafts if d.id != draft_id]
        logger.info("Draft %s deleted", draft_id)

    def refresh_quietly(self, session: SaleSession) -> None:
        """Refresh the draft cache after a successful write; a failure leaves it stale."""

        try:
            self.list(session)
        except BackendError as e:
            logger.warning("Draft list refresh failed: %s", e)
