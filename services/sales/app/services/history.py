from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import pydantic
from services.sales.app.models.order import Pagination, SaleRecord, SalesPage
from services.sales.app.services.backend_base import CatalogBackend
from services.sales.app.services.decimal_normalizer import normalize
from services.sales.app.services.errors import ValidationError
from services.sales.app.services.session import SaleSession

logger = logging.getLogger(__name__)

DEFAULT_CANCEL_REASON = "No cancellation reason provided"


@dataclass(frozen=True, slots=True)
class RestoredProduct:
    product_id: str | None
    name: str
    restored_quantity: float
    new_inventory: float


@dataclass(frozen=True, slots=True)
class CancelResult:
    order_id: str
    reason: str
    record: SaleRecord | None = None
    restored_products: list[RestoredProduct] = field(default_factory=list)


def _restored(raw: Any) -> list[RestoredProduct]:
    out: list[RestoredProduct] = []
    for item in raw if isinstance(raw, list) else []:
        if not isinstance(item, dict):
            continue
        out.append(
            RestoredProduct(
                product_id=item.get("id") or item.get("_id"),
                name=str(item.get("name") or ""),
                restored_quantity=normalize(item.get("restoredQuantity")),
                new_inventory=normalize(item.get("newInventory")),
            )
        )
    return out


class SalesHistory:
    """Paged list of finalized sales and cancellation of a single sale."""

    def __init__(self, backend: CatalogBackend) -> None:
        self._backend = backend

    def load(
        self,
        session: SaleSession,
        *,
        page: int = 1,
        limit: int = 10,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> SalesPage:
        if page < 1 or limit < 1:
            raise ValidationError("page and limit must be positive")

        with session.authorized() as token:
            envelope = self._backend.list_sales(
                token, page=page, limit=limit, start_date=start_date, end_date=end_date
            )

        records: list[SaleRecord] = []
        rows = envelope.get("data") if isinstance(envelope, dict) else None
        for raw in rows if isinstance(rows, list) else []:
            try:
                records.append(SaleRecord.model_validate(raw))
            except pydantic.ValidationError as e:
                logger.warning("Skipping unreadable sale from backend: %s", e)

        raw_pagination = envelope.get("pagination") if isinstance(envelope, dict) else None
        try:
            pagination = Pagination.model_validate(raw_pagination or {})
        except pydantic.ValidationError:
            pagination = Pagination(total=len(records), page=page, limit=limit)

        result = SalesPage(records=records, pagination=pagination)
        session.sales = result
        return result

    def cancel(self, session: SaleSession, order_id: str, reason: str | None) -> CancelResult:
        reason = (reason or "").strip() or DEFAULT_CANCEL_REASON

        with session.authorized() as token:
            data = self._backend.cancel_sale(token, order_id, reason)

        record: SaleRecord | None = None
        restored: list[RestoredProduct] = []
        if isinstance(data, dict):
            if isinstance(data.get("order"), dict):
                try:
                    record = SaleRecord.model_validate(data["order"])
                except pydantic.ValidationError as e:
                    logger.warning("Unreadable cancelled order %s: %s", order_id, e)
            restored = _restored(data.get("restoredProducts"))

        if session.sales is not None:
            for i, row in enumerate(session.sales.records):
                if row.id != order_id:
                    continue
                session.sales.records[i] = record or row.model_copy(
                    update={"status": "cancelled", "cancel_reason": reason}
                )

        logger.info("Sale %s cancelled, %d product(s) restocked", order_id, len(restored))
        return CancelResult(
            order_id=order_id, reason=reason, record=record, restored_products=restored
        )
