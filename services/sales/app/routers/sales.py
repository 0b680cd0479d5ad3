from __future__ import annotations

from fastapi import APIRouter, Depends
from services.sales.app.models.api import CancelSaleRequest, PendingConfirmationOut
from services.sales.app.models.order import SalesPage
from services.sales.app.routers.common import (
    _raise_sale_http_error,
    checked_out_session,
    pending_out,
)
from services.sales.app.services.errors import SaleError
from services.sales.app.services.store import SessionRecord

router = APIRouter()


@router.post("/v1/sessions/{session_id}/sales/direct", response_model=PendingConfirmationOut)
def request_direct_sale(record: SessionRecord = Depends(checked_out_session)) -> PendingConfirmationOut:
    desk = record.desk
    try:
        pending = desk.request_direct_sale()
    except SaleError as e:
        _raise_sale_http_error(e)
    return pending_out(pending, desk.confirmation.state.value)


@router.get("/v1/sessions/{session_id}/sales", response_model=SalesPage)
def list_sales(
    page: int = 1,
    limit: int = 10,
    start_date: str | None = None,
    end_date: str | None = None,
    record: SessionRecord = Depends(checked_out_session),
) -> SalesPage:
    try:
        return record.desk.load_sales(
            page=page, limit=limit, start_date=start_date, end_date=end_date
        )
    except SaleError as e:
        _raise_sale_http_error(e)


@router.post(
    "/v1/sessions/{session_id}/sales/{order_id}/cancel", response_model=PendingConfirmationOut
)
def request_cancel_sale(
    order_id: str,
    payload: CancelSaleRequest | None = None,
    record: SessionRecord = Depends(checked_out_session),
) -> PendingConfirmationOut:
    desk = record.desk
    try:
        pending = desk.request_cancel_sale(order_id, payload.reason if payload else None)
    except SaleError as e:
        _raise_sale_http_error(e)
    return pending_out(pending, desk.confirmation.state.value)
