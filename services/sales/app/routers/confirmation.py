from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Body, Depends
from services.sales.app.models.api import (
    ConfirmOutcomeOut,
    PaymentMethodRequest,
    PaymentOut,
    ScheduleEntryOut,
    SessionStateOut,
)
from services.sales.app.routers.common import (
    _raise_sale_http_error,
    checked_out_session,
    payment_out,
    session_state,
)
from services.sales.app.services.errors import SaleError
from services.sales.app.services.finalization import DirectSaleResult, DraftConfirmResult
from services.sales.app.services.history import CancelResult
from services.sales.app.services.store import SessionRecord

router = APIRouter()


def _outcome(result: Any) -> tuple[str, dict[str, Any]]:
    if isinstance(result, DirectSaleResult):
        return "sale_completed", {
            "order_id": result.order_id,
            "payment_method": result.payment_method.value,
            "total": result.total,
        }

    if isinstance(result, DraftConfirmResult):
        return "draft_confirmed", {
            "draft_id": result.draft_id,
            "payment_method": result.payment_method.value,
            "store_owner": result.store_owner,
            "message": result.message,
        }

    if isinstance(result, CancelResult):
        return "sale_cancelled", {
            "order_id": result.order_id,
            "reason": result.reason,
            "restored_products": [
                {
                    "product_id": p.product_id,
                    "name": p.name,
                    "restored_quantity": p.restored_quantity,
                    "new_inventory": p.new_inventory,
                }
                for p in result.restored_products
            ],
        }

    return "done", {}


@router.put("/v1/sessions/{session_id}/confirmation/payment-method", response_model=PaymentOut)
def set_payment_method(
    payload: PaymentMethodRequest, record: SessionRecord = Depends(checked_out_session)
) -> PaymentOut:
    try:
        payment = record.desk.set_payment_method(payload.method)
    except SaleError as e:
        _raise_sale_http_error(e)
    return payment_out(payment)


@router.put("/v1/sessions/{session_id}/confirmation/buyer-profile", response_model=PaymentOut)
def set_buyer_profile(
    payload: dict[str, Any] = Body(...), record: SessionRecord = Depends(checked_out_session)
) -> PaymentOut:
    try:
        record.desk.set_buyer_profile(payload)
    except SaleError as e:
        _raise_sale_http_error(e)
    return payment_out(record.desk.payment)


@router.delete("/v1/sessions/{session_id}/confirmation/buyer-profile", response_model=PaymentOut)
def clear_buyer_profile(record: SessionRecord = Depends(checked_out_session)) -> PaymentOut:
    record.desk.clear_buyer_profile()
    return payment_out(record.desk.payment)


@router.get(
    "/v1/sessions/{session_id}/confirmation/schedule", response_model=list[ScheduleEntryOut]
)
def installment_schedule(
    record: SessionRecord = Depends(checked_out_session),
) -> list[ScheduleEntryOut]:
    try:
        entries = record.desk.installment_schedule()
    except SaleError as e:
        _raise_sale_http_error(e)

    return [
        ScheduleEntryOut(month=e.month, amount=e.amount, due_date=e.due_date.isoformat())
        for e in entries
    ]


@router.post("/v1/sessions/{session_id}/confirmation/confirm", response_model=ConfirmOutcomeOut)
def confirm(record: SessionRecord = Depends(checked_out_session)) -> ConfirmOutcomeOut:
    desk = record.desk
    try:
        result = desk.confirm()
    except SaleError as e:
        _raise_sale_http_error(e)

    kind, detail = _outcome(result)
    return ConfirmOutcomeOut(kind=kind, detail=detail, notices=desk.session.drain_notices())


@router.post("/v1/sessions/{session_id}/confirmation/cancel", response_model=SessionStateOut)
def cancel(record: SessionRecord = Depends(checked_out_session)) -> SessionStateOut:
    try:
        record.desk.cancel_confirmation()
    except SaleError as e:
        _raise_sale_http_error(e)
    return session_state(record)
