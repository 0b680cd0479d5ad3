from __future__ import annotations

from fastapi import APIRouter, Depends
from services.sales.app.models.api import PendingConfirmationOut, SessionStateOut
from services.sales.app.models.draft import DraftOrder
from services.sales.app.routers.common import (
    _raise_sale_http_error,
    checked_out_session,
    pending_out,
    session_state,
)
from services.sales.app.services.errors import SaleError
from services.sales.app.services.store import SessionRecord

router = APIRouter()


@router.get("/v1/sessions/{session_id}/drafts", response_model=list[DraftOrder])
def list_drafts(record: SessionRecord = Depends(checked_out_session)) -> list[DraftOrder]:
    try:
        return record.desk.refresh_drafts()
    except SaleError as e:
        _raise_sale_http_error(e)


@router.post("/v1/sessions/{session_id}/drafts", response_model=DraftOrder)
def save_draft(record: SessionRecord = Depends(checked_out_session)) -> DraftOrder:
    try:
        return record.desk.save_draft()
    except SaleError as e:
        _raise_sale_http_error(e)


@router.post("/v1/sessions/{session_id}/drafts/{draft_id}/edit", response_model=SessionStateOut)
def edit_draft(draft_id: str, record: SessionRecord = Depends(checked_out_session)) -> SessionStateOut:
    try:
        record.desk.edit_draft(draft_id)
    except SaleError as e:
        _raise_sale_http_error(e)
    return session_state(record)


@router.post(
    "/v1/sessions/{session_id}/drafts/{draft_id}/delete", response_model=PendingConfirmationOut
)
def request_delete_draft(
    draft_id: str, record: SessionRecord = Depends(checked_out_session)
) -> PendingConfirmationOut:
    desk = record.desk
    try:
        pending = desk.request_delete_draft(draft_id)
    except SaleError as e:
        _raise_sale_http_error(e)
    return pending_out(pending, desk.confirmation.state.value)


@router.post(
    "/v1/sessions/{session_id}/drafts/{draft_id}/confirm", response_model=PendingConfirmationOut
)
def request_confirm_draft(
    draft_id: str, record: SessionRecord = Depends(checked_out_session)
) -> PendingConfirmationOut:
    desk = record.desk
    try:
        pending = desk.request_confirm_draft(draft_id)
    except SaleError as e:
        _raise_sale_http_error(e)
    return pending_out(pending, desk.confirmation.state.value)
