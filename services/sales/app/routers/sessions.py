from __future__ import annotations

import logging

from fastapi import APIRouter, Depends, Header, HTTPException
from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from services.sales.app.db.journal import DbSaleJournal
from services.sales.app.models.api import CartItemAddRequest, SessionOpenResponse, SessionStateOut
from services.sales.app.routers.common import (
    _raise_sale_http_error,
    checked_out_session,
    session_state,
)
from services.sales.app.services.backend_factory import get_catalog_backend
from services.sales.app.services.desk import SalesDesk
from services.sales.app.services.errors import IdentityError, SaleError
from services.sales.app.services.identity import InMemoryCredentialStore, resolve_actor_id
from services.sales.app.services.session import SaleSession
from services.sales.app.services.store import SessionRecord, store

logger = logging.getLogger(__name__)

router = APIRouter()


def _bearer_token(authorization: str | None) -> str:
    scheme, _, token = (authorization or "").partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise HTTPException(status_code=401, detail="Missing bearer token")
    return token.strip()


@router.post("/v1/sessions", response_model=SessionOpenResponse, status_code=201)
def open_session(authorization: str | None = Header(default=None)) -> SessionOpenResponse:
    credentials = InMemoryCredentialStore(_bearer_token(authorization))
    token = credentials.get_valid_token()
    if token is None:
        raise HTTPException(status_code=401, detail="Authorization token invalid or expired")

    try:
        actor_id = resolve_actor_id(token)
    except IdentityError as e:
        raise HTTPException(status_code=401, detail=str(e)) from e

    try:
        backend = get_catalog_backend()
    except ValueError as e:
        raise HTTPException(status_code=500, detail=str(e)) from e

    session_id = store.new_session_id()
    journal = DbSaleJournal(session_id, actor_id)
    desk = SalesDesk(
        SaleSession(credentials=credentials),
        backend,
        journal=journal,
        session_id=session_id,
    )
    store.add(SessionRecord(session_id=session_id, actor_id=actor_id, desk=desk))

    journal.record(
        EventTypeV1.SESSION_OPENED,
        entity_type=EntityTypeV1.SESSION,
        entity_id=session_id,
        payload={"backend": backend.name},
    )
    logger.info("Sales session %s opened for actor %s", session_id, actor_id)
    return SessionOpenResponse(session_id=session_id, actor_id=actor_id, backend=backend.name)


@router.get("/v1/sessions/{session_id}", response_model=SessionStateOut)
def get_session(record: SessionRecord = Depends(checked_out_session)) -> SessionStateOut:
    return session_state(record, drain_notices=True)


@router.delete("/v1/sessions/{session_id}")
def close_session(record: SessionRecord = Depends(checked_out_session)) -> dict:
    store.remove(record.session_id)
    logger.info("Sales session %s closed", record.session_id)
    return {"status": "closed", "session_id": record.session_id}


@router.post("/v1/sessions/{session_id}/cart/items", response_model=SessionStateOut)
def add_cart_item(
    payload: CartItemAddRequest, record: SessionRecord = Depends(checked_out_session)
) -> SessionStateOut:
    try:
        record.desk.add_to_cart(payload.product_id, payload.quantity)
    except SaleError as e:
        _raise_sale_http_error(e)
    return session_state(record)


@router.delete("/v1/sessions/{session_id}/cart/items/{index}", response_model=SessionStateOut)
def remove_cart_item(
    index: int, record: SessionRecord = Depends(checked_out_session)
) -> SessionStateOut:
    try:
        record.desk.remove_from_cart(index)
    except SaleError as e:
        _raise_sale_http_error(e)
    return session_state(record)


@router.delete("/v1/sessions/{session_id}/cart", response_model=SessionStateOut)
def clear_cart(record: SessionRecord = Depends(checked_out_session)) -> SessionStateOut:
    record.desk.clear_cart()
    return session_state(record)
