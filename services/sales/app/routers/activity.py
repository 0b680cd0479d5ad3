from __future__ import annotations

from fastapi import APIRouter, Depends
from packages.shared.schemas.events import EventV1
from services.sales.app.db.deps import get_db
from services.sales.app.db.models import EventLog, SaleReceipt
from services.sales.app.models.api import SaleReceiptOut
from sqlalchemy.orm import Session

router = APIRouter()


@router.get("/v1/activity", response_model=list[EventV1])
def list_activity(session_id: str, db: Session = Depends(get_db)) -> list[EventV1]:
    rows = (
        db.query(EventLog)
        .filter(EventLog.session_id == session_id)
        .order_by(EventLog.created_at.asc())
        .limit(500)
        .all()
    )

    return [
        EventV1(
            id=r.id,
            session_id=r.session_id,
            actor_id=r.actor_id,
            entity_type=r.entity_type,
            entity_id=r.entity_id,
            event_type=r.event_type,
            payload=r.event_payload_json or {},
            created_at=r.created_at.isoformat(),
        )
        for r in rows
    ]


@router.get("/v1/receipts", response_model=list[SaleReceiptOut])
def list_receipts(actor_id: str, db: Session = Depends(get_db)) -> list[SaleReceiptOut]:
    rows = (
        db.query(SaleReceipt)
        .filter(SaleReceipt.actor_id == actor_id)
        .order_by(SaleReceipt.created_at.desc())
        .limit(200)
        .all()
    )

    return [
        SaleReceiptOut(
            id=r.id,
            session_id=r.session_id,
            actor_id=r.actor_id,
            kind=r.kind,
            external_reference_id=r.external_reference_id,
            total=r.total,
            payment_method=r.payment_method,
            created_at=r.created_at.isoformat(),
        )
        for r in rows
    ]
