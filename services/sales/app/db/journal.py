from __future__ import annotations

import logging
from typing import Any
from uuid import uuid4

from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from services.sales.app.db.database import db_session
from services.sales.app.db.models import EventLog, SaleReceipt
from sqlalchemy.exc import SQLAlchemyError

logger = logging.getLogger(__name__)


class DbSaleJournal:
    """Writes a session's events and receipts to the journal database.

    Journaling is best-effort: a database failure is logged and never fails the sale.
    """

    def __init__(self, session_id: str, actor_id: str | None) -> None:
        self.session_id = session_id
        self.actor_id = actor_id

    def record(
        self,
        event_type: EventTypeV1,
        *,
        entity_type: EntityTypeV1,
        entity_id: str,
        payload: dict[str, Any] | None = None,
    ) -> None:
        self._write(
            EventLog(
                id=uuid4().hex,
                session_id=self.session_id,
                actor_id=self.actor_id,
                entity_type=entity_type.value,
                entity_id=entity_id,
                event_type=event_type.value,
                event_payload_json=payload or {},
            )
        )

    def receipt(
        self,
        *,
        kind: str,
        external_reference_id: str | None,
        total: float,
        payment_method: str,
        payload: dict[str, Any] | None = None,
    ) -> None:
        self._write(
            SaleReceipt(
                id=uuid4().hex,
                session_id=self.session_id,
                actor_id=self.actor_id or "",
                kind=kind,
                external_reference_id=external_reference_id,
                total=total,
                payment_method=payment_method,
                receipt_payload_json=payload or {},
            )
        )

    def _write(self, row: EventLog | SaleReceipt) -> None:
        db = db_session()
        try:
            db.add(row)
            db.commit()
        except SQLAlchemyError as e:
            db.rollback()
            logger.error("Journal write failed for session %s: %s", self.session_id, e)
        finally:
            db.close()
