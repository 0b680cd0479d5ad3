"""Shared event schema (v1).

The sales service keeps an append-only journal of what each session did. Clients can
consume these events to render an activity trail.
"""

from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import BaseModel, Field


class EntityTypeV1(str, Enum):
    SESSION = "Session"
    DRAFT = "Draft"
    SALE = "Sale"


class EventTypeV1(str, Enum):
    SESSION_OPENED = "SESSION_OPENED"
    SESSION_SIGNED_OUT = "SESSION_SIGNED_OUT"
    DRAFT_SAVED = "DRAFT_SAVED"
    DRAFT_UPDATED = "DRAFT_UPDATED"
    DRAFT_LOADED = "DRAFT_LOADED"
    DRAFT_DELETED = "DRAFT_DELETED"
    DRAFT_CONFIRMED = "DRAFT_CONFIRMED"
    SALE_COMPLETED = "SALE_COMPLETED"
    INSTALLMENT_CREATED = "INSTALLMENT_CREATED"
    SALE_CANCELLED = "SALE_CANCELLED"
    OPERATION_FAILED = "OPERATION_FAILED"


class EventV1(BaseModel):
    id: str
    session_id: str
    actor_id: str | None = None

    entity_type: EntityTypeV1
    entity_id: str

    event_type: EventTypeV1
    payload: dict[str, Any] = Field(default_factory=dict)
    created_at: str
