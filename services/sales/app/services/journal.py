from __future__ import annotations

from typing import Any, Protocol

from packages.shared.schemas.events import EntityTypeV1, EventTypeV1


class SaleJournal(Protocol):
    """Append-only trail of what a session did. Writes are best-effort."""

    def record(
        self,
        event_type: EventTypeV1,
        *,
        entity_type: EntityTypeV1,
        entity_id: str,
        payload: dict[str, Any] | None = None,
    ) -> None: ...

    def receipt(
        self,
        *,
        kind: str,
        external_reference_id: str | None,
        total: float,
        payment_method: str,
        payload: dict[str, Any] | None = None,
    ) -> None: ...


class NullJournal:
    def record(
        self,
        event_type: EventTypeV1,
        *,
        entity_type: EntityTypeV1,
        entity_id: str,
        payload: dict[str, Any] | None = None,
    ) -> None:
        return None

    def receipt(
        self,
        *,
        kind: str,
        external_reference_id: str | None,
        total: float,
        payment_method: str,
        payload: dict[str, Any] | None = None,
    ) -> None:
        return None
