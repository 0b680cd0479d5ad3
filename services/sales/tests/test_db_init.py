from pathlib import Path

import pytest
from packages.shared.schemas.events import EntityTypeV1, EventTypeV1
from sqlalchemy import inspect


def test_init_db_creates_tables(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    db_path = tmp_path / "savdo_test.db"
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{db_path}")
    monkeypatch.setenv("SAVDO_DB_AUTO_CREATE", "true")

    from services.sales.app.db.database import get_engine
    from services.sales.app.db.init_db import init_db

    init_db()

    tables = set(inspect(get_engine()).get_table_names())
    assert {"event_log", "sale_receipts"} <= tables


def test_journal_writes_are_best_effort(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    # Tables are never created, so every write fails.
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{tmp_path / 'empty.db'}")

    from services.sales.app.db.journal import DbSaleJournal

    journal = DbSaleJournal("s-1", "agent-1")
    journal.record(EventTypeV1.SESSION_OPENED, entity_type=EntityTypeV1.SESSION, entity_id="s-1")
    journal.receipt(kind="DIRECT_SALE", external_reference_id=None, total=1, payment_method="cash")


def test_journal_persists_events(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", f"sqlite+pysqlite:///{tmp_path / 'journal.db'}")
    monkeypatch.setenv("SAVDO_DB_AUTO_CREATE", "true")

    from services.sales.app.db.database import db_session
    from services.sales.app.db.init_db import init_db
    from services.sales.app.db.journal import DbSaleJournal
    from services.sales.app.db.models import EventLog

    init_db()
    DbSaleJournal("s-1", "agent-1").record(
        EventTypeV1.DRAFT_SAVED,
        entity_type=EntityTypeV1.DRAFT,
        entity_id="d-1",
        payload={"total": 20000},
    )

    db = db_session()
    try:
        row = db.query(EventLog).one()
    finally:
        db.close()
    assert (row.event_type, row.entity_id, row.event_payload_json) == (
        "DRAFT_SAVED",
        "d-1",
        {"total": 20000},
    )
