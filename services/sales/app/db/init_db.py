from __future__ import annotations

import os

from services.sales.app.db.database import get_engine
from services.sales.app.db.models import Base


def init_db() -> None:
    if os.getenv("SAVDO_DB_AUTO_CREATE", "true").strip().lower() not in {"1", "true", "yes", "y"}:
        return

    Base.metadata.create_all(bind=get_engine())
