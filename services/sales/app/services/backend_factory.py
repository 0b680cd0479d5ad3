from __future__ import annotations

import os

from services.sales.app.services.backend_base import CatalogBackend
from services.sales.app.services.backend_mock import MockCatalogBackend

_MOCK_BACKEND: MockCatalogBackend | None = None


def get_catalog_backend() -> CatalogBackend:
    """Select the catalog backend based on env vars.

    Defaults to the in-memory mock so tests and local dev are deterministic unless
    explicitly configured otherwise. The mock is shared process-wide because it holds the
    drafts and orders that sessions create.
    """

    global _MOCK_BACKEND

    mode = os.getenv("SAVDO_BACKEND", "mock").strip().lower()

    if mode == "mock":
        if _MOCK_BACKEND is None:
            _MOCK_BACKEND = MockCatalogBackend()
        return _MOCK_BACKEND

    if mode == "http":
        from services.sales.app.services.backend_http import HttpCatalogBackend

        return HttpCatalogBackend.from_env()

    raise ValueError(f"Unknown SAVDO_BACKEND={mode!r}. Expected mock or http.")


def reset_mock_backend() -> None:
    global _MOCK_BACKEND
    _MOCK_BACKEND = None
