from __future__ import annotations

import base64
import json
import time
from collections.abc import Callable

import pytest
from services.sales.app.services.backend_mock import MockCatalogBackend
from services.sales.app.services.identity import InMemoryCredentialStore
from services.sales.app.services.session import SaleSession


def _segment(obj: object) -> str:
    raw = json.dumps(obj).encode("utf-8")
    return base64.urlsafe_b64encode(raw).decode("ascii").rstrip("=")


@pytest.fixture()
def make_token() -> Callable[..., str]:
    """Build an unsigned three-segment token; pass ``claim=None`` to drop a claim."""

    def _make(**overrides: object) -> str:
        claims: dict[str, object] = {
            "id": "agent-1",
            "role": "seller",
            "exp": int(time.time()) + 3600,
        }
        claims.update(overrides)
        claims = {k: v for k, v in claims.items() if v is not None}
        return ".".join([_segment({"alg": "none"}), _segment(claims), "sig"])

    return _make


@pytest.fixture()
def token(make_token: Callable[..., str]) -> str:
    return make_token()


@pytest.fixture()
def backend() -> MockCatalogBackend:
    return MockCatalogBackend()


@pytest.fixture()
def session(token: str) -> SaleSession:
    return SaleSession(credentials=InMemoryCredentialStore(token))
