from __future__ import annotations

import json
from collections.abc import Callable

import httpx
import pytest
from services.sales.app.services.backend_http import HttpCatalogBackend
from services.sales.app.services.errors import (
    AuthError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    ServerError,
)

Handler = Callable[[httpx.Request], httpx.Response]


def _backend(handler: Handler) -> HttpCatalogBackend:
    return HttpCatalogBackend(
        "http://backend.test/api", timeout_s=1, transport=httpx.MockTransport(handler)
    )


def test_list_drafts_sends_bearer_and_returns_data() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "data": [{"_id": "d-1"}]})

    assert _backend(handler).list_drafts("tok") == [{"_id": "d-1"}]
    assert seen[0].url.path == "/api/drafts"
    assert seen[0].headers["Authorization"] == "Bearer tok"


@pytest.mark.parametrize(
    ("status", "exc"),
    [
        (401, AuthError),
        (403, ForbiddenError),
        (404, NotFoundError),
        (400, ServerError),
        (500, ServerError),
    ],
)
def test_error_statuses_are_mapped(status: int, exc: type[Exception]) -> None:
    backend = _backend(lambda r: httpx.Response(status, json={"success": False, "message": "nope"}))
    with pytest.raises(exc):
        backend.delete_draft("tok", "d-1")


def test_server_error_carries_backend_message() -> None:
    backend = _backend(lambda r: httpx.Response(500, json={"message": "Products are required"}))
    with pytest.raises(ServerError, match="Products are required") as exc_info:
        backend.create_draft("tok", {})
    assert exc_info.value.status_code == 500


def test_success_false_on_2xx_is_fatal() -> None:
    backend = _backend(
        lambda r: httpx.Response(200, json={"success": False, "message": "Stock changed"})
    )
    with pytest.raises(ServerError, match="Stock changed"):
        backend.confirm_draft("tok", "d-1", {"paymentMethod": "cash"})


def test_non_json_error_body_falls_back_to_status() -> None:
    backend = _backend(lambda r: httpx.Response(502, text="<html>Bad gateway</html>"))
    with pytest.raises(ServerError, match="status 502"):
        backend.list_drafts("tok")


def test_transport_failure_is_a_network_error() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(NetworkError):
        _backend(handler).list_drafts("tok")


def test_get_product_accepts_product_member() -> None:
    backend = _backend(
        lambda r: httpx.Response(200, json={"success": True, "product": {"_id": "p-1"}})
    )
    assert backend.get_product("tok", "p-1") == {"_id": "p-1"}


def test_list_sales_passes_filters_and_returns_envelope() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(
            200,
            json={
                "success": True,
                "data": [],
                "pagination": {"total": 0, "pages": 1, "page": 2, "limit": 5},
            },
        )

    envelope = _backend(handler).list_sales(
        "tok", page=2, limit=5, start_date="2026-01-01", end_date=None
    )

    assert envelope["pagination"]["page"] == 2
    params = seen[0].url.params
    assert (params["page"], params["limit"], params["startDate"]) == ("2", "5", "2026-01-01")
    assert "endDate" not in params


def test_cancel_sale_patches_reason() -> None:
    seen: list[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"success": True, "data": {"restoredProducts": []}})

    _backend(handler).cancel_sale("tok", "o-1", "Returned")

    assert seen[0].method == "PATCH"
    assert seen[0].url.path == "/api/orders/o-1/cancel"
    assert json.loads(seen[0].read()) == {"reason": "Returned"}


def test_from_env_rejects_bad_timeout(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("SAVDO_HTTP_TIMEOUT_S", "soon")
    with pytest.raises(ValueError, match="SAVDO_HTTP_TIMEOUT_S"):
        HttpCatalogBackend.from_env()
