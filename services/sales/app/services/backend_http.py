from __future__ import annotations

import logging
import os
from typing import Any

import httpx
from services.sales.app.services.errors import (
    AuthError,
    ForbiddenError,
    NetworkError,
    NotFoundError,
    ServerError,
)

logger = logging.getLogger(__name__)

DEFAULT_BASE_URL = "http://localhost:5000/api"
DEFAULT_TIMEOUT_S = 15.0


class HttpCatalogBackend:
    """Bearer-authenticated JSON client for the catalog/order backend."""

    name = "http"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        *,
        timeout_s: float = DEFAULT_TIMEOUT_S,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self._client = httpx.Client(
            base_url=base_url.rstrip("/"),
            timeout=timeout_s,
            transport=transport,
            headers={"Accept": "application/json"},
        )

    @classmethod
    def from_env(cls) -> HttpCatalogBackend:
        base_url = os.getenv("SAVDO_API_BASE_URL", DEFAULT_BASE_URL).strip()
        raw_timeout = os.getenv("SAVDO_HTTP_TIMEOUT_S", str(DEFAULT_TIMEOUT_S)).strip()
        try:
            timeout_s = float(raw_timeout)
        except ValueError as e:
            raise ValueError(f"Invalid SAVDO_HTTP_TIMEOUT_S={raw_timeout!r}") from e
        return cls(base_url, timeout_s=timeout_s)

    def close(self) -> None:
        self._client.close()

    def list_drafts(self, token: str) -> Any:
        return self._request("GET", "/drafts", token)["data"]

    def create_draft(self, token: str, body: dict[str, Any]) -> Any:
        return self._request("POST", "/drafts", token, json=body)["data"]

    def update_draft(self, token: str, draft_id: str, body: dict[str, Any]) -> Any:
        return self._request("PUT", f"/drafts/{draft_id}", token, json=body)["data"]

    def delete_draft(self, token: str, draft_id: str) -> Any:
        return self._request("DELETE", f"/drafts/{draft_id}", token)["data"]

    def confirm_draft(self, token: str, draft_id: str, body: dict[str, Any]) -> Any:
        return self._request("POST", f"/drafts/{draft_id}/confirm", token, json=body)["data"]

    def get_product(self, token: str, product_id: str) -> Any:
        payload = self._request("GET", f"/products/{product_id}", token)
        # Single-product responses are not consistent about where the record lives.
        return payload.get("product") or payload.get("data") or payload

    def create_direct_sale(self, token: str, body: dict[str, Any]) -> Any:
        return self._request("POST", "/orders/direct", token, json=body)["data"]

    def create_installment_order(self, token: str, body: dict[str, Any]) -> Any:
        return self._request("POST", "/orders", token, json=body)["data"]

    def list_sales(
        self,
        token: str,
        *,
        page: int,
        limit: int,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if start_date:
            params["startDate"] = start_date
        if end_date:
            params["endDate"] = end_date
        return self._request("GET", "/orders", token, params=params)

    def cancel_sale(self, token: str, order_id: str, reason: str) -> Any:
        return self._request(
            "PATCH", f"/orders/{order_id}/cancel", token, json={"reason": reason}
        )["data"]

    def _request(
        self,
        method: str,
        path: str,
        token: str,
        *,
        json: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        try:
            response = self._client.request(
                method,
                path,
                json=json,
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )
        except httpx.TransportError as e:
            logger.warning("%s %s failed: %s", method, path, e)
            raise NetworkError(f"Could not reach the server: {e}") from e

        logger.debug("%s %s -> %s", method, path, response.status_code)

        payload = _decode(response)
        message = str(payload.get("message") or "").strip()

        if response.status_code == 401:
            raise AuthError()
        if response.status_code == 403:
            raise ForbiddenError(message or "You do not have permission for this action")
        if response.status_code == 404:
            raise NotFoundError(message or "Not found")
        if not response.is_success:
            raise ServerError(
                message or f"HTTP error: status {response.status_code}",
                status_code=response.status_code,
            )
        if payload.get("success") is False:
            raise ServerError(message or "Request was not successful", response.status_code)

        payload.setdefault("data", None)
        return payload


def _decode(response: httpx.Response) -> dict[str, Any]:
    if not response.content:
        return {}
    try:
        payload = response.json()
    except ValueError:
        if response.is_success:
            raise ServerError("Server returned a non-JSON response", response.status_code)
        return {}
    return payload if isinstance(payload, dict) else {"data": payload}
