from __future__ import annotations

import math
from copy import deepcopy
from datetime import datetime, timezone
from typing import Any
from uuid import uuid4

from services.sales.app.services.decimal_normalizer import normalize, wrap
from services.sales.app.services.errors import (
    AuthError,
    ForbiddenError,
    IdentityError,
    NotFoundError,
    SaleError,
    ServerError,
)
from services.sales.app.services.identity import resolve_actor_id


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def default_catalog() -> list[dict[str, Any]]:
    # Stock and prices deliberately mix plain numbers and decimal wrappers.
    return [
        {
            "_id": "prod-rice",
            "name": "Rice",
            "price": 14000,
            "unit": "kg",
            "unitSize": 1,
            "inventory": wrap("250.5"),
            "shop": {"id": "shop-1", "name": "Chorsu Market"},
        },
        {
            "_id": "prod-oil",
            "name": "Sunflower oil",
            "price": wrap("23500.00"),
            "unit": "l",
            "unitSize": 1,
            "inventory": 40,
            "shop": {"id": "shop-1", "name": "Chorsu Market"},
        },
        {
            "_id": "prod-tv",
            "name": "Television 43in",
            "price": wrap("3450000"),
            "unit": "pcs",
            "unitSize": None,
            "inventory": 3,
            "shop": {"id": "shop-2", "name": "Electronics Hub"},
        },
    ]


class MockCatalogBackend:
    """In-memory stand-in for the catalog/order backend.

    It speaks the same wire shapes as the real service (``_id`` keys, decimal wrappers)
    and records every call so tests can assert on what would have been sent.
    """

    name = "mock"

    def __init__(self, products: list[dict[str, Any]] | None = None) -> None:
        self._products = {p["_id"]: deepcopy(p) for p in (products or default_catalog())}
        self._drafts: dict[str, dict[str, Any]] = {}
        self._orders: dict[str, dict[str, Any]] = {}
        self._draft_seq = 0
        self._order_seq = 0
        self._failures: list[SaleError] = []

        self.calls: list[tuple[str, str, dict[str, Any] | None]] = []

    def queue_failure(self, exc: SaleError) -> None:
        """Make the next call fail with ``exc`` after it has been recorded."""

        self._failures.append(exc)

    def add_product(self, product: dict[str, Any]) -> None:
        self._products[product["_id"]] = deepcopy(product)

    def list_drafts(self, token: str) -> Any:
        actor_id = self._begin(token, "GET", "/drafts")
        return [deepcopy(d) for d in self._drafts.values() if d["seller"] == actor_id]

    def create_draft(self, token: str, body: dict[str, Any]) -> Any:
        actor_id = self._begin(token, "POST", "/drafts", body)
        if not body.get("products"):
            raise ServerError("Products are required", status_code=400)

        self._draft_seq += 1
        now = _now()
        draft = {
            "_id": uuid4().hex,
            "orderId": self._draft_seq,
            "seller": actor_id,
            "storeOwner": body.get("storeOwner"),
            "products": [self._draft_line(p) for p in body["products"]],
            "totalSum": wrap(body.get("totalSum", 0)),
            "status": "draft",
            "createdAt": now,
            "updatedAt": now,
        }
        self._drafts[draft["_id"]] = draft
        return deepcopy(draft)

    def update_draft(self, token: str, draft_id: str, body: dict[str, Any]) -> Any:
        actor_id = self._begin(token, "PUT", f"/drafts/{draft_id}", body)
        draft = self._owned_draft(draft_id, actor_id)
        draft["products"] = [self._draft_line(p) for p in body.get("products") or []]
        draft["totalSum"] = wrap(body.get("totalSum", 0))
        draft["updatedAt"] = _now()
        return deepcopy(draft)

    def delete_draft(self, token: str, draft_id: str) -> Any:
        actor_id = self._begin(token, "DELETE", f"/drafts/{draft_id}")
        self._owned_draft(draft_id, actor_id)
        del self._drafts[draft_id]
        return None

    def confirm_draft(self, token: str, draft_id: str, body: dict[str, Any]) -> Any:
        actor_id = self._begin(token, "POST", f"/drafts/{draft_id}/confirm", body)
        draft = self._owned_draft(draft_id, actor_id)
        if draft["status"] != "draft":
            raise ServerError("Draft is already completed", status_code=400)

        draft["status"] = "completed"
        draft["paymentMethod"] = body.get("paymentMethod")
        draft["updatedAt"] = _now()
        self._record_order(
            actor_id,
            products=draft["products"],
            total=normalize(draft["totalSum"]),
            payment_method=body.get("paymentMethod") or "cash",
            customer=body.get("customer"),
        )
        return {"message": "Sale confirmed", "draft": deepcopy(draft)}

    def get_product(self, token: str, product_id: str) -> Any:
        self._begin(token, "GET", f"/products/{product_id}")
        product = self._products.get(product_id)
        if product is None:
            raise NotFoundError("Product not found")
        return deepcopy(product)

    def create_direct_sale(self, token: str, body: dict[str, Any]) -> Any:
        actor_id = self._begin(token, "POST", "/orders/direct", body)
        return self._record_order(
            actor_id,
            products=body.get("products") or [],
            total=body.get("totalSum", 0),
            payment_method=body.get("paymentMethod") or "cash",
            customer=None,
        )

    def create_installment_order(self, token: str, body: dict[str, Any]) -> Any:
        actor_id = self._begin(token, "POST", "/orders", body)
        if not body.get("customer"):
            raise ServerError("Customer is required for installment", status_code=400)

        products = body.get("products") or []
        total = sum(normalize(p.get("price")) * normalize(p.get("quantity")) for p in products)
        order = self._record_order(
            actor_id,
            products=products,
            total=total,
            payment_method="installment",
            customer=body["customer"],
        )
        duration = int(body.get("installmentDurationMonths") or 6)
        order["installment"] = {
            "duration": duration,
            "monthlyPayment": wrap(math.ceil(total / duration)),
            "startDate": body.get("startDate"),
        }
        return order

    def list_sales(
        self,
        token: str,
        *,
        page: int,
        limit: int,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> dict[str, Any]:
        actor_id = self._begin(token, "GET", "/orders")
        rows = [o for o in self._orders.values() if o["seller"] == actor_id]
        if start_date:
            rows = [o for o in rows if o["createdAt"][:10] >= start_date]
        if end_date:
            rows = [o for o in rows if o["createdAt"][:10] <= end_date]
        rows.sort(key=lambda o: o["orderId"], reverse=True)

        limit = max(1, limit)
        pages = max(1, math.ceil(len(rows) / limit))
        start = (max(1, page) - 1) * limit
        return {
            "success": True,
            "data": deepcopy(rows[start : start + limit]),
            "pagination": {"total": len(rows), "pages": pages, "page": page, "limit": limit},
        }

    def cancel_sale(self, token: str, order_id: str, reason: str) -> Any:
        actor_id = self._begin(token, "PATCH", f"/orders/{order_id}/cancel", {"reason": reason})
        order = self._orders.get(order_id)
        if order is None or order["seller"] != actor_id:
            raise NotFoundError("Order not found")
        if order["status"] == "cancelled":
            raise ServerError("Order is already cancelled", status_code=400)

        order["status"] = "cancelled"
        order["cancelReason"] = reason
        order["updatedAt"] = _now()

        restored = []
        for line in order["products"]:
            product = self._products.get(line.get("productId"))
            if product is None:
                continue
            qty = normalize(line.get("quantity"))
            product["inventory"] = normalize(product.get("inventory")) + qty
            restored.append(
                {
                    "id": product["_id"],
                    "name": product["name"],
                    "restoredQuantity": qty,
                    "newInventory": wrap(product["inventory"]),
                }
            )
        return {"order": deepcopy(order), "restoredProducts": restored}

    def _begin(
        self, token: str, method: str, path: str, body: dict[str, Any] | None = None
    ) -> str:
        self.calls.append((method, path, deepcopy(body)))
        if self._failures:
            raise self._failures.pop(0)
        try:
            return resolve_actor_id(token)
        except IdentityError as e:
            raise AuthError() from e

    def _owned_draft(self, draft_id: str, actor_id: str) -> dict[str, Any]:
        draft = self._drafts.get(draft_id)
        if draft is None:
            raise NotFoundError("Draft not found")
        if draft["seller"] != actor_id:
            raise ForbiddenError("You cannot change another seller's draft")
        return draft

    def _draft_line(self, line: dict[str, Any]) -> dict[str, Any]:
        product = self._products.get(line.get("productId"), {})
        return {
            "_id": uuid4().hex,
            "productId": {"_id": line.get("productId"), "name": line.get("name")},
            "name": line.get("name"),
            "quantity": wrap(line.get("quantity", 0)),
            "price": wrap(line.get("price", 0)),
            "unit": line.get("unit"),
            "unitSize": line.get("unitSize"),
            "shop": deepcopy(product.get("shop")),
        }

    def _record_order(
        self,
        actor_id: str,
        *,
        products: list[dict[str, Any]],
        total: float,
        payment_method: str,
        customer: dict[str, Any] | None,
    ) -> dict[str, Any]:
        for line in products:
            product_id = line.get("productId")
            if isinstance(product_id, dict):
                product_id = product_id.get("_id")
            product = self._products.get(product_id)
            if product is not None:
                stock = normalize(product.get("inventory")) - normalize(line.get("quantity"))
                product["inventory"] = max(0, stock)

        self._order_seq += 1
        order = {
            "_id": uuid4().hex,
            "orderId": self._order_seq,
            "seller": actor_id,
            "products": [
                {
                    **deepcopy(line),
                    "productId": (
                        line["productId"].get("_id")
                        if isinstance(line.get("productId"), dict)
                        else line.get("productId")
                    ),
                }
                for line in products
            ],
            "totalSum": wrap(total),
            "status": "completed",
            "paymentMethod": payment_method,
            "customer": deepcopy(customer),
            "createdAt": _now(),
        }
        self._orders[order["_id"]] = order
        return deepcopy(order)
