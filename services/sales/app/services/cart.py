from __future__ import annotations

import math
from collections.abc import Mapping
from dataclasses import dataclass, field

from services.sales.app.models.catalog import ProductRecord
from services.sales.app.models.draft import DraftOrder
from services.sales.app.models.order import LineItemPayload
from services.sales.app.services.decimal_normalizer import normalize
from services.sales.app.services.errors import (
    EmptyCartError,
    InsufficientStockError,
    ValidationError,
)


@dataclass
class LineItem:
    product: ProductRecord
    quantity: float

    @property
    def unit_price(self) -> float:
        return normalize(self.product.price)

    @property
    def line_total(self) -> float:
        return self.unit_price * self.quantity

    def to_payload(self) -> LineItemPayload:
        if not (self.product.id or "").strip():
            raise ValidationError(f"Product {self.product.name!r} has no id")

        return LineItemPayload(
            product_id=self.product.id,
            name=self.product.name,
            quantity=self.quantity,
            price=self.unit_price,
            unit=self.product.unit,
            unit_size=self.product.unit_size or 1,
        )


@dataclass(frozen=True, slots=True)
class LoadResult:
    loaded: int
    skipped: int


def parse_quantity(raw: str | float | int) -> float:
    if isinstance(raw, bool):
        raise ValidationError("Quantity must be a number")

    if isinstance(raw, str):
        try:
            value = float(raw.strip().replace(",", "."))
        except ValueError as e:
            raise ValidationError(f"Quantity is not a number: {raw!r}") from e
    elif isinstance(raw, (int, float)):
        value = float(raw)
    else:
        raise ValidationError("Quantity must be a number")

    if not math.isfinite(value) or value <= 0:
        raise ValidationError("Quantity must be a positive number (for example 1.5)")
    return value


class Cart:
    """The working set of line items for the sale being composed.

    Lines are unique by product id: adding a product that is already present increments
    that line instead of appending a duplicate.
    """

    def __init__(self) -> None:
        self._lines: list[LineItem] = []

    @property
    def lines(self) -> list[LineItem]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def is_empty(self) -> bool:
        return not self._lines

    def add_or_increment(self, product: ProductRecord, quantity: str | float) -> LineItem:
        requested = parse_quantity(quantity)
        available = normalize(product.available_stock)

        existing = self._find(product.id)
        new_quantity = requested if existing is None else existing.quantity + requested
        if new_quantity > available:
            raise InsufficientStockError(product.name, new_quantity, available)

        if existing is None:
            line = LineItem(product=product, quantity=requested)
            self._lines.append(line)
            return line

        existing.quantity = new_quantity
        return existing

    def remove(self, index: int) -> LineItem:
        if index < 0 or index >= len(self._lines):
            raise ValidationError(f"No cart line at index {index}")
        return self._lines.pop(index)

    def total(self) -> float:
        return sum(line.line_total for line in self._lines)

    def clear(self) -> None:
        self._lines = []

    def load_from(
        self,
        draft: DraftOrder,
        products: Mapping[str, ProductRecord] | None = None,
    ) -> LoadResult:
        """Replace the cart with one line per valid draft product.

        A draft line is valid when it resolves to a product id and, if ``products`` is
        given, that id was re-fetched successfully. Invalid lines are skipped and counted.
        """

        lines: list[LineItem] = []
        skipped = 0
        for draft_line in draft.products:
            product_id = draft_line.resolved_product_id()
            if product_id is None:
                skipped += 1
                continue

            if products is not None:
                product = products.get(product_id)
                if product is None:
                    skipped += 1
                    continue
            else:
                product = ProductRecord(
                    id=product_id,
                    name=draft_line.name,
                    price=draft_line.price,
                    unit=draft_line.unit,
                    unit_size=draft_line.unit_size,
                    available_stock=draft_line.quantity,
                    shop=draft_line.shop,
                )

            quantity = normalize(draft_line.quantity) or 1
            existing = next((ln for ln in lines if ln.product.id == product_id), None)
            if existing is not None:
                existing.quantity += quantity
            else:
                lines.append(LineItem(product=product, quantity=quantity))

        if not lines:
            raise EmptyCartError("No valid products left to load from draft")

        self._lines = lines
        return LoadResult(loaded=len(lines), skipped=skipped)

    def to_payload(self) -> list[LineItemPayload]:
        return [line.to_payload() for line in self._lines]

    def first_shop_id(self) -> str | None:
        if not self._lines:
            return None
        shop = self._lines[0].product.shop
        return shop.id if shop is not None and shop.id else None

    def _find(self, product_id: str) -> LineItem | None:
        return next((line for line in self._lines if line.product.id == product_id), None)
