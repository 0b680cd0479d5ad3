from __future__ import annotations

import pytest
from services.sales.app.models.catalog import ProductRecord
from services.sales.app.models.draft import DraftOrder
from services.sales.app.services.cart import Cart
from services.sales.app.services.errors import (
    EmptyCartError,
    InsufficientStockError,
    ValidationError,
)


def _product(pid: str = "p-1", *, price: object = 10000, stock: object = 10) -> ProductRecord:
    return ProductRecord.model_validate(
        {
            "_id": pid,
            "name": f"Product {pid}",
            "price": price,
            "unit": "pcs",
            "unitSize": 1,
            "inventory": stock,
            "shop": {"id": "shop-9", "name": "Shop 9"},
        }
    )


def test_increment_past_stock_fails_and_keeps_quantity() -> None:
    cart = Cart()
    product = _product(stock=10)

    cart.add_or_increment(product, 5)
    with pytest.raises(InsufficientStockError):
        cart.add_or_increment(product, 6)

    assert len(cart) == 1
    assert cart.lines[0].quantity == 5


def test_same_product_increments_existing_line() -> None:
    cart = Cart()
    product = _product()

    cart.add_or_increment(product, "2")
    cart.add_or_increment(product, "1,5")

    assert len(cart) == 1
    assert cart.lines[0].quantity == 3.5


@pytest.mark.parametrize("raw", ["0", "-1", "abc", "", 0, -2.5, float("nan")])
def test_invalid_quantity_is_rejected(raw: object) -> None:
    cart = Cart()
    with pytest.raises(ValidationError):
        cart.add_or_increment(_product(), raw)
    assert cart.is_empty()


def test_total_is_recomputed_from_lines() -> None:
    cart = Cart()
    cart.add_or_increment(_product("oil", price={"$numberDecimal": "23500.00"}, stock=40), 2)
    cart.add_or_increment(_product("rice", price=14000, stock={"$numberDecimal": "250.5"}), 1.5)
    assert cart.total() == 47000 + 21000

    cart.remove(0)
    assert cart.total() == 21000


def test_remove_out_of_range_is_a_validation_error() -> None:
    cart = Cart()
    with pytest.raises(ValidationError):
        cart.remove(0)


def test_load_from_skips_lines_without_product_id() -> None:
    draft = DraftOrder.model_validate(
        {
            "_id": "d-1",
            "products": [
                {"productId": {"_id": "p-1", "name": "A"}, "name": "A", "quantity": {"$numberDecimal": "2"}, "price": 100},
                {"productId": None, "name": "Ghost"},
                {"productId": "  ", "name": "Blank"},
            ],
        }
    )
    cart = Cart()

    result = cart.load_from(draft)

    assert (result.loaded, result.skipped) == (1, 2)
    assert cart.lines[0].product.id == "p-1"
    assert cart.lines[0].quantity == 2
    assert cart.total() == 200


def test_load_from_without_valid_lines_leaves_cart_untouched() -> None:
    cart = Cart()
    cart.add_or_increment(_product(), 1)
    draft = DraftOrder.model_validate({"_id": "d-2", "products": [{"productId": None}]})

    with pytest.raises(EmptyCartError):
        cart.load_from(draft)

    assert len(cart) == 1


def test_payload_requires_product_id() -> None:
    cart = Cart()
    cart.add_or_increment(_product(pid=""), 1)
    with pytest.raises(ValidationError):
        cart.to_payload()


def test_first_shop_id_comes_from_first_line() -> None:
    cart = Cart()
    assert cart.first_shop_id() is None
    cart.add_or_increment(_product(), 1)
    assert cart.first_shop_id() == "shop-9"
