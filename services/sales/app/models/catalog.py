from __future__ import annotations

from typing import Annotated, Any

from pydantic import AliasChoices, BaseModel, BeforeValidator, ConfigDict, Field
from services.sales.app.services.decimal_normalizer import normalize


def _text(value: Any) -> Any:
    return "" if value is None else value


def _normalize_optional(value: Any) -> float | None:
    if value is None:
        return None
    return normalize(value)


# Backend numbers arrive as plain JSON numbers or as {"$numberDecimal": "..."} wrappers.
Num = Annotated[float, BeforeValidator(normalize)]
OptionalNum = Annotated[float | None, BeforeValidator(_normalize_optional)]
Text = Annotated[str, BeforeValidator(_text)]


class ShopRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    name: str | None = None


class ProductRecord(BaseModel):
    """Catalog product snapshot as returned by ``GET /products/{id}``."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    name: Text = ""
    price: Num = 0
    unit: Text = ""
    unit_size: OptionalNum = Field(
        default=None, validation_alias=AliasChoices("unit_size", "unitSize")
    )
    available_stock: Num = Field(
        default=0, validation_alias=AliasChoices("available_stock", "availableStock", "inventory")
    )
    shop: ShopRef | None = None
