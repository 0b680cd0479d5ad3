from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field
from services.sales.app.models.catalog import Num, OptionalNum, ShopRef, Text


class DraftProductRef(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str | None = Field(default=None, validation_alias=AliasChoices("id", "_id"))
    name: str | None = None


class DraftLine(BaseModel):
    model_config = ConfigDict(extra="ignore")

    # Either a bare product id or the populated product document.
    product_id: str | DraftProductRef | None = Field(
        default=None, validation_alias=AliasChoices("product_id", "productId")
    )
    name: Text = ""
    quantity: Num = 0
    price: Num = 0
    unit: Text = ""
    unit_size: OptionalNum = Field(
        default=None, validation_alias=AliasChoices("unit_size", "unitSize")
    )
    shop: ShopRef | None = None

    def resolved_product_id(self) -> str | None:
        if isinstance(self.product_id, str):
            return self.product_id.strip() or None
        if self.product_id is not None:
            return (self.product_id.id or "").strip() or None
        return None


class DraftOrder(BaseModel):
    model_config = ConfigDict(extra="ignore")

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    sequence_number: int | None = Field(
        default=None, validation_alias=AliasChoices("sequence_number", "orderId")
    )
    products: list[DraftLine] = Field(default_factory=list)
    total: Num = Field(default=0, validation_alias=AliasChoices("total", "totalSum"))
    status: str = "draft"
    created_at: str | None = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )
    updated_at: str | None = Field(
        default=None, validation_alias=AliasChoices("updated_at", "updatedAt")
    )
