from __future__ import annotations

from enum import Enum
from typing import Any

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel
from services.sales.app.models.catalog import Num
from services.sales.app.models.draft import DraftLine


class PaymentMethod(str, Enum):
    CASH = "cash"
    CARD = "card"
    INSTALLMENT = "installment"


class _Wire(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_wire(self) -> dict[str, Any]:
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class LineItemPayload(_Wire):
    product_id: str
    name: str
    quantity: float
    price: float
    unit: str
    unit_size: float


class DraftSaveRequest(_Wire):
    store_owner: str
    products: list[LineItemPayload]
    total_sum: float


class DraftConfirmRequest(_Wire):
    payment_method: PaymentMethod
    status: str = "completed"
    store_owner: str
    installment_duration_months: int | None = None
    start_date: str | None = None
    customer: dict[str, Any] | None = None


class DirectSaleRequest(_Wire):
    store_owner: str
    products: list[LineItemPayload]
    total_sum: float
    payment_method: PaymentMethod


class InstallmentOrderRequest(_Wire):
    products: list[LineItemPayload]
    store_owner: str
    payment_method: PaymentMethod = PaymentMethod.INSTALLMENT
    installment_duration_months: int
    start_date: str
    customer: dict[str, Any]


class SaleRecord(BaseModel):
    """A finalized sale as listed by the sales history endpoint."""

    model_config = ConfigDict(extra="ignore")

    id: str = Field(validation_alias=AliasChoices("id", "_id"))
    order_number: int | None = Field(
        default=None, validation_alias=AliasChoices("order_number", "orderId")
    )
    products: list[DraftLine] = Field(default_factory=list)
    total: Num = Field(default=0, validation_alias=AliasChoices("total", "totalSum"))
    status: str = "completed"
    payment_method: str = Field(
        default="cash", validation_alias=AliasChoices("payment_method", "paymentMethod")
    )
    created_at: str | None = Field(
        default=None, validation_alias=AliasChoices("created_at", "createdAt")
    )
    customer: dict[str, Any] | None = None
    cancel_reason: str | None = Field(
        default=None, validation_alias=AliasChoices("cancel_reason", "cancelReason")
    )

    @field_validator("payment_method", mode="before")
    @classmethod
    def _cash_unless_installment(cls, value: Any) -> str:
        return "installment" if value == "installment" else "cash"


class Pagination(BaseModel):
    total: int = 0
    pages: int = 1
    page: int = 1
    limit: int = 10


class SalesPage(BaseModel):
    records: list[SaleRecord] = Field(default_factory=list)
    pagination: Pagination = Field(default_factory=Pagination)
