from __future__ import annotations

from typing import Any

from packages.shared.schemas.notice_v1 import NoticeV1
from pydantic import BaseModel, Field
from services.sales.app.models.draft import DraftOrder


class SessionOpenResponse(BaseModel):
    session_id: str
    actor_id: str
    backend: str


class CartItemAddRequest(BaseModel):
    product_id: str | None = None

    # Raw quantity as typed by the agent ("1,5" is accepted); defaults to the selection.
    quantity: str | float | None = None


class PaymentMethodRequest(BaseModel):
    method: str


class CancelSaleRequest(BaseModel):
    reason: str | None = None


class CartLineOut(BaseModel):
    index: int
    product_id: str
    name: str
    quantity: float
    unit: str
    unit_price: float
    line_total: float
    available_stock: float


class SelectionOut(BaseModel):
    product_id: str | None = None
    product_name: str | None = None
    quantity_input: str = "1"


class PaymentOut(BaseModel):
    method: str
    buyer: dict[str, Any] | None = None
    has_photo: bool = False


class PendingConfirmationOut(BaseModel):
    state: str
    title: str
    message: str
    require_payment_method_choice: bool = False
    amount: float | None = None


class SessionStateOut(BaseModel):
    session_id: str
    actor_id: str
    signed_out: bool = False

    cart: list[CartLineOut] = Field(default_factory=list)
    total: float = 0
    editing_draft_id: str | None = None
    selection: SelectionOut = Field(default_factory=SelectionOut)

    drafts: list[DraftOrder] = Field(default_factory=list)
    payment: PaymentOut
    pending: PendingConfirmationOut | None = None

    loading: list[str] = Field(default_factory=list)
    notices: list[NoticeV1] = Field(default_factory=list)


class ScheduleEntryOut(BaseModel):
    month: int
    amount: float
    due_date: str


class ConfirmOutcomeOut(BaseModel):
    kind: str
    detail: dict[str, Any] = Field(default_factory=dict)
    notices: list[NoticeV1] = Field(default_factory=list)


class SaleReceiptOut(BaseModel):
    id: str
    session_id: str
    actor_id: str
    kind: str
    external_reference_id: str | None = None
    total: float
    payment_method: str
    created_at: str
