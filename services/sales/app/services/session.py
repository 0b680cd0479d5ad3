from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field

from packages.shared.schemas.notice_v1 import NoticeCategoryV1, NoticeV1
from services.sales.app.models.buyer import BuyerProfile
from services.sales.app.models.catalog import ProductRecord
from services.sales.app.models.draft import DraftOrder
from services.sales.app.models.order import PaymentMethod, SalesPage
from services.sales.app.services.cart import Cart
from services.sales.app.services.errors import AuthError
from services.sales.app.services.identity import CredentialStore

logger = logging.getLogger(__name__)

# Undrained notices kept per session; older ones are dropped first.
MAX_NOTICES = 50


@dataclass
class PaymentState:
    """Payment choices for the sale being finalized.

    A single mutable cell: every user change is written here synchronously, and commit
    handlers read it when they run, never a copy taken when the dialog opened.
    """

    method: PaymentMethod = PaymentMethod.CASH
    buyer_profile: BuyerProfile | None = None

    def set_method(self, method: PaymentMethod) -> None:
        if method != PaymentMethod.INSTALLMENT:
            self.buyer_profile = None
        self.method = method

    def reset(self) -> None:
        self.method = PaymentMethod.CASH
        self.buyer_profile = None

    def retains_profile(self) -> bool:
        return self.method == PaymentMethod.INSTALLMENT and self.buyer_profile is not None

    def wants_installment(self) -> bool:
        # Captured buyer data implies installment even if the method was left on cash.
        return self.method == PaymentMethod.INSTALLMENT or self.buyer_profile is not None


@dataclass
class ProductSelection:
    product: ProductRecord | None = None
    quantity_input: str = "1"

    def reset(self) -> None:
        self.product = None
        self.quantity_input = "1"


@dataclass
class SaleSession:
    """Everything one agent's composition session owns.

    Passed explicitly into every engine operation instead of living as ambient screen
    state. Only the session's own operations mutate it.
    """

    credentials: CredentialStore
    cart: Cart = field(default_factory=Cart)
    selection: ProductSelection = field(default_factory=ProductSelection)
    payment: PaymentState = field(default_factory=PaymentState)

    # When set, the cart is a working copy of this draft.
    editing_draft_id: str | None = None

    drafts: list[DraftOrder] = field(default_factory=list)
    sales: SalesPage | None = None

    notices: list[NoticeV1] = field(default_factory=list)
    loading: set[str] = field(default_factory=set)
    signed_out: bool = False

    def require_token(self) -> str:
        try:
            return self.credentials.require_token()
        except AuthError:
            self.sign_out()
            raise

    @contextmanager
    def authorized(self) -> Iterator[str]:
        """Yield a valid bearer token; any AuthError inside tears the credential down."""

        token = self.require_token()
        try:
            yield token
        except AuthError:
            self.sign_out()
            raise

    def sign_out(self) -> None:
        if not self.signed_out:
            logger.info("Credential rejected; signing session out")
        self.credentials.clear()
        self.signed_out = True

    def reset_composition(self) -> None:
        self.cart.clear()
        self.selection.reset()
        self.editing_draft_id = None

    def find_draft(self, draft_id: str) -> DraftOrder | None:
        return next((d for d in self.drafts if d.id == draft_id), None)

    def notify(self, category: NoticeCategoryV1, title: str, message: str) -> None:
        self.notices.append(NoticeV1(category=category, title=title, message=message))
        if len(self.notices) > MAX_NOTICES:
            del self.notices[: len(self.notices) - MAX_NOTICES]

    def drain_notices(self) -> list[NoticeV1]:
        out, self.notices = self.notices, []
        return out
