from __future__ import annotations

import pytest
from services.sales.app.models.buyer import BuyerProfile
from services.sales.app.models.catalog import ProductRecord
from services.sales.app.models.order import PaymentMethod
from services.sales.app.services.backend_mock import MockCatalogBackend
from services.sales.app.services.drafts import DraftLifecycleManager
from services.sales.app.services.errors import EmptyCartError, ValidationError
from services.sales.app.services.finalization import FinalizationEngine
from services.sales.app.services.session import PaymentState, SaleSession

PROFILE = BuyerProfile(
    full_name="Dilnoza Karimova",
    primary_phone="+998901234567",
    passport_series="AA1234567",
)


@pytest.fixture()
def drafts(backend: MockCatalogBackend) -> DraftLifecycleManager:
    return DraftLifecycleManager(backend)


@pytest.fixture()
def engine(backend: MockCatalogBackend, drafts: DraftLifecycleManager) -> FinalizationEngine:
    return FinalizationEngine(backend, drafts)


def _oil(backend: MockCatalogBackend, token: str) -> ProductRecord:
    product = ProductRecord.model_validate(backend.get_product(token, "prod-oil"))
    backend.calls.clear()
    return product


def _confirm_body(backend: MockCatalogBackend, draft_id: str) -> dict:
    return next(
        body for method, path, body in backend.calls if path == f"/drafts/{draft_id}/confirm"
    )


def _saved_draft(
    backend: MockCatalogBackend, drafts: DraftLifecycleManager, session: SaleSession, token: str
) -> str:
    session.cart.add_or_increment(_oil(backend, token), 1)
    saved = drafts.save(session)
    backend.calls.clear()
    return saved.id


def test_direct_sale_with_empty_cart_fails(
    engine: FinalizationEngine, session: SaleSession
) -> None:
    with pytest.raises(EmptyCartError):
        engine.finalize_direct(session, PaymentState())


def test_installment_without_buyer_sends_nothing(
    backend: MockCatalogBackend, engine: FinalizationEngine, session: SaleSession, token: str
) -> None:
    session.cart.add_or_increment(_oil(backend, token), 1)

    with pytest.raises(ValidationError):
        engine.finalize_direct(session, PaymentState(method=PaymentMethod.INSTALLMENT))

    assert backend.calls == []
    assert len(session.cart) == 1


def test_installment_sale_carries_buyer_and_default_terms(
    backend: MockCatalogBackend, engine: FinalizationEngine, session: SaleSession, token: str
) -> None:
    session.cart.add_or_increment(_oil(backend, token), 2)
    payment = PaymentState(method=PaymentMethod.INSTALLMENT, buyer_profile=PROFILE)

    result = engine.finalize_direct(session, payment)

    method, path, body = backend.calls[0]
    assert (method, path) == ("POST", "/orders")
    assert body["paymentMethod"] == "installment"
    assert body["customer"] == PROFILE.to_customer()
    assert body["customer"]["fullName"] == "Dilnoza Karimova"
    assert body["installmentDurationMonths"] == 6
    assert body["startDate"]
    assert body["storeOwner"] == "agent-1"

    assert result.payment_method == PaymentMethod.INSTALLMENT
    assert result.order_id
    assert session.cart.is_empty()
    assert payment.method == PaymentMethod.CASH
    assert payment.buyer_profile is None


def test_cash_sale_posts_total_and_method(
    backend: MockCatalogBackend, engine: FinalizationEngine, session: SaleSession, token: str
) -> None:
    session.cart.add_or_increment(_oil(backend, token), 2)
    session.editing_draft_id = "d-1"

    result = engine.finalize_direct(session, PaymentState(method=PaymentMethod.CARD))

    method, path, body = backend.calls[0]
    assert (method, path) == ("POST", "/orders/direct")
    assert body["totalSum"] == 47000
    assert body["paymentMethod"] == "card"
    assert result.total == 47000
    assert session.editing_draft_id is None


def test_confirm_prefers_the_carts_shop(
    backend: MockCatalogBackend,
    drafts: DraftLifecycleManager,
    engine: FinalizationEngine,
    session: SaleSession,
    token: str,
) -> None:
    draft_id = _saved_draft(backend, drafts, session, token)
    session.cart.add_or_increment(
        ProductRecord.model_validate(
            {"_id": "x", "name": "X", "price": 1, "inventory": 5, "shop": {"id": "shop-9"}}
        ),
        1,
    )

    result = engine.confirm_draft(session, draft_id, PaymentState())

    assert result.store_owner == "shop-9"
    assert _confirm_body(backend, draft_id)["storeOwner"] == "shop-9"


def test_confirm_falls_back_to_the_drafts_shop(
    backend: MockCatalogBackend,
    drafts: DraftLifecycleManager,
    engine: FinalizationEngine,
    session: SaleSession,
    token: str,
) -> None:
    draft_id = _saved_draft(backend, drafts, session, token)

    result = engine.confirm_draft(session, draft_id, PaymentState())

    body = _confirm_body(backend, draft_id)
    assert body["storeOwner"] == "shop-1"
    assert body["status"] == "completed"
    assert body["paymentMethod"] == "cash"
    assert "customer" not in body
    assert result.message == "Sale confirmed"


def test_confirm_falls_back_to_the_actor(
    backend: MockCatalogBackend,
    drafts: DraftLifecycleManager,
    engine: FinalizationEngine,
    session: SaleSession,
    token: str,
) -> None:
    raw = backend.create_draft(
        token,
        {
            "storeOwner": "agent-1",
            "products": [{"productId": "unlisted", "name": "U", "quantity": 1, "price": 5}],
            "totalSum": 5,
        },
    )
    drafts.list(session)

    result = engine.confirm_draft(session, raw["_id"], PaymentState())

    assert result.store_owner == "agent-1"


def test_buyer_profile_upgrades_a_cash_confirmation_to_installment(
    backend: MockCatalogBackend,
    drafts: DraftLifecycleManager,
    engine: FinalizationEngine,
    session: SaleSession,
    token: str,
) -> None:
    draft_id = _saved_draft(backend, drafts, session, token)
    payment = PaymentState(method=PaymentMethod.CASH, buyer_profile=PROFILE)

    result = engine.confirm_draft(session, draft_id, payment)

    body = _confirm_body(backend, draft_id)
    assert body["paymentMethod"] == "installment"
    assert body["customer"] == PROFILE.to_customer()
    assert body["installmentDurationMonths"] == 6
    assert body["startDate"]
    assert result.payment_method == PaymentMethod.INSTALLMENT

    assert payment.buyer_profile is None
    assert [d.status for d in session.drafts] == ["completed"]


def test_installment_confirmation_needs_a_buyer(
    backend: MockCatalogBackend,
    drafts: DraftLifecycleManager,
    engine: FinalizationEngine,
    session: SaleSession,
    token: str,
) -> None:
    draft_id = _saved_draft(backend, drafts, session, token)

    with pytest.raises(ValidationError):
        engine.confirm_draft(session, draft_id, PaymentState(method=PaymentMethod.INSTALLMENT))

    assert backend.calls == []


def test_confirming_the_draft_being_edited_clears_the_cart(
    backend: MockCatalogBackend,
    drafts: DraftLifecycleManager,
    engine: FinalizationEngine,
    session: SaleSession,
    token: str,
) -> None:
    draft_id = _saved_draft(backend, drafts, session, token)
    drafts.load_for_edit(session, session.find_draft(draft_id))
    assert session.editing_draft_id == draft_id

    engine.confirm_draft(session, draft_id, PaymentState())

    assert session.editing_draft_id is None
    assert session.cart.is_empty()


def test_confirming_another_draft_keeps_the_edit_in_progress(
    backend: MockCatalogBackend,
    drafts: DraftLifecycleManager,
    engine: FinalizationEngine,
    session: SaleSession,
    token: str,
) -> None:
    first_id = _saved_draft(backend, drafts, session, token)
    second_id = _saved_draft(backend, drafts, session, token)
    drafts.load_for_edit(session, session.find_draft(first_id))

    engine.confirm_draft(session, second_id, PaymentState())

    assert session.editing_draft_id == first_id
    assert len(session.cart) == 1
