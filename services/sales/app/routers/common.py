from __future__ import annotations

from collections.abc import Generator

from fastapi import HTTPException
from services.sales.app.models.api import (
    CartLineOut,
    PaymentOut,
    PendingConfirmationOut,
    SelectionOut,
    SessionStateOut,
)
from services.sales.app.services.confirmation import PendingConfirmation
from services.sales.app.services.errors import (
    AuthError,
    BackendError,
    ConfirmationBusyError,
    ForbiddenError,
    IdentityError,
    InsufficientStockError,
    NetworkError,
    NotFoundError,
    OperationInProgressError,
    ValidationError,
)
from services.sales.app.services.session import PaymentState
from services.sales.app.services.store import SessionRecord, store


def _raise_sale_http_error(e: Exception) -> None:
    if isinstance(e, ValidationError):
        raise HTTPException(status_code=422, detail=str(e)) from e

    if isinstance(e, InsufficientStockError):
        raise HTTPException(status_code=409, detail=str(e)) from e

    if isinstance(e, (IdentityError, AuthError)):
        raise HTTPException(status_code=401, detail=str(e)) from e

    if isinstance(e, ForbiddenError):
        raise HTTPException(status_code=403, detail=str(e)) from e

    if isinstance(e, NotFoundError):
        raise HTTPException(status_code=404, detail=str(e)) from e

    if isinstance(e, NetworkError):
        raise HTTPException(status_code=503, detail=str(e)) from e

    if isinstance(e, BackendError):
        raise HTTPException(status_code=502, detail=str(e)) from e

    if isinstance(e, (ConfirmationBusyError, OperationInProgressError)):
        raise HTTPException(status_code=409, detail=str(e)) from e

    raise HTTPException(status_code=500, detail="Internal Server Error") from e


def checked_out_session(session_id: str) -> Generator[SessionRecord, None, None]:
    """Path dependency: hold the session for the duration of one request."""

    try:
        with store.checkout(session_id) as record:
            if record is None:
                raise HTTPException(status_code=404, detail="Session not found")
            yield record
    except OperationInProgressError as e:
        raise HTTPException(status_code=409, detail=str(e)) from e


def payment_out(payment: PaymentState) -> PaymentOut:
    profile = payment.buyer_profile
    return PaymentOut(
        method=payment.method.value,
        buyer=profile.model_dump(exclude={"photo"}, exclude_none=True) if profile else None,
        has_photo=bool(profile and profile.photo),
    )


def pending_out(pending: PendingConfirmation, state: str) -> PendingConfirmationOut:
    return PendingConfirmationOut(
        state=state,
        title=pending.title,
        message=pending.message,
        require_payment_method_choice=pending.require_payment_method_choice,
        amount=pending.amount,
    )


def session_state(record: SessionRecord, *, drain_notices: bool = False) -> SessionStateOut:
    desk = record.desk
    session = desk.session
    selection = session.selection
    pending = desk.pending

    return SessionStateOut(
        session_id=record.session_id,
        actor_id=record.actor_id,
        signed_out=session.signed_out,
        cart=[
            CartLineOut(
                index=i,
                product_id=line.product.id,
                name=line.product.name,
                quantity=line.quantity,
                unit=line.product.unit,
                unit_price=line.unit_price,
                line_total=line.line_total,
                available_stock=line.product.available_stock,
            )
            for i, line in enumerate(session.cart.lines)
        ],
        total=session.cart.total(),
        editing_draft_id=session.editing_draft_id,
        selection=SelectionOut(
            product_id=selection.product.id if selection.product else None,
            product_name=selection.product.name if selection.product else None,
            quantity_input=selection.quantity_input,
        ),
        drafts=list(session.drafts),
        payment=payment_out(session.payment),
        pending=pending_out(pending, desk.confirmation.state.value) if pending else None,
        loading=sorted(session.loading),
        notices=session.drain_notices() if drain_notices else list(session.notices),
    )
