from __future__ import annotations

from typing import Any, Protocol

# Every method returns the decoded ``data`` member of the backend's
# ``{"success": bool, "data": ...}`` envelope, untouched. Parsing (and decimal
# normalization) happens in the engine so that both backends are read the same way.
#
# Failures are raised as the BackendError family from services.errors:
#   AuthError (401), ForbiddenError (403), NotFoundError (404), ServerError (other
#   non-2xx or success=false) and NetworkError (transport failure).


class CatalogBackend(Protocol):
    name: str

    def list_drafts(self, token: str) -> Any: ...

    def create_draft(self, token: str, body: dict[str, Any]) -> Any: ...

    def update_draft(self, token: str, draft_id: str, body: dict[str, Any]) -> Any: ...

    def delete_draft(self, token: str, draft_id: str) -> Any: ...

    def confirm_draft(self, token: str, draft_id: str, body: dict[str, Any]) -> Any: ...

    def get_product(self, token: str, product_id: str) -> Any: ...

    def create_direct_sale(self, token: str, body: dict[str, Any]) -> Any: ...

    def create_installment_order(self, token: str, body: dict[str, Any]) -> Any: ...

    def list_sales(
        self,
        token: str,
        *,
        page: int,
        limit: int,
        start_date: str | None = None,
        end_date: str | None = None,
    ) -> dict[str, Any]:
        """Return the whole envelope; the history view needs ``pagination`` as well."""
        ...

    def cancel_sale(self, token: str, order_id: str, reason: str) -> Any: ...
