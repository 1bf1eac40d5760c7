"""HTTP client for the YNAB API."""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx
from pydantic import ValidationError as SchemaError

from t212_ynab_sync.clients.schemas import (
    PayeesResponse,
    TransactionsResponse,
    YNABErrorResponse,
)
from t212_ynab_sync.config import YNAB_API_URL
from t212_ynab_sync.domain.ledger import LedgerEntry, Payee
from t212_ynab_sync.exceptions import APIError
from t212_ynab_sync.logging_config import get_logger
from t212_ynab_sync.services.interfaces import LedgerClient

logger = get_logger(__name__)

SERVICE = "YNAB"


class YNABClient(LedgerClient):
    def __init__(
        self,
        token: str,
        base_url: str = YNAB_API_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
    ) -> None:
        self._client = (
            client
            if client is not None
            else httpx.AsyncClient(
                base_url=base_url,
                timeout=timeout,
                headers={"Authorization": f"Bearer {token}"},
            )
        )
        self._owns_client = client is None

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    async def _request_json(
        self,
        method: str,
        path: str,
        *,
        json: dict[str, Any] | None = None,
    ) -> Any:
        r = await self._client.request(method, path, json=json)
        if 200 <= r.status_code < 300:
            return r.json()

        try:
            error = YNABErrorResponse.model_validate(r.json()).error
            detail = error.detail or error.name or r.text
        except (ValueError, SchemaError):
            detail = r.text
        raise APIError(SERVICE, r.status_code, detail)

    async def get_payees(self, budget_id: str) -> list[Payee]:
        data = await self._request_json("GET", f"/budgets/{budget_id}/payees")
        payees = PayeesResponse.model_validate(data).data.payees
        return [Payee(id=p.id, name=p.name) for p in payees if not p.deleted]

    async def get_transactions(
        self, budget_id: str, account_id: str
    ) -> list[LedgerEntry]:
        data = await self._request_json(
            "GET", f"/budgets/{budget_id}/accounts/{account_id}/transactions"
        )
        transactions = TransactionsResponse.model_validate(data).data.transactions
        return [
            LedgerEntry.from_payload(t) for t in transactions if not t.get("deleted")
        ]

    async def create_transactions(
        self, budget_id: str, entries: Sequence[LedgerEntry]
    ) -> None:
        payload = {"transactions": [e.to_create_payload() for e in entries]}
        data = await self._request_json(
            "POST", f"/budgets/{budget_id}/transactions", json=payload
        )
        duplicates = (data or {}).get("data", {}).get("duplicate_import_ids") or []
        if duplicates:
            logger.warning("duplicate_import_ids", count=len(duplicates))
        logger.info("ledger_transactions_created", count=len(entries))

    async def update_transactions(
        self, budget_id: str, entries: Sequence[LedgerEntry]
    ) -> None:
        payload = {"transactions": [e.to_update_payload() for e in entries]}
        await self._request_json(
            "PATCH", f"/budgets/{budget_id}/transactions", json=payload
        )
        logger.info("ledger_transactions_updated", count=len(entries))
