"""HTTP client for the Trading212 public API."""

from __future__ import annotations

from datetime import datetime
from typing import Any

import httpx

from t212_ynab_sync.clients.schemas import (
    AccountInfo,
    ExportReport,
    ExportRequestResponse,
    InstrumentSchema,
    OpenPositionSchema,
)
from t212_ynab_sync.config import TRADING212_LIVE_URL
from t212_ynab_sync.domain.amounts import parse_money, parse_quantity
from t212_ynab_sync.domain.ledger import Instrument, OpenPosition
from t212_ynab_sync.domain.value_objects import ExportState
from t212_ynab_sync.exceptions import APIError, ExportNotFoundError
from t212_ynab_sync.logging_config import get_logger
from t212_ynab_sync.services.interfaces import (
    ExportInclusions,
    ExportSource,
    ExportStatus,
)

logger = get_logger(__name__)

SERVICE = "Trading212"


def _iso(d: datetime) -> str:
    return d.isoformat().replace("+00:00", "Z")


class Trading212Client(ExportSource):
    def __init__(
        self,
        token: str,
        base_url: str = TRADING212_LIVE_URL,
        client: httpx.AsyncClient | None = None,
        timeout: float = 30.0,
        download_client: httpx.AsyncClient | None = None,
    ) -> None:
        self._client = (
            client
            if client is not None
            else httpx.AsyncClient(
                base_url=base_url,
                timeout=timeout,
                headers={"Authorization": token},
            )
        )
        self._owns_client = client is None
        self._download_client = download_client

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
            payload = r.json()
            detail = str(payload.get("message") or payload.get("code") or payload)
        except (ValueError, AttributeError):
            detail = r.text
        raise APIError(SERVICE, r.status_code, detail)

    async def request_export(
        self,
        time_from: datetime,
        time_to: datetime,
        include: ExportInclusions,
    ) -> int:
        payload = {
            "dataIncluded": {
                "includeDividends": include.dividends,
                "includeInterest": include.interest,
                "includeOrders": include.orders,
                "includeTransactions": include.transactions,
            },
            "timeFrom": _iso(time_from),
            "timeTo": _iso(time_to),
        }
        data = await self._request_json("POST", "/api/v0/history/exports", json=payload)
        return ExportRequestResponse.model_validate(data).report_id

    async def get_export_status(self, report_id: int) -> ExportStatus:
        data = await self._request_json("GET", "/api/v0/history/exports")
        for item in data:
            report = ExportReport.model_validate(item)
            if report.report_id == report_id:
                try:
                    status: ExportState | str = ExportState(report.status)
                except ValueError:
                    status = report.status
                return ExportStatus(
                    report_id=report_id,
                    status=status,
                    download_link=report.download_link,
                )
        raise ExportNotFoundError(report_id)

    async def download(self, download_link: str) -> str:
        # The link is a pre-signed URL on another host; no auth header
        if self._download_client is not None:
            r = await self._download_client.get(download_link)
        else:
            async with httpx.AsyncClient(timeout=self._client.timeout) as plain:
                r = await plain.get(download_link)
        if r.status_code >= 400:
            raise APIError(SERVICE, r.status_code, "export download failed")
        return r.text

    async def get_account_currency(self) -> str:
        data = await self._request_json("GET", "/api/v0/equity/account/info")
        return AccountInfo.model_validate(data).currency_code

    async def get_instruments(self) -> list[Instrument]:
        data = await self._request_json("GET", "/api/v0/equity/metadata/instruments")
        instruments = []
        for item in data:
            schema = InstrumentSchema.model_validate(item)
            instruments.append(
                Instrument(
                    ticker=schema.ticker,
                    isin=schema.isin,
                    name=schema.name,
                    short_name=schema.short_name,
                )
            )
        logger.debug("instruments_fetched", count=len(instruments))
        return instruments

    async def get_open_positions(self) -> list[OpenPosition]:
        data = await self._request_json("GET", "/api/v0/equity/portfolio")
        positions = []
        for item in data:
            schema = OpenPositionSchema.model_validate(item)
            positions.append(
                OpenPosition(
                    ticker=schema.ticker,
                    quantity=parse_quantity(schema.quantity),
                    unrealized_pnl=parse_money(schema.ppl),
                )
            )
        return positions
