"""Tests for the Trading212 and YNAB HTTP clients using httpx.MockTransport."""

import json
from datetime import UTC, date, datetime

import httpx
import pytest

from t212_ynab_sync.clients.trading212 import Trading212Client
from t212_ynab_sync.clients.ynab import YNABClient
from t212_ynab_sync.domain.ledger import LedgerEntry, SubEntry
from t212_ynab_sync.domain.value_objects import ClearedStatus, ExportState
from t212_ynab_sync.exceptions import APIError, ExportNotFoundError
from t212_ynab_sync.services.interfaces import ExportInclusions

T212_URL = "https://live.trading212.com"
YNAB_URL = "https://api.ynab.com/v1"


class Recorder:
    """MockTransport handler that records requests and replays canned responses."""

    def __init__(self, routes: dict[tuple[str, str], httpx.Response]) -> None:
        self.routes = routes
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        key = (request.method, request.url.path)
        if key not in self.routes:
            return httpx.Response(404, json={"message": "no route"})
        return self.routes[key]

    def json_body(self, index: int = -1):
        return json.loads(self.requests[index].content)


def make_t212(recorder: Recorder, **kwargs) -> Trading212Client:
    client = httpx.AsyncClient(
        base_url=T212_URL,
        transport=httpx.MockTransport(recorder),
        headers={"Authorization": "t212-token"},
    )
    return Trading212Client(token="t212-token", client=client, **kwargs)


def make_ynab(recorder: Recorder) -> YNABClient:
    client = httpx.AsyncClient(
        base_url=YNAB_URL,
        transport=httpx.MockTransport(recorder),
    )
    return YNABClient(token="ynab-token", client=client)


class TestTrading212Client:
    async def test_request_export(self):
        recorder = Recorder(
            {
                ("POST", "/api/v0/history/exports"): httpx.Response(
                    200, json={"reportId": 42}
                )
            }
        )
        client = make_t212(recorder)

        report_id = await client.request_export(
            datetime(2023, 2, 1, tzinfo=UTC),
            datetime(2024, 2, 1, tzinfo=UTC),
            ExportInclusions(interest=False),
        )

        assert report_id == 42
        body = recorder.json_body()
        assert body["timeFrom"] == "2023-02-01T00:00:00Z"
        assert body["timeTo"] == "2024-02-01T00:00:00Z"
        assert body["dataIncluded"]["includeInterest"] is False
        assert body["dataIncluded"]["includeOrders"] is True
        assert recorder.requests[0].headers["Authorization"] == "t212-token"

    async def test_export_status_looks_up_report(self):
        reports = [
            {"reportId": 41, "status": "Finished", "downloadLink": "https://x/41"},
            {"reportId": 42, "status": "Running"},
        ]
        recorder = Recorder(
            {("GET", "/api/v0/history/exports"): httpx.Response(200, json=reports)}
        )
        client = make_t212(recorder)

        status = await client.get_export_status(42)

        assert status.status == ExportState.RUNNING
        assert status.download_link is None
        assert not status.is_ready

    async def test_export_status_missing_report(self):
        recorder = Recorder(
            {("GET", "/api/v0/history/exports"): httpx.Response(200, json=[])}
        )

        with pytest.raises(ExportNotFoundError):
            await make_t212(recorder).get_export_status(7)

    async def test_download_uses_separate_client(self):
        storage = Recorder(
            {("GET", "/exports/1.csv"): httpx.Response(200, text="Action,Time\n")}
        )
        download_client = httpx.AsyncClient(transport=httpx.MockTransport(storage))
        client = make_t212(Recorder({}), download_client=download_client)

        text = await client.download("https://storage.example/exports/1.csv")

        assert text == "Action,Time\n"
        assert "Authorization" not in storage.requests[0].headers

    async def test_account_currency(self):
        recorder = Recorder(
            {
                ("GET", "/api/v0/equity/account/info"): httpx.Response(
                    200, json={"currencyCode": "GBP", "id": 1}
                )
            }
        )

        assert await make_t212(recorder).get_account_currency() == "GBP"

    async def test_instruments(self):
        payload = [
            {
                "ticker": "AAPL_US_EQ",
                "isin": "US0378331005",
                "name": "Apple",
                "shortName": "AAPL",
                "type": "STOCK",
                "currencyCode": "USD",
            }
        ]
        recorder = Recorder(
            {
                ("GET", "/api/v0/equity/metadata/instruments"): httpx.Response(
                    200, json=payload
                )
            }
        )

        [instrument] = await make_t212(recorder).get_instruments()

        assert instrument.ticker == "AAPL_US_EQ"
        assert instrument.short_name == "AAPL"

    async def test_open_positions_are_fixed_point(self):
        payload = [{"ticker": "AAPL_US_EQ", "quantity": 2.5, "ppl": -12.345}]
        recorder = Recorder(
            {("GET", "/api/v0/equity/portfolio"): httpx.Response(200, json=payload)}
        )

        [position] = await make_t212(recorder).get_open_positions()

        assert position.quantity == 25000000000
        assert position.unrealized_pnl == -12340

    async def test_error_status_raises(self):
        recorder = Recorder(
            {
                ("GET", "/api/v0/equity/account/info"): httpx.Response(
                    401, json={"message": "Bad API key"}
                )
            }
        )

        with pytest.raises(APIError) as exc_info:
            await make_t212(recorder).get_account_currency()

        assert exc_info.value.status_code == 401
        assert exc_info.value.service == "Trading212"
        assert exc_info.value.detail == "Bad API key"


class TestYNABClient:
    async def test_get_payees_skips_deleted(self):
        payload = {
            "data": {
                "payees": [
                    {"id": "p1", "name": "Stock: Apple", "deleted": False},
                    {"id": "p2", "name": "Old", "deleted": True},
                ],
                "server_knowledge": 10,
            }
        }
        recorder = Recorder(
            {("GET", "/v1/budgets/b1/payees"): httpx.Response(200, json=payload)}
        )

        payees = await make_ynab(recorder).get_payees("b1")

        assert [p.id for p in payees] == ["p1"]

    async def test_get_transactions(self):
        payload = {
            "data": {
                "transactions": [
                    {
                        "id": "t1",
                        "account_id": "a1",
                        "date": "2024-01-15",
                        "amount": -1500180,
                        "cleared": "reconciled",
                        "payee_name": "Stock: Apple",
                        "memo": "10x AAPL [US0378331005]",
                        "import_id": "T212-v14:abc",
                        "flag_color": None,
                        "deleted": False,
                        "subtransactions": [
                            {"amount": -1500000, "memo": "10x AAPL", "deleted": False},
                            {"amount": -180, "memo": "fee", "deleted": False},
                            {"amount": -1, "memo": "gone", "deleted": True},
                        ],
                    },
                    {
                        "id": "t2",
                        "account_id": "a1",
                        "date": "2024-01-16",
                        "amount": 1,
                        "deleted": True,
                    },
                ]
            }
        }
        recorder = Recorder(
            {
                ("GET", "/v1/budgets/b1/accounts/a1/transactions"): httpx.Response(
                    200, json=payload
                )
            }
        )

        [entry] = await make_ynab(recorder).get_transactions("b1", "a1")

        assert entry.id == "t1"
        assert entry.date == date(2024, 1, 15)
        assert entry.cleared == ClearedStatus.RECONCILED
        assert sum(s.amount for s in entry.subtransactions) == entry.amount
        assert entry.flag_color is None

    async def test_create_transactions_payload(self):
        recorder = Recorder(
            {
                ("POST", "/v1/budgets/b1/transactions"): httpx.Response(
                    201, json={"data": {"transaction_ids": ["n1"]}}
                )
            }
        )
        entry = LedgerEntry(
            account_id="a1",
            date=date(2024, 1, 16),
            amount=-120500,
            payee_name="Stock: Apple",
            memo="10x AAPL [US0378331005]",
            import_id="T212-v14:abc",
            approved=True,
            subtransactions=[
                SubEntry(amount=-120320, payee_name="Stock: Apple"),
                SubEntry(amount=-180, payee_name="Trading 212"),
            ],
        )

        await make_ynab(recorder).create_transactions("b1", [entry])

        [sent] = recorder.json_body()["transactions"]
        assert sent["import_id"] == "T212-v14:abc"
        assert sent["date"] == "2024-01-16"
        assert sent["cleared"] == "cleared"
        assert sent["approved"] is True
        assert "category_id" not in sent
        assert "id" not in sent
        assert [s["amount"] for s in sent["subtransactions"]] == [-120320, -180]

    async def test_update_transactions_payload(self):
        recorder = Recorder(
            {
                ("PATCH", "/v1/budgets/b1/transactions"): httpx.Response(
                    209, json={"data": {}}
                )
            }
        )
        entry = LedgerEntry(
            account_id="a1",
            date=date(2024, 2, 1),
            amount=1550000,
            cleared=ClearedStatus.UNCLEARED,
            id="t9",
        )

        await make_ynab(recorder).update_transactions("b1", [entry])

        [sent] = recorder.json_body()["transactions"]
        assert sent["id"] == "t9"
        assert sent["cleared"] == "uncleared"
        assert "import_id" not in sent

    async def test_error_uses_ynab_detail(self):
        recorder = Recorder(
            {
                ("GET", "/v1/budgets/b1/payees"): httpx.Response(
                    401,
                    json={
                        "error": {
                            "id": "401",
                            "name": "unauthorized",
                            "detail": "Unauthorized",
                        }
                    },
                )
            }
        )

        with pytest.raises(APIError) as exc_info:
            await make_ynab(recorder).get_payees("b1")

        assert exc_info.value.service == "YNAB"
        assert exc_info.value.detail == "Unauthorized"

    async def test_non_json_error(self):
        recorder = Recorder(
            {("GET", "/v1/budgets/b1/payees"): httpx.Response(502, text="Bad Gateway")}
        )

        with pytest.raises(APIError) as exc_info:
            await make_ynab(recorder).get_payees("b1")

        assert exc_info.value.status_code == 502
        assert exc_info.value.detail == "Bad Gateway"
