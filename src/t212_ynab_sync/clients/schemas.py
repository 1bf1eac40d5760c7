"""Pydantic v2 schemas for Trading212 and YNAB API responses."""

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class _Response(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


# Trading212
class ExportRequestResponse(_Response):
    report_id: int = Field(..., alias="reportId")


class ExportReport(_Response):
    report_id: int = Field(..., alias="reportId")
    status: str
    download_link: str | None = Field(default=None, alias="downloadLink")


class AccountInfo(_Response):
    currency_code: str = Field(..., alias="currencyCode")


class InstrumentSchema(_Response):
    ticker: str
    isin: str
    name: str
    short_name: str = Field(..., alias="shortName")


class OpenPositionSchema(_Response):
    ticker: str
    quantity: float
    ppl: float = 0.0


# YNAB
class PayeeSchema(_Response):
    id: str
    name: str
    deleted: bool = False


class _PayeesData(_Response):
    payees: list[PayeeSchema]


class PayeesResponse(_Response):
    data: _PayeesData


class _TransactionsData(_Response):
    transactions: list[dict[str, Any]]


class TransactionsResponse(_Response):
    data: _TransactionsData


class YNABErrorDetail(_Response):
    id: str | None = None
    name: str | None = None
    detail: str | None = None


class YNABErrorResponse(_Response):
    error: YNABErrorDetail
