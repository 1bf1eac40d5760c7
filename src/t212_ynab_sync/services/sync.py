"""Sync orchestrator: one Trading212 to YNAB reconciliation run.

The run fetches and parses the export, gathers the remaining read-only data
concurrently, refuses to continue if the ledger holds entries from another
import id version, and only then classifies, reconciles positions and sends
the batched creates and updates. Nothing is written before every entry has
been computed in memory.
"""

import asyncio
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from datetime import UTC, date, datetime, timedelta
from pathlib import Path

from t212_ynab_sync.domain.import_ids import VERSIONED_IMPORT_PREFIX, is_other_version
from t212_ynab_sync.domain.ledger import LedgerEntry
from t212_ynab_sync.domain.transactions import NormalizedTransaction
from t212_ynab_sync.exceptions import (
    ExportError,
    ExportTimeoutError,
    VersionConflictError,
)
from t212_ynab_sync.logging_config import get_logger
from t212_ynab_sync.parsers.export_parser import Trading212ExportParser
from t212_ynab_sync.services.classifier import (
    CategoryIds,
    ClassificationContext,
    SkippedTransaction,
    TransactionMapper,
)
from t212_ynab_sync.services.interfaces import (
    ExportInclusions,
    ExportSource,
    ExportStatus,
    LedgerClient,
)
from t212_ynab_sync.services.positions import PositionReconciler

logger = get_logger(__name__)


def _utc_now() -> datetime:
    return datetime.now(UTC)


@dataclass(frozen=True)
class SyncConfig:
    """Per-run settings passed explicitly into the orchestrator."""

    budget_id: str
    account_id: str
    categories: CategoryIds = field(default_factory=CategoryIds)
    lookback: timedelta = timedelta(days=365)
    poll_interval: float = 30.0
    max_poll_attempts: int = 20
    inclusions: ExportInclusions = field(default_factory=ExportInclusions)


@dataclass
class SyncResult:
    parsed_count: int = 0
    created: list[LedgerEntry] = field(default_factory=list)
    updated: list[LedgerEntry] = field(default_factory=list)
    skipped: list[SkippedTransaction] = field(default_factory=list)
    dry_run: bool = False

    @property
    def created_count(self) -> int:
        return len(self.created)

    @property
    def updated_count(self) -> int:
        return len(self.updated)


def check_import_versions(entries: list[LedgerEntry]) -> None:
    """Raise if any entry was imported under another import id version.

    Raises:
        VersionConflictError: For the first such entry found.
    """
    for entry in entries:
        if is_other_version(entry.import_id):
            assert entry.import_id is not None
            raise VersionConflictError(entry.import_id, VERSIONED_IMPORT_PREFIX)


class SyncOrchestrator:
    """Runs the sync against an export source and a ledger client."""

    def __init__(
        self,
        export_source: ExportSource,
        ledger: LedgerClient,
        config: SyncConfig,
        *,
        parser: Trading212ExportParser | None = None,
        clock: Callable[[], datetime] = _utc_now,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._export_source = export_source
        self._ledger = ledger
        self._config = config
        self._parser = parser or Trading212ExportParser()
        self._clock = clock
        self._sleep = sleep

    async def fetch_transactions(
        self, export_file: str | Path | None = None
    ) -> list[NormalizedTransaction]:
        """Parse a local export file, or request, await and download a new export."""
        if export_file is not None:
            logger.info("export_file_used", path=str(export_file))
            return self._parser.parse_file(export_file)

        now = self._clock()
        report_id = await self._export_source.request_export(
            now - self._config.lookback, now, self._config.inclusions
        )
        logger.info("export_requested", report_id=report_id)

        status = await self.wait_for_export(report_id)
        assert status.download_link is not None
        csv_text = await self._export_source.download(status.download_link)
        return self._parser.parse_csv(csv_text)

    async def wait_for_export(self, report_id: int) -> ExportStatus:
        """Poll the export until it is finished.

        Raises:
            ExportError: If Trading212 reports the export as failed or canceled.
            ExportTimeoutError: If the export is not ready after the last attempt.
        """
        status: ExportStatus | None = None
        for attempt in range(1, self._config.max_poll_attempts + 1):
            status = await self._export_source.get_export_status(report_id)
            if status.is_ready:
                logger.info("export_ready", report_id=report_id, attempts=attempt)
                return status
            if status.is_failed:
                raise ExportError(
                    f"Export {report_id} ended with status {status.status}",
                    context={"report_id": report_id},
                )
            logger.debug(
                "export_pending",
                report_id=report_id,
                attempt=attempt,
                status=str(status.status),
            )
            if attempt < self._config.max_poll_attempts:
                await self._sleep(self._config.poll_interval)

        raise ExportTimeoutError(
            report_id,
            self._config.max_poll_attempts,
            str(status.status) if status is not None else None,
        )

    async def run(
        self, export_file: str | Path | None = None, *, dry_run: bool = False
    ) -> SyncResult:
        """Run one sync.

        Raises:
            ValidationError: If the export contains a malformed row.
            VersionConflictError: If the ledger holds entries from another version.
            InternalConsistencyError: If ledger stock entries cannot be replayed.
        """
        config = self._config
        today: date = self._clock().astimezone(UTC).date()

        transactions = await self.fetch_transactions(export_file)

        (
            account_currency,
            instruments,
            open_positions,
            payees,
            existing,
        ) = await asyncio.gather(
            self._export_source.get_account_currency(),
            self._export_source.get_instruments(),
            self._export_source.get_open_positions(),
            self._ledger.get_payees(config.budget_id),
            self._ledger.get_transactions(config.budget_id, config.account_id),
        )

        check_import_versions(existing)

        context = ClassificationContext.from_ledger(
            account_id=config.account_id,
            account_currency=account_currency,
            payees=payees,
            existing_entries=existing,
            categories=config.categories,
        )
        classification = TransactionMapper(context).classify_all(transactions)

        reconciler = PositionReconciler(
            account_id=config.account_id,
            stock_category_id=config.categories.stock,
            payees=payees,
        )
        adjustments = reconciler.reconcile(
            [*existing, *classification.entries],
            instruments,
            open_positions,
            today,
        )

        to_add = classification.entries + adjustments.to_add
        to_update = adjustments.to_update

        if not dry_run:
            if to_add:
                await self._ledger.create_transactions(config.budget_id, to_add)
            if to_update:
                await self._ledger.update_transactions(config.budget_id, to_update)

        result = SyncResult(
            parsed_count=len(transactions),
            created=to_add,
            updated=to_update,
            skipped=classification.skipped,
            dry_run=dry_run,
        )
        logger.info(
            "sync_completed",
            parsed_count=result.parsed_count,
            created_count=result.created_count,
            updated_count=result.updated_count,
            skipped_count=len(result.skipped),
            dry_run=dry_run,
        )
        return result
