"""Dependency injection container for the sync.

Wires settings into the HTTP clients and the orchestrator. Every component
is built on first access and cached, so tests can construct a Container with
custom Settings, or replace a cached component, before touching the rest.

Usage:
    from t212_ynab_sync.container import Container

    container = Container()
    try:
        result = await container.orchestrator.run()
    finally:
        await container.aclose()
"""

from datetime import timedelta
from functools import cached_property
from typing import TYPE_CHECKING

from t212_ynab_sync.config import Settings, get_settings
from t212_ynab_sync.exceptions import ValidationError
from t212_ynab_sync.logging_config import get_logger
from t212_ynab_sync.services.classifier import CategoryIds
from t212_ynab_sync.services.sync import SyncConfig

if TYPE_CHECKING:
    from t212_ynab_sync.clients.trading212 import Trading212Client
    from t212_ynab_sync.clients.ynab import YNABClient
    from t212_ynab_sync.services.sync import SyncOrchestrator

logger = get_logger(__name__)


class Container:
    """Lazily built clients and orchestrator for one process."""

    def __init__(self, settings: Settings | None = None) -> None:
        self._settings = settings or get_settings()
        logger.debug(
            "container_created",
            environment=self._settings.environment.value,
            trading212_base_url=self._settings.trading212_base_url,
        )

    @property
    def settings(self) -> Settings:
        return self._settings

    def require_credentials(self) -> None:
        """Raise if a setting needed to talk to either API is missing.

        Raises:
            ValidationError: Naming the first missing setting.
        """
        missing = self._settings.missing_credentials
        if missing:
            raise ValidationError(
                f"Missing required settings: {', '.join(missing)}",
                field=missing[0],
                context={"missing": missing},
            )

    @cached_property
    def trading212_client(self) -> "Trading212Client":
        from t212_ynab_sync.clients.trading212 import Trading212Client

        return Trading212Client(
            token=self._settings.trading212_token.get_secret_value(),
            base_url=self._settings.trading212_base_url,
            timeout=self._settings.http_timeout,
        )

    @cached_property
    def ynab_client(self) -> "YNABClient":
        from t212_ynab_sync.clients.ynab import YNABClient

        return YNABClient(
            token=self._settings.ynab_token.get_secret_value(),
            base_url=self._settings.ynab_base_url,
            timeout=self._settings.http_timeout,
        )

    @cached_property
    def sync_config(self) -> SyncConfig:
        s = self._settings
        return SyncConfig(
            budget_id=s.ynab_budget_id,
            account_id=s.ynab_account_id,
            categories=CategoryIds(
                stock=s.stock_category_id,
                dividend=s.dividend_category_id,
                conversion_fee=s.conversion_fee_category_id,
            ),
            lookback=timedelta(days=s.export_lookback_days),
            poll_interval=s.export_poll_interval,
            max_poll_attempts=s.export_max_poll_attempts,
        )

    @cached_property
    def orchestrator(self) -> "SyncOrchestrator":
        from t212_ynab_sync.services.sync import SyncOrchestrator

        return SyncOrchestrator(
            self.trading212_client, self.ynab_client, self.sync_config
        )

    async def aclose(self) -> None:
        """Close any HTTP clients that were created."""
        # cached_property stores built values in the instance dict
        for name in ("trading212_client", "ynab_client"):
            client = self.__dict__.get(name)
            if client is not None:
                await client.aclose()

    async def __aenter__(self) -> "Container":
        return self

    async def __aexit__(self, *args: object) -> None:
        await self.aclose()
