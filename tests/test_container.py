"""Tests for the dependency injection container."""

from datetime import timedelta

import pytest

from t212_ynab_sync.clients.trading212 import Trading212Client
from t212_ynab_sync.clients.ynab import YNABClient
from t212_ynab_sync.config import TRADING212_DEMO_URL, Settings
from t212_ynab_sync.container import Container
from t212_ynab_sync.exceptions import ValidationError
from t212_ynab_sync.services.sync import SyncOrchestrator


@pytest.fixture
def settings() -> Settings:
    return Settings(
        _env_file=None,
        ynab_budget_id="budget-1",
        ynab_account_id="account-1",
        ynab_token="ynab",
        trading212_token="t212",
        trading212_base_url=TRADING212_DEMO_URL,
        stock_category_id="cat-stock",
        export_lookback_days=30,
        export_poll_interval=2.5,
        export_max_poll_attempts=4,
    )


class TestContainer:
    def test_sync_config_from_settings(self, settings):
        config = Container(settings).sync_config

        assert config.budget_id == "budget-1"
        assert config.account_id == "account-1"
        assert config.categories.stock == "cat-stock"
        assert config.categories.dividend is None
        assert config.lookback == timedelta(days=30)
        assert config.poll_interval == 2.5
        assert config.max_poll_attempts == 4

    async def test_builds_and_caches_components(self, settings):
        async with Container(settings) as container:
            assert isinstance(container.trading212_client, Trading212Client)
            assert isinstance(container.ynab_client, YNABClient)
            assert isinstance(container.orchestrator, SyncOrchestrator)
            assert container.orchestrator is container.orchestrator

    async def test_aclose_without_clients(self, settings):
        await Container(settings).aclose()

    def test_require_credentials(self):
        container = Container(Settings(_env_file=None, ynab_budget_id="b"))

        with pytest.raises(ValidationError) as exc_info:
            container.require_credentials()

        assert exc_info.value.field == "ynab_account_id"
        assert exc_info.value.context["missing"] == [
            "ynab_account_id",
            "ynab_token",
            "trading212_token",
        ]
