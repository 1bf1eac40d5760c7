"""HTTP clients for the Trading212 and YNAB APIs."""

from t212_ynab_sync.clients.trading212 import Trading212Client
from t212_ynab_sync.clients.ynab import YNABClient

__all__ = ["Trading212Client", "YNABClient"]
