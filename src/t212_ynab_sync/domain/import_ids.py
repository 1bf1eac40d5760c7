"""Deterministic YNAB import ids.

The import id is the only deduplication mechanism: YNAB rejects a second
transaction with an import id it already holds, and the classifier skips
rows whose id is already present. YNAB limits import ids to 36 characters,
and the version prefix counts against that limit.
"""

import hashlib

# Increment to submit new import ids. Existing entries with an older version
# make the sync refuse to run until they are deleted.
IMPORT_ID_VERSION = 14
IMPORT_PREFIX = "T212-"
VERSIONED_IMPORT_PREFIX = f"{IMPORT_PREFIX}v{IMPORT_ID_VERSION}:"
IMPORT_ID_MAX_LENGTH = 36


def make_import_id(seed: str) -> str:
    """Return the versioned, truncated SHA-256 import id for seed."""
    digest = hashlib.sha256(seed.encode("utf-8")).hexdigest()
    return f"{VERSIONED_IMPORT_PREFIX}{digest}"[:IMPORT_ID_MAX_LENGTH]


def is_current_version(import_id: str | None) -> bool:
    return bool(import_id) and import_id.startswith(VERSIONED_IMPORT_PREFIX)


def is_other_version(import_id: str | None) -> bool:
    """True for ids this sync produced under a different IMPORT_ID_VERSION."""
    if not import_id or not import_id.startswith(IMPORT_PREFIX):
        return False
    return not import_id.startswith(VERSIONED_IMPORT_PREFIX)


def mark_to_market_seed(isin: str, day: str, amount: int) -> str:
    return f"{isin}:{day}:{amount}"
