"""Ledger storage factory.

LEDGER_STORAGE selects the adapter: ``memory`` (default) or ``json``, the
latter writing under LEDGER_STORAGE_PATH (default ``.ledger``).
"""

import os

from marketplace.storage.port import LedgerStorage

_storage_instance: LedgerStorage | None = None


def get_ledger_storage() -> LedgerStorage:
    """Return the configured ledger storage (singleton)."""
    global _storage_instance
    if _storage_instance is None:
        adapter = os.environ.get("LEDGER_STORAGE", "memory")
        if adapter == "memory":
            from marketplace.storage.memory_adapter import MemoryLedgerStorage

            _storage_instance = MemoryLedgerStorage()
        elif adapter == "json":
            from marketplace.storage.json_file_adapter import JsonFileLedgerStorage

            _storage_instance = JsonFileLedgerStorage(os.environ.get("LEDGER_STORAGE_PATH", ".ledger"))
        else:
            raise ValueError(f"Unknown ledger storage: {adapter}")
    return _storage_instance


def set_ledger_storage(storage: LedgerStorage) -> None:
    """Override the active ledger storage (useful for tests)."""
    global _storage_instance
    _storage_instance = storage


def reset_ledger_storage() -> None:
    """Reset the storage singleton (useful for testing)."""
    global _storage_instance
    _storage_instance = None
