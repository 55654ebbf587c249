"""Ledger storage port.

The ledgers keep their working set in the Protean repositories and write a
snapshot through this port after every change, so a new process can
rehydrate them. Records are plain JSON-compatible dicts grouped by key
(``orders``, ``commissions``, ``settlements``).
"""

from abc import ABC, abstractmethod


class LedgerStorage(ABC):
    """Abstract snapshot store."""

    @abstractmethod
    def load(self, key: str) -> list[dict]:
        """All records saved under ``key``; empty when nothing was saved."""
        ...

    @abstractmethod
    def save(self, key: str, records: list[dict]) -> None:
        """Replace the records saved under ``key``."""
        ...

    @abstractmethod
    def clear(self) -> None:
        """Forget every key."""
        ...
