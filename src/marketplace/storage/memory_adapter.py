"""In-memory ledger storage: survives ledger resets, not process restarts."""

import copy

from marketplace.storage.port import LedgerStorage


class MemoryLedgerStorage(LedgerStorage):
    def __init__(self) -> None:
        self.snapshots: dict[str, list[dict]] = {}

    def load(self, key: str) -> list[dict]:
        return copy.deepcopy(self.snapshots.get(key, []))

    def save(self, key: str, records: list[dict]) -> None:
        self.snapshots[key] = copy.deepcopy(records)

    def clear(self) -> None:
        self.snapshots.clear()
