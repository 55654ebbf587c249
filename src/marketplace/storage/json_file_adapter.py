"""JSON file ledger storage: one ``<key>.json`` file per key under a directory.

Writes go to a temporary file that is then renamed over the target, so a
crash mid-write leaves the previous snapshot intact.
"""

import json
import os
from pathlib import Path

from marketplace.domain import logger
from marketplace.storage.port import LedgerStorage


class JsonFileLedgerStorage(LedgerStorage):
    def __init__(self, path: str | os.PathLike) -> None:
        self.path = Path(path)

    def _file(self, key: str) -> Path:
        return self.path / f"{key}.json"

    def load(self, key: str) -> list[dict]:
        target = self._file(key)
        if not target.exists():
            return []
        try:
            records = json.loads(target.read_text(encoding="utf-8"))
        except json.JSONDecodeError:
            logger.warning("ledger_snapshot_unreadable", key=key, path=str(target))
            return []
        return [record for record in records if isinstance(record, dict)] if isinstance(records, list) else []

    def save(self, key: str, records: list[dict]) -> None:
        self.path.mkdir(parents=True, exist_ok=True)
        target = self._file(key)
        scratch = target.with_suffix(".json.tmp")
        scratch.write_text(json.dumps(records, indent=2, default=str), encoding="utf-8")
        os.replace(scratch, target)

    def clear(self) -> None:
        if not self.path.exists():
            return
        for target in self.path.glob("*.json"):
            target.unlink()
