"""Vendor directory read from a JSON file holding an array of vendor records."""

import json
import os
from pathlib import Path

from marketplace.domain import logger
from marketplace.vendors.memory_adapter import InMemoryVendorDirectory
from marketplace.vendors.port import VendorInfo


class JsonFileVendorDirectory(InMemoryVendorDirectory):
    def __init__(self, path: str | os.PathLike) -> None:
        super().__init__()
        self.path = Path(path)
        self.reload()

    def reload(self) -> int:
        """Replace the known vendors with the file's contents. Returns the vendor count."""
        records = json.loads(self.path.read_text(encoding="utf-8"))
        if not isinstance(records, list):
            raise ValueError(f"{self.path}: expected a JSON array of vendor records")

        self.clear()
        for record in records:
            self.register(VendorInfo.from_dict(record))

        logger.info("vendor_directory_loaded", path=str(self.path), vendors=len(self._vendors))
        return len(self._vendors)
