"""Vendor directory factory.

VENDOR_DIRECTORY selects the adapter:

- ``config`` (default): the vendors listed under ``[[custom.VENDORS]]`` in domain.toml
- ``json``: a JSON array of vendor records read from VENDOR_DIRECTORY_PATH
- ``memory``: an empty in-memory directory, filled by the caller
"""

import os

from marketplace.vendors.port import VendorDirectory, VendorInfo

_current_directory: VendorDirectory | None = None


def get_vendor_directory() -> VendorDirectory:
    """Return the configured vendor directory (singleton)."""
    global _current_directory
    if _current_directory is None:
        adapter = os.environ.get("VENDOR_DIRECTORY", "config")
        if adapter == "config":
            from marketplace.domain import marketplace
            from marketplace.vendors.memory_adapter import InMemoryVendorDirectory

            _current_directory = InMemoryVendorDirectory.from_records(getattr(marketplace, "VENDORS", []))
        elif adapter == "json":
            from marketplace.vendors.json_file_adapter import JsonFileVendorDirectory

            _current_directory = JsonFileVendorDirectory(os.environ.get("VENDOR_DIRECTORY_PATH", "vendors.json"))
        elif adapter == "memory":
            from marketplace.vendors.memory_adapter import InMemoryVendorDirectory

            _current_directory = InMemoryVendorDirectory()
        else:
            raise ValueError(f"Unknown vendor directory: {adapter}")
    return _current_directory


def set_vendor_directory(directory: VendorDirectory) -> None:
    """Override the active vendor directory (useful for tests)."""
    global _current_directory
    _current_directory = directory


def reset_vendor_directory() -> None:
    """Reset the directory singleton (useful for testing)."""
    global _current_directory
    _current_directory = None


__all__ = [
    "VendorDirectory",
    "VendorInfo",
    "get_vendor_directory",
    "reset_vendor_directory",
    "set_vendor_directory",
]
