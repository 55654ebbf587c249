"""Vendor directory port (abstract interface).

The commission engine only needs three facts about a vendor: its display
name, its commission rate, and its account status. Where those come from
(an admin service, a catalogue cache, a fixture file) is an adapter concern.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass


@dataclass(frozen=True)
class VendorInfo:
    """What the directory knows about one vendor."""

    vendor_id: str
    name: str
    commission_rate: float | None = None
    status: str = "approved"

    @classmethod
    def from_dict(cls, record: dict) -> "VendorInfo":
        """Build from a vendor record in either the storefront's camelCase or snake_case."""
        vendor_id = record.get("vendor_id", record.get("vendorId", record.get("id", record.get("_id"))))
        if vendor_id in (None, ""):
            raise ValueError(f"Vendor record without an id: {record!r}")
        return cls(
            vendor_id=str(vendor_id),
            name=record.get("storeName") or record.get("store_name") or record.get("name") or "",
            commission_rate=record.get("commission_rate", record.get("commissionRate")),
            status=record.get("status") or "approved",
        )


class VendorDirectory(ABC):
    """Abstract vendor lookup."""

    @abstractmethod
    def get(self, vendor_id: str) -> VendorInfo | None:
        """Return the vendor, or ``None`` when it cannot be resolved."""
        ...
