"""In-memory vendor directory for development and testing."""

from marketplace.vendors.port import VendorDirectory, VendorInfo


class InMemoryVendorDirectory(VendorDirectory):
    def __init__(self, vendors: list[VendorInfo] | None = None) -> None:
        self._vendors: dict[str, VendorInfo] = {}
        self.lookups: list[str] = []
        for vendor in vendors or []:
            self.register(vendor)

    @classmethod
    def from_records(cls, records) -> "InMemoryVendorDirectory":
        return cls([VendorInfo.from_dict(record) for record in records or []])

    def register(self, vendor: VendorInfo) -> None:
        self._vendors[str(vendor.vendor_id)] = vendor

    def add(self, vendor_id, name: str, commission_rate: float | None = None, status: str = "approved") -> VendorInfo:
        vendor = VendorInfo(vendor_id=str(vendor_id), name=name, commission_rate=commission_rate, status=status)
        self.register(vendor)
        return vendor

    def clear(self) -> None:
        self._vendors.clear()
        self.lookups.clear()

    def get(self, vendor_id: str) -> VendorInfo | None:
        key = "" if vendor_id is None else str(vendor_id)
        self.lookups.append(key)
        return self._vendors.get(key)
