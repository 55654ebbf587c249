"""Commission engine — splits a vendor's line amount into platform commission and vendor earnings.

    commission      = subtotal * rate / 100
    vendor_earnings = subtotal - commission

Amounts are ``decimal.Decimal`` so the two parts always add back up to the
subtotal exactly. The engine never raises: a vendor the directory cannot
resolve (or an amount that is not a number) yields an all-zero split, because
it runs on display paths where a missing number beats a broken page.
"""

import math
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation

from marketplace.domain import logger, marketplace
from marketplace.vendors import VendorDirectory, get_vendor_directory

DEFAULT_COMMISSION_RATE = Decimal(str(getattr(marketplace, "DEFAULT_COMMISSION_RATE", 10)))

_ZERO = Decimal("0")
_HUNDRED = Decimal("100")


@dataclass(frozen=True)
class CommissionSplit:
    subtotal: Decimal
    commission_rate: Decimal
    commission: Decimal
    vendor_earnings: Decimal

    @classmethod
    def zero(cls) -> "CommissionSplit":
        return cls(subtotal=_ZERO, commission_rate=_ZERO, commission=_ZERO, vendor_earnings=_ZERO)

    def to_dict(self) -> dict:
        return {
            "subtotal": self.subtotal,
            "commission_rate": self.commission_rate,
            "commission": self.commission,
            "vendor_earnings": self.vendor_earnings,
        }


def to_decimal(value) -> Decimal | None:
    """Exact decimal for a number, going through ``str`` so floats keep their shortest repr."""
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, Decimal):
        return value if value.is_finite() else None
    if isinstance(value, float) and not math.isfinite(value):
        return None
    try:
        result = Decimal(str(value))
    except (InvalidOperation, ValueError):
        return None
    return result if result.is_finite() else None


def _vendor_rate(vendor) -> Decimal:
    rate = to_decimal(vendor.commission_rate)
    return DEFAULT_COMMISSION_RATE if rate is None else rate


def vendor_commission_rate(vendor_id, directory: VendorDirectory | None = None) -> Decimal:
    """The vendor's commission rate in percent, or the default when unknown."""
    vendor = (directory or get_vendor_directory()).get(str(vendor_id))
    return DEFAULT_COMMISSION_RATE if vendor is None else _vendor_rate(vendor)


def compute_commission(vendor_id, line_amount, directory: VendorDirectory | None = None) -> CommissionSplit:
    """Split ``line_amount`` between the platform and the vendor."""
    vendor = (directory or get_vendor_directory()).get(str(vendor_id))
    if vendor is None:
        logger.warning("commission_vendor_unresolved", vendor_id=str(vendor_id))
        return CommissionSplit.zero()

    subtotal = to_decimal(line_amount)
    if subtotal is None:
        logger.warning("commission_amount_invalid", vendor_id=str(vendor_id), amount=repr(line_amount))
        return CommissionSplit.zero()

    rate = _vendor_rate(vendor)
    commission = subtotal * rate / _HUNDRED
    return CommissionSplit(
        subtotal=subtotal,
        commission_rate=rate,
        commission=commission,
        vendor_earnings=subtotal - commission,
    )


def total_commission(splits) -> Decimal:
    return sum((split.commission for split in splits), _ZERO)


def total_vendor_earnings(splits) -> Decimal:
    return sum((split.vendor_earnings for split in splits), _ZERO)


@dataclass(frozen=True)
class VendorCommission:
    vendor_id: str
    vendor_name: str
    split: CommissionSplit


def compute_order_commission(items, directory: VendorDirectory | None = None) -> list[VendorCommission]:
    """Per-vendor commission preview for a cart, summed line by line in first-seen vendor order."""
    directory = directory or get_vendor_directory()
    totals: dict[str, list[CommissionSplit]] = {}
    names: dict[str, str] = {}
    for item in items:
        totals.setdefault(item.vendor_id, []).append(
            compute_commission(item.vendor_id, to_decimal(item.price) * item.quantity, directory=directory)
        )
        names.setdefault(item.vendor_id, item.vendor_name)

    result = []
    for vendor_id, splits in totals.items():
        vendor = directory.get(vendor_id)
        rate = _ZERO if vendor is None else _vendor_rate(vendor)
        result.append(
            VendorCommission(
                vendor_id=vendor_id,
                vendor_name=names[vendor_id],
                split=CommissionSplit(
                    subtotal=sum((s.subtotal for s in splits), _ZERO),
                    commission_rate=rate,
                    commission=total_commission(splits),
                    vendor_earnings=total_vendor_earnings(splits),
                ),
            )
        )
    return result
