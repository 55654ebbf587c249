"""Commission aggregate (CQRS) — what the platform is owed for one vendor group of one order.

A commission is recorded as PENDING when an order is composed. It is PAID
when its settlement is written, and CANCELLED when a completed return
reverses it. A cancelled commission no longer points at a settlement; the
settlement record itself stays on file.
"""

import random
import string
import time
from datetime import UTC, datetime
from decimal import Decimal
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import InvalidStateError, ValidationError
from protean.fields import DateTime, Decimal as DecimalField, Identifier, String

from marketplace.commission.events import CommissionCancelled, CommissionPaid, CommissionRecorded
from marketplace.domain import marketplace

_BASE36 = string.digits + string.ascii_lowercase


class CommissionStatus(Enum):
    PENDING = "pending"
    PAID = "paid"
    CANCELLED = "cancelled"


def generate_record_id(prefix: str) -> str:
    """``<prefix>-<epoch ms>-<7 base36 chars>``."""
    suffix = "".join(random.choices(_BASE36, k=7))
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


@marketplace.aggregate
class Commission:
    order_id = Identifier(required=True)
    vendor_id = String(required=True, max_length=100)
    vendor_name = String(max_length=255)
    subtotal = DecimalField(default=Decimal("0"))
    commission_rate = DecimalField(default=Decimal("0"))
    commission = DecimalField(default=Decimal("0"))
    vendor_earnings = DecimalField(default=Decimal("0"))
    status = String(choices=CommissionStatus, default=CommissionStatus.PENDING.value)
    settlement_id = String(max_length=100)
    created_at = DateTime()
    paid_at = DateTime()

    @invariant.post
    def commission_and_earnings_must_add_up(self):
        if self.commission + self.vendor_earnings != self.subtotal:
            raise ValidationError(
                {"vendor_earnings": [f"Commission {self.commission} and earnings {self.vendor_earnings} "
                                     f"must add up to {self.subtotal}"]}
            )
        if self.commission != self.subtotal * self.commission_rate / Decimal("100"):
            raise ValidationError({"commission": ["Commission must equal subtotal * rate / 100"]})

    @classmethod
    def record(cls, order_id, vendor_id, vendor_name, split, commission_id=None):
        """Record a pending commission from a ``CommissionSplit``."""
        now = datetime.now(UTC)
        commission = cls(
            id=commission_id or generate_record_id("COMM"),
            order_id=str(order_id),
            vendor_id=str(vendor_id),
            vendor_name=vendor_name,
            subtotal=split.subtotal,
            commission_rate=split.commission_rate,
            commission=split.commission,
            vendor_earnings=split.vendor_earnings,
            status=CommissionStatus.PENDING.value,
            created_at=now,
        )
        commission.raise_(
            CommissionRecorded(
                commission_id=str(commission.id),
                order_id=str(order_id),
                vendor_id=str(vendor_id),
                subtotal=str(split.subtotal),
                commission=str(split.commission),
                vendor_earnings=str(split.vendor_earnings),
                recorded_at=now,
            )
        )
        return commission

    @property
    def is_paid(self) -> bool:
        return self.status == CommissionStatus.PAID.value

    def mark_paid(self, settlement_id):
        """Transition to PAID. Any non-paid state may be settled."""
        if self.is_paid:
            raise InvalidStateError(f"Commission {self.id}: already paid (settlement {self.settlement_id})")

        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = CommissionStatus.PAID.value
            self.settlement_id = str(settlement_id)
            self.paid_at = now

        self.raise_(
            CommissionPaid(
                commission_id=str(self.id),
                settlement_id=str(settlement_id),
                vendor_id=self.vendor_id,
                paid_at=now,
            )
        )

    @property
    def is_cancelled(self) -> bool:
        return self.status == CommissionStatus.CANCELLED.value

    def cancel(self, reason=None):
        """Reverse the commission. Cancelling twice is an error."""
        if self.is_cancelled:
            raise InvalidStateError(f"Commission {self.id}: already cancelled")

        previous_status = self.status
        now = datetime.now(UTC)
        with atomic_change(self):
            self.status = CommissionStatus.CANCELLED.value
            self.settlement_id = None
            self.paid_at = None

        self.raise_(
            CommissionCancelled(
                commission_id=str(self.id),
                order_id=str(self.order_id),
                vendor_id=self.vendor_id,
                previous_status=previous_status,
                reason=reason,
                cancelled_at=now,
            )
        )

    def to_snapshot(self) -> dict:
        return {
            "id": str(self.id),
            "order_id": self.order_id,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor_name,
            "subtotal": str(self.subtotal),
            "commission_rate": str(self.commission_rate),
            "commission": str(self.commission),
            "vendor_earnings": str(self.vendor_earnings),
            "status": self.status,
            "settlement_id": self.settlement_id,
            "created_at": self.created_at.isoformat() if self.created_at else None,
            "paid_at": self.paid_at.isoformat() if self.paid_at else None,
        }

    @classmethod
    def from_snapshot(cls, data: dict):
        return cls(
            id=data["id"],
            order_id=data["order_id"],
            vendor_id=str(data["vendor_id"]),
            vendor_name=data.get("vendor_name"),
            subtotal=Decimal(str(data.get("subtotal", "0"))),
            commission_rate=Decimal(str(data.get("commission_rate", "0"))),
            commission=Decimal(str(data.get("commission", "0"))),
            vendor_earnings=Decimal(str(data.get("vendor_earnings", "0"))),
            status=data.get("status") or CommissionStatus.PENDING.value,
            settlement_id=data.get("settlement_id"),
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else None,
            paid_at=datetime.fromisoformat(data["paid_at"]) if data.get("paid_at") else None,
        )
