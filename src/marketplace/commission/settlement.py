"""Settlement aggregate — the immutable record of a vendor payout for one commission."""

from datetime import UTC, datetime
from decimal import Decimal

from protean.fields import DateTime, Decimal as DecimalField, Identifier, String, Text

from marketplace.commission.commission import generate_record_id
from marketplace.commission.events import SettlementRecorded
from marketplace.domain import marketplace

DEFAULT_SETTLEMENT_METHOD = getattr(marketplace, "DEFAULT_SETTLEMENT_METHOD", "bank_transfer")


@marketplace.aggregate
class Settlement:
    commission_id = Identifier(required=True)
    vendor_id = String(required=True, max_length=100)
    vendor_name = String(max_length=255)
    amount = DecimalField(required=True)
    payment_method = String(max_length=50, default=DEFAULT_SETTLEMENT_METHOD)
    transaction_id = String(max_length=255)
    notes = Text(default="")
    created_at = DateTime()

    @classmethod
    def for_commission(cls, commission, payment_method=None, transaction_id=None, notes=None):
        """Settle a commission: the payout is the vendor's earnings on it."""
        now = datetime.now(UTC)
        settlement = cls(
            id=generate_record_id(prefix="SETTLE"),
            commission_id=str(commission.id),
            vendor_id=commission.vendor_id,
            vendor_name=commission.vendor_name,
            amount=commission.vendor_earnings,
            payment_method=payment_method or DEFAULT_SETTLEMENT_METHOD,
            transaction_id=transaction_id or None,
            notes=notes or "",
            created_at=now,
        )
        settlement.raise_(
            SettlementRecorded(
                settlement_id=str(settlement.id),
                commission_id=str(commission.id),
                vendor_id=commission.vendor_id,
                amount=str(commission.vendor_earnings),
                payment_method=settlement.payment_method,
                created_at=now,
            )
        )
        return settlement

    def to_snapshot(self) -> dict:
        return {
            "id": str(self.id),
            "commission_id": self.commission_id,
            "vendor_id": self.vendor_id,
            "vendor_name": self.vendor_name,
            "amount": str(self.amount),
            "payment_method": self.payment_method,
            "transaction_id": self.transaction_id,
            "notes": self.notes or "",
            "created_at": self.created_at.isoformat() if self.created_at else None,
        }

    @classmethod
    def from_snapshot(cls, data: dict):
        return cls(
            id=data["id"],
            commission_id=data["commission_id"],
            vendor_id=str(data["vendor_id"]),
            vendor_name=data.get("vendor_name"),
            amount=Decimal(str(data["amount"])),
            payment_method=data.get("payment_method") or DEFAULT_SETTLEMENT_METHOD,
            transaction_id=data.get("transaction_id"),
            notes=data.get("notes") or "",
            created_at=datetime.fromisoformat(data["created_at"]) if data.get("created_at") else None,
        )
