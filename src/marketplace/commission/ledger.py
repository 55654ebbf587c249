"""Settlement ledger — commissions owed to the platform and payouts made to vendors.

Writes go through the ``RecordCommissions`` and ``MarkCommissionPaid``
commands; reads are plain repository queries. Both collections are
checkpointed to the ledger storage after every write.
"""

import json
from decimal import Decimal

from protean.utils.globals import current_domain

from marketplace.commission.commission import Commission, CommissionStatus
from marketplace.commission.payment import MarkCommissionPaid
from marketplace.commission.recording import RecordCommissions
from marketplace.commission.settlement import Settlement
from marketplace.domain import logger
from marketplace.storage import LedgerStorage, get_ledger_storage

COMMISSIONS_KEY = "commissions"
SETTLEMENTS_KEY = "settlements"

_ZERO = Decimal("0")


def _by_created_at(records):
    return sorted(records, key=lambda r: r.created_at.timestamp() if r.created_at else 0.0)


class SettlementLedger:
    def __init__(self, storage: LedgerStorage | None = None) -> None:
        self._storage = storage

    @property
    def storage(self) -> LedgerStorage:
        return self._storage or get_ledger_storage()

    @property
    def _commissions(self):
        return current_domain.repository_for(Commission)

    @property
    def _settlements(self):
        return current_domain.repository_for(Settlement)

    # -------------------------------------------------------------------
    # Writes
    # -------------------------------------------------------------------
    def record_commissions(self, order_id, vendor_groups) -> list[Commission]:
        """One pending commission per vendor group (``VendorGroup`` or dict)."""
        groups = [group if isinstance(group, dict) else group.to_dict() for group in vendor_groups]
        commission_ids = current_domain.process(
            RecordCommissions(order_id=str(order_id), vendor_groups=json.dumps(groups)),
            asynchronous=False,
        )
        self.checkpoint()
        return [self._commissions.get(commission_id) for commission_id in commission_ids]

    def mark_paid(self, commission_id, settlement_data: dict | None = None) -> Settlement:
        """Settle a commission. Paying it again returns the settlement already on record.

        ``settlement_data`` may carry ``payment_method``, ``transaction_id``
        and ``notes``.
        """
        settlement_data = settlement_data or {}
        settlement_id = current_domain.process(
            MarkCommissionPaid(
                commission_id=str(commission_id),
                payment_method=settlement_data.get("payment_method") or settlement_data.get("paymentMethod"),
                transaction_id=settlement_data.get("transaction_id") or settlement_data.get("transactionId"),
                notes=settlement_data.get("notes") or "",
            ),
            asynchronous=False,
        )
        self.checkpoint()
        return self._settlements.get(settlement_id)

    # -------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------
    def get_commission(self, commission_id) -> Commission:
        """``ObjectNotFoundError`` when unknown."""
        return self._commissions.get(str(commission_id))

    def all_commissions(self) -> list[Commission]:
        return _by_created_at(self._commissions._dao.query.limit(None).all().items)

    def all_settlements(self) -> list[Settlement]:
        return _by_created_at(self._settlements._dao.query.limit(None).all().items)

    def commissions_for_order(self, order_id) -> list[Commission]:
        return _by_created_at(self._commissions._dao.query.filter(order_id=str(order_id)).limit(None).all().items)

    def commissions_for_vendor(self, vendor_id, status=None) -> list[Commission]:
        filters = {"vendor_id": str(vendor_id)}
        if status is not None:
            filters["status"] = status.value if isinstance(status, CommissionStatus) else str(status)
        return _by_created_at(self._commissions._dao.query.filter(**filters).limit(None).all().items)

    def pending_commissions(self) -> list[Commission]:
        return _by_created_at(
            self._commissions._dao.query.filter(status=CommissionStatus.PENDING.value).limit(None).all().items
        )

    def settlements_for_vendor(self, vendor_id) -> list[Settlement]:
        return _by_created_at(self._settlements._dao.query.filter(vendor_id=str(vendor_id)).limit(None).all().items)

    def earnings_summary(self, vendor_id) -> dict:
        """Totals over every commission recorded for the vendor.

        ``total_orders`` counts commission records, which is one per order
        the vendor had items in.
        """
        summary = {
            "total_earnings": _ZERO,
            "pending_earnings": _ZERO,
            "paid_earnings": _ZERO,
            "total_commission": _ZERO,
            "total_orders": 0,
        }
        for commission in self.commissions_for_vendor(vendor_id):
            summary["total_earnings"] += commission.vendor_earnings
            summary["total_commission"] += commission.commission
            summary["total_orders"] += 1
            if commission.status == CommissionStatus.PENDING.value:
                summary["pending_earnings"] += commission.vendor_earnings
            elif commission.status == CommissionStatus.PAID.value:
                summary["paid_earnings"] += commission.vendor_earnings
        return summary

    # -------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------
    def checkpoint(self) -> None:
        self.storage.save(COMMISSIONS_KEY, [c.to_snapshot() for c in self.all_commissions()])
        self.storage.save(SETTLEMENTS_KEY, [s.to_snapshot() for s in self.all_settlements()])

    def rehydrate(self) -> tuple[int, int]:
        """Reload commissions and settlements from the last checkpoint."""
        commissions = self.storage.load(COMMISSIONS_KEY)
        settlements = self.storage.load(SETTLEMENTS_KEY)

        self._commissions._dao.delete_all()
        self._settlements._dao.delete_all()
        for record in commissions:
            self._commissions.add(Commission.from_snapshot(record))
        for record in settlements:
            self._settlements.add(Settlement.from_snapshot(record))

        logger.info("settlement_ledger_rehydrated", commissions=len(commissions), settlements=len(settlements))
        return len(commissions), len(settlements)

    def reset(self) -> None:
        self._commissions._dao.delete_all()
        self._settlements._dao.delete_all()
        self.storage.save(COMMISSIONS_KEY, [])
        self.storage.save(SETTLEMENTS_KEY, [])
