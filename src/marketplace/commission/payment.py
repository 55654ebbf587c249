"""Commission payout — command and handler."""

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.commission.commission import Commission
from marketplace.commission.settlement import Settlement
from marketplace.domain import logger, marketplace


@marketplace.command(part_of="Commission")
class MarkCommissionPaid:
    commission_id = Identifier(required=True)
    payment_method = String(max_length=50)
    transaction_id = String(max_length=255)
    notes = Text()


@marketplace.command_handler(part_of=Commission)
class MarkCommissionPaidHandler:
    @handle(MarkCommissionPaid)
    def mark_paid(self, command):
        commission_repo = current_domain.repository_for(Commission)
        settlement_repo = current_domain.repository_for(Settlement)

        commission = commission_repo.get(command.commission_id)

        # Already settled: hand back the existing settlement instead of paying twice
        if commission.is_paid:
            existing = settlement_repo._dao.query.filter(commission_id=str(commission.id)).all().first
            if existing is not None:
                logger.info("commission_already_paid", commission_id=str(commission.id))
                return str(existing.id)

        settlement = Settlement.for_commission(
            commission,
            payment_method=command.payment_method,
            transaction_id=command.transaction_id,
            notes=command.notes,
        )
        if not commission.is_paid:
            commission.mark_paid(settlement.id)
            commission_repo.add(commission)
        settlement_repo.add(settlement)

        logger.info(
            "commission_paid",
            commission_id=str(commission.id),
            settlement_id=str(settlement.id),
            amount=str(settlement.amount),
        )
        return str(settlement.id)
