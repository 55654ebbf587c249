"""Order return requests — commands and handlers.

Resolving a return to COMPLETED cancels the returning vendor's commissions
for the order in the same unit of work.
"""

import json

from protean import handle
from protean.fields import Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.commission.commission import Commission, CommissionStatus
from marketplace.domain import logger, marketplace
from marketplace.order.order import Order, ReturnStatus


@marketplace.command(part_of="Order")
class RequestReturn:
    order_id = Identifier(required=True)
    reason = String(max_length=1000)
    vendor_id = String(max_length=100)
    items = Text(sanitize=False)  # JSON: list of product ids, optional


@marketplace.command(part_of="Order")
class ResolveReturn:
    order_id = Identifier(required=True)
    status = String(required=True, max_length=50)
    rejection_reason = String(max_length=500)


@marketplace.command_handler(part_of=Order)
class ReturnRequestHandler:
    @handle(RequestReturn)
    def request_return(self, command):
        items = json.loads(command.items) if command.items else None

        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        order.request_return(command.reason, vendor_id=command.vendor_id, items=items)
        repo.add(order)
        return order.return_vendor_id

    @handle(ResolveReturn)
    def resolve_return(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.get(command.order_id)
        if not order.resolve_return(command.status, rejection_reason=command.rejection_reason):
            return order.return_status
        repo.add(order)

        if order.return_status == ReturnStatus.COMPLETED.value and order.return_vendor_id:
            commissions = current_domain.repository_for(Commission)
            reversed_ids = []
            query = commissions._dao.query.filter(order_id=str(order.id), vendor_id=order.return_vendor_id)
            for commission in query.limit(None).all().items:
                if commission.status != CommissionStatus.CANCELLED.value:
                    commission.cancel(reason=f"Return completed for order {order.id}")
                    commissions.add(commission)
                    reversed_ids.append(str(commission.id))
            logger.info("return_commissions_reversed", order_id=str(order.id), commissions=reversed_ids)

        return order.return_status
