"""Backend order reconciliation — command and handler.

The ledger holds at most one order per id. Syncing a document whose id is
already known refreshes that entry in place; an unknown id is inserted.
"""

import json

from protean import handle
from protean.fields import Text
from protean.utils.globals import current_domain

from marketplace.domain import logger, marketplace
from marketplace.order.order import Order


@marketplace.command(part_of="Order")
class SyncRemoteOrder:
    document = Text(required=True, sanitize=False)  # JSON: normalized backend order


@marketplace.command_handler(part_of=Order)
class SyncRemoteOrderHandler:
    @handle(SyncRemoteOrder)
    def sync_remote_order(self, command):
        data = json.loads(command.document) if isinstance(command.document, str) else command.document

        repo = current_domain.repository_for(Order)
        order = repo.get_or_none(data["id"])
        if order is None:
            order = Order.from_remote(data)
        else:
            order.sync_from(data)
        repo.add(order)

        logger.debug("remote_order_synced", order_id=str(order.id), status=order.status)
        return str(order.id)
