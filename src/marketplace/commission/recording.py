"""Commission recording — one pending commission per vendor group of an order."""

import json

from protean import handle
from protean.fields import Identifier, Text
from protean.utils.globals import current_domain

from marketplace.commission.commission import Commission
from marketplace.commission.engine import compute_commission
from marketplace.domain import logger, marketplace
from marketplace.order.order import VendorGroup


def record_commissions(order_id, vendor_groups) -> list[Commission]:
    """Compute and store a pending commission for every vendor group.

    Runs inside the caller's unit of work, so composing an order and recording
    its commissions either both persist or neither does.
    """
    repo = current_domain.repository_for(Commission)

    commissions = []
    for group in vendor_groups:
        split = compute_commission(group.vendor_id, group.subtotal)
        commission = Commission.record(
            order_id=order_id,
            vendor_id=group.vendor_id,
            vendor_name=group.vendor_name,
            split=split,
        )
        repo.add(commission)
        commissions.append(commission)

    logger.info("commissions_recorded", order_id=str(order_id), count=len(commissions))
    return commissions


@marketplace.command(part_of="Commission")
class RecordCommissions:
    order_id = Identifier(required=True)
    vendor_groups = Text(required=True, sanitize=False)  # JSON: list of vendor group dicts


@marketplace.command_handler(part_of=Commission)
class RecordCommissionsHandler:
    @handle(RecordCommissions)
    def record(self, command):
        groups_data = command.vendor_groups
        if isinstance(groups_data, str):
            groups_data = json.loads(groups_data)
        groups = [group if isinstance(group, VendorGroup) else VendorGroup.from_dict(group) for group in groups_data]
        commissions = record_commissions(command.order_id, groups)
        return [str(commission.id) for commission in commissions]
