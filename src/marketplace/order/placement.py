"""Local order placement — command and handler.

Composition and commission recording share one unit of work: the order and
all of its commission records are stored together, or not at all.
"""

import json

from protean import handle
from protean.fields import Float, Identifier, String, Text
from protean.utils.globals import current_domain

from marketplace.commission.recording import record_commissions
from marketplace.domain import logger, marketplace
from marketplace.order.composition import compose_order
from marketplace.order.order import Order


@marketplace.command(part_of="Order")
class PlaceLocalOrder:
    user_id = Identifier()
    items = Text(required=True, sanitize=False)  # JSON: list of cart line item dicts
    shipping_address = Text(sanitize=False)  # JSON: address dict
    payment_method = String(max_length=50)
    shipping = Float(default=0.0)
    tax = Float(default=0.0)
    discount = Float(default=0.0)
    coupon_code = String(max_length=100)


@marketplace.command_handler(part_of=Order)
class PlaceLocalOrderHandler:
    @handle(PlaceLocalOrder)
    def place_local_order(self, command):
        items_data = json.loads(command.items) if isinstance(command.items, str) else command.items
        shipping_address = (
            json.loads(command.shipping_address)
            if isinstance(command.shipping_address, str)
            else command.shipping_address
        )

        order = compose_order(
            items_data,
            shipping=command.shipping,
            tax=command.tax,
            discount=command.discount,
            user_id=command.user_id,
            shipping_address=shipping_address,
            payment_method=command.payment_method,
            coupon_code=command.coupon_code,
        )
        current_domain.repository_for(Order).add(order)

        record_commissions(order.id, order.groups)

        logger.info("local_order_placed", order_id=str(order.id), total=order.total)
        return str(order.id)
