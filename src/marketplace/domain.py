"""Marketplace bounded context — multi-vendor order composition and commission settlement.

Turns vendor-tagged carts into vendor-partitioned orders (CQRS), tracks the
order lifecycle, and follows each vendor's commission from pending to a paid
settlement.
"""

import structlog
from protean.domain import Domain

marketplace = Domain(name="marketplace")

logger = structlog.get_logger(__name__)
