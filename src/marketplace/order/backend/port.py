"""Order backend port (abstract interface).

The storefront's remote order service: it owns orders whose products come
from the shared catalogue. Every method returns the unwrapped ``data`` part
of the backend's JSON envelope and raises ``RemoteFailure`` when the call
does not succeed.
"""

from abc import ABC, abstractmethod


class OrderBackend(ABC):
    """Abstract order backend interface."""

    @abstractmethod
    async def create_order(self, payload: dict, idempotency_key: str) -> dict:
        """Create an order. The response must carry ``orderId``."""
        ...

    @abstractmethod
    async def fetch_order(self, order_id: str) -> dict:
        """Fetch the full order document for the signed-in user."""
        ...

    @abstractmethod
    async def list_orders(self, page: int = 1, limit: int = 20) -> list[dict]:
        """One page of the signed-in user's orders."""
        ...

    @abstractmethod
    async def track_order(self, order_id: str) -> dict:
        """Public tracking view of an order."""
        ...

    @abstractmethod
    async def cancel_order(self, order_id: str, reason: str) -> dict:
        """Ask the backend to cancel an order."""
        ...

    @abstractmethod
    async def request_return(self, order_id: str, body: dict) -> dict:
        """File a return request for (part of) a delivered order."""
        ...
