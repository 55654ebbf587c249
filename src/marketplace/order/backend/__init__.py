"""Order backend adapter abstraction — where remote (catalogue-backed) orders live."""

import os

from marketplace.order.backend.port import OrderBackend

_backend_instance: OrderBackend | None = None


def get_order_backend() -> OrderBackend:
    """Return the configured order backend (singleton).

    Uses FakeOrderBackend by default. Set ORDER_BACKEND_ADAPTER=http to talk
    to the storefront API at ORDER_BACKEND_URL.
    """
    global _backend_instance
    if _backend_instance is None:
        adapter = os.environ.get("ORDER_BACKEND_ADAPTER", "fake")
        if adapter == "fake":
            from marketplace.order.backend.fake_adapter import FakeOrderBackend

            _backend_instance = FakeOrderBackend()
        elif adapter == "http":
            from marketplace.order.backend.http_adapter import HttpOrderBackend

            _backend_instance = HttpOrderBackend()
        else:
            raise ValueError(f"Unknown order backend adapter: {adapter}")
    return _backend_instance


def set_order_backend(backend: OrderBackend) -> None:
    """Override the active order backend (useful for tests)."""
    global _backend_instance
    _backend_instance = backend


def reset_order_backend() -> None:
    """Reset the order backend singleton (useful for testing)."""
    global _backend_instance
    _backend_instance = None
