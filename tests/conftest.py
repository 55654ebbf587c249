import os
from pathlib import Path

import pytest


def pytest_addoption(parser):
    parser.addoption(
        "--env",
        action="store",
        default="test",
        help="Config environment to run tests on",
    )


def pytest_sessionstart(session):
    """Pytest hook to run before collecting tests.

    Select the config overlay before the marketplace domain is imported, so
    `[test]` settings from domain.toml apply to every test.
    """
    os.environ["PROTEAN_ENV"] = session.config.option.env
    os.environ.setdefault("ORDER_BACKEND_ADAPTER", "fake")
    os.environ.setdefault("LEDGER_STORAGE", "memory")
    os.environ.setdefault("VENDOR_DIRECTORY", "memory")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their directory location."""
    for item in items:
        # Get the test file path relative to the tests directory
        test_path = Path(item.fspath)

        # Mark tests based on their directory
        if "/domain/" in str(test_path):
            item.add_marker(pytest.mark.domain)
        elif "/application/" in str(test_path):
            item.add_marker(pytest.mark.application)
        elif "/integration/" in str(test_path):
            item.add_marker(pytest.mark.integration)
            # Integration tests are often slower
            if not any(m.name == "fast" for m in item.iter_markers()):
                item.add_marker(pytest.mark.slow)


@pytest.fixture(autouse=True)
def reset_adapters():
    """Fixture to drop adapter singletons after every test"""
    yield

    from marketplace.order.backend import reset_order_backend
    from marketplace.storage import reset_ledger_storage
    from marketplace.vendors import reset_vendor_directory

    reset_order_backend()
    reset_ledger_storage()
    reset_vendor_directory()
