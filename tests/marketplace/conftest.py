import pytest
from protean.integrations.pytest import DomainFixture


@pytest.fixture(scope="session")
def marketplace_bed():
    from marketplace.domain import marketplace

    bed = DomainFixture(marketplace)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(marketplace_bed):
    with marketplace_bed.domain_context():
        yield


@pytest.fixture()
def vendors():
    """Vendor A at 10%, vendor B at 15%, vendor C with no rate of its own."""
    from marketplace.vendors import set_vendor_directory
    from marketplace.vendors.memory_adapter import InMemoryVendorDirectory

    directory = InMemoryVendorDirectory()
    directory.add("A", "Acme Apparel", commission_rate=10)
    directory.add("B", "Bolt Gear", commission_rate=15)
    directory.add("C", "Cobalt Crafts")
    set_vendor_directory(directory)
    return directory


@pytest.fixture()
def backend():
    from marketplace.order.backend import set_order_backend
    from marketplace.order.backend.fake_adapter import FakeOrderBackend

    fake = FakeOrderBackend()
    set_order_backend(fake)
    return fake


@pytest.fixture()
def storage():
    from marketplace.storage import set_ledger_storage
    from marketplace.storage.memory_adapter import MemoryLedgerStorage

    memory = MemoryLedgerStorage()
    set_ledger_storage(memory)
    return memory


@pytest.fixture()
def order_ledger(backend, storage):
    from marketplace.order.ledger import OrderLedger

    return OrderLedger()


@pytest.fixture()
def settlement_ledger(storage):
    from marketplace.commission.ledger import SettlementLedger

    return SettlementLedger()
