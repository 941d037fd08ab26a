import pytest
from protean import current_domain
from protean.integrations.pytest import DomainFixture

from labdesk.access import Actor
from labdesk.directory import reset_directory, set_directory
from labdesk.directory.fake_adapter import InMemoryStaffDirectory


@pytest.fixture(scope="session")
def labdesk_bed():
    from labdesk.domain import labdesk

    bed = DomainFixture(labdesk)
    bed.setup()
    yield bed
    bed.teardown()


@pytest.fixture(autouse=True)
def _ctx(labdesk_bed):
    with labdesk_bed.domain_context():
        yield

        # Clear all databases and drain the event store
        for _, provider in current_domain.providers.items():
            provider._data_reset()
        current_domain.event_store.store._data_reset()
    reset_directory()


@pytest.fixture()
def directory():
    """An empty in-memory staff directory installed for the test."""
    staff = InMemoryStaffDirectory()
    set_directory(staff)
    return staff


@pytest.fixture()
def staff(directory):
    """Directory with two warehouse operators, a sales rep and an administrator."""
    directory.add("bodega-1", "bodega", name="Ana Bodega")
    directory.add("bodega-2", "bodega", name="Beto Bodega")
    directory.add("rep-1", "vendedor", name="Rita Ventas")
    directory.add("admin-1", "admin", name="Alex Admin")
    return directory


@pytest.fixture()
def customer():
    return Actor(user_id="cust-1", role="cliente", email="compras@labandes.cl", name="Laboratorio Andes")


@pytest.fixture()
def rep():
    return Actor(user_id="rep-1", role="vendedor", email="rita@labdesk.test", name="Rita Ventas")


@pytest.fixture()
def admin():
    return Actor(user_id="admin-1", role="admin", email="alex@labdesk.test", name="Alex Admin")


@pytest.fixture()
def operator():
    return Actor(user_id="bodega-1", role="bodega", email="ana@labdesk.test", name="Ana Bodega")
