import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import create_async_engine

from cardledger.db.store import CardStore, get_store
from cardledger.main import app


@pytest.fixture
async def store():
    """A CardStore on an in-memory SQLite database."""
    engine = create_async_engine("sqlite+aiosqlite:///:memory:", echo=False)
    card_store = CardStore(engine)
    await card_store.init_schema()
    yield card_store
    await card_store.drop_schema()
    await card_store.close()


@pytest.fixture
async def client(store: CardStore):
    """Provide an async test client wired to the in-memory store."""
    app.dependency_overrides[get_store] = lambda: store

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
async def client_without_store():
    """Provide an async test client with no store configured."""
    app.dependency_overrides[get_store] = lambda: None

    transport = ASGITransport(app=app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_csv() -> str:
    """Sample collection export with loosely-cased, aliased headers."""
    return (
        "Name,Set,Condition,TCG,Value,Qty\n"
        "Charizard,Base Set,LP,Pokemon,400,2\n"
        "Black Lotus,Alpha,NM,Magic,50000,1\n"
        "Dark Magician,LOB,MP,YuGiOh,120.50,3\n"
    )
