import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine
from sqlmodel import SQLModel

from innvo.config import new_session_factory
from innvo.db.ops import ComponentDatabaseOps
from innvo.service.component_service import ComponentService
from tests.unit_test.fakes import InMemoryDatastore, InMemorySearchIndex


@pytest.fixture
def datastore():
    return InMemoryDatastore()


@pytest.fixture
def search_index():
    return InMemorySearchIndex()


@pytest.fixture
def service(datastore, search_index):
    return ComponentService(datastore, search_index, retry_attempts=3, retry_wait=0, retry_max_wait=0)


@pytest_asyncio.fixture
async def db_ops(tmp_path):
    """ComponentDatabaseOps on a throwaway sqlite database"""
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'innvo.db'}")
    async with engine.begin() as conn:
        await conn.run_sync(SQLModel.metadata.create_all)
    yield ComponentDatabaseOps(new_session_factory(engine))
    await engine.dispose()
