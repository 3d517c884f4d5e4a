"""
Shared fixtures: a throwaway SQLite database and the rate store on top of it.
"""

import pytest
import pytest_asyncio

from infrastructure.persistence.database import Database
from infrastructure.persistence.repositories.rates import SQLRateStore
from tests.helpers import BASE_CURRENCY, CURRENCIES


@pytest_asyncio.fixture
async def database(tmp_path):
    db = Database(f"sqlite+aiosqlite:///{tmp_path / 'rates.db'}")
    await db.create_tables()
    yield db
    await db.close()


@pytest.fixture
def store(database):
    return SQLRateStore(database, base_currency=BASE_CURRENCY, currencies=CURRENCIES)
