import os
import sys

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import create_async_engine

sys.path.append(os.path.join(os.path.dirname(__file__), "../src"))

from app.db.database import init_models, make_session_factory
from app.trip.preferences import TripDetectionPreferences
from fakes import FakeClock


@pytest_asyncio.fixture
async def session_factory(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'trip_prefs.db'}")
    await init_models(engine)
    yield make_session_factory(engine)
    await engine.dispose()


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def preferences(session_factory, clock):
    return TripDetectionPreferences(session_factory, clock=clock)
