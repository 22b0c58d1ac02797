from datetime import datetime, timezone
from typing import Generator

import pytest
from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

from db.models import Base
from tests.helpers.fakes import FakeClock

engine: Engine = create_engine("sqlite:///:memory:", connect_args={"check_same_thread": False})
_session_factory = sessionmaker(engine)


@pytest.fixture(scope="function")
def session_factory() -> sessionmaker[Session]:
    return _session_factory


@pytest.fixture(scope="function")
def test_session() -> Generator[Session, None, None]:
    with _session_factory() as session:
        yield session


@pytest.fixture(scope="function", autouse=True)
def reset_db() -> Generator[None, None, None]:
    Base.metadata.create_all(engine)
    yield
    Base.metadata.drop_all(engine)


@pytest.fixture(scope="function")
def clock() -> FakeClock:
    return FakeClock(datetime(2025, 1, 1, 12, 0, tzinfo=timezone.utc))
