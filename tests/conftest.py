import pytest
import os
from datetime import datetime, timezone
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

os.environ.setdefault("DATABASE_URL", "sqlite://")

import hms.models  # noqa: F401
from hms.core.clock import FixedClock, get_clock
from hms.core.deps import get_db
from hms.db.base import Base
from hms.main import app

FROZEN_NOW = datetime(2024, 2, 14, 12, 0, tzinfo=timezone.utc)


@pytest.fixture()
def frozen_clock():
    return FixedClock(FROZEN_NOW)


@pytest.fixture()
def test_context(frozen_clock):
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    session_local = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    Base.metadata.create_all(bind=engine)

    def override_get_db():
        db = session_local()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_clock] = lambda: frozen_clock

    with TestClient(app) as client:
        yield client, session_local

    app.dependency_overrides.clear()
    Base.metadata.drop_all(bind=engine)
