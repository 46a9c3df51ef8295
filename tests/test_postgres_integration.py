import os
from datetime import date

import pytest
from sqlalchemy import create_engine, inspect, text
from sqlalchemy.orm import sessionmaker

from hms.services import row_source


def _test_pg_url() -> str | None:
    return os.getenv("TEST_POSTGRES_DATABASE_URL")


@pytest.mark.integration
def test_postgres_connection_and_report_tables():
    url = _test_pg_url()
    if not url:
        pytest.skip("Set TEST_POSTGRES_DATABASE_URL to run Postgres integration tests.")

    engine = create_engine(url, pool_pre_ping=True)
    with engine.connect() as conn:
        assert conn.execute(text("SELECT 1")).scalar_one() == 1

    table_names = set(inspect(engine).get_table_names())
    assert {"payments", "expenses", "reservations", "billing_invoices"} <= table_names


@pytest.mark.integration
def test_report_queries_run_against_postgres():
    url = _test_pg_url()
    if not url:
        pytest.skip("Set TEST_POSTGRES_DATABASE_URL to run Postgres integration tests.")

    session_local = sessionmaker(bind=create_engine(url, pool_pre_ping=True))
    with session_local() as db:
        start, end = date(2024, 1, 1), date(2024, 1, 31)
        row_source.fetch_payments(db, start, end)
        row_source.fetch_expenses(db, start, end)
        row_source.fetch_active_reservations(db, start, end)
        row_source.fetch_invoices(db, limit=5)
        assert row_source.count_rooms(db) >= 0
