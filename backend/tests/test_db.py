import pytest

from financequest.db import build_engine, normalize_database_url


@pytest.mark.parametrize(
    "raw,expected",
    [
        ("postgres://u:p@host/db", "postgresql+psycopg://u:p@host/db"),
        ("postgresql://u:p@host/db", "postgresql+psycopg://u:p@host/db"),
        ("  postgresql+psycopg://u:p@host/db\n", "postgresql+psycopg://u:p@host/db"),
        ("sqlite:///./financequest.db", "sqlite:///./financequest.db"),
    ],
)
def test_normalize_database_url(raw, expected):
    assert normalize_database_url(raw) == expected


def test_sqlite_engine_connects(tmp_path):
    engine = build_engine(f"sqlite:///{tmp_path / 'x.db'}")
    try:
        assert engine.dialect.name == "sqlite"
        with engine.connect() as conn:
            assert conn.exec_driver_sql("select 1").scalar() == 1
    finally:
        engine.dispose()
