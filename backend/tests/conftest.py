import json
import os
from pathlib import Path
from uuid import uuid4

import pytest

os.environ.setdefault("DATABASE_URL", "sqlite+pysqlite:///./test_rmm_ingest.db")
os.environ.setdefault("LOG_LEVEL", "DEBUG")

from rmm_ingest.config import get_settings  # noqa: E402
from rmm_ingest.storage import db_models  # noqa: E402,F401
from rmm_ingest.storage.database import Base, SessionLocal, engine  # noqa: E402
from rmm_ingest.storage.db_models import ClientORM, IntegrationORM  # noqa: E402

FIXTURES = Path(__file__).resolve().parents[2] / "fixtures"


def load_fixture(name: str) -> dict:
    return json.loads((FIXTURES / name).read_text(encoding="utf-8"))


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def db():
    Base.metadata.drop_all(bind=engine)
    Base.metadata.create_all(bind=engine)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()


@pytest.fixture
def company_id():
    return uuid4()


@pytest.fixture
def make_integration(db, company_id):
    def _make(provider: str = "connectwise", field_mappings: dict | None = None, **overrides) -> IntegrationORM:
        row = IntegrationORM(
            company_id=overrides.pop("company_id", company_id),
            provider=provider,
            name=overrides.pop("name", f"{provider} integration"),
            field_mappings=field_mappings,
            is_active=overrides.pop("is_active", True),
        )
        db.add(row)
        db.commit()
        return row

    return _make


@pytest.fixture
def make_client(db, company_id):
    def _make(name: str = "Acme Corp", **fields) -> ClientORM:
        row = ClientORM(company_id=fields.pop("company_id", company_id), name=name, **fields)
        db.add(row)
        db.commit()
        return row

    return _make


def pytest_sessionfinish(session, exitstatus):
    db_file = Path("test_rmm_ingest.db")
    if db_file.exists():
        db_file.unlink()
