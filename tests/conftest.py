from datetime import date, datetime, timedelta, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from boundlic.common.config import Config
from boundlic.common.messages import Messages
from boundlic.server.audit import ActivationAuditLog
from boundlic.server.core import LicenseServer
from boundlic.server.database import Database
from boundlic.server.keygen import KeyGenerator
from boundlic.server.registry import LicenseRegistry

ADMIN_KEY = "test-admin-key"


class FrozenClock:
    """Callable clock that tests can move around."""

    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def today(self) -> date:
        return self.now.date()

    def advance(self, **kwargs: float) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock(datetime(2025, 3, 10, 9, 30, tzinfo=timezone.utc))


@pytest.fixture
def config(tmp_path: Path) -> Config:
    """Config pointing at a throwaway SQLite database."""
    config = Config()
    config.DATABASE_URL = f"sqlite:///{tmp_path / 'licenses.db'}"
    config.ADMIN_KEY = ADMIN_KEY
    config.KEY_PREFIX = "HASNA"
    config.LOCALE = "fr"
    config.AUDIT_RETENTION_DAYS = None
    return config


@pytest.fixture
def database(config: Config) -> Database:
    database = Database(config.DATABASE_URL)
    database.create_all()
    yield database
    database.dispose()


@pytest.fixture
def audit_log(database: Database, clock: FrozenClock) -> ActivationAuditLog:
    return ActivationAuditLog(database, clock=clock)


@pytest.fixture
def registry(
    database: Database,
    audit_log: ActivationAuditLog,
    config: Config,
    clock: FrozenClock,
) -> LicenseRegistry:
    return LicenseRegistry(
        database=database,
        audit_log=audit_log,
        key_generator=KeyGenerator("HASNA"),
        messages=Messages("fr"),
        config=config,
        clock=clock,
    )


@pytest.fixture
def server(config: Config, database: Database, clock: FrozenClock) -> LicenseServer:
    return LicenseServer(config=config, database=database, clock=clock)


@pytest.fixture
def http(server: LicenseServer) -> TestClient:
    return TestClient(server.app)
