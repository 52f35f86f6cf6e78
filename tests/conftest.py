import pytest

from harvester.config.settings import FacebookSettings, TimingSettings
from harvester.db.database import Database
from harvester.db.store import SqlRecordStore
from harvester.models.cookies import CookieEntry, SessionCredential

from tests.fakes import MemoryCredentialStore


@pytest.fixture
def timing() -> TimingSettings:
    return TimingSettings()


@pytest.fixture
def facebook() -> FacebookSettings:
    return FacebookSettings(
        email="",
        password="",
        base_url="https://www.facebook.com",
        feed_base_url="https://m.facebook.com",
        session_name="facebook-session",
    )


@pytest.fixture
def credential_store() -> MemoryCredentialStore:
    return MemoryCredentialStore()


@pytest.fixture
def saved_credential() -> SessionCredential:
    return SessionCredential(
        name="facebook-session",
        cookies=[
            CookieEntry(name="c_user", value="100", domain=".facebook.com", secure=True),
            CookieEntry(name="xs", value="abc", domain=".facebook.com", http_only=True),
        ],
    )


@pytest.fixture
def record_store() -> SqlRecordStore:
    return SqlRecordStore(Database(":memory:"))
