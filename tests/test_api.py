import pytest
from fastapi.testclient import TestClient

from harvester.api.deps import get_service
from harvester.api.main import app
from harvester.extraction.diagnostics import MemoryDiagnostics
from harvester.models.content import CommentItem, PostItem
from harvester.service import HarvesterService

from tests.fakes import FakeBrowser, browser_factory


@pytest.fixture
def browser():
    return FakeBrowser(url="https://www.facebook.com/")


@pytest.fixture
def service(facebook, timing, record_store, credential_store, browser):
    return HarvesterService(
        facebook=facebook,
        timing=timing,
        store=record_store,
        credentials=credential_store,
        browser_factory=browser_factory(browser),
        diagnostics=MemoryDiagnostics(),
    )


@pytest.fixture
def client(service):
    app.dependency_overrides[get_service] = lambda: service
    yield TestClient(app)
    app.dependency_overrides.clear()


def test_health(client):
    resp = client.get("/health")
    assert resp.status_code == 200
    assert resp.json() == {"status": "ok"}


def test_group_posts_requires_group_id(client):
    resp = client.post("/scraper/group-posts", json={"max_posts": 10})
    assert resp.status_code == 422


def test_group_posts_rejects_non_positive_limit(client):
    resp = client.post("/scraper/group-posts", json={"group_id": "1", "max_posts": 0})
    assert resp.status_code == 422


def test_group_posts_without_session_reports_failure(client):
    resp = client.post("/scraper/group-posts", json={"group_id": "1"})

    assert resp.status_code == 200
    data = resp.json()
    assert data["success"] is False
    assert "Please login first" in data["message"]
    assert data["posts"] == []


def test_login_without_credentials_fails(client, browser):
    resp = client.post("/scraper/login")

    assert resp.status_code == 200
    data = resp.json()
    assert data["status"] == "failed"
    assert data["success"] is False
    assert data["message"] == "Email and password are required"
    assert browser.closed is True


def test_login_restores_saved_session(client, credential_store, saved_credential):
    credential_store.credentials[saved_credential.name] = saved_credential

    resp = client.post("/scraper/login", json={})

    data = resp.json()
    assert data["status"] == "authenticated"
    assert data["used_cookies"] is True
    assert data["success"] is True


def test_close(client, credential_store, saved_credential, browser):
    credential_store.credentials[saved_credential.name] = saved_credential
    client.post("/scraper/login")

    resp = client.post("/scraper/close")

    assert resp.json() == {"success": True, "message": "Browser closed successfully"}
    assert browser.closed is True


async def test_stored_posts_endpoints(client, record_store):
    await record_store.insert_with_children(
        PostItem(
            text="Selling my bike",
            url="https://www.facebook.com/groups/1/posts/2",
            comments=[CommentItem(text="Interested")],
        ),
        "hash-1",
    )

    assert client.get("/scraper/posts/count").json() == {"count": 1}

    posts = client.get("/scraper/posts").json()
    assert posts[0]["url"] == "https://www.facebook.com/groups/1/posts/2"
    assert posts[0]["content_hash"] == "hash-1"
    assert posts[0]["comments"][0]["text"] == "Interested"

    assert client.delete("/scraper/posts").json() == {"success": True, "deleted": 1}
    assert client.get("/scraper/posts/count").json() == {"count": 0}
