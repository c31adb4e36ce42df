import httpx
import pytest

from hiremind_client.errors import SyncError
from hiremind_client.sync import BackendSyncClient

API = "http://api.test"
USER = {
    "id": "7b1c0a52-5d8e-4a4e-9f7e-0c1f5c2b9a11",
    "subjectId": "uid-alice",
    "email": "alice@example.com",
    "name": "Alice",
    "photoURL": "",
    "providers": ["password", "google"],
    "emailVerified": True,
    "createdAt": "2024-05-01T10:00:00+00:00",
}


@pytest.fixture
def sync_client():
    c = BackendSyncClient(API)
    yield c
    c.close()


def test_sync_posts_bearer_and_parses_user(httpx_mock, sync_client):
    httpx_mock.add_response(
        url=f"{API}/api/auth/login",
        method="POST",
        json={"success": True, "message": "Login successful", "user": USER},
    )
    out = sync_client.sync("tok-123")
    assert out.ok
    assert out.user.subject_id == "uid-alice"
    assert out.user.has_password and out.user.has_federated

    req = httpx_mock.get_request()
    assert req.headers["Authorization"] == "Bearer tok-123"


def test_sync_reports_backend_message_on_401(httpx_mock, sync_client):
    httpx_mock.add_response(
        url=f"{API}/api/auth/login",
        method="POST",
        status_code=401,
        json={"success": False, "message": "Token expired. Please login again."},
    )
    out = sync_client.sync("tok-123")
    assert out.status == "failed"
    assert out.error == "Token expired. Please login again."
    assert out.user is None


def test_sync_survives_non_json_500(httpx_mock, sync_client):
    httpx_mock.add_response(url=f"{API}/api/auth/login", method="POST", status_code=502, text="Bad Gateway")
    out = sync_client.sync("tok-123")
    assert out.status == "failed"
    assert out.error == "HTTP 502"


@pytest.mark.parametrize("payload", [["not", "an", "object"], "Bad Gateway", 42])
def test_sync_survives_non_object_json_error(httpx_mock, sync_client, payload):
    httpx_mock.add_response(url=f"{API}/api/auth/login", method="POST", status_code=502, json=payload)
    out = sync_client.sync("tok-123")
    assert out.status == "failed"
    assert out.error == "HTTP 502"


def test_sync_survives_non_object_json_success(httpx_mock, sync_client):
    httpx_mock.add_response(url=f"{API}/api/auth/login", method="POST", json=["not", "an", "object"])
    assert sync_client.sync("tok-123").status == "failed"


def test_sync_survives_unexpected_body(httpx_mock, sync_client):
    httpx_mock.add_response(url=f"{API}/api/auth/login", method="POST", json={"success": True, "user": {"id": 1}})
    assert sync_client.sync("tok-123").status == "failed"


def test_sync_survives_timeout(httpx_mock, sync_client):
    httpx_mock.add_exception(httpx.ReadTimeout("timed out"))
    assert sync_client.sync("tok-123").status == "failed"


def test_sync_without_token_is_skipped(sync_client):
    out = sync_client.sync(None)
    assert out.status == "skipped"


def test_fetch_me_raises_for_missing_record(httpx_mock, sync_client):
    httpx_mock.add_response(
        url=f"{API}/api/auth/me",
        method="GET",
        status_code=404,
        json={"success": False, "message": "User not found"},
    )
    with pytest.raises(SyncError) as ei:
        sync_client.fetch_me("tok-123")
    assert ei.value.status_code == 404
    assert ei.value.message == "User not found"
