"""
Integration tests for Session Revocation and Admin API
"""

import pytest

from config import ApplicationConfig
from session_engine.app.services.token_codec import generate_token

ADMIN_HEADERS = {"X-Admin-API-Key": ApplicationConfig.ADMIN_API_KEY}


@pytest.mark.asyncio
async def test_list_sessions(browser, new_browser):
    """Test the current user's live sessions are listed"""
    laptop = await browser.login(42)
    phone = await new_browser().login(42)
    await new_browser().login(7)

    response = await browser.get("/sessions")

    assert response.status_code == 200
    sessions = response.json()["sessions"]
    assert {s["handle"] for s in sessions} == {laptop, phone}
    assert [s["current"] for s in sessions if s["handle"] == laptop] == [True]


@pytest.mark.asyncio
async def test_list_sessions_requires_login(browser):
    """Test anonymous callers cannot list sessions"""
    response = await browser.get("/sessions")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHENTICATED"


@pytest.mark.asyncio
async def test_revoke_other_device(browser, new_browser, fetch_session):
    """Test revoking another of the user's own sessions by handle"""
    await browser.login(42)
    phone = new_browser()
    phone_handle = await phone.login(42)

    response = await browser.delete(f"/sessions/{phone_handle}")

    assert response.status_code == 200
    assert response.json() == {
        "message": "Session revoked successfully",
        "handle": phone_handle,
        "revoked": True,
    }
    assert "session-revoked" not in response.headers
    assert await fetch_session(phone_handle) is None

    response = await phone.get("/sessions/current")
    assert response.json()["kind"] == "anonymous"


@pytest.mark.asyncio
async def test_revoke_someone_elses_session(browser, new_browser, fetch_session):
    """Test a handle of another user is reported as not found"""
    await browser.login(42)
    stranger_handle = await new_browser().login(7)

    response = await browser.delete(f"/sessions/{stranger_handle}")

    assert response.status_code == 404
    assert response.json()["error"]["code"] == "SESSION_NOT_FOUND"
    assert await fetch_session(stranger_handle) is not None


@pytest.mark.asyncio
async def test_revoke_unknown_handle(browser):
    """Test an unknown handle is reported as not found"""
    await browser.login(42)

    response = await browser.delete(f"/sessions/{generate_token()}")

    assert response.status_code == 404


@pytest.mark.asyncio
async def test_revoke_current_handle_is_logout(browser, fetch_session):
    """Test revoking the current handle logs the caller out"""
    handle = await browser.login(42)

    response = await browser.delete(f"/sessions/{handle}")

    assert response.status_code == 200
    assert response.headers["session-revoked"] == "true"
    assert browser.access_token is None
    assert await fetch_session(handle) is None


@pytest.mark.asyncio
async def test_revoke_others(browser, new_browser, fetch_session):
    """Test logging out every other device keeps the current session"""
    handle = await browser.login(42)
    phone = new_browser()
    await phone.login(42)
    tablet = new_browser()
    await tablet.login(42)

    response = await browser.post("/sessions/revoke-others")

    assert response.status_code == 200
    assert response.json()["revoked_count"] == 2
    assert await fetch_session(handle) is not None
    assert (await browser.get("/sessions/current")).json()["kind"] == "authenticated"
    assert (await phone.get("/sessions/current")).json()["kind"] == "anonymous"
    assert (await tablet.get("/sessions/current")).json()["kind"] == "anonymous"


@pytest.mark.asyncio
async def test_logout_everywhere(browser, new_browser):
    """Test revoking every session of the current user"""
    await browser.login(42)
    phone = new_browser()
    await phone.login(42)
    stranger = new_browser()
    await stranger.login(7)

    response = await browser.post("/sessions/logout-all")

    assert response.status_code == 200
    assert response.json()["revoked_count"] == 2
    assert response.headers["session-revoked"] == "true"
    assert browser.cookies == {}
    assert (await phone.get("/sessions/current")).json()["kind"] == "anonymous"
    assert (await stranger.get("/sessions/current")).json()["kind"] == "authenticated"


@pytest.mark.asyncio
async def test_logout_everywhere_requires_login(browser):
    """Test logout-all is refused for anonymous callers"""
    response = await browser.post("/sessions/logout-all")

    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHENTICATED"


@pytest.mark.asyncio
async def test_logout_when_anonymous(browser):
    """Test logout without a session still clears cookies"""
    response = await browser.post("/sessions/logout")

    assert response.status_code == 200
    assert response.headers["session-revoked"] == "true"
    assert browser.cookies == {}


@pytest.mark.asyncio
async def test_admin_revoke_user_sessions(browser, new_browser, client):
    """Test operators can log a user out everywhere"""
    await browser.login(42)
    await new_browser().login(42)

    response = await client.post("/admin/users/42/sessions/revoke", headers=ADMIN_HEADERS)

    assert response.status_code == 200
    assert response.json()["revoked_count"] == 2
    assert (await browser.get("/sessions/current")).json()["kind"] == "anonymous"


@pytest.mark.asyncio
async def test_admin_purge_expired(browser, new_browser, client, expire_session, fetch_session):
    """Test the janitor endpoint deletes expired records only"""
    expired = await browser.login(42)
    live = await new_browser().login(42)
    await expire_session(expired)

    response = await client.post("/admin/sessions/purge-expired", headers=ADMIN_HEADERS)

    assert response.status_code == 200
    assert response.json() == {"status": "ok", "purged_count": 1}
    assert await fetch_session(expired) is None
    assert await fetch_session(live) is not None


@pytest.mark.asyncio
async def test_admin_requires_api_key(client):
    """Test admin routes reject missing or wrong keys"""
    response = await client.post("/admin/sessions/purge-expired")
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "UNAUTHORIZED"

    response = await client.post(
        "/admin/sessions/purge-expired", headers={"X-Admin-API-Key": "wrong"}
    )
    assert response.status_code == 401
    assert response.json()["error"]["code"] == "INVALID_API_KEY"
