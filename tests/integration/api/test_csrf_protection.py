"""
Integration tests for anti-CSRF enforcement
"""

import pytest

from config import ApplicationConfig
from tests.utils.browser import Browser, non_storing_client


@pytest.mark.asyncio
async def test_authenticated_write_without_token_rejected(browser):
    """Test a state-changing request without the anti-CSRF header is refused"""
    await browser.login(42, role="USER")

    response = await browser.patch("/test/public-data", json={"role": "ADMIN"}, csrf=False)

    assert response.status_code == 403
    assert response.headers["csrf-error"] == "true"
    assert response.json()["error"]["code"] == "CSRF_TOKEN_MISMATCH"

    current = await browser.get("/sessions/current")
    assert current.json()["public_data"]["role"] == "USER"


@pytest.mark.asyncio
async def test_authenticated_write_with_wrong_token_rejected(browser):
    """Test a mismatched anti-CSRF header is refused"""
    await browser.login(42)

    response = await browser.post(
        "/sessions/logout", csrf=False, headers={"anti-csrf": "not-the-token"}
    )

    assert response.status_code == 403
    assert browser.access_token is not None


@pytest.mark.asyncio
async def test_authenticated_write_with_token_accepted(browser):
    """Test the anti-CSRF cookie value echoed as a header is accepted"""
    await browser.login(42)

    response = await browser.patch("/test/public-data", json={"theme": "dark"})

    assert response.status_code == 200


@pytest.mark.asyncio
async def test_reads_do_not_need_token(browser):
    """Test GET requests are never CSRF checked"""
    await browser.login(42)

    response = await browser.get("/sessions/current", csrf=False)

    assert response.status_code == 200
    assert response.json()["kind"] == "authenticated"


@pytest.mark.asyncio
async def test_anonymous_write_allowed_in_essential_mode(browser):
    """Test anonymous writes pass without a header by default"""
    response = await browser.patch("/test/public-data", json={"theme": "dark"}, csrf=False)

    assert response.status_code == 200
    assert response.json() == {"userId": None, "theme": "dark"}


@pytest.mark.asyncio
async def test_anonymous_write_checked_in_advanced_mode(app_factory):
    """Test advanced mode protects anonymous sessions too"""
    app = app_factory(SESSION_CSRF_METHOD="advanced")
    async with non_storing_client(app) as client:
        browser = Browser(client)

        response = await browser.patch("/test/public-data", json={"theme": "dark"}, csrf=False)
        assert response.status_code == 403
        assert response.headers["csrf-error"] == "true"

        # the rejected response still issued an anonymous session
        assert browser.anti_csrf_token is not None
        response = await browser.patch("/test/public-data", json={"theme": "dark"})
        assert response.status_code == 200


@pytest.mark.asyncio
async def test_admin_routes_are_exempt(browser):
    """Test admin API key routes skip the session CSRF check"""
    await browser.login(42)

    response = await browser.post(
        "/admin/sessions/purge-expired",
        csrf=False,
        headers={"X-Admin-API-Key": ApplicationConfig.ADMIN_API_KEY},
    )

    assert response.status_code == 200
