"""Tests for the HTTP API.

The app runs through FastAPI's TestClient with a SQLite database, fake
upstreams and a fake Google.
"""

from urllib.parse import parse_qs, urlparse

import httpx
import pytest
from fastapi.testclient import TestClient

from city_explorer.api.app import create_app
from city_explorer.auth.google import (
    GOOGLE_TOKEN_URL,
    GOOGLE_USERINFO_URL,
    GoogleOAuth,
)
from city_explorer.auth.session import create_session_token
from city_explorer.config import Settings
from city_explorer.models.principal import Principal
from city_explorer.providers.aggregator import CityAggregator

API_KEY = {"x-api-key": "test-api-key"}

PARIS = {
    "city": {
        "name": "Paris",
        "country": "France",
        "countryCode": "FR",
        "population": 2140526,
        "latitude": 48.8566,
        "longitude": 2.3522,
    },
    "weather": {"temperature": 18, "description": "clear sky"},
    "countryInfo": {
        "capital": "Paris",
        "currency": {"code": "EUR", "name": "Euro", "symbol": "€"},
        "languages": ["French"],
    },
}


def google_handler(request: httpx.Request) -> httpx.Response:
    url = str(request.url).split("?")[0]
    if url == GOOGLE_TOKEN_URL:
        return httpx.Response(
            200, json={"access_token": "google-token", "token_type": "Bearer"}
        )
    if url == GOOGLE_USERINFO_URL:
        return httpx.Response(
            200,
            json={"id": "google-carol", "email": "carol@example.com", "name": "Carol"},
        )
    return httpx.Response(404)


@pytest.fixture
def oauth(settings: Settings) -> GoogleOAuth:
    return GoogleOAuth(
        client_id=settings.google_client_id,
        client_secret=settings.google_client_secret,
        redirect_uri=settings.google_redirect_uri,
        transport=httpx.MockTransport(google_handler),
    )


@pytest.fixture
def client(settings, aggregator, oauth):
    app = create_app(settings=settings, aggregator=aggregator, oauth=oauth)
    with TestClient(app) as client:
        yield client


def login(client: TestClient, settings: Settings, principal: Principal) -> None:
    client.cookies.set(
        settings.session_cookie_name,
        create_session_token(principal, settings.secret_key),
    )


@pytest.fixture
def as_alice(client, settings, alice) -> TestClient:
    login(client, settings, alice)
    return client


class TestGates:
    """Tests for the API key and session gates."""

    def test_missing_key(self, as_alice: TestClient):
        """Test a missing key is 403 even with a valid session."""
        response = as_alice.get("/api/records")

        assert response.status_code == 403
        assert response.json() == {
            "success": False,
            "error": "Forbidden: API Key is required",
        }

    def test_wrong_key(self, as_alice: TestClient):
        """Test a wrong key is 403 even with a valid session."""
        response = as_alice.get("/api/records", headers={"x-api-key": "nope"})

        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden: Invalid API Key"

    def test_key_checked_before_session(self, client: TestClient):
        """Test a missing key without a session is 403, not 401."""
        response = client.post("/api/save-city", json=PARIS)

        assert response.status_code == 403

    def test_no_session(self, client: TestClient):
        """Test a good key without a session is 401."""
        response = client.get("/api/stats", headers=API_KEY)

        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_forged_session(self, client: TestClient, settings, alice):
        """Test a session signed with another secret is 401."""
        client.cookies.set(
            settings.session_cookie_name,
            create_session_token(alice, "another-secret-key-that-is-32-chars-long"),
        )

        response = client.get("/api/stats", headers=API_KEY)

        assert response.status_code == 401


class TestRecords:
    """Tests for the record routes."""

    def test_save(self, as_alice: TestClient, alice: Principal):
        """Test saving returns 201 with the stamped record."""
        response = as_alice.post("/api/save-city", json=PARIS, headers=API_KEY)

        assert response.status_code == 201
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "City data saved successfully"
        assert body["data"]["userId"] == alice.id
        assert body["data"]["city"]["countryCode"] == "FR"
        assert body["data"]["countryInfo"]["currency"]["symbol"] == "€"
        assert body["data"]["weather"]["feelsLike"] == 0
        assert "searchedAt" in body["data"]

    def test_save_missing_country(self, as_alice: TestClient):
        """Test a city without a country is 400."""
        response = as_alice.post(
            "/api/save-city", json={"city": {"name": "Paris"}}, headers=API_KEY
        )

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "Bad Request: City name and country are required",
        }

    def test_list(self, as_alice: TestClient):
        """Test listing returns records and pagination."""
        for _ in range(3):
            as_alice.post("/api/save-city", json=PARIS, headers=API_KEY)

        response = as_alice.get("/api/records?page=2&limit=2", headers=API_KEY)

        assert response.status_code == 200
        body = response.json()
        assert len(body["records"]) == 1
        assert body["pagination"] == {"total": 3, "page": 2, "limit": 2, "pages": 2}

    @pytest.mark.parametrize("limit", [0, 101])
    def test_list_limit_bounds(self, as_alice: TestClient, limit: int):
        """Test limit must be 1..100, reported in the error envelope."""
        response = as_alice.get(f"/api/records?limit={limit}", headers=API_KEY)

        assert response.status_code == 422
        body = response.json()
        assert body["success"] is False
        assert "limit" in body["error"]
        assert "detail" not in body

    def test_save_invalid_latitude(self, as_alice: TestClient):
        """Test an out-of-range body field is a 422 envelope."""
        payload = {"city": {**PARIS["city"], "latitude": 95}}

        response = as_alice.post("/api/save-city", json=payload, headers=API_KEY)

        assert response.status_code == 422
        assert response.json()["success"] is False
        assert "latitude" in response.json()["error"]

    def test_list_mine(self, client: TestClient, settings, alice, bob):
        """Test userId=me lists only the caller's records."""
        login(client, settings, alice)
        client.post("/api/save-city", json=PARIS, headers=API_KEY)
        login(client, settings, bob)
        client.post("/api/save-city", json=PARIS, headers=API_KEY)

        everyone = client.get("/api/records", headers=API_KEY).json()
        mine = client.get("/api/records?userId=me", headers=API_KEY).json()

        assert everyone["pagination"]["total"] == 2
        assert mine["pagination"]["total"] == 1
        assert mine["records"][0]["userId"] == bob.id

    def test_get(self, as_alice: TestClient):
        """Test fetching one record."""
        saved = as_alice.post("/api/save-city", json=PARIS, headers=API_KEY).json()
        record_id = saved["data"]["id"]

        response = as_alice.get(f"/api/records/{record_id}", headers=API_KEY)

        assert response.status_code == 200
        assert response.json()["data"]["city"]["name"] == "Paris"

    def test_get_missing(self, as_alice: TestClient):
        """Test an unknown id is 404."""
        response = as_alice.get("/api/records/999", headers=API_KEY)

        assert response.status_code == 404
        assert response.json()["error"] == "Record not found"

    def test_delete_own(self, as_alice: TestClient):
        """Test deleting your own record."""
        saved = as_alice.post("/api/save-city", json=PARIS, headers=API_KEY).json()
        record_id = saved["data"]["id"]

        response = as_alice.delete(f"/api/records/{record_id}", headers=API_KEY)

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Record deleted successfully"}
        assert as_alice.get(f"/api/records/{record_id}", headers=API_KEY).status_code == 404

    def test_delete_others(self, client: TestClient, settings, alice, bob):
        """Test deleting someone else's record is 403."""
        login(client, settings, alice)
        saved = client.post("/api/save-city", json=PARIS, headers=API_KEY).json()
        login(client, settings, bob)

        response = client.delete(f"/api/records/{saved['data']['id']}", headers=API_KEY)

        assert response.status_code == 403
        assert response.json()["error"] == "Forbidden: You can only delete your own records"

    def test_stats(self, as_alice: TestClient):
        """Test stats use camelCase keys."""
        as_alice.post("/api/save-city", json=PARIS, headers=API_KEY)

        response = as_alice.get("/api/stats", headers=API_KEY)

        assert response.status_code == 200
        assert response.json()["data"] == {
            "totalCount": 1,
            "myCount": 1,
            "topCities": [{"name": "Paris", "count": 1}],
        }


class TestDatabaseDown:
    """Tests for an unreachable database."""

    @pytest.fixture
    def offline_client(self, settings, aggregator, oauth, tmp_path, alice):
        offline = settings.model_copy(
            update={
                "database_url": f"sqlite+aiosqlite:///{tmp_path / 'missing' / 'db.sqlite'}"
            }
        )
        app = create_app(settings=offline, aggregator=aggregator, oauth=oauth)
        with TestClient(app) as client:
            login(client, offline, alice)
            yield client

    def test_save_unavailable(self, offline_client: TestClient):
        """Test record routes answer 503 while the app keeps running."""
        response = offline_client.post("/api/save-city", json=PARIS, headers=API_KEY)

        assert response.status_code == 503
        assert response.json()["success"] is False

    def test_health_reports_disconnected(self, offline_client: TestClient):
        """Test health reports the database status."""
        response = offline_client.get("/health")

        assert response.status_code == 200
        assert response.json()["database"] == "disconnected"


class TestCities:
    """Tests for the upstream proxy routes."""

    def test_search(self, client: TestClient):
        """Test search returns cities, most populous first."""
        response = client.get("/api/cities/search?q=Lon")

        assert response.status_code == 200
        codes = [c["countryCode"] for c in response.json()["data"]]
        assert codes == ["GB", "BR", "CA"]

    def test_aggregate(self, client: TestClient, london):
        """Test aggregating a city returns the full bundle."""
        response = client.post(
            "/api/cities/aggregate", json=london.model_dump(by_alias=True)
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["city"]["name"] == "London"
        assert data["weather"]["temperature"] == 15
        assert data["countryInfo"]["capital"] == "London"

    def test_upstream_rate_limit(self, settings, make_client, oauth):
        """Test an upstream 429 is passed through as 429."""
        throttled = CityAggregator.from_settings(
            settings, client=make_client(lambda request: httpx.Response(429))
        )
        app = create_app(settings=settings, aggregator=throttled, oauth=oauth)

        with TestClient(app) as client:
            response = client.get("/api/cities/search?q=Lon")

        assert response.status_code == 429
        assert response.json()["success"] is False

    def test_upstream_failure(self, settings, make_client, oauth, london):
        """Test an upstream failure is 502 with no partial data."""
        failing = CityAggregator.from_settings(
            settings, client=make_client(lambda request: httpx.Response(500))
        )
        app = create_app(settings=settings, aggregator=failing, oauth=oauth)

        with TestClient(app) as client:
            response = client.post(
                "/api/cities/aggregate", json=london.model_dump(by_alias=True)
            )

        assert response.status_code == 502
        assert "data" not in response.json()


class TestAuthRoutes:
    """Tests for the login flow routes."""

    def test_status_anonymous(self, client: TestClient):
        """Test status without a cookie."""
        response = client.get("/auth/status")

        body = response.json()
        assert body["success"] is True
        assert body["isAuthenticated"] is False
        assert body.get("user") is None

    def test_status_signed_in(self, as_alice: TestClient, alice: Principal):
        """Test status with a valid session."""
        body = as_alice.get("/auth/status").json()

        assert body["isAuthenticated"] is True
        assert body["user"] == {
            "id": alice.id,
            "name": alice.display_name,
            "email": alice.email,
            "photo": alice.photo,
        }

    def test_login_flow(self, client: TestClient, settings: Settings):
        """Test consent redirect, callback, and the resulting session."""
        start = client.get("/auth/google", follow_redirects=False)
        assert start.status_code == 302
        state = parse_qs(urlparse(start.headers["location"]).query)["state"][0]

        callback = client.get(
            "/auth/google/callback",
            params={"code": "auth-code", "state": state},
            follow_redirects=False,
        )

        assert callback.status_code == 302
        assert callback.headers["location"] == "/"
        assert settings.session_cookie_name in callback.headers["set-cookie"]
        assert "httponly" in callback.headers["set-cookie"].lower()

        status = client.get("/auth/status").json()
        assert status["user"]["email"] == "carol@example.com"

    def test_callback_bad_state(self, client: TestClient, settings: Settings):
        """Test a forged state redirects to the failure page."""
        response = client.get(
            "/auth/google/callback",
            params={"code": "auth-code", "state": "forged"},
            follow_redirects=False,
        )

        assert response.status_code == 302
        assert response.headers["location"] == settings.login_failed_path

    def test_callback_error(self, client: TestClient, settings: Settings):
        """Test a denied consent redirects to the failure page."""
        response = client.get(
            "/auth/google/callback",
            params={"error": "access_denied"},
            follow_redirects=False,
        )

        assert response.headers["location"] == settings.login_failed_path

    def test_logout(self, as_alice: TestClient, settings: Settings):
        """Test logout expires the session cookie."""
        response = as_alice.get("/auth/logout", follow_redirects=False)

        assert response.status_code == 302
        assert response.headers["location"] == "/"
        cookie = response.headers["set-cookie"].lower()
        assert settings.session_cookie_name in cookie
        assert "max-age=0" in cookie

    def test_login_unconfigured(self, settings, aggregator):
        """Test login without Google credentials is 501."""
        unconfigured = GoogleOAuth(client_id=None, client_secret=None, redirect_uri="/")
        app = create_app(settings=settings, aggregator=aggregator, oauth=unconfigured)

        with TestClient(app) as client:
            response = client.get("/auth/google", follow_redirects=False)

        assert response.status_code == 501


class TestHealth:
    """Tests for the health check."""

    def test_health(self, client: TestClient):
        """Test health with a reachable database."""
        response = client.get("/health")

        assert response.status_code == 200
        assert response.json() == {
            "status": "healthy",
            "version": "0.1.0",
            "database": "connected",
        }
