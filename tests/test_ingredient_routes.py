"""Tests for the HTTP surface: ingredient endpoint, health, 404s, rate limiting.

Outbound Gemini calls are either replaced by overriding the service
dependency with a stubbed LLM, or mocked at the transport layer with respx.
"""

import json
from typing import Any, Iterator
from unittest.mock import MagicMock

import httpx
import pytest
import respx
from fastapi.testclient import TestClient

from app.api.routes.ingredient import get_ingredient_service
from app.core.config import settings
from app.main import app
from app.services.ingredient_service import IngredientService

ENDPOINT = "/api/ai-ingredient"
GEMINI_URL = (
    "https://generativelanguage.googleapis.com/v1/models/gemini-2.0-flash:generateContent"
)


@pytest.fixture
def client() -> TestClient:
    """Create FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def stubbed_service(stub_llm: MagicMock) -> Iterator[MagicMock]:
    """Route requests to a service backed by the stub LLM."""
    service = IngredientService(llm_factory=lambda: stub_llm)
    app.dependency_overrides[get_ingredient_service] = lambda: service
    yield stub_llm
    app.dependency_overrides.pop(get_ingredient_service, None)


def _gemini_reply(text: str) -> dict[str, Any]:
    return {"candidates": [{"content": {"parts": [{"text": text}]}}]}


# ======================== Health & routing ========================


class TestHealthCheck:

    def test_health_returns_ok(self, client: TestClient) -> None:
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "OK"
        assert isinstance(body["message"], str) and body["message"]


class TestUnknownRoutes:

    def test_unknown_path_returns_404_envelope(self, client: TestClient) -> None:
        response = client.get("/api/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "endpoint not found"}

    def test_wrong_method_returns_404_envelope(self, client: TestClient) -> None:
        response = client.get(ENDPOINT)

        assert response.status_code == 404
        assert response.json() == {"success": False, "error": "endpoint not found"}


# ======================== Ingredient endpoint ========================


class TestIngredientEndpoint:

    def test_success_returns_record_and_timestamp(
        self,
        client: TestClient,
        stubbed_service: MagicMock,
        sample_record: dict[str, Any],
    ) -> None:
        response = client.post(ENDPOINT, json={"name": "Jojobaöl"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"] == sample_record
        assert body["timestamp"].endswith("Z")
        assert "X-Request-ID" in response.headers

    def test_inci_only_is_accepted(self, client: TestClient, stubbed_service: MagicMock) -> None:
        response = client.post(ENDPOINT, json={"inci": "Simmondsia Chinensis Seed Oil"})

        assert response.status_code == 200

    @pytest.mark.parametrize("payload", [{}, {"name": "", "inci": ""}, {"name": "  "}])
    def test_missing_name_and_inci_returns_400(
        self, client: TestClient, stubbed_service: MagicMock, payload: dict
    ) -> None:
        response = client.post(ENDPOINT, json=payload)

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "name or INCI required"}
        stubbed_service.generate_text.assert_not_called()

    def test_missing_body_returns_400(self, client: TestClient, stubbed_service: MagicMock) -> None:
        response = client.post(ENDPOINT)

        assert response.status_code == 400
        assert response.json()["error"] == "name or INCI required"

    def test_malformed_json_returns_400(self, client: TestClient, stubbed_service: MagicMock) -> None:
        response = client.post(
            ENDPOINT, content="{not json", headers={"Content-Type": "application/json"}
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert body["error"] == "invalid request body"

    def test_missing_api_key_returns_500_without_upstream_call(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings.gemini, "api_key", None)

        with respx.mock(assert_all_called=False) as mock:
            route = mock.post(GEMINI_URL)
            response = client.post(ENDPOINT, json={"name": "Jojobaöl"})

        assert response.status_code == 500
        assert response.json()["success"] is False
        assert response.json()["error"] == "API configuration missing"
        assert not route.called

    def test_unexpected_error_returns_generic_500(self) -> None:
        service = MagicMock()
        service.enrich.side_effect = RuntimeError("database exploded")
        app.dependency_overrides[get_ingredient_service] = lambda: service
        try:
            client = TestClient(app, raise_server_exceptions=False)
            response = client.post(ENDPOINT, json={"name": "Jojobaöl"})
        finally:
            app.dependency_overrides.pop(get_ingredient_service, None)

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "internal server error"}


class TestUpstreamThroughTransport:
    """End-to-end with the real Gemini client and a respx-mocked upstream."""

    def test_fenced_reply_is_unwrapped(
        self, client: TestClient, sample_record: dict[str, Any]
    ) -> None:
        fenced = f"```json\n{json.dumps(sample_record, ensure_ascii=False)}\n```"

        with respx.mock() as mock:
            route = mock.post(GEMINI_URL).mock(
                return_value=httpx.Response(200, json=_gemini_reply(fenced))
            )
            response = client.post(ENDPOINT, json={"name": "Jojobaöl", "inci": "Simmondsia"})

        assert response.status_code == 200
        assert response.json()["data"] == sample_record
        sent = json.loads(route.calls.last.request.content)
        assert "Zutat: Jojobaöl" in sent["contents"][0]["parts"][0]["text"]
        assert sent["generationConfig"] == {"temperature": 0.1, "maxOutputTokens": 1000}

    @pytest.mark.parametrize(
        "upstream",
        [
            httpx.Response(503, json={"error": {"message": "overloaded"}}),
            httpx.Response(400, json={"error": {"message": "bad key"}}),
            httpx.Response(200, json={"promptFeedback": {}}),
            httpx.Response(200, json=_gemini_reply("Jojobaöl ist ein flüssiges Wachs.")),
        ],
    )
    def test_upstream_failures_return_generic_envelope(
        self, client: TestClient, upstream: httpx.Response
    ) -> None:
        with respx.mock() as mock:
            mock.post(GEMINI_URL).mock(return_value=upstream)
            response = client.post(ENDPOINT, json={"name": "Jojobaöl"})

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "AI service temporarily unavailable",
        }

    def test_details_exposed_when_enabled(
        self, client: TestClient, monkeypatch: pytest.MonkeyPatch
    ) -> None:
        monkeypatch.setattr(settings.app, "expose_error_details", True)

        with respx.mock() as mock:
            mock.post(GEMINI_URL).mock(return_value=httpx.Response(503))
            response = client.post(ENDPOINT, json={"name": "Jojobaöl"})

        assert response.status_code == 500
        assert response.json()["details"] == "Gemini API error: 503"


# ======================== Rate limiting ========================


class TestRateLimiting:

    def test_eleventh_request_is_rejected(
        self, client: TestClient, stubbed_service: MagicMock
    ) -> None:
        for _ in range(10):
            assert client.post(ENDPOINT, json={"name": "Jojobaöl"}).status_code == 200

        blocked = client.post(ENDPOINT, json={"name": "Jojobaöl"})

        assert blocked.status_code == 429
        assert blocked.json() == {"success": False, "error": "rate limit exceeded"}
        assert "Retry-After" in blocked.headers
        assert blocked.headers["X-RateLimit-Limit"] == "10"
        assert blocked.headers["X-RateLimit-Remaining"] == "0"
        assert "X-RateLimit-Reset" in blocked.headers
        assert stubbed_service.generate_text.await_count == 10

    def test_rejection_happens_before_validation(
        self,
        client: TestClient,
        stubbed_service: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(settings.app, "rate_limit_requests", 1)

        assert client.post(ENDPOINT, json={}).status_code == 400
        assert client.post(ENDPOINT, json={}).status_code == 429

    def test_headers_can_be_disabled(
        self,
        client: TestClient,
        stubbed_service: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(settings.app, "rate_limit_requests", 1)
        monkeypatch.setattr(settings.app, "rate_limit_include_headers", False)

        client.post(ENDPOINT, json={"name": "a"})
        blocked = client.post(ENDPOINT, json={"name": "a"})

        assert blocked.status_code == 429
        assert "Retry-After" not in blocked.headers

    def test_disabled_limiter_admits_everything(
        self,
        client: TestClient,
        stubbed_service: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(settings.app, "rate_limit_enabled", False)

        for _ in range(12):
            assert client.post(ENDPOINT, json={"name": "a"}).status_code == 200

    def test_forwarded_for_keys_clients_when_trusted(
        self,
        client: TestClient,
        stubbed_service: MagicMock,
        monkeypatch: pytest.MonkeyPatch,
    ) -> None:
        monkeypatch.setattr(settings.app, "rate_limit_requests", 1)
        monkeypatch.setattr(settings.app, "rate_limit_trust_forwarded_for", True)

        first = {"X-Forwarded-For": "203.0.113.7, 10.0.0.1"}
        second = {"X-Forwarded-For": "198.51.100.4"}

        assert client.post(ENDPOINT, json={"name": "a"}, headers=first).status_code == 200
        assert client.post(ENDPOINT, json={"name": "a"}, headers=first).status_code == 429
        assert client.post(ENDPOINT, json={"name": "a"}, headers=second).status_code == 200

    def test_health_is_not_rate_limited(self, client: TestClient) -> None:
        for _ in range(15):
            assert client.get("/health").status_code == 200


# ======================== CORS ========================


class TestCors:

    def test_allowed_origin_preflight(self, client: TestClient) -> None:
        response = client.options(
            ENDPOINT,
            headers={
                "Origin": "https://jens-kosmetik-labor.web.app",
                "Access-Control-Request-Method": "POST",
            },
        )

        assert response.status_code == 200
        assert (
            response.headers["access-control-allow-origin"]
            == "https://jens-kosmetik-labor.web.app"
        )
        assert response.headers["access-control-allow-credentials"] == "true"

    def test_unknown_origin_is_not_allowed(self, client: TestClient) -> None:
        response = client.get("/health", headers={"Origin": "https://evil.example"})

        assert "access-control-allow-origin" not in response.headers


# ======================== OpenAPI ========================


def test_openapi_documents_record_keys() -> None:
    schemas = app.openapi()["components"]["schemas"]
    envelope = next(
        schema for name, schema in schemas.items() if name.startswith("EnrichmentResponse")
    )

    data_schema = envelope["properties"]["data"]

    assert set(data_schema["properties"]) == {
        "beschreibung",
        "einsatzkonzentration",
        "lagerung",
        "einarbeitungsphase",
        "hauttyp",
        "wirkung",
        "kategorie",
    }
    assert data_schema["type"] == "object"
