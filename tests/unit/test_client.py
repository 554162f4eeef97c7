from types import MappingProxyType

import httpx
import pytest

from nextrows import (
    EXTRACT,
    ClientConfiguration,
    ExtractRequest,
    NextrowsClient,
    RunAppRequest,
    TokenRequest,
)
from nextrows.exceptions import (
    APIError,
    ConfigurationError,
    DecodingError,
    TransportError,
    TransportErrorKind,
)
from nextrows.types import Failure, Success
from tests.helpers import TEST_API_KEY, FakeService

pytestmark = pytest.mark.unit

PRODUCTS = {"success": True, "data": [{"name": "Product 1", "price": "$10.00"}]}


class TestClientInitialization:
    """NextrowsClient construction behavior"""

    def test_defaults(self):
        """Should use the public service origin and a 30 second timeout"""
        with NextrowsClient(TEST_API_KEY) as client:
            assert client.config.base_url == "https://api.nextrows.com"
            assert client.config.timeout_ms == 30000
            assert client.has_credential

    def test_overrides_base_url_and_timeout(self):
        with NextrowsClient(
            TEST_API_KEY, base_url="http://localhost:8080/", timeout_ms=5000
        ) as client:
            assert client.config.base_url == "http://localhost:8080"
            assert client.config.timeout_seconds == 5.0

    def test_timeout_reaches_every_request(self, service):
        """Should apply timeout_ms to each phase of the HTTP call"""
        service.reply_json("GET", "/v1/credits", {"credits": 1})
        with NextrowsClient(
            TEST_API_KEY, timeout_ms=1234, transport=service.transport
        ) as client:
            client.get_credits()
        assert service.last_request.extensions["timeout"] == {
            "connect": 1.234,
            "read": 1.234,
            "write": 1.234,
            "pool": 1.234,
        }

    def test_invalid_timeout_raises_configuration_error(self):
        with pytest.raises(ConfigurationError, match="timeout_ms"):
            NextrowsClient(TEST_API_KEY, timeout_ms=0)

    def test_invalid_base_url_raises_configuration_error(self):
        with pytest.raises(ConfigurationError, match="base_url"):
            NextrowsClient(TEST_API_KEY, base_url="api.nextrows.com")

    def test_missing_key_is_permitted(self):
        """Should construct without a credential and defer rejection to the service"""
        with NextrowsClient() as client:
            assert not client.has_credential

    def test_reads_key_from_environment(self, monkeypatch):
        monkeypatch.setenv("NEXTROWS_API_KEY", "env-key")
        with NextrowsClient.from_env() as client:
            assert client.has_credential
            assert client.config.api_key == "env-key"

    def test_repr_hides_key(self):
        with NextrowsClient(TEST_API_KEY) as client:
            assert TEST_API_KEY not in repr(client)


class TestWireHeaders:
    """Default headers attached by the transport binding"""

    def test_bearer_and_content_type(self, client, service):
        service.reply_json("GET", "/v1/credits", {"credits": 10})
        client.get_credits()
        headers = service.last_request.headers
        assert headers["Authorization"] == f"Bearer {TEST_API_KEY}"
        assert headers["Content-Type"] == "application/json"
        assert headers["User-Agent"].startswith("nextrows-python/")

    def test_caller_headers_cannot_override_authorization(self, service):
        config = ClientConfiguration(
            headers={"Authorization": "Bearer someone-else", "X-Request-Source": "tests"}
        )
        service.reply_json("GET", "/v1/credits", {"credits": 10})
        with NextrowsClient(
            TEST_API_KEY, config=config, transport=service.transport
        ) as client:
            client.get_credits()
        headers = service.last_request.headers
        assert headers["Authorization"] == f"Bearer {TEST_API_KEY}"
        assert headers["X-Request-Source"] == "tests"

    def test_no_authorization_without_key(self, service):
        service.reply_json("GET", "/v1/credits", {"error": "unauthorized"}, 401)
        with NextrowsClient(transport=service.transport) as client:
            with pytest.raises(APIError):
                client.get_credits()
        assert "Authorization" not in service.last_request.headers

    def test_base_url_prefixes_path(self, service):
        service.reply_json("GET", "/proxy/v1/credits", {"credits": 1})
        with NextrowsClient(
            TEST_API_KEY,
            base_url="https://gateway.example.com/proxy",
            transport=service.transport,
        ) as client:
            client.get_credits()
        assert (
            str(service.last_request.url)
            == "https://gateway.example.com/proxy/v1/credits"
        )


class TestExtract:
    def test_returns_exact_structure(self, client, service):
        service.reply_json("POST", "/v1/extract", PRODUCTS)
        response = client.extract(
            ExtractRequest(
                type="url",
                data=["https://example.com/products"],
                prompt="Extract product names and prices",
            )
        )
        assert response.success is True
        assert response.data == [{"name": "Product 1", "price": "$10.00"}]
        assert service.last_body() == {
            "type": "url",
            "data": ["https://example.com/products"],
            "prompt": "Extract product names and prices",
        }

    def test_unauthorized_raises_once(self, client, service):
        """Should raise APIError on 401 and not retry"""
        service.reply_json(
            "POST",
            "/v1/extract",
            {"error": "unauthorized", "message": "Invalid API key"},
            status_code=401,
        )
        with pytest.raises(APIError) as exc_info:
            client.extract(ExtractRequest(type="url", data=["https://example.com"]))
        assert exc_info.value.status_code == 401
        assert exc_info.value.message == "Invalid API key"
        assert len(service.requests) == 1

    def test_read_only_schema_is_sent(self, client, service):
        """Should encode a MappingProxyType schema like a plain dict"""
        service.reply_json("POST", "/v1/extract", PRODUCTS)
        schema = MappingProxyType(
            {"type": "array", "items": MappingProxyType({"type": "object"})}
        )
        client.extract(ExtractRequest(type="text", data=["A costs $10"], schema=schema))
        assert service.last_body()["schema"] == {
            "type": "array",
            "items": {"type": "object"},
        }

    def test_rejects_wrong_request_type(self, client):
        with pytest.raises(TypeError, match="ExtractRequest"):
            client.extract({"type": "url", "data": ["https://example.com"]})

    def test_malformed_body_raises_decoding_error(self, client, service):
        service.reply(
            "POST", "/v1/extract", httpx.Response(200, content=b"<html>oops</html>")
        )
        with pytest.raises(DecodingError) as exc_info:
            client.extract(ExtractRequest(type="url", data=["https://example.com"]))
        assert exc_info.value.content == "<html>oops</html>"


class TestTransportFailures:
    @pytest.mark.parametrize(
        ("error", "kind"),
        [
            (httpx.ReadTimeout("timed out"), TransportErrorKind.TIMEOUT),
            (httpx.ConnectError("connection refused"), TransportErrorKind.CONNECT),
            (httpx.RemoteProtocolError("server hung up"), TransportErrorKind.NETWORK),
        ],
    )
    def test_network_errors_are_classified(self, client, service, error, kind):
        service.reply("GET", "/v1/credits", error)
        with pytest.raises(TransportError) as exc_info:
            client.get_credits()
        assert exc_info.value.kind is kind
        assert exc_info.value.cause is error
        assert exc_info.value.__cause__ is error


class TestRunApp:
    def test_round_trip(self, client, service):
        service.reply_json(
            "POST",
            "/v1/apps/run/json",
            {
                "success": True,
                "data": {"columns": ["Name", "Price"], "rows": [["Product A", 29.99]]},
                "runId": "run_abc123",
                "elapsedTime": 2500,
            },
        )
        response = client.run_app_json(
            RunAppRequest.from_mapping(
                "abc123xyz", {"url": "https://example.com", "maxItems": 10}
            )
        )
        assert response.data.columns == ["Name", "Price"]
        assert response.run_id == "run_abc123"
        assert service.last_body() == {
            "appId": "abc123xyz",
            "inputs": [
                {"key": "url", "value": "https://example.com"},
                {"key": "maxItems", "value": 10},
            ],
        }

    def test_credits_exhausted(self, client, service):
        service.reply_json(
            "POST", "/v1/apps/run/json", {"error": "payment_required"}, status_code=402
        )
        with pytest.raises(APIError) as exc_info:
            client.run_app_json(RunAppRequest(app_id="abc123xyz"))
        assert exc_info.value.error == "payment_required"


class TestIssueAccessToken:
    TOKEN = {"token": "t-1", "token_type": "Bearer", "expires_dt": "20260101000000"}

    def test_mock_endpoint_and_body(self, client, service):
        service.reply_json("POST", "/oauth2/token", self.TOKEN)
        response = client.issue_access_token(
            TokenRequest(app_key="test-app-key", app_secret="test-app-secret", mock=True)
        )
        assert response.token == "t-1"
        assert response.expires_at == "20260101000000"
        request = service.last_request
        assert request.url.host == "mockapi.kiwoom.com"
        assert service.last_body() == {
            "grant_type": "client_credentials",
            "appkey": "test-app-key",
            "secretkey": "test-app-secret",
        }

    def test_bearer_credential_not_sent_to_token_host(self, client, service):
        service.reply_json("POST", "/oauth2/token", self.TOKEN)
        client.issue_access_token(TokenRequest(app_key="k", app_secret="s"))
        assert "Authorization" not in service.last_request.headers
        assert service.last_request.url.host == "api.kiwoom.com"

    def test_uses_configured_credentials(self, service):
        config = ClientConfiguration(app_key="ak", app_secret="as", use_mock_server=True)
        service.reply_json("POST", "/oauth2/token", self.TOKEN)
        with NextrowsClient(config=config, transport=service.transport) as client:
            client.issue_access_token()
        assert service.last_request.url.host == "mockapi.kiwoom.com"
        assert service.last_body()["appkey"] == "ak"

    def test_missing_credentials(self, client):
        with pytest.raises(ConfigurationError, match="app_key and app_secret"):
            client.issue_access_token()


class TestResultCalls:
    """call() returns Success/Failure instead of raising"""

    def test_success(self, client, service):
        service.reply_json("POST", "/v1/extract", PRODUCTS)
        result = client.call(EXTRACT, ExtractRequest(type="text", data=["A costs $10"]))
        assert isinstance(result, Success)
        assert result.value.data == PRODUCTS["data"]

    def test_transport_failure(self, client, service):
        service.reply("POST", "/v1/extract", httpx.ConnectError("refused"))
        result = client.call(EXTRACT, ExtractRequest(type="text", data=["x"]))
        assert isinstance(result, Failure)
        assert isinstance(result.error, TransportError)

    def test_api_failure(self, client, service):
        service.reply_json("POST", "/v1/extract", {"error": "bad_request"}, 400)
        result = client.call(EXTRACT, ExtractRequest(type="text", data=["x"]))
        assert isinstance(result, Failure)
        assert isinstance(result.error, APIError)


def test_fake_service_rejects_unknown_routes():
    service = FakeService()
    with NextrowsClient(TEST_API_KEY, transport=service.transport) as client:
        with pytest.raises(APIError) as exc_info:
            client.get_credits()
    assert exc_info.value.status_code == 404
