"""
Unit tests for IdentityClient bootstrap, login and refresh.
"""

from unittest.mock import MagicMock

import httpx
import jwt
import pytest

from identity_client.app.client import ClientContext, IdentityClient, bootstrap
from identity_client.app.oauth.tokens import ClientCredentials
from shared.config import BaseConfig
from shared.errors import (
    InvalidArgument,
    NoSigningKeyError,
    ProtocolError,
    TransportError,
    UnresolvedAccountError,
)
from shared.test_helpers import (
    SIGNING_KEY_BYTES,
    create_client_key,
    create_identity_service,
    create_token_payload,
    create_user_payload,
    json_response,
)


@pytest.fixture
def config():
    return BaseConfig()


@pytest.fixture
def service():
    return create_identity_service()


@pytest.fixture
def identity_http(service):
    return service.as_client()


@pytest.fixture
def api_http():
    return MagicMock(spec=httpx.Client)


@pytest.fixture
def client(config, identity_http, api_http):
    return IdentityClient.create("client", "secret", config=config, identity_http=identity_http, api_http=api_http)


class TestBootstrap:
    """Test cases for client bootstrap."""

    def test_bootstrap_populates_context(self, service, config, identity_http):
        context = bootstrap(ClientCredentials("client", "secret"), identity_http, config)

        assert isinstance(context, ClientContext)
        assert context.service_token.access_token == "service-token"
        assert context.signing_key.key_id == "mfp-sig-1"
        assert context.signing_key.raw_key == SIGNING_KEY_BYTES
        assert context.device_id

    def test_service_token_is_obtained_before_keys(self, service, config, identity_http):
        bootstrap(ClientCredentials("client", "secret"), identity_http, config)

        assert [(call["method"], call["url"]) for call in service.calls] == [
            ("POST", "/oauth/token"),
            ("GET", "/clientKeys"),
        ]

    def test_device_id_is_reused(self, service, config, identity_http):
        context = bootstrap(ClientCredentials("client", "secret"), identity_http, config)

        device_ids = {call["headers"]["mfp-device-id"] for call in service.calls}
        assert device_ids == {context.device_id}

    def test_each_bootstrap_gets_new_device_id(self, config):
        first = bootstrap(ClientCredentials("client", "secret"), create_identity_service().as_client(), config)
        second = bootstrap(ClientCredentials("client", "secret"), create_identity_service().as_client(), config)

        assert first.device_id != second.device_id

    def test_context_is_read_only(self, config, identity_http):
        context = bootstrap(ClientCredentials("client", "secret"), identity_http, config)

        with pytest.raises(AttributeError):
            context.device_id = "other"

    def test_no_signing_key_fails_construction(self, config):
        service = create_identity_service(keys=[create_client_key(alg="RS256")])

        with pytest.raises(NoSigningKeyError):
            IdentityClient.create("client", "secret", config=config, identity_http=service.as_client())

    def test_service_token_failure_stops_bootstrap(self, config):
        service = create_identity_service()
        service.add("POST", "/oauth/token", json_response(401, {"error": "invalid_client"}), grant_type="client_credentials")

        with pytest.raises(ProtocolError):
            bootstrap(ClientCredentials("client", "secret"), service.as_client(), config)

        assert service.calls_to("GET", "/clientKeys") == []


class TestLogin:
    """Test cases for IdentityClient.login."""

    def test_login_returns_session(self, client):
        session = client.login("jane", "s3cret")

        assert session.user_id == "abc123"
        assert session.domain_user_id == "d1"
        assert session.access_token == "at1"
        assert session.refresh_token == "rt1"

    def test_login_posts_signed_assertion(self, client, service):
        client.login("jane", "s3cret")

        authorize_call = service.calls_to("POST", "/oauth/authorize")[0]
        assertion = authorize_call["data"]["credentials"]
        claims = jwt.decode(assertion, SIGNING_KEY_BYTES, algorithms=["HS512"])
        assert claims == {"username": "jane", "password": "s3cret"}
        assert authorize_call["headers"]["Authorization"] == "Bearer service-token"

    def test_login_exchanges_captured_code(self, client, service):
        client.login("jane", "s3cret")

        token_calls = service.calls_to("POST", "/oauth/token")
        code_call = token_calls[-1]
        assert code_call["data"]["grant_type"] == "authorization_code"
        assert code_call["data"]["code"] == "auth-code-1"

    def test_login_rejected_without_redirect(self, client, service):
        service.add("POST", "/oauth/authorize", json_response(200, "login form"))

        with pytest.raises(ProtocolError) as exc_info:
            client.login("jane", "wrong")

        assert exc_info.value.status_code == 200
        assert service.calls_to("GET", "/users/abc123") == []

    def test_login_transport_failure(self, client, service):
        service.add("POST", "/oauth/authorize", httpx.ConnectError("connection reset"))

        with pytest.raises(TransportError):
            client.login("jane", "s3cret")

    def test_login_without_mfp_account(self, client, service):
        service.add("GET", "/users/abc123", json_response(200, create_user_payload(domain_user_id=None)))

        with pytest.raises(UnresolvedAccountError):
            client.login("jane", "s3cret")


class TestRefresh:
    """Test cases for IdentityClient.refresh."""

    def test_refresh_builds_new_session(self, client, service):
        service.add(
            "POST",
            "/oauth/token",
            json_response(200, create_token_payload(access_token="at2", refresh_token="rt2", id_token="idt2")),
            grant_type="refresh_token",
        )
        service.add("GET", "/users/u1", json_response(200, create_user_payload(domain_user_id="d1")))

        session = client.refresh("u1", "rt-xyz")

        assert session.user_id == "u1"
        assert session.access_token == "at2"
        assert session.refresh_token == "rt2"
        assert session.id_token == "idt2"

    def test_empty_refresh_token_makes_no_request(self, client, service):
        before = len(service.calls)

        with pytest.raises(InvalidArgument):
            client.refresh("u1", "")

        assert len(service.calls) == before


class TestApiRequest:
    """Test cases for the authenticated domain API call."""

    def test_session_headers_are_applied(self, client, api_http):
        api_http.request.return_value = httpx.Response(200, json={"items": []})
        session = client.login("jane", "s3cret")

        response = client.api_request(session, "GET", "/v2/diary", params={"entry_date": "2024-06-01"})

        assert response.status_code == 200
        _, kwargs = api_http.request.call_args
        assert kwargs["headers"]["Authorization"] == "Bearer at1"
        assert kwargs["headers"]["mfp-user-id"] == "d1"
        assert kwargs["headers"]["mfp-device-id"] == client.device_id
        assert kwargs["params"] == {"entry_date": "2024-06-01"}

    def test_explicit_headers_override(self, client, api_http):
        api_http.request.return_value = httpx.Response(200)
        session = client.login("jane", "s3cret")

        client.api_request(session, "POST", "/v2/foods", headers={"Content-Type": "text/plain"})

        _, kwargs = api_http.request.call_args
        assert kwargs["headers"]["Content-Type"] == "text/plain"

    def test_transport_failure_is_mapped(self, client, api_http):
        api_http.request.side_effect = httpx.ConnectError("refused")
        session = client.login("jane", "s3cret")

        with pytest.raises(TransportError):
            client.api_request(session, "GET", "/v2/diary")


class TestLifecycle:
    """Test cases for owned HTTP clients."""

    def test_injected_clients_are_not_closed(self, client, identity_http, api_http):
        client.close()

        identity_http.close.assert_not_called()
        api_http.close.assert_not_called()

    def test_context_manager_closes_owned_clients(self, config, identity_http):
        with IdentityClient.create("client", "secret", config=config, identity_http=identity_http) as client:
            assert not client.api_http.is_closed

        assert client.api_http.is_closed
        identity_http.close.assert_not_called()

    def test_get_user_uses_session(self, client, service):
        session = client.login("jane", "s3cret")

        user = client.get_user(session)

        assert user.domain_user_id() == "d1"
        assert user.profile.first_name == "Jane"

    def test_get_user_sends_session_headers(self, client, service):
        session = client.login("jane", "s3cret")

        client.get_user(session)

        headers = service.calls_to("GET", "/users/abc123")[-1]["headers"]
        assert headers["Authorization"] == f"Bearer {session.access_token}"
        assert headers["mfp-user-id"] == "d1"
