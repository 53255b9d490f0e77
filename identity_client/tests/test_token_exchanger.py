"""
Unit tests for token endpoint grants.
"""

import httpx
import pytest

from identity_client.app.oauth.tokens import ClientCredentials, TokenBundle, TokenExchanger
from shared.config import BaseConfig
from shared.errors import InvalidArgument, ProtocolError, TransportError
from shared.test_helpers import FakeIdentityService, create_token_payload, json_response


class TestTokenExchanger:
    """Test cases for TokenExchanger."""

    @pytest.fixture
    def service(self):
        return FakeIdentityService()

    @pytest.fixture
    def exchanger(self, service):
        return TokenExchanger(
            service.as_client(),
            BaseConfig(),
            ClientCredentials(client_id="client", client_secret="secret"),
            "device-1",
        )

    def test_client_credentials_grant(self, service, exchanger):
        service.add("POST", "/oauth/token", json_response(200, {"access_token": "svc", "expires_in": 600}))

        bundle = exchanger.client_credentials()

        assert bundle.access_token == "svc"
        assert bundle.expires_in == 600
        assert bundle.refresh_token == ""
        form = service.calls[0]["data"]
        assert form == {"grant_type": "client_credentials", "client_id": "client", "client_secret": "secret"}

    def test_authorization_code_grant(self, service, exchanger):
        service.add("POST", "/oauth/token", json_response(200, create_token_payload()))

        bundle = exchanger.authorization_code("code-1")

        assert isinstance(bundle, TokenBundle)
        assert bundle.access_token == "at1"
        assert bundle.refresh_token == "rt1"
        form = service.calls[0]["data"]
        assert form["grant_type"] == "authorization_code"
        assert form["code"] == "code-1"
        assert form["redirect_uri"] == "mfp://identity/callback"
        assert form["client_id"] == "client"
        assert form["client_secret"] == "secret"

    def test_refresh_grant(self, service, exchanger):
        service.add("POST", "/oauth/token", json_response(200, create_token_payload(access_token="at2")))

        bundle = exchanger.refresh("rt-xyz")

        assert bundle.access_token == "at2"
        form = service.calls[0]["data"]
        assert form == {
            "grant_type": "refresh_token",
            "refresh_token": "rt-xyz",
            "client_id": "client",
            "client_secret": "secret",
        }

    @pytest.mark.parametrize("refresh_token", ["", None])
    def test_refresh_without_token_makes_no_request(self, service, exchanger, refresh_token):
        with pytest.raises(InvalidArgument):
            exchanger.refresh(refresh_token)

        assert service.calls == []

    def test_form_headers_are_sent(self, service, exchanger):
        service.add("POST", "/oauth/token", json_response(200, create_token_payload()))

        exchanger.authorization_code("code-1")

        headers = service.calls[0]["headers"]
        assert headers["Content-Type"] == "application/x-www-form-urlencoded"
        assert headers["Accept"] == "application/json"
        assert headers["device_id"] == "device-1"
        assert headers["mfp-device-id"] == "device-1"
        assert headers["mfp-client-id"] == "mfp-mobile-android-google"
        assert headers["api-version"] == "2.0.50"

    def test_non_200_raises_protocol_error(self, service, exchanger):
        service.add("POST", "/oauth/token", json_response(400, {"error": "invalid_grant"}))

        with pytest.raises(ProtocolError) as exc_info:
            exchanger.refresh("rt-expired")

        assert exc_info.value.status_code == 400
        assert "invalid_grant" in exc_info.value.body

    def test_malformed_body_raises_protocol_error(self, service, exchanger):
        service.add("POST", "/oauth/token", json_response(200, "<html>oops</html>"))

        with pytest.raises(ProtocolError):
            exchanger.client_credentials()

    def test_missing_access_token_raises_protocol_error(self, service, exchanger):
        service.add("POST", "/oauth/token", json_response(200, {"expires_in": 3600}))

        with pytest.raises(ProtocolError) as exc_info:
            exchanger.client_credentials()

        assert any("access_token" in error for error in exc_info.value.details["errors"])

    def test_timeout_raises_transport_error(self, service, exchanger):
        service.add("POST", "/oauth/token", httpx.ReadTimeout("timed out"))

        with pytest.raises(TransportError):
            exchanger.client_credentials()
