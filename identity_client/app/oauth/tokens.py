"""
Token endpoint grants.

Every token-issuing call (client credentials, authorization code, refresh
token) posts a form-encoded body to ``/oauth/token`` and receives the same
response shape, parsed into a ``TokenBundle``.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Optional

import httpx
from pydantic import BaseModel, ConfigDict

from shared.config import BaseConfig
from shared.errors import InvalidArgument
from shared.logging import get_logger
from ..headers import FORM_CONTENT, standard_headers
from ..transport import expect_ok, parse_model, send


TOKEN_PATH = "/oauth/token"

GRANT_CLIENT_CREDENTIALS = "client_credentials"
GRANT_AUTHORIZATION_CODE = "authorization_code"
GRANT_REFRESH_TOKEN = "refresh_token"


@dataclass(frozen=True)
class ClientCredentials:
    """Application credentials issued by the identity service."""

    client_id: str
    client_secret: str

    def __repr__(self) -> str:
        return f"ClientCredentials(client_id={self.client_id!r}, client_secret='***')"


class TokenBundle(BaseModel):
    """Tokens returned by the token endpoint."""

    model_config = ConfigDict(extra="ignore", frozen=True)

    access_token: str
    token_type: str = ""
    expires_in: int = 0
    refresh_token: str = ""
    id_token: str = ""
    data: str = ""


class TokenExchanger:
    """Issues grants against the identity token endpoint."""

    def __init__(
        self,
        http: httpx.Client,
        config: BaseConfig,
        credentials: ClientCredentials,
        device_id: str,
    ):
        self.http = http
        self.config = config
        self.credentials = credentials
        self.device_id = device_id
        self.logger = get_logger("identity.oauth.tokens")

    def client_credentials(self) -> TokenBundle:
        """Obtain an app-level token for identity-service calls."""
        return self._exchange({
            "grant_type": GRANT_CLIENT_CREDENTIALS,
        })

    def authorization_code(self, code: str) -> TokenBundle:
        """Exchange an authorization code captured from the login redirect."""
        if not code:
            raise InvalidArgument("No authorization code provided")

        return self._exchange({
            "grant_type": GRANT_AUTHORIZATION_CODE,
            "code": code,
            "redirect_uri": self.config.redirect_uri,
        })

    def refresh(self, refresh_token: Optional[str]) -> TokenBundle:
        """Exchange a refresh token for a new token bundle."""
        if not refresh_token:
            raise InvalidArgument("No refresh token provided")

        return self._exchange({
            "grant_type": GRANT_REFRESH_TOKEN,
            "refresh_token": refresh_token,
        })

    def _exchange(self, params: Dict[str, str]) -> TokenBundle:
        grant = params["grant_type"]
        form = dict(params)
        form["client_id"] = self.credentials.client_id
        form["client_secret"] = self.credentials.client_secret

        operation = f"{grant} grant"
        response = send(
            self.http,
            "POST",
            TOKEN_PATH,
            operation=operation,
            data=form,
            headers=standard_headers(self.config, self.device_id, content_type=FORM_CONTENT),
        )
        payload = expect_ok(response, operation=operation)
        bundle = parse_model(TokenBundle, payload, response, operation=operation)

        self.logger.info("Token issued", grant_type=grant, expires_in=bundle.expires_in)
        return bundle
