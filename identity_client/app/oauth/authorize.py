"""
OAuth authorize step with redirect capture.

The identity service answers a successful ``POST /oauth/authorize`` with a
redirect to ``mfp://identity/callback?code=...``. That target is a custom
scheme for the native app and cannot be fetched, so the request is sent with
redirect following disabled and the redirect response itself is the success
outcome. Each outcome is returned as an explicit variant; only
``RedirectCaptured`` yields an authorization code.
"""

from __future__ import annotations

import secrets
from dataclasses import dataclass
from typing import Union
from urllib.parse import parse_qs, urlsplit

import httpx

from shared.config import BaseConfig
from shared.errors import ProtocolError, TransportError
from shared.logging import get_logger
from ..headers import FORM_CONTENT, standard_headers


AUTHORIZE_PATH = "/oauth/authorize"


@dataclass(frozen=True)
class RedirectCaptured:
    """The server redirected to the callback URI (expected outcome)."""

    location: str
    status_code: int


@dataclass(frozen=True)
class DirectResponse:
    """The server answered without redirecting."""

    status_code: int
    body: str


@dataclass(frozen=True)
class TransportFailure:
    """The request never produced a response."""

    error: httpx.RequestError


AuthorizeResult = Union[RedirectCaptured, DirectResponse, TransportFailure]


def make_nonce() -> str:
    return secrets.token_urlsafe(16)


class AuthorizationInterceptor:
    """Submits signed credentials to the authorize endpoint and captures the redirect."""

    def __init__(self, http: httpx.Client, config: BaseConfig, device_id: str):
        self.http = http
        self.config = config
        self.device_id = device_id
        self.logger = get_logger("identity.oauth.authorize")

    def authorize(self, assertion: str, service_token: str, client_id: str) -> AuthorizeResult:
        """POST the assertion and classify the outcome without following redirects."""
        form = {
            "client_id": client_id,
            "credentials": assertion,
            "nonce": make_nonce(),
            "redirect_uri": self.config.redirect_uri,
            "response_type": "code",
            "scope": "openid",
        }
        headers = standard_headers(self.config, self.device_id, content_type=FORM_CONTENT)
        headers["Authorization"] = f"Bearer {service_token}"

        try:
            response = self.http.request(
                "POST",
                AUTHORIZE_PATH,
                data=form,
                headers=headers,
                follow_redirects=False,
            )
        except httpx.RequestError as exc:
            self.logger.error("Authorize request failed", error=str(exc))
            return TransportFailure(error=exc)

        if 300 <= response.status_code < 400:
            self.logger.info("Authorization redirect captured", status_code=response.status_code)
            return RedirectCaptured(
                location=response.headers.get("Location", ""),
                status_code=response.status_code,
            )

        self.logger.warning("Authorize returned without redirect", status_code=response.status_code)
        return DirectResponse(status_code=response.status_code, body=response.text)


def authorization_code_from(result: AuthorizeResult) -> str:
    """Unwrap the authorization code from a captured redirect.

    Any other outcome is raised as the matching error.
    """
    if isinstance(result, TransportFailure):
        raise TransportError(
            "authorize: error making request",
            details={"error": str(result.error)},
        ) from result.error

    if isinstance(result, DirectResponse):
        raise ProtocolError(
            f"authorize: unexpected response status {result.status_code}",
            status_code=result.status_code,
            body=result.body,
        )

    if not result.location:
        raise ProtocolError(
            "authorize: no location header in response",
            status_code=result.status_code,
        )

    query = parse_qs(urlsplit(result.location).query)
    codes = query.get("code") or [""]
    code = codes[0]
    if not code:
        raise ProtocolError(
            "authorize: no code in redirect URL",
            status_code=result.status_code,
            details={"location": result.location.split("?", 1)[0]},
        )
    return code
