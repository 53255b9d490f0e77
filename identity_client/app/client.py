"""
Identity client: bootstrap, login and session refresh.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from datetime import datetime
from typing import Any, List, Optional

import httpx

from shared.config import BaseConfig, get_config
from shared.logging import get_logger, set_correlation_context
from .headers import standard_headers
from .keys.resolver import KeyResolver, SigningKey
from .oauth.authorize import AuthorizationInterceptor, authorization_code_from
from .oauth.signer import sign_credentials
from .oauth.tokens import ClientCredentials, TokenBundle, TokenExchanger
from .session.builder import SessionBuilder, fetch_identity_user, is_token_expired
from .session.models import IdentityUser, Session
from .transport import send


logger = get_logger("identity.client")


@dataclass(frozen=True)
class ClientContext:
    """Everything established once at bootstrap and read-only afterwards."""

    credentials: ClientCredentials
    device_id: str
    service_token: TokenBundle
    signing_key: SigningKey


def generate_device_id() -> str:
    return str(uuid.uuid4())


def bootstrap(
    credentials: ClientCredentials,
    http: httpx.Client,
    config: BaseConfig,
    device_id: Optional[str] = None,
) -> ClientContext:
    """Establish client trust: service token first, then the signing key."""
    device_id = device_id or generate_device_id()
    set_correlation_context(device_id=device_id)

    exchanger = TokenExchanger(http, config, credentials, device_id)
    service_token = exchanger.client_credentials()

    resolver = KeyResolver(http, credentials.client_id, credentials.client_secret)
    signing_key = resolver.resolve(standard_headers(config, device_id))

    logger.info("Bootstrap complete", kid=signing_key.key_id, client_id=credentials.client_id)
    return ClientContext(
        credentials=credentials,
        device_id=device_id,
        service_token=service_token,
        signing_key=signing_key,
    )


class IdentityClient:
    """Authenticates users against the identity service.

    Instances are not thread-safe; serialize ``login``/``refresh`` calls on a
    shared client.
    """

    def __init__(
        self,
        context: ClientContext,
        config: BaseConfig,
        identity_http: httpx.Client,
        api_http: Optional[httpx.Client] = None,
        *,
        owned: Optional[List[httpx.Client]] = None,
    ):
        self.context = context
        self.config = config
        self.identity_http = identity_http
        self.api_http = api_http
        self._owned = list(owned or [])

        self.tokens = TokenExchanger(identity_http, config, context.credentials, context.device_id)
        self.authorizer = AuthorizationInterceptor(identity_http, config, context.device_id)
        self.sessions = SessionBuilder(identity_http, config, context.device_id)

    @classmethod
    def create(
        cls,
        client_id: str,
        client_secret: str,
        config: Optional[BaseConfig] = None,
        identity_http: Optional[httpx.Client] = None,
        api_http: Optional[httpx.Client] = None,
    ) -> "IdentityClient":
        """Bootstrap a ready-to-use client.

        HTTP clients are created from the configuration unless provided; the
        created ones are closed by ``close()``.
        """
        config = config or get_config()
        owned: List[httpx.Client] = []
        if identity_http is None:
            identity_http = httpx.Client(base_url=config.identity_base_url, timeout=config.http_timeout)
            owned.append(identity_http)
        if api_http is None:
            api_http = httpx.Client(base_url=config.api_base_url, timeout=config.http_timeout)
            owned.append(api_http)

        credentials = ClientCredentials(client_id=client_id, client_secret=client_secret)
        try:
            context = bootstrap(credentials, identity_http, config)
        except Exception:
            for http in owned:
                http.close()
            raise

        return cls(context, config, identity_http, api_http, owned=owned)

    @property
    def device_id(self) -> str:
        return self.context.device_id

    def login(self, username: str, password: str) -> Session:
        """Authenticate a user with username and password."""
        assertion = sign_credentials(username, password, self.context.signing_key)

        result = self.authorizer.authorize(
            assertion,
            self.context.service_token.access_token,
            self.context.credentials.client_id,
        )
        code = authorization_code_from(result)

        bundle = self.tokens.authorization_code(code)
        return self.sessions.build(None, bundle)

    def refresh(self, known_user_id: str, refresh_token: str) -> Session:
        """Exchange a refresh token for a new session for a known identity user."""
        bundle = self.tokens.refresh(refresh_token)
        return self.sessions.build(known_user_id, bundle)

    def is_token_expired(self, expires_in: int, issued_at: datetime) -> bool:
        return is_token_expired(expires_in, issued_at)

    def get_user(self, session: Session) -> IdentityUser:
        """Fetch the identity user behind a session."""
        return fetch_identity_user(
            self.identity_http,
            self.config,
            self.context.device_id,
            session.user_id,
            session.access_token,
            session=session,
        )

    def api_request(self, session: Session, method: str, path: str, **kwargs: Any) -> httpx.Response:
        """Issue an authenticated call against the domain API.

        The session's bearer token and ``mfp-user-id`` header are applied on top
        of the standard mobile headers; explicit ``headers`` override them.
        """
        if self.api_http is None:
            raise RuntimeError("IdentityClient was created without a domain API HTTP client")

        headers = standard_headers(self.config, self.context.device_id, session=session)
        headers.update(kwargs.pop("headers", None) or {})
        return send(self.api_http, method, path, operation=f"{method} {path}", headers=headers, **kwargs)

    def close(self) -> None:
        """Close the HTTP clients this instance created."""
        while self._owned:
            self._owned.pop().close()

    def __enter__(self) -> "IdentityClient":
        return self

    def __exit__(self, *exc_info) -> None:
        self.close()
