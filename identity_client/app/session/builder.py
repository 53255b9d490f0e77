"""
Session construction from freshly issued tokens.
"""

from __future__ import annotations

import binascii
import json
from datetime import datetime, timedelta, timezone
from typing import Any, Callable, Dict, Optional
from urllib.parse import quote

import httpx

from shared.config import BaseConfig
from shared.errors import InvalidTokenFormat, UnresolvedAccountError
from shared.logging import get_logger, set_correlation_context
from ..headers import standard_headers
from ..keys.resolver import decode_unpadded
from ..oauth.tokens import TokenBundle
from ..transport import expect_ok, parse_model, send
from .models import EXPIRY_MARGIN, MFP_DOMAIN, IdentityUser, Session, as_utc


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


def is_token_expired(expires_in: int, issued_at: datetime, now: Optional[datetime] = None) -> bool:
    """Whether a token issued at ``issued_at`` should be treated as expired.

    Tokens are considered expired 30 seconds before their advertised expiry so
    callers can refresh ahead of time. Naive datetimes are taken as UTC.
    """
    now = as_utc(now or utcnow())
    return now > as_utc(issued_at) + timedelta(seconds=expires_in) - EXPIRY_MARGIN


def decode_id_token_claims(id_token: str) -> Dict[str, Any]:
    """Decode the payload of a compact JWT without verifying its signature."""
    parts = (id_token or "").split(".")
    if len(parts) != 3:
        raise InvalidTokenFormat(
            "ID token is not a three-segment compact JWT",
            details={"segments": len(parts)},
        )

    try:
        payload = decode_unpadded(parts[1])
    except (binascii.Error, ValueError) as exc:
        raise InvalidTokenFormat("Error decoding token payload", details={"error": str(exc)}) from exc

    try:
        claims = json.loads(payload)
    except ValueError as exc:
        raise InvalidTokenFormat("Error parsing token claims", details={"error": str(exc)}) from exc

    if not isinstance(claims, dict):
        raise InvalidTokenFormat("Token claims are not a JSON object")
    return claims


def subject_from_id_token(id_token: str) -> str:
    """Return the identity user id (``sub``) carried by an ID token."""
    subject = decode_id_token_claims(id_token).get("sub")
    if subject is None or subject == "":
        raise InvalidTokenFormat("ID token has no subject claim")
    return str(subject)


def fetch_identity_user(
    http: httpx.Client,
    config: BaseConfig,
    device_id: str,
    user_id: str,
    access_token: str,
    session: Optional[Session] = None,
) -> IdentityUser:
    """Fetch the identity user with profile and emails.

    With a ``session`` the full session headers are sent, including
    ``mfp-user-id``; before a session exists only the bearer token is.
    """
    if session is not None:
        headers = standard_headers(config, device_id, session=session)
    else:
        headers = standard_headers(config, device_id)
        headers["Authorization"] = f"Bearer {access_token}"

    response = send(
        http,
        "GET",
        f"/users/{quote(user_id, safe='')}",
        operation="get user",
        params={"fetch_profile": "true", "fetch_emails": "true"},
        headers=headers,
    )
    payload = expect_ok(response, operation="get user")
    return parse_model(IdentityUser, payload, response, operation="get user")


class SessionBuilder:
    """Resolves a token bundle into a usable ``Session``."""

    def __init__(
        self,
        http: httpx.Client,
        config: BaseConfig,
        device_id: str,
        clock: Callable[[], datetime] = utcnow,
    ):
        self.http = http
        self.config = config
        self.device_id = device_id
        self.clock = clock
        self.logger = get_logger("identity.session.builder")

    def build(self, known_user_id: Optional[str], bundle: TokenBundle) -> Session:
        """Build a session, resolving the identity user and its MFP account link.

        ``known_user_id`` skips decoding the ID token, which refresh responses
        may not carry in a usable form.
        """
        user_id = known_user_id or subject_from_id_token(bundle.id_token)
        issued_at = self.clock()

        user = fetch_identity_user(self.http, self.config, self.device_id, user_id, bundle.access_token)

        domain_user_id = user.domain_user_id(MFP_DOMAIN)
        if not domain_user_id:
            self.logger.warning(
                "No MFP account link for identity user",
                linked_domains=[link.domain for link in user.account_links],
            )
            raise UnresolvedAccountError(details={"user_id": user_id})

        session = Session(
            user_id=user_id,
            domain_user_id=domain_user_id,
            email=user.primary_email(),
            first_name=user.profile.first_name,
            last_name=user.profile.last_name or "",
            access_token=bundle.access_token,
            refresh_token=bundle.refresh_token,
            id_token=bundle.id_token,
            expires_at=issued_at + timedelta(seconds=bundle.expires_in),
            data=bundle.data,
        )

        set_correlation_context(user_id=user_id)
        self.logger.info(
            "Session built",
            domain_user_id=domain_user_id,
            expires_at=session.expires_at.isoformat(),
        )
        return session
