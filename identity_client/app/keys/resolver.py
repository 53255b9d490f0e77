"""
Signing key discovery for the identity service.

The identity service advertises a list of client keys under ``/clientKeys``.
Login assertions must be signed with the HS512 key flagged for signatures;
its ``k`` value is base64url encoded without padding.
"""

from __future__ import annotations

import base64
import binascii
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

import httpx
from pydantic import BaseModel, ConfigDict, Field

from shared.errors import NoSigningKeyError, ProtocolError
from shared.logging import get_logger
from ..transport import expect_ok, parse_model, send


SIGNING_ALGORITHM = "HS512"
SIGNING_USE = "sig"

logger = get_logger("identity.keys.resolver")


class KeyMaterial(BaseModel):
    """JWK-style key entry."""

    model_config = ConfigDict(extra="ignore")

    kty: str = ""
    use: str = ""
    kid: str = ""
    k: str = ""
    alg: str = ""


class KeyTimestamps(BaseModel):
    created: Optional[str] = Field(default=None, alias="CREATED")
    updated: Optional[str] = Field(default=None, alias="UPDATED")


class ClientKeyCandidate(BaseModel):
    """A single advertised client key, validated at the response boundary."""

    model_config = ConfigDict(extra="ignore", populate_by_name=True)

    key: KeyMaterial
    client_id: Optional[str] = Field(default=None, alias="clientId")
    key_id: Optional[str] = Field(default=None, alias="keyId")
    timestamps: Optional[KeyTimestamps] = None


class _EmbeddedKeys(BaseModel):
    client_keys: List[ClientKeyCandidate] = Field(default_factory=list, alias="clientKeys")


class ClientKeysResponse(BaseModel):
    embedded: _EmbeddedKeys = Field(default_factory=_EmbeddedKeys, alias="_embedded")


@dataclass(frozen=True)
class SigningKey:
    """Resolved HMAC key used to sign login assertions."""

    key_id: str
    raw_key: bytes
    algorithm: str = SIGNING_ALGORITHM

    def __repr__(self) -> str:
        return f"SigningKey(key_id={self.key_id!r}, algorithm={self.algorithm!r})"


def basic_authorization(client_id: str, client_secret: str) -> str:
    token = base64.b64encode(f"{client_id}:{client_secret}".encode("utf-8")).decode("ascii")
    return f"Basic {token}"


def decode_unpadded(value: str) -> bytes:
    """Decode base64url text that may have had its padding stripped."""
    padded = value + "=" * (-len(value) % 4)
    return base64.b64decode(padded, altchars=b"-_", validate=True)


def fetch_signing_keys(
    http: httpx.Client,
    client_id: str,
    client_secret: str,
    headers: Dict[str, str],
) -> List[ClientKeyCandidate]:
    """List the client keys advertised by the identity service."""
    request_headers = dict(headers)
    request_headers["Authorization"] = basic_authorization(client_id, client_secret)

    response = send(http, "GET", "/clientKeys", operation="fetch client keys", headers=request_headers)
    payload = expect_ok(response, operation="fetch client keys")
    parsed = parse_model(ClientKeysResponse, payload, response, operation="fetch client keys")

    candidates = parsed.embedded.client_keys
    logger.debug("Client keys fetched", count=len(candidates))
    return candidates


def select_signing_key(candidates: Iterable[ClientKeyCandidate]) -> SigningKey:
    """Pick the first HS512 signature key and decode its raw bytes."""
    seen = []
    for candidate in candidates:
        material = candidate.key
        seen.append({"kid": material.kid, "use": material.use, "alg": material.alg})
        if material.use != SIGNING_USE or material.alg != SIGNING_ALGORITHM:
            continue

        try:
            raw_key = decode_unpadded(material.k)
        except (binascii.Error, ValueError) as exc:
            raise ProtocolError(
                "Error decoding signing key",
                details={"kid": material.kid, "error": str(exc)},
            ) from exc

        if not raw_key:
            raise ProtocolError("Signing key is empty", details={"kid": material.kid})

        logger.info("Signing key selected", kid=material.kid)
        return SigningKey(key_id=material.kid, raw_key=raw_key, algorithm=material.alg)

    raise NoSigningKeyError(details={"candidates": seen})


class KeyResolver:
    """Resolves the signing key once per client."""

    def __init__(self, http: httpx.Client, client_id: str, client_secret: str):
        self.http = http
        self.client_id = client_id
        self.client_secret = client_secret

    def resolve(self, headers: Dict[str, str]) -> SigningKey:
        candidates = fetch_signing_keys(self.http, self.client_id, self.client_secret, headers)
        return select_signing_key(candidates)
