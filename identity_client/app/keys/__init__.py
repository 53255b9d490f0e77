"""
Signing key discovery.

Fetches the client keys advertised by the identity service and selects the
HS512 signature key used for login assertions. Selection is a pure function
of the advertised list so it can be tested without any transport.
"""

from .resolver import (
    ClientKeyCandidate,
    KeyResolver,
    SigningKey,
    fetch_signing_keys,
    select_signing_key,
)

__all__ = [
    "ClientKeyCandidate",
    "KeyResolver",
    "SigningKey",
    "fetch_signing_keys",
    "select_signing_key",
]
