"""
Identity client package.

Authenticates MyFitnessPal users against the identity service and keeps
their sessions renewable:

- app.client: Bootstrap (client-credentials token, signing key), login and
  refresh entrypoints.
- app.keys: Signing key discovery and selection.
- app.oauth: Token grants, credential signing, authorize redirect capture.
- app.session: Session construction and expiry checks.
- app.headers: Standard mobile-client request headers.

Design notes:
- Importing the package performs no network calls; all IO happens in
  explicit client calls.
- Calls are synchronous and never retried; errors from shared.errors are
  raised to the caller immediately.
- Use the shared/ utilities for configuration, logging and errors.
"""

from .client import ClientContext, IdentityClient, bootstrap
from .oauth.tokens import ClientCredentials, TokenBundle
from .session.builder import is_token_expired
from .session.models import Session

__all__ = [
    "ClientContext",
    "ClientCredentials",
    "IdentityClient",
    "Session",
    "TokenBundle",
    "bootstrap",
    "is_token_expired",
]
