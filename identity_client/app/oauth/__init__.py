"""
OAuth flows against the identity service: token grants, credential signing
and the authorize step.
"""

from .authorize import (
    AuthorizationInterceptor,
    AuthorizeResult,
    DirectResponse,
    RedirectCaptured,
    TransportFailure,
    authorization_code_from,
)
from .signer import sign_credentials
from .tokens import ClientCredentials, TokenBundle, TokenExchanger

__all__ = [
    "AuthorizationInterceptor",
    "AuthorizeResult",
    "ClientCredentials",
    "DirectResponse",
    "RedirectCaptured",
    "TokenBundle",
    "TokenExchanger",
    "TransportFailure",
    "authorization_code_from",
    "sign_credentials",
]
