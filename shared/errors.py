"""
Shared error handling for the identity client.
"""

from typing import Dict, Any, Optional
from pydantic import BaseModel


class ErrorResponse(BaseModel):
    """Standard error envelope, suitable for logging or returning to callers."""

    code: str
    message: str
    details: Dict[str, Any] = {}


class IdentityClientError(Exception):
    """Base exception for the identity client."""

    def __init__(self, code: str, message: str, details: Optional[Dict[str, Any]] = None):
        self.code = code
        self.message = message
        self.details = details or {}
        super().__init__(message)

    def to_response(self) -> ErrorResponse:
        """Convert to error response."""
        return ErrorResponse(
            code=self.code,
            message=self.message,
            details=self.details
        )


class TransportError(IdentityClientError):
    """Connection, DNS or TLS failure talking to a remote service."""

    def __init__(self, message: str = "Transport failure", details: Optional[Dict[str, Any]] = None):
        super().__init__("TRANSPORT_ERROR", message, details)


class ProtocolError(IdentityClientError):
    """Unexpected status code or malformed response body."""

    def __init__(
        self,
        message: str = "Unexpected response",
        status_code: Optional[int] = None,
        body: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.status_code = status_code
        self.body = body
        merged = dict(details or {})
        if status_code is not None:
            merged["status_code"] = status_code
        if body is not None:
            merged["body"] = body
        super().__init__("PROTOCOL_ERROR", message, merged)


class InvalidTokenFormat(IdentityClientError):
    """ID token is not a compact JWT or its payload is not a JSON object."""

    def __init__(self, message: str = "Invalid token format", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_TOKEN_FORMAT", message, details)


class NoSigningKeyError(IdentityClientError):
    """No usable HS512 signing key was advertised by the identity service."""

    def __init__(self, message: str = "No signing key found", details: Optional[Dict[str, Any]] = None):
        super().__init__("NO_SIGNING_KEY", message, details)


class UnresolvedAccountError(IdentityClientError):
    """The identity user has no account linked to the MFP domain."""

    def __init__(self, message: str = "No domain user ID found in account links", details: Optional[Dict[str, Any]] = None):
        super().__init__("UNRESOLVED_ACCOUNT", message, details)


class InvalidArgument(IdentityClientError):
    """Caller supplied an unusable argument."""

    def __init__(self, message: str = "Invalid argument", details: Optional[Dict[str, Any]] = None):
        super().__init__("INVALID_ARGUMENT", message, details)
