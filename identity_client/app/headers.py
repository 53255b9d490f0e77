"""
Standard request headers shared by identity-service and domain API calls.
"""

from typing import Dict, Optional, TYPE_CHECKING

from shared.config import BaseConfig

if TYPE_CHECKING:
    from .session.models import Session


JSON_CONTENT = "application/json"
FORM_CONTENT = "application/x-www-form-urlencoded"


def standard_headers(
    config: BaseConfig,
    device_id: str,
    session: Optional["Session"] = None,
    content_type: str = JSON_CONTENT,
) -> Dict[str, str]:
    """Build the headers the mobile client sends on every request.

    When a session is given, the bearer token and the domain user id are added
    so the result can be used directly against the domain API.
    """
    headers = {
        "Accept": "application/json",
        "Content-Type": content_type,
        "user-agent": config.user_agent,
        "device_id": device_id,
        "mfp-device-id": device_id,
        "mfp-client-id": config.mfp_client_id,
        "api-version": config.api_version,
        "accept-language": config.accept_language,
        "accept-encoding": config.accept_encoding,
    }

    if session is not None:
        headers["Authorization"] = f"Bearer {session.access_token}"
        headers["mfp-user-id"] = session.domain_user_id

    return headers
