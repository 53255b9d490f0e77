"""
Thin request helpers mapping httpx failures onto the identity error taxonomy.
"""

from typing import Any, Dict

import httpx
from pydantic import BaseModel, ValidationError

from shared.errors import ProtocolError, TransportError


def send(http: httpx.Client, method: str, url: str, *, operation: str, **kwargs: Any) -> httpx.Response:
    """Issue a request, converting connection-level failures to TransportError."""
    try:
        return http.request(method, url, **kwargs)
    except httpx.RequestError as exc:
        raise TransportError(
            f"{operation}: error making request",
            details={"error": str(exc), "url": url}
        ) from exc


def expect_ok(response: httpx.Response, *, operation: str) -> Dict[str, Any]:
    """Require a 200 response carrying a JSON object and return it."""
    if response.status_code != 200:
        raise ProtocolError(
            f"{operation}: unexpected status code {response.status_code}",
            status_code=response.status_code,
            body=response.text,
        )

    try:
        payload = response.json()
    except ValueError as exc:
        raise ProtocolError(
            f"{operation}: response body is not valid JSON",
            status_code=response.status_code,
            body=response.text,
        ) from exc

    if not isinstance(payload, dict):
        raise ProtocolError(
            f"{operation}: expected a JSON object",
            status_code=response.status_code,
            body=response.text,
        )
    return payload


def parse_model(model: type, payload: Dict[str, Any], response: httpx.Response, *, operation: str) -> BaseModel:
    """Validate a payload against a pydantic model, reporting failures as ProtocolError."""
    try:
        return model.model_validate(payload)
    except ValidationError as exc:
        raise ProtocolError(
            f"{operation}: malformed response body",
            status_code=response.status_code,
            body=response.text,
            details={
                "errors": [
                    ".".join(str(part) for part in error["loc"]) + ": " + error["msg"]
                    for error in exc.errors()
                ]
            },
        ) from exc
