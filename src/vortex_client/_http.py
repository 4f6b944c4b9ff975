"""
Request helper shared by the async and sync halves of the client.

Building a request and interpreting a response are pure functions here, so
both transports follow identical rules.
"""

import logging
from typing import Any, Dict, Optional

import httpx

from .errors import VortexApiError, VortexConnectionError

logger = logging.getLogger(__name__)

SDK_NAME = "vortex-python-client"


def _get_version() -> str:
    """Lazy import of version to avoid circular import"""
    from . import __version__

    return __version__


def build_headers(api_key: str) -> Dict[str, str]:
    version = _get_version()
    return {
        "x-api-key": api_key,
        "Content-Type": "application/json",
        "User-Agent": f"{SDK_NAME}/{version}",
        "x-vortex-sdk-name": SDK_NAME,
        "x-vortex-sdk-version": version,
    }


def build_request(
    client: Any,
    api_key: str,
    base_url: str,
    method: str,
    path: str,
    data: Optional[Dict[str, Any]] = None,
    params: Optional[Dict[str, Any]] = None,
) -> httpx.Request:
    """Build a request on ``client`` (an ``httpx.Client`` or ``httpx.AsyncClient``)."""
    url = f"{base_url}{path}"
    logger.debug("Vortex API request: %s %s", method, url)
    return client.build_request(
        method, url, json=data, params=params, headers=build_headers(api_key)
    )


def parse_response(response: httpx.Response) -> Dict[str, Any]:
    """
    Interpret a Vortex API response.

    Several endpoints legitimately answer with no body, so an empty or
    unparseable success body yields ``{}`` instead of an error.

    Raises:
        VortexApiError: If the status is not 2xx. The body is passed through
            raw and is not parsed.
    """
    if not response.is_success:
        body = response.text
        raise VortexApiError(
            f"Vortex API request failed: {response.status_code} "
            f"{response.reason_phrase} - {body}",
            status_code=response.status_code,
            status_text=response.reason_phrase,
            body=body,
        )

    content_length = response.headers.get("content-length")
    content_type = response.headers.get("content-type", "")
    if content_length == "0" or (
        "application/json" not in content_type and not content_length
    ):
        return {}

    if not response.text.strip():
        return {}

    try:
        parsed = response.json()
    except ValueError:
        logger.debug(
            "Vortex API returned a non-JSON body (status %s); treating as empty",
            response.status_code,
        )
        return {}

    if not isinstance(parsed, dict):
        logger.debug(
            "Vortex API returned a JSON %s instead of an object (status %s); "
            "treating as empty",
            type(parsed).__name__,
            response.status_code,
        )
        return {}

    return parsed


def connection_error(request: httpx.Request, exc: httpx.RequestError) -> VortexConnectionError:
    return VortexConnectionError(
        f"Request failed: {exc}", request_url=str(request.url)
    )
