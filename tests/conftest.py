"""
Shared pytest fixtures for the Vortex client tests.

HTTP is faked with httpx.MockTransport: every request the client sends is
recorded on a ``Recorder`` and answered from its queue of canned responses.
"""

import base64
import json
import uuid
from typing import Any, Dict, List, Union

import httpx
import pytest

from vortex_client import Vortex

KEY_UUID = uuid.UUID("6ba7b810-9dad-11d1-80b4-00c04fd430c8")
KEY_SECRET = "test-secret"
API_KEY = (
    "VRTX."
    + base64.urlsafe_b64encode(KEY_UUID.bytes).decode().rstrip("=")
    + "."
    + KEY_SECRET
)
BASE_URL = "https://api.vortex.test"


def b64url_json(segment: str) -> Dict[str, Any]:
    padded = segment + "=" * (-len(segment) % 4)
    return json.loads(base64.urlsafe_b64decode(padded))


class Recorder:
    """Records outgoing requests and replays queued responses in order."""

    def __init__(self) -> None:
        self.requests: List[httpx.Request] = []
        self._responses: List[Union[httpx.Response, Exception]] = []

    def queue(self, *responses: Union[httpx.Response, Exception]) -> None:
        self._responses.extend(responses)

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if not self._responses:
            return httpx.Response(200, json={})
        response = self._responses.pop(0)
        if isinstance(response, Exception):
            raise response
        return response

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]

    def body(self, index: int = -1) -> Any:
        return json.loads(self.requests[index].content)


@pytest.fixture
def recorder() -> Recorder:
    return Recorder()


@pytest.fixture
def vortex(recorder: Recorder) -> Vortex:
    transport = httpx.MockTransport(recorder)
    return Vortex(
        API_KEY,
        base_url=BASE_URL,
        http_client=httpx.AsyncClient(transport=transport),
        sync_http_client=httpx.Client(transport=transport),
    )


@pytest.fixture
def invitation_payload() -> Dict[str, Any]:
    """Invitation as the API returns it (camelCase)."""
    return {
        "id": "inv-123",
        "accountId": "6ba7b810-9dad-11d1-80b4-00c04fd430c8",
        "clickThroughs": 5,
        "configurationAttributes": {},
        "attributes": {},
        "createdAt": "2025-01-27T12:00:00.000Z",
        "deactivated": False,
        "deliveryCount": 1,
        "deliveryTypes": ["email"],
        "foreignCreatorId": "user-123",
        "invitationType": "single_use",
        "modifiedAt": None,
        "status": "delivered",
        "target": [{"type": "email", "value": "test@example.com"}],
        "views": 10,
        "widgetConfigurationId": "widget-123",
        "projectId": "project-123",
        "groups": [
            {
                "id": "550e8400-e29b-41d4-a716-446655440000",
                "accountId": "6ba7b810-9dad-11d1-80b4-00c04fd430c8",
                "groupId": "workspace-123",
                "type": "workspace",
                "name": "My Workspace",
                "createdAt": "2025-01-27T12:00:00.000Z",
            }
        ],
        "accepts": [],
        "expired": False,
    }
