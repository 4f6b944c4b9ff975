import logging
from typing import Any, Dict, List, Literal, Optional, Union
from urllib.parse import quote

import httpx

from ._http import build_request, connection_error, parse_response
from .config import VortexSettings
from .errors import (
    MissingIdentityError,
    NoTargetsProvidedError,
    UnsupportedTargetTypeError,
)
from .signing import generate_token
from .types import (
    AcceptInput,
    AcceptUser,
    AutojoinDomainsResponse,
    BackendCreateInvitationRequest,
    ConfigureAutojoinRequest,
    CreateInvitationGroup,
    CreateInvitationResponse,
    CreateInvitationTarget,
    Invitation,
    InvitationTarget,
    Inviter,
    UnfurlConfig,
    User,
)

logger = logging.getLogger(__name__)


def _is_legacy_target(value: Any) -> bool:
    return isinstance(value, InvitationTarget) or (
        isinstance(value, dict) and "type" in value and "value" in value
    )


def _legacy_target_to_user(target: Union[InvitationTarget, Dict[str, str]]) -> AcceptUser:
    logger.warning(
        "[Vortex] DEPRECATED: Passing an InvitationTarget is deprecated. "
        "Use the AcceptUser format instead: AcceptUser(email='user@example.com')"
    )
    if isinstance(target, dict):
        target = InvitationTarget(**target)

    if target.type == "email":
        return AcceptUser(email=target.value)
    if target.type == "phone":
        return AcceptUser(phone=target.value)
    raise UnsupportedTargetTypeError(target.type)


def normalize_accept_input(user_or_target: AcceptInput) -> List[AcceptUser]:
    """
    Resolve the accepted input shapes into the users to accept with, in order.

    - AcceptUser, or a dict of its fields: the current format
    - InvitationTarget, or a ``{"type", "value"}`` dict: deprecated
    - a list of InvitationTargets: deprecated, one accept call per target

    Every element is converted before anything is sent, so a bad target in a
    list fails the whole call up front.
    """
    if isinstance(user_or_target, list):
        logger.warning(
            "[Vortex] DEPRECATED: Passing a list of targets is deprecated. "
            "Use the AcceptUser format and call once per user instead."
        )
        if not user_or_target:
            raise NoTargetsProvidedError("No targets provided")
        for target in user_or_target:
            if not _is_legacy_target(target):
                raise TypeError(
                    "A list passed to accept_invitations must contain only "
                    f"InvitationTarget items, got {type(target).__name__}"
                )
        return [_legacy_target_to_user(target) for target in user_or_target]

    if _is_legacy_target(user_or_target):
        return [_legacy_target_to_user(user_or_target)]  # type: ignore[arg-type]

    if isinstance(user_or_target, dict):
        user = AcceptUser(**user_or_target)
    else:
        user = user_or_target  # type: ignore[assignment]

    if not user.email and not user.phone:
        raise MissingIdentityError("User must have either email or phone")

    return [user]


def _accept_body(invitation_ids: List[str], user: AcceptUser) -> Dict[str, Any]:
    return {"invitationIds": invitation_ids, "user": user.model_dump(exclude_none=True)}


def _create_invitation_body(
    widget_configuration_id: str,
    target: Union[CreateInvitationTarget, Dict[str, str]],
    inviter: Union[Inviter, Dict[str, str]],
    groups: Optional[List[Union[CreateInvitationGroup, Dict[str, str]]]],
    source: Optional[str],
    template_variables: Optional[Dict[str, str]],
    metadata: Optional[Dict[str, Any]],
    unfurl_config: Optional[Union[UnfurlConfig, Dict[str, str]]],
) -> Dict[str, Any]:
    # Convert dicts to models if needed
    if isinstance(target, dict):
        target = CreateInvitationTarget(**target)
    if isinstance(inviter, dict):
        inviter = Inviter(**inviter)
    if groups:
        groups = [
            CreateInvitationGroup(**g) if isinstance(g, dict) else g for g in groups
        ]
    if isinstance(unfurl_config, dict):
        unfurl_config = UnfurlConfig(**unfurl_config)

    request = BackendCreateInvitationRequest(
        widget_configuration_id=widget_configuration_id,
        target=target,
        inviter=inviter,
        groups=groups,
        source=source,
        template_variables=template_variables,
        metadata=metadata,
        unfurl_config=unfurl_config,
    )
    # camelCase keys for the API
    return request.model_dump(by_alias=True, exclude_none=True)


def _autojoin_path(scope_type: str, scope: str) -> str:
    return (
        f"/api/v1/invitations/by-scope/{quote(scope_type, safe='')}"
        f"/{quote(scope, safe='')}/autojoin"
    )


def _invitations(response: Dict[str, Any]) -> List[Invitation]:
    return [Invitation(**inv) for inv in response.get("invitations") or []]


def _invitation(response: Dict[str, Any]) -> Optional[Invitation]:
    return Invitation(**response) if response else None


class Vortex:
    def __init__(
        self,
        api_key: str,
        base_url: Optional[str] = None,
        *,
        settings: Optional[VortexSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        sync_http_client: Optional[httpx.Client] = None,
    ):
        """
        Initialize Vortex client

        Args:
            api_key: Your Vortex API key
            base_url: Base URL for Vortex API. Defaults to VORTEX_API_BASE_URL
                      from the environment, then https://api.vortexsoftware.com
            settings: Settings to read the base URL from instead of the environment
            http_client: httpx.AsyncClient to send async requests with
                         (timeouts, proxies and transports are configured there)
            sync_http_client: httpx.Client to send synchronous requests with

        Default clients are created on first use. close() closes both clients.
        """
        if base_url is None:
            base_url = (settings or VortexSettings()).api_base_url

        self.api_key = api_key
        self.base_url = base_url.rstrip("/")
        self._client: Optional[httpx.AsyncClient] = http_client
        self._sync_client: Optional[httpx.Client] = sync_http_client

    @property
    def _async_http(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    @property
    def _sync_http(self) -> httpx.Client:
        if self._sync_client is None:
            self._sync_client = httpx.Client()
        return self._sync_client

    def generate_jwt(self, user: Union[User, Dict], **extra: Any) -> str:
        """
        Generate a JWT token for a user

        Args:
            user: User object or dict with 'id', 'email', and optional 'name',
                  'avatar_url', 'admin_scopes'
            **extra: Additional properties to include in JWT payload. These are
                     merged last and can overwrite payload fields, `expires`
                     included; never pass untrusted input here.

        Returns:
            JWT token string

        Raises:
            InvalidKeyFormatError: If the API key is not VRTX.{encodedId}.{key}
            InvalidKeyPrefixError: If the API key prefix is not VRTX

        Example:
            user = {'id': 'user-123', 'email': 'user@example.com', 'admin_scopes': ['autojoin']}
            jwt = vortex.generate_jwt(user=user)

            # With additional properties including name and avatar
            user = {
                'id': 'user-123',
                'email': 'user@example.com',
                'name': 'John Doe',
                'avatar_url': 'https://example.com/avatar.jpg'
            }
            jwt = vortex.generate_jwt(user=user, department='Engineering')
        """
        return generate_token(self.api_key, user, **extra)

    async def _vortex_api_request(
        self,
        method: str,
        path: str,
        data: Optional[Dict] = None,
        params: Optional[Dict] = None,
    ) -> Dict:
        """
        Make an API request to Vortex

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            path: API path, starting with /api/v1
            data: Request body data
            params: Query parameters

        Returns:
            Parsed response body, or {} when the body is empty

        Raises:
            VortexApiError: If the API answers with a non-2xx status
            VortexConnectionError: If no response was received
        """
        request = build_request(
            self._async_http, self.api_key, self.base_url, method, path, data, params
        )
        try:
            response = await self._async_http.send(request)
        except httpx.RequestError as e:
            raise connection_error(request, e) from e

        return parse_response(response)

    def _vortex_api_request_sync(
        self,
        method: str,
        path: str,
        data: Optional[Dict] = None,
        params: Optional[Dict] = None,
    ) -> Dict:
        """Synchronous twin of _vortex_api_request"""
        request = build_request(
            self._sync_http, self.api_key, self.base_url, method, path, data, params
        )
        try:
            response = self._sync_http.send(request)
        except httpx.RequestError as e:
            raise connection_error(request, e) from e

        return parse_response(response)

    async def get_invitations_by_target(
        self,
        target_type: Literal["email", "username", "phoneNumber"],
        target_value: str,
    ) -> List[Invitation]:
        """
        Get invitations for a specific target

        Args:
            target_type: Type of target (email, username, or phoneNumber)
            target_value: Target value

        Returns:
            List of invitations
        """
        params = {"targetType": target_type, "targetValue": target_value}
        response = await self._vortex_api_request(
            "GET", "/api/v1/invitations", params=params
        )
        return _invitations(response)

    def get_invitations_by_target_sync(
        self,
        target_type: Literal["email", "username", "phoneNumber"],
        target_value: str,
    ) -> List[Invitation]:
        """Get invitations for a specific target (synchronous)"""
        params = {"targetType": target_type, "targetValue": target_value}
        response = self._vortex_api_request_sync(
            "GET", "/api/v1/invitations", params=params
        )
        return _invitations(response)

    async def get_invitation(self, invitation_id: str) -> Optional[Invitation]:
        """
        Get a specific invitation by ID

        Args:
            invitation_id: Invitation ID

        Returns:
            Invitation object, or None if the API answered with an empty body
        """
        response = await self._vortex_api_request(
            "GET", f"/api/v1/invitations/{invitation_id}"
        )
        return _invitation(response)

    def get_invitation_sync(self, invitation_id: str) -> Optional[Invitation]:
        """Get a specific invitation by ID (synchronous)"""
        response = self._vortex_api_request_sync(
            "GET", f"/api/v1/invitations/{invitation_id}"
        )
        return _invitation(response)

    async def revoke_invitation(self, invitation_id: str) -> Dict:
        """
        Revoke an invitation

        Args:
            invitation_id: Invitation ID to revoke

        Returns:
            API response ({} on success)
        """
        return await self._vortex_api_request(
            "DELETE", f"/api/v1/invitations/{invitation_id}"
        )

    def revoke_invitation_sync(self, invitation_id: str) -> Dict:
        """Revoke an invitation (synchronous)"""
        return self._vortex_api_request_sync(
            "DELETE", f"/api/v1/invitations/{invitation_id}"
        )

    async def accept_invitations(
        self,
        invitation_ids: List[str],
        user_or_target: AcceptInput,
    ) -> Dict:
        """
        Accept multiple invitations using the new User format (preferred)

        Args:
            invitation_ids: List of invitation IDs to accept
            user_or_target: User object with email/phone/name (preferred) OR legacy
                            target format (deprecated). A list of legacy targets
                            sends one request per target, in order, and returns
                            the result of the last one.

        Returns:
            API response

        Raises:
            MissingIdentityError: If the user has neither email nor phone
            UnsupportedTargetTypeError: If a legacy target is not email or phone
            NoTargetsProvidedError: If an empty list of targets is passed

        Example (new format):
            user = AcceptUser(email="user@example.com", name="John Doe")
            result = await client.accept_invitations(["inv-123"], user)

        Example (legacy format - deprecated):
            target = InvitationTarget(type="email", value="user@example.com")
            result = await client.accept_invitations(["inv-123"], target)
        """
        result: Dict = {}
        for user in normalize_accept_input(user_or_target):
            result = await self._vortex_api_request(
                "POST",
                "/api/v1/invitations/accept",
                data=_accept_body(invitation_ids, user),
            )
        return result

    def accept_invitations_sync(
        self,
        invitation_ids: List[str],
        user_or_target: AcceptInput,
    ) -> Dict:
        """
        Accept multiple invitations (synchronous version)

        See accept_invitations() for full documentation.
        """
        result: Dict = {}
        for user in normalize_accept_input(user_or_target):
            result = self._vortex_api_request_sync(
                "POST",
                "/api/v1/invitations/accept",
                data=_accept_body(invitation_ids, user),
            )
        return result

    async def accept_invitation(
        self,
        invitation_id: str,
        user: Union[AcceptUser, Dict[str, Any]],
    ) -> Dict:
        """
        Accept a single invitation (recommended method)

        Args:
            invitation_id: Single invitation ID to accept
            user: User object with email/phone/name

        Returns:
            API response

        Example:
            user = AcceptUser(email="user@example.com", name="John Doe")
            result = await client.accept_invitation("inv-123", user)

            # Or with a dict:
            result = await client.accept_invitation("inv-123", {"email": "user@example.com"})
        """
        return await self.accept_invitations([invitation_id], user)

    def accept_invitation_sync(
        self,
        invitation_id: str,
        user: Union[AcceptUser, Dict[str, Any]],
    ) -> Dict:
        """Accept a single invitation (synchronous, recommended method)"""
        return self.accept_invitations_sync([invitation_id], user)

    async def delete_invitations_by_group(self, group_type: str, group_id: str) -> Dict:
        """
        Delete all invitations for a specific group

        Args:
            group_type: Type of group
            group_id: Group ID

        Returns:
            API response
        """
        return await self._vortex_api_request(
            "DELETE", f"/api/v1/invitations/by-group/{group_type}/{group_id}"
        )

    def delete_invitations_by_group_sync(self, group_type: str, group_id: str) -> Dict:
        """Delete all invitations for a specific group (synchronous)"""
        return self._vortex_api_request_sync(
            "DELETE", f"/api/v1/invitations/by-group/{group_type}/{group_id}"
        )

    async def get_invitations_by_group(
        self, group_type: str, group_id: str
    ) -> List[Invitation]:
        """
        Get invitations for a specific group

        Args:
            group_type: Type of group
            group_id: Group ID

        Returns:
            List of invitations
        """
        response = await self._vortex_api_request(
            "GET", f"/api/v1/invitations/by-group/{group_type}/{group_id}"
        )
        return _invitations(response)

    def get_invitations_by_group_sync(
        self, group_type: str, group_id: str
    ) -> List[Invitation]:
        """Get invitations for a specific group (synchronous)"""
        response = self._vortex_api_request_sync(
            "GET", f"/api/v1/invitations/by-group/{group_type}/{group_id}"
        )
        return _invitations(response)

    async def reinvite(self, invitation_id: str) -> Optional[Invitation]:
        """
        Reinvite for a specific invitation

        Args:
            invitation_id: Invitation ID to reinvite

        Returns:
            Updated invitation object, or None if the API answered with an empty body
        """
        response = await self._vortex_api_request(
            "POST", f"/api/v1/invitations/{invitation_id}/reinvite"
        )
        return _invitation(response)

    def reinvite_sync(self, invitation_id: str) -> Optional[Invitation]:
        """Reinvite for a specific invitation (synchronous)"""
        response = self._vortex_api_request_sync(
            "POST", f"/api/v1/invitations/{invitation_id}/reinvite"
        )
        return _invitation(response)

    async def create_invitation(
        self,
        widget_configuration_id: str,
        target: Union[CreateInvitationTarget, Dict[str, str]],
        inviter: Union[Inviter, Dict[str, str]],
        groups: Optional[List[Union[CreateInvitationGroup, Dict[str, str]]]] = None,
        source: Optional[str] = None,
        template_variables: Optional[Dict[str, str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        unfurl_config: Optional[Union[UnfurlConfig, Dict[str, str]]] = None,
    ) -> Optional[CreateInvitationResponse]:
        """
        Create an invitation from your backend.

        Uses your API key rather than a user JWT, for server-side flows such as
        "People You May Know" or admin-initiated invitations.

        Args:
            widget_configuration_id: The widget configuration ID to use
            target: The target of the invitation (who is being invited)
                   - type: 'email', 'phone', or 'internal'
                   - value: Email address, phone number, or internal user ID
            inviter: Information about the user creating the invitation
                    - user_id: Your internal user ID for the inviter (required)
                    - user_email, user_name, user_avatar_url: optional
            groups: Optional groups/scopes to associate with the invitation
            source: Optional source for analytics (defaults to 'api')
            template_variables: Optional template variables for email customization
            metadata: Optional metadata passed through to webhooks
            unfurl_config: Optional social preview (Open Graph) settings for the
                           invitation link: title, description, image, type, site_name

        Returns:
            CreateInvitationResponse with id, short_link, status, and created_at,
            or None if the API answered with an empty body

        Example:
            result = await vortex.create_invitation(
                widget_configuration_id="widget-config-123",
                target={"type": "email", "value": "invitee@example.com"},
                inviter={"user_id": "user-456", "user_email": "inviter@example.com"},
                groups=[{"type": "team", "group_id": "team-789", "name": "Engineering"}],
                unfurl_config={"title": "Join Engineering on Acme"},
            )
        """
        body = _create_invitation_body(
            widget_configuration_id,
            target,
            inviter,
            groups,
            source,
            template_variables,
            metadata,
            unfurl_config,
        )
        response = await self._vortex_api_request("POST", "/api/v1/invitations", data=body)
        return CreateInvitationResponse(**response) if response else None

    def create_invitation_sync(
        self,
        widget_configuration_id: str,
        target: Union[CreateInvitationTarget, Dict[str, str]],
        inviter: Union[Inviter, Dict[str, str]],
        groups: Optional[List[Union[CreateInvitationGroup, Dict[str, str]]]] = None,
        source: Optional[str] = None,
        template_variables: Optional[Dict[str, str]] = None,
        metadata: Optional[Dict[str, Any]] = None,
        unfurl_config: Optional[Union[UnfurlConfig, Dict[str, str]]] = None,
    ) -> Optional[CreateInvitationResponse]:
        """
        Create an invitation from your backend (synchronous version).

        See create_invitation() for full documentation.
        """
        body = _create_invitation_body(
            widget_configuration_id,
            target,
            inviter,
            groups,
            source,
            template_variables,
            metadata,
            unfurl_config,
        )
        response = self._vortex_api_request_sync("POST", "/api/v1/invitations", data=body)
        return CreateInvitationResponse(**response) if response else None

    async def get_autojoin_domains(
        self, scope_type: str, scope: str
    ) -> AutojoinDomainsResponse:
        """
        Get autojoin domains configured for a specific scope

        Args:
            scope_type: The type of scope (e.g., "organization", "team", "project")
            scope: The scope identifier (customer's group ID)

        Returns:
            AutojoinDomainsResponse with autojoin_domains and associated invitation

        Example:
            result = await vortex.get_autojoin_domains("organization", "acme-org")
            print(result.autojoin_domains)  # [AutojoinDomain(id='...', domain='acme.com')]
        """
        response = await self._vortex_api_request("GET", _autojoin_path(scope_type, scope))
        return AutojoinDomainsResponse(**response)

    def get_autojoin_domains_sync(
        self, scope_type: str, scope: str
    ) -> AutojoinDomainsResponse:
        """Get autojoin domains configured for a specific scope (synchronous)"""
        response = self._vortex_api_request_sync("GET", _autojoin_path(scope_type, scope))
        return AutojoinDomainsResponse(**response)

    async def configure_autojoin(
        self,
        scope: str,
        scope_type: str,
        domains: List[str],
        widget_id: str,
        scope_name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AutojoinDomainsResponse:
        """
        Configure autojoin domains for a specific scope

        The server treats `domains` as the full desired set: it adds new
        domains, removes domains not in the list, and deactivates the autojoin
        invitation when the list is empty.

        Args:
            scope: The scope identifier (customer's group ID)
            scope_type: The type of scope (e.g., "organization", "team")
            domains: Array of domains to configure for autojoin
            widget_id: The widget configuration ID
            scope_name: Optional display name for the scope
            metadata: Optional metadata to attach to the invitation

        Returns:
            AutojoinDomainsResponse with updated autojoin_domains and associated invitation

        Example:
            result = await vortex.configure_autojoin(
                scope="acme-org",
                scope_type="organization",
                domains=["acme.com", "acme.org"],
                widget_id="widget-123",
                scope_name="Acme Corporation",
            )
        """
        request = ConfigureAutojoinRequest(
            scope=scope,
            scope_type=scope_type,
            domains=domains,
            widget_id=widget_id,
            scope_name=scope_name,
            metadata=metadata,
        )
        response = await self._vortex_api_request(
            "POST",
            "/api/v1/invitations/autojoin",
            data=request.model_dump(by_alias=True, exclude_none=True),
        )
        return AutojoinDomainsResponse(**response)

    def configure_autojoin_sync(
        self,
        scope: str,
        scope_type: str,
        domains: List[str],
        widget_id: str,
        scope_name: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> AutojoinDomainsResponse:
        """
        Configure autojoin domains for a specific scope (synchronous)

        See configure_autojoin() for full documentation.
        """
        request = ConfigureAutojoinRequest(
            scope=scope,
            scope_type=scope_type,
            domains=domains,
            widget_id=widget_id,
            scope_name=scope_name,
            metadata=metadata,
        )
        response = self._vortex_api_request_sync(
            "POST",
            "/api/v1/invitations/autojoin",
            data=request.model_dump(by_alias=True, exclude_none=True),
        )
        return AutojoinDomainsResponse(**response)

    async def close(self) -> None:
        """Close both HTTP clients"""
        if self._client is not None:
            await self._client.aclose()
        self.close_sync()

    def close_sync(self) -> None:
        """Close the synchronous HTTP client"""
        if self._sync_client is not None:
            self._sync_client.close()

    async def __aenter__(self) -> "Vortex":
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    def __enter__(self) -> "Vortex":
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close_sync()
