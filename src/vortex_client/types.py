from enum import Enum
from typing import Any, Dict, List, Literal, Optional, Union

from pydantic import AliasChoices, BaseModel, Field, field_validator, model_validator


# ─── Token subject ─────────────────────────────────────────────────────


class GroupInput(BaseModel):
    """Group structure for JWT generation (input)"""

    type: str
    id: Optional[str] = None  # Legacy field (deprecated, use group_id)
    group_id: Optional[str] = Field(
        None, validation_alias=AliasChoices("group_id", "groupId")
    )  # Preferred: Customer's group ID
    name: str

    @model_validator(mode="after")
    def _fill_group_id(self) -> "GroupInput":
        if self.group_id is None:
            if self.id is None:
                raise ValueError("GroupInput requires group_id (or legacy id)")
            self.group_id = self.id
        return self

    def to_claim(self) -> Dict[str, Optional[str]]:
        return {"type": self.type, "groupId": self.group_id, "name": self.name}


class User(BaseModel):
    """
    The subject a token is generated for.

    Unknown keys are kept and merged into the token payload as-is.
    """

    id: str
    email: Optional[str] = None
    name: Optional[str] = Field(
        None, validation_alias=AliasChoices("name", "user_name", "userName")
    )
    # Not validated here; check the scheme before generating a token
    avatar_url: Optional[str] = Field(
        None,
        validation_alias=AliasChoices(
            "avatar_url", "user_avatar_url", "userAvatarUrl", "avatarUrl"
        ),
    )
    admin_scopes: Optional[List[str]] = Field(
        None, validation_alias=AliasChoices("admin_scopes", "adminScopes")
    )
    allowed_email_domains: Optional[List[str]] = Field(
        None,
        validation_alias=AliasChoices("allowed_email_domains", "allowedEmailDomains"),
    )
    groups: Optional[List[GroupInput]] = None

    class Config:
        extra = "allow"


# ─── Accept ────────────────────────────────────────────────────────────


class AcceptUser(BaseModel):
    """Identity of the user accepting an invitation (preferred format)"""

    email: Optional[str] = None
    phone: Optional[str] = None
    name: Optional[str] = None


class InvitationTarget(BaseModel):
    """
    Delivery target of an invitation.

    Also the deprecated input shape for accepting invitations.
    """

    type: str
    value: str


# ─── Invitation reads ──────────────────────────────────────────────────


class InvitationStatus(str, Enum):
    """Lifecycle status of an invitation."""

    QUEUED = "queued"
    SENDING = "sending"
    DELIVERED = "delivered"
    ACCEPTED = "accepted"
    SHARED = "shared"
    UNFURLED = "unfurled"
    ACCEPTED_ELSEWHERE = "accepted_elsewhere"


class InvitationGroup(BaseModel):
    """
    Invitation group from API responses
    This matches the MemberGroups table structure from the API
    """

    id: str  # Vortex internal UUID
    account_id: str = Field(alias="accountId")
    group_id: str = Field(alias="groupId")  # Customer's group ID
    type: str  # Group type (e.g., "workspace", "team")
    name: str
    created_at: str = Field(alias="createdAt")  # ISO 8601 timestamp

    class Config:
        populate_by_name = True
        json_schema_extra = {
            "example": {
                "id": "550e8400-e29b-41d4-a716-446655440000",
                "accountId": "6ba7b810-9dad-11d1-80b4-00c04fd430c8",
                "groupId": "workspace-123",
                "type": "workspace",
                "name": "My Workspace",
                "createdAt": "2025-01-27T12:00:00.000Z",
            }
        }


class InvitationAcceptance(BaseModel):
    id: str
    account_id: Optional[str] = Field(None, alias="accountId")
    project_id: Optional[str] = Field(None, alias="projectId")
    accepted_at: Optional[str] = Field(None, alias="acceptedAt")
    target: Optional[InvitationTarget] = None

    class Config:
        populate_by_name = True


class Invitation(BaseModel):
    """Snapshot of an invitation as returned by the API."""

    id: str
    account_id: Optional[str] = Field(None, alias="accountId")
    click_throughs: int = Field(0, alias="clickThroughs")
    configuration_attributes: Optional[Dict[str, Any]] = Field(
        None, alias="configurationAttributes"
    )
    attributes: Optional[Dict[str, Any]] = None
    created_at: Optional[str] = Field(None, alias="createdAt")
    deactivated: bool = False
    delivery_count: int = Field(0, alias="deliveryCount")
    delivery_types: List[str] = Field(default_factory=list, alias="deliveryTypes")
    foreign_creator_id: Optional[str] = Field(None, alias="foreignCreatorId")
    invitation_type: Optional[str] = Field(None, alias="invitationType")
    modified_at: Optional[str] = Field(None, alias="modifiedAt")
    status: Optional[str] = None  # see InvitationStatus
    target: List[InvitationTarget] = Field(default_factory=list)
    views: int = 0
    widget_configuration_id: Optional[str] = Field(
        None, alias="widgetConfigurationId"
    )
    project_id: Optional[str] = Field(None, alias="projectId")
    groups: List[InvitationGroup] = Field(default_factory=list)
    accepts: List[InvitationAcceptance] = Field(default_factory=list)
    expired: bool = False
    expires_at: Optional[str] = Field(None, alias="expiresAt")
    metadata: Optional[Dict[str, Any]] = None

    class Config:
        populate_by_name = True

    @field_validator("target", mode="before")
    @classmethod
    def _target_as_list(cls, value: Any) -> Any:
        # Older payloads carry a single target object
        if value is None:
            return []
        if isinstance(value, (dict, InvitationTarget)):
            return [value]
        return value

    @field_validator("groups", "accepts", "delivery_types", mode="before")
    @classmethod
    def _null_as_empty(cls, value: Any) -> Any:
        return [] if value is None else value


# ─── Create invitation ─────────────────────────────────────────────────


class CreateInvitationTarget(BaseModel):
    type: Literal["email", "phone", "internal"]
    value: str


class Inviter(BaseModel):
    user_id: str = Field(alias="userId")
    user_email: Optional[str] = Field(None, alias="userEmail")
    user_name: Optional[str] = Field(None, alias="userName")
    user_avatar_url: Optional[str] = Field(None, alias="userAvatarUrl")

    class Config:
        populate_by_name = True


class CreateInvitationGroup(BaseModel):
    type: str
    group_id: str = Field(alias="groupId")
    name: str

    class Config:
        populate_by_name = True


class UnfurlConfig(BaseModel):
    """Social preview (Open Graph) metadata for the invitation link"""

    title: Optional[str] = None
    description: Optional[str] = None
    image: Optional[str] = None
    type: Optional[str] = None
    site_name: Optional[str] = Field(None, alias="siteName")

    class Config:
        populate_by_name = True


class BackendCreateInvitationRequest(BaseModel):
    widget_configuration_id: str = Field(alias="widgetConfigurationId")
    target: CreateInvitationTarget
    inviter: Inviter
    groups: Optional[List[CreateInvitationGroup]] = None
    source: Optional[str] = None
    template_variables: Optional[Dict[str, str]] = Field(
        None, alias="templateVariables"
    )
    metadata: Optional[Dict[str, Any]] = None
    unfurl_config: Optional[UnfurlConfig] = Field(None, alias="unfurlConfig")

    class Config:
        populate_by_name = True


class CreateInvitationResponse(BaseModel):
    id: str
    short_link: Optional[str] = Field(None, alias="shortLink")
    status: Optional[str] = None
    created_at: Optional[str] = Field(None, alias="createdAt")

    class Config:
        populate_by_name = True


# ─── Autojoin ──────────────────────────────────────────────────────────


class AutojoinDomain(BaseModel):
    id: str
    domain: str


class AutojoinDomainsResponse(BaseModel):
    autojoin_domains: List[AutojoinDomain] = Field(
        default_factory=list, alias="autojoinDomains"
    )
    invitation: Optional[Invitation] = None

    class Config:
        populate_by_name = True


class ConfigureAutojoinRequest(BaseModel):
    scope: str
    scope_type: str = Field(alias="scopeType")
    scope_name: Optional[str] = Field(None, alias="scopeName")
    domains: List[str]
    widget_id: str = Field(alias="widgetId")
    metadata: Optional[Dict[str, Any]] = None

    class Config:
        populate_by_name = True


AcceptInput = Union[
    AcceptUser,
    InvitationTarget,
    Dict[str, Any],
    List[Union[InvitationTarget, Dict[str, str]]],
]
