"""
Vortex Python client

A Python client for Vortex invitation management and JWT generation.
"""

from .client import Vortex
from .config import VortexSettings
from .errors import (
    InvalidKeyFormatError,
    InvalidKeyPrefixError,
    MissingIdentityError,
    NoTargetsProvidedError,
    UnsupportedTargetTypeError,
    VortexApiError,
    VortexConnectionError,
    VortexError,
)
from .signing import generate_token
from .types import (
    AcceptUser,
    AutojoinDomain,
    AutojoinDomainsResponse,
    CreateInvitationGroup,
    CreateInvitationResponse,
    CreateInvitationTarget,
    GroupInput,
    Invitation,
    InvitationAcceptance,
    InvitationGroup,
    InvitationStatus,
    InvitationTarget,
    Inviter,
    UnfurlConfig,
    User,
)

__version__ = "0.1.0"

__all__ = [
    "Vortex",
    "VortexSettings",
    "generate_token",
    "AcceptUser",
    "AutojoinDomain",
    "AutojoinDomainsResponse",
    "CreateInvitationGroup",
    "CreateInvitationResponse",
    "CreateInvitationTarget",
    "GroupInput",
    "Invitation",
    "InvitationAcceptance",
    "InvitationGroup",
    "InvitationStatus",
    "InvitationTarget",
    "Inviter",
    "UnfurlConfig",
    "User",
    "VortexError",
    "VortexApiError",
    "VortexConnectionError",
    "InvalidKeyFormatError",
    "InvalidKeyPrefixError",
    "MissingIdentityError",
    "NoTargetsProvidedError",
    "UnsupportedTargetTypeError",
]
