"""
Vortex token signing

Produces the HS256 JWT consumed by the Vortex widget. The signing key is
derived from the API key on every call and never leaves this module:

    API key:      VRTX.<base64url(16-byte uuid)>.<secret>
    kid:          canonical uuid text of the middle part
    signing key:  HMAC-SHA256(key=secret, msg=kid), raw 32 bytes
    token:        b64url(header) . b64url(payload) . b64url(HMAC-SHA256(signing key))

Extra claims are merged into the payload last and may overwrite any payload
field, ``expires`` included. Header fields (``iat``, ``alg``, ``typ``, ``kid``)
cannot be overwritten. Treat extra claims as trusted input.
"""

import base64
import binascii
import hashlib
import hmac
import json
import time
import uuid
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Union

from .errors import InvalidKeyFormatError, InvalidKeyPrefixError
from .types import User

API_KEY_PREFIX = "VRTX"
TOKEN_TTL_SECONDS = 3600
AUTOJOIN_SCOPE = "autojoin"


@dataclass(frozen=True)
class ApiKey:
    prefix: str
    key_id: str
    secret: str = field(repr=False)


def _b64url_encode(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode("ascii").rstrip("=")


def _b64url_decode(data: str) -> bytes:
    # Add padding if needed
    return base64.urlsafe_b64decode(data + "=" * (-len(data) % 4))


def _json_segment(obj: Dict[str, Any]) -> str:
    return _b64url_encode(
        json.dumps(obj, separators=(",", ":"), ensure_ascii=False).encode("utf-8")
    )


def parse_api_key(raw: str) -> ApiKey:
    """
    Parse and validate a ``VRTX.{encodedId}.{key}`` API key.

    Raises:
        InvalidKeyFormatError: wrong number of parts, empty parts, or an
            encoded id that is not a base64url 16-byte uuid
        InvalidKeyPrefixError: first part is not ``VRTX``
    """
    parts = raw.split(".")
    if len(parts) != 3 or not all(parts):
        raise InvalidKeyFormatError(
            "Invalid API key format. Expected: VRTX.{encodedId}.{key}"
        )

    prefix, encoded_id, secret = parts
    if prefix != API_KEY_PREFIX:
        raise InvalidKeyPrefixError("Invalid API key prefix. Expected: VRTX")

    try:
        key_id = str(uuid.UUID(bytes=_b64url_decode(encoded_id)))
    except (binascii.Error, ValueError) as e:
        raise InvalidKeyFormatError(f"Invalid UUID in API key: {e}") from e

    return ApiKey(prefix=prefix, key_id=key_id, secret=secret)


def derive_signing_key(api_key: ApiKey) -> bytes:
    return hmac.new(
        api_key.secret.encode("utf-8"), api_key.key_id.encode("utf-8"), hashlib.sha256
    ).digest()


def build_payload(
    user: User, expires: int, extra: Optional[Dict[str, Any]] = None
) -> Dict[str, Any]:
    """Assemble the JWT payload; later entries win on key collision."""
    payload: Dict[str, Any] = {"userId": user.id}
    if user.email is not None:
        payload["userEmail"] = user.email
    payload["expires"] = expires
    payload["identifiers"] = (
        [{"type": "email", "value": user.email}] if user.email else []
    )

    if user.name:
        payload["userName"] = user.name
    if user.avatar_url:
        payload["userAvatarUrl"] = user.avatar_url

    if user.admin_scopes:
        payload["adminScopes"] = user.admin_scopes
        # Two encodings of the same fact, read by different widget versions
        if AUTOJOIN_SCOPE in user.admin_scopes:
            payload["userIsAutojoinAdmin"] = True
            payload["role"] = "admin"

    # Domain-restricted invitations
    if user.allowed_email_domains:
        payload["allowedEmailDomains"] = user.allowed_email_domains

    if user.groups:
        payload["groups"] = [group.to_claim() for group in user.groups]

    if user.model_extra:
        payload.update(user.model_extra)

    if extra:
        payload.update(extra)

    return payload


def generate_token(api_key: str, user: Union[User, Dict[str, Any]], **extra: Any) -> str:
    """
    Generate a signed JWT for ``user``.

    Args:
        api_key: Vortex API key (``VRTX.{encodedId}.{key}``)
        user: User object or dict with 'id', 'email', and optional 'name',
              'avatar_url', 'admin_scopes', 'allowed_email_domains', 'groups'
        **extra: Additional top-level payload claims, merged last

    Returns:
        JWT token string

    Raises:
        InvalidKeyFormatError, InvalidKeyPrefixError: malformed API key
    """
    key = parse_api_key(api_key)

    if isinstance(user, dict):
        user = User(**user)

    iat = int(time.time())
    header = {
        "iat": iat,
        "alg": "HS256",
        "typ": "JWT",
        "kid": key.key_id,
    }
    payload = build_payload(user, iat + TOKEN_TTL_SECONDS, extra)

    to_sign = f"{_json_segment(header)}.{_json_segment(payload)}"
    signature = hmac.new(
        derive_signing_key(key), to_sign.encode("ascii"), hashlib.sha256
    ).digest()

    return f"{to_sign}.{_b64url_encode(signature)}"
