"""Tests for API key parsing and JWT signing."""

import base64
import hashlib
import hmac
from unittest.mock import patch

import pytest

from vortex_client import (
    InvalidKeyFormatError,
    InvalidKeyPrefixError,
    User,
    Vortex,
    generate_token,
)
from vortex_client.signing import derive_signing_key, parse_api_key

from .conftest import API_KEY, KEY_SECRET, KEY_UUID, b64url_json

ZERO_KEY = "VRTX.AAAAAAAAAAAAAAAAAAAAAA.secret"
ZERO_KID = "00000000-0000-0000-0000-000000000000"


def _frozen_token(api_key: str, user, now: int = 1000, **extra) -> str:
    with patch("vortex_client.signing.time") as mock_time:
        mock_time.time.return_value = now
        return generate_token(api_key, user, **extra)


def _decode(token: str):
    header, payload, _ = token.split(".")
    return b64url_json(header), b64url_json(payload)


class TestParseApiKey:
    def test_valid_key(self) -> None:
        key = parse_api_key(API_KEY)
        assert key.prefix == "VRTX"
        assert key.key_id == str(KEY_UUID)
        assert key.secret == KEY_SECRET

    def test_secret_not_in_repr(self) -> None:
        assert KEY_SECRET not in repr(parse_api_key(API_KEY))

    @pytest.mark.parametrize(
        "raw",
        [
            "VRTX.AAAAAAAAAAAAAAAAAAAAAA",
            "VRTX.AAAAAAAAAAAAAAAAAAAAAA.secret.extra",
            "VRTX..secret",
            "VRTX.AAAAAAAAAAAAAAAAAAAAAA.",
            "",
        ],
    )
    def test_wrong_shape(self, raw: str) -> None:
        with pytest.raises(InvalidKeyFormatError):
            parse_api_key(raw)

    def test_wrong_prefix(self) -> None:
        with pytest.raises(InvalidKeyPrefixError):
            parse_api_key("ABCD.AAAAAAAAAAAAAAAAAAAAAA.secret")

    def test_id_not_sixteen_bytes(self) -> None:
        short_id = base64.urlsafe_b64encode(b"testid").decode().rstrip("=")
        with pytest.raises(InvalidKeyFormatError, match="Invalid UUID"):
            parse_api_key(f"VRTX.{short_id}.secret")

    def test_errors_are_value_errors(self) -> None:
        with pytest.raises(ValueError):
            parse_api_key("nope")

    def test_signing_key_is_hmac_of_kid(self) -> None:
        key = parse_api_key(ZERO_KEY)
        expected = hmac.new(b"secret", ZERO_KID.encode(), hashlib.sha256).digest()
        assert derive_signing_key(key) == expected
        assert len(derive_signing_key(key)) == 32


class TestGenerateToken:
    def test_example_scenario(self) -> None:
        token = _frozen_token(ZERO_KEY, {"id": "u1", "email": "u1@x.com"})
        header, payload = _decode(token)

        assert header == {"iat": 1000, "alg": "HS256", "typ": "JWT", "kid": ZERO_KID}
        assert payload == {
            "userId": "u1",
            "userEmail": "u1@x.com",
            "expires": 4600,
            "identifiers": [{"type": "email", "value": "u1@x.com"}],
        }

    def test_three_base64url_segments(self) -> None:
        token = generate_token(API_KEY, {"id": "user-1", "email": "a@b.com"})
        segments = token.split(".")
        assert len(segments) == 3
        for segment in segments:
            assert "=" not in segment
            assert "+" not in segment and "/" not in segment
        assert b64url_json(segments[0])["alg"] == "HS256"

    def test_signature_verifies_with_derived_key(self) -> None:
        token = _frozen_token(API_KEY, {"id": "user-1", "email": "a@b.com"})
        header_b64, payload_b64, signature_b64 = token.split(".")

        signing_key = hmac.new(
            KEY_SECRET.encode(), str(KEY_UUID).encode(), hashlib.sha256
        ).digest()
        expected = hmac.new(
            signing_key, f"{header_b64}.{payload_b64}".encode(), hashlib.sha256
        ).digest()
        assert signature_b64 == base64.urlsafe_b64encode(expected).decode().rstrip("=")

    def test_deterministic_for_frozen_clock(self) -> None:
        user = {"id": "user-1", "email": "a@b.com"}
        assert _frozen_token(API_KEY, user) == _frozen_token(API_KEY, user)

    def test_clock_changes_only_times(self) -> None:
        user = {"id": "user-1", "email": "a@b.com"}
        first = _frozen_token(API_KEY, user, now=1000)
        second = _frozen_token(API_KEY, user, now=1001)
        assert first != second

        (h1, p1), (h2, p2) = _decode(first), _decode(second)
        assert (h1["alg"], h1["kid"]) == (h2["alg"], h2["kid"])
        assert h2["iat"] - h1["iat"] == 1
        assert p2["expires"] - p1["expires"] == 1
        assert {k: v for k, v in p1.items() if k != "expires"} == {
            k: v for k, v in p2.items() if k != "expires"
        }

    @pytest.mark.parametrize(
        "raw, error",
        [
            ("VRTX.AAAAAAAAAAAAAAAAAAAAAA", InvalidKeyFormatError),
            ("VRTX.AAAAAAAAAAAAAAAAAAAAAA.a.b", InvalidKeyFormatError),
            ("XXXX.AAAAAAAAAAAAAAAAAAAAAA.secret", InvalidKeyPrefixError),
        ],
    )
    def test_bad_key_fails_before_signing(self, raw: str, error) -> None:
        with patch("vortex_client.signing.hmac.new") as mock_hmac:
            with pytest.raises(error):
                generate_token(raw, {"id": "user-1", "email": "a@b.com"})
        mock_hmac.assert_not_called()

    def test_autojoin_admin_flags(self) -> None:
        token = generate_token(
            API_KEY, {"id": "user-1", "email": "a@b.com", "admin_scopes": ["autojoin"]}
        )
        _, payload = _decode(token)
        assert payload["adminScopes"] == ["autojoin"]
        assert payload["userIsAutojoinAdmin"] is True
        assert payload["role"] == "admin"

    def test_other_admin_scope_has_no_autojoin_flags(self) -> None:
        token = generate_token(
            API_KEY, {"id": "user-1", "email": "a@b.com", "adminScopes": ["billing"]}
        )
        _, payload = _decode(token)
        assert payload["adminScopes"] == ["billing"]
        assert "userIsAutojoinAdmin" not in payload
        assert "role" not in payload

    def test_without_email(self) -> None:
        _, payload = _decode(generate_token(API_KEY, {"id": "user-1"}))
        assert "userEmail" not in payload
        assert payload["identifiers"] == []

    def test_name_and_avatar(self) -> None:
        user = User(
            id="user-1",
            email="a@b.com",
            user_name="Jane Doe",
            avatarUrl="https://example.com/a.png",
        )
        _, payload = _decode(generate_token(API_KEY, user))
        assert payload["userName"] == "Jane Doe"
        assert payload["userAvatarUrl"] == "https://example.com/a.png"

    def test_allowed_domains_and_groups(self) -> None:
        user = {
            "id": "user-1",
            "email": "a@b.com",
            "allowed_email_domains": ["acme.com"],
            "groups": [
                {"type": "workspace", "id": "ws-legacy", "name": "Legacy"},
                {"type": "team", "groupId": "team-1", "name": "Team"},
            ],
        }
        _, payload = _decode(generate_token(API_KEY, user))
        assert payload["allowedEmailDomains"] == ["acme.com"]
        assert payload["groups"] == [
            {"type": "workspace", "groupId": "ws-legacy", "name": "Legacy"},
            {"type": "team", "groupId": "team-1", "name": "Team"},
        ]

    def test_extra_claims_merged_last(self) -> None:
        token = _frozen_token(
            API_KEY,
            {"id": "user-1", "email": "a@b.com", "plan": "pro"},
            department="Engineering",
            expires=99,
            alg="none",
        )
        header, payload = _decode(token)
        assert payload["plan"] == "pro"
        assert payload["department"] == "Engineering"
        # Payload fields can be overwritten; the header cannot
        assert payload["expires"] == 99
        assert header["alg"] == "HS256"
        assert header["iat"] == 1000

    def test_non_ascii_claims(self) -> None:
        _, payload = _decode(generate_token(API_KEY, {"id": "user-1", "name": "Zoë"}))
        assert payload["userName"] == "Zoë"

    def test_client_delegates(self) -> None:
        client = Vortex(API_KEY, base_url="https://api.vortex.test")
        user = {"id": "user-1", "email": "a@b.com"}
        with patch("vortex_client.signing.time") as mock_time:
            mock_time.time.return_value = 1000
            assert client.generate_jwt(user, team="a") == generate_token(
                API_KEY, user, team="a"
            )
