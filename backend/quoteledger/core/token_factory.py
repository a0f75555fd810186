"""Encode/decode for the HS256 owner tokens issued by the auth service.

The quote service only verifies tokens. ``create_token`` exists for
management scripts and tests that need to act as a given owner.
"""

import base64
import hashlib
import hmac
import json
import time
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Optional

TOKEN_ISSUER = "quoteledger-auth"


@dataclass(frozen=True)
class TokenPayload:
    """Decoded token claims. ``owner_id`` is the ``sub`` claim."""
    owner_id: str
    exp: datetime


def create_token(
    owner_id: str,
    secret: str,
    algorithm: str = "HS256",
    expires_hours: int = 24,
) -> str:
    """Create a signed JWT whose subject is *owner_id*."""
    if algorithm != "HS256":
        raise ValueError(f"Unsupported algorithm: {algorithm}")

    now = int(time.time())
    claims = {
        "sub": owner_id,
        "iat": now,
        "exp": now + expires_hours * 3600,
        "iss": TOKEN_ISSUER,
    }
    header = {"alg": algorithm, "typ": "JWT"}

    signing_input = b".".join([_b64encode(_to_json(header)), _b64encode(_to_json(claims))])
    return (signing_input + b"." + _b64encode(_sign(signing_input, secret))).decode()


def decode_token(token: str, secret: str, algorithm: str = "HS256") -> Optional[TokenPayload]:
    """Verify *token* and return its payload.

    Returns ``None`` for a bad signature, an expired or subject-less token,
    or anything malformed; the caller turns that into a 401.
    """
    if algorithm != "HS256":
        return None
    try:
        header_b64, claims_b64, signature_b64 = token.encode().split(b".")
    except ValueError:
        return None

    try:
        expected = _sign(header_b64 + b"." + claims_b64, secret)
        if not hmac.compare_digest(expected, _b64decode(signature_b64)):
            return None

        claims = json.loads(_b64decode(claims_b64))
        exp = int(claims.get("exp", 0))
        owner_id = str(claims.get("sub") or "")
    except (json.JSONDecodeError, ValueError, TypeError, AttributeError):
        return None

    if not owner_id or time.time() > exp:
        return None

    return TokenPayload(
        owner_id=owner_id,
        exp=datetime.fromtimestamp(exp, tz=timezone.utc),
    )


def _sign(signing_input: bytes, secret: str) -> bytes:
    return hmac.new(secret.encode(), signing_input, hashlib.sha256).digest()


def _to_json(obj: dict) -> bytes:
    return json.dumps(obj, separators=(",", ":")).encode()


# base64url without padding

def _b64encode(data: bytes) -> bytes:
    return base64.urlsafe_b64encode(data).rstrip(b"=")


def _b64decode(data: bytes) -> bytes:
    return base64.urlsafe_b64decode(data + b"=" * (-len(data) % 4))
