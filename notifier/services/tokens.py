from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import jwt


logger = logging.getLogger(__name__)

ALGORITHM = "RS256"


@dataclass(slots=True)
class Token:
    raw: str = field(repr=False)
    claims: dict[str, Any]


class TokenRejected(Exception):
    def __init__(self, reason: str) -> None:
        self.reason = reason
        super().__init__(reason)


def _reason(exc: jwt.PyJWTError) -> str:
    if isinstance(exc, jwt.ExpiredSignatureError):
        return "expired"
    if isinstance(exc, jwt.MissingRequiredClaimError):
        return f"missing {exc.claim} claim"
    if isinstance(exc, jwt.ImmatureSignatureError):
        return "not yet valid"
    if isinstance(exc, jwt.InvalidSignatureError):
        return "bad signature"
    if isinstance(exc, jwt.InvalidIssuerError):
        return "unexpected issuer"
    if isinstance(exc, jwt.InvalidAudienceError):
        return "unexpected audience"
    if isinstance(exc, jwt.InvalidAlgorithmError):
        return "unsupported algorithm"
    if isinstance(exc, jwt.InvalidKeyError):
        return "unusable public key"
    if isinstance(exc, jwt.DecodeError):
        return "malformed token"
    return "invalid claims"


def decode_token(
    token: str,
    public_key: bytes | str,
    *,
    issuer: str | None = None,
    audience: str | None = None,
    leeway: int = 0,
) -> Token:
    if not token:
        raise TokenRejected("missing token")
    if not public_key:
        raise TokenRejected("no public key configured")

    options: dict[str, Any] = {"require": ["exp"]}
    kwargs: dict[str, Any] = {
        "algorithms": [ALGORITHM],
        "leeway": leeway,
        "options": options,
    }

    if audience:
        kwargs["audience"] = audience
    else:
        options["verify_aud"] = False

    if issuer:
        kwargs["issuer"] = issuer

    try:
        claims = jwt.decode(token, public_key, **kwargs)
    except jwt.PyJWTError as exc:
        raise TokenRejected(_reason(exc)) from exc
    except (ValueError, TypeError) as exc:
        # Raised by the crypto backend for key material it cannot load.
        raise TokenRejected("unusable public key") from exc

    return Token(raw=token, claims=claims)


def verify_token(
    token: str,
    public_key: bytes | str,
    *,
    issuer: str | None = None,
    audience: str | None = None,
    leeway: int = 0,
) -> bool:
    """Check an RS256 token signature and its standard claims.

    The key is passed on every call and never kept, so a rotated key in the
    configuration applies to the next verification. Neither the token nor the
    key ends up in the logs.
    """
    try:
        decode_token(token, public_key, issuer=issuer, audience=audience, leeway=leeway)
    except TokenRejected as exc:
        logger.error("Deep link token rejected: %s", exc.reason)
        return False
    return True
