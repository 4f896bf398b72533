"""
FTW Community Backend — Session Tokens
=======================================

What:  Issues and verifies the signed, time-boxed session token handed out
       at login.
How:   python-jose HS256 JWT. Claims:

           sub      user id (string UUID)
           role     the actor's role at issuance
           org      organization
           college  college id or null
           iat/exp  issued-at and expiry (unix seconds, exp = iat + ttl)

Verification fails closed. Any decode error (bad signature, malformed
token, `alg: none`, algorithm mismatch), a missing claim, or an expired
token raises InvalidSession. Expiry is checked here, against an explicit
clock, rather than inside the JWT library, so the boundary is exact:
a token is valid while `now < exp`.
"""

import time
from dataclasses import dataclass
from typing import Any, Dict, Optional
from uuid import UUID

from jose import jwt
from jose.exceptions import JOSEError

from ftw_community.domain.roles import Actor
from ftw_community.exceptions import InvalidSession


@dataclass(frozen=True)
class SessionClaims:
    identity: UUID
    role: str
    organization: Optional[str]
    college_id: Optional[UUID]
    issued_at: int
    expires_at: int


class SessionSigner:
    """
    Args:
        secret:       symmetric signing key (settings.jwt_secret)
        algorithm:    HS256 / HS384 / HS512
        ttl_seconds:  token lifetime (settings.session_ttl_seconds)
    """

    def __init__(self, secret: str, algorithm: str = "HS256", ttl_seconds: int = 86_400):
        if not secret:
            raise ValueError("Session signing secret must not be empty")
        self._secret = secret
        self._algorithm = algorithm
        self.ttl_seconds = ttl_seconds

    def issue(self, actor: Actor, now: Optional[float] = None) -> str:
        issued_at = int(now if now is not None else time.time())
        claims: Dict[str, Any] = {
            "sub": str(actor.identity),
            "role": actor.role.value if actor.role else None,
            "org": actor.organization,
            "college": str(actor.college_id) if actor.college_id else None,
            "iat": issued_at,
            "exp": issued_at + self.ttl_seconds,
        }
        return jwt.encode(claims, self._secret, algorithm=self._algorithm)

    def verify(self, token: str, now: Optional[float] = None) -> SessionClaims:
        if not token:
            raise InvalidSession()
        try:
            claims = jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                options={
                    "verify_signature": True,
                    "verify_exp": False,
                    "verify_iat": False,
                    "verify_nbf": False,
                    "verify_aud": False,
                },
            )
        except JOSEError as exc:
            raise InvalidSession(context={"reason": "decode_failed"}) from exc

        current = now if now is not None else time.time()
        return _parse_claims(claims, current)


def _parse_claims(claims: Dict[str, Any], now: float) -> SessionClaims:
    exp = claims.get("exp")
    iat = claims.get("iat")
    if not isinstance(exp, (int, float)) or not isinstance(iat, (int, float)):
        raise InvalidSession(context={"reason": "missing_temporal_claims"})
    if now >= exp:
        raise InvalidSession(context={"reason": "expired"})

    role = claims.get("role")
    if not isinstance(role, str) or not role:
        raise InvalidSession(context={"reason": "missing_role"})

    try:
        identity = UUID(str(claims.get("sub")))
        college = claims.get("college")
        college_id = UUID(str(college)) if college else None
    except ValueError as exc:
        raise InvalidSession(context={"reason": "malformed_subject"}) from exc

    return SessionClaims(
        identity=identity,
        role=role,
        organization=claims.get("org"),
        college_id=college_id,
        issued_at=int(iat),
        expires_at=int(exp),
    )
