"""JWT issuance and verification.

Learn: The issuer signs {sub, role, iat, exp} with an HMAC secret. The
verifier checks the signature and expiry on every request. Both take
their secret at construction — create_app() builds them once from
Settings and parks them on app.state.

Algorithm substitution: an attacker can rewrite a token's header to
`"alg": "none"` or to a different scheme. The verifier compares the
header's alg against the single configured algorithm before decoding,
and PyJWT is also told to accept exactly that one algorithm.
"""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import jwt

from erm.config import HMAC_ALGORITHMS

BEARER_PREFIX = "Bearer "


class TokenError(Exception):
    """Base class for token issuance/verification failures."""


class MissingCredentials(TokenError):
    """No Authorization header, or not a Bearer credential."""


class TokenInvalid(TokenError):
    """Bad signature, wrong algorithm, malformed token, missing claims."""


class TokenExpired(TokenError):
    """Signature is fine but `exp` is in the past."""


class SigningKeyUnavailable(TokenError):
    """The issuer has no secret to sign with."""


@dataclass(frozen=True)
class TokenClaims:
    """Decoded claims of a verified token."""

    subject: str
    expires_at: datetime
    role: Optional[str] = None
    issued_at: Optional[datetime] = None

    @classmethod
    def from_payload(cls, payload: dict) -> "TokenClaims":
        iat = payload.get("iat")
        return cls(
            subject=payload["sub"],
            role=payload.get("role") or None,
            expires_at=datetime.fromtimestamp(payload["exp"], tz=timezone.utc),
            issued_at=(
                datetime.fromtimestamp(iat, tz=timezone.utc)
                if iat is not None
                else None
            ),
        )


def _check_algorithm(algorithm: str) -> str:
    if algorithm not in HMAC_ALGORITHMS:
        raise ValueError(f"Unsupported signing algorithm: {algorithm}")
    return algorithm


class TokenIssuer:
    """Signs time-bounded claims tokens."""

    def __init__(
        self,
        secret: str,
        algorithm: str = "HS256",
        ttl: timedelta = timedelta(hours=24),
    ):
        self._secret = secret
        self.algorithm = _check_algorithm(algorithm)
        self.ttl = ttl

    def issue(
        self,
        subject: str,
        role: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> str:
        """Create a signed token for `subject` expiring `ttl` from `now`."""
        if not self._secret:
            raise SigningKeyUnavailable("No signing secret configured")

        issued_at = now or datetime.now(timezone.utc)
        payload = {
            "sub": subject,
            "iat": issued_at,
            "exp": issued_at + self.ttl,
        }
        if role:
            payload["role"] = role
        return jwt.encode(payload, self._secret, algorithm=self.algorithm)

    def issue_for(self, identity) -> str:
        """Issue a token for an authenticated Identity."""
        return self.issue(identity.username, identity.role)


class TokenVerifier:
    """Checks signature, algorithm and expiry of inbound tokens."""

    def __init__(self, secret: str, algorithm: str = "HS256", leeway: int = 0):
        self._secret = secret
        self.algorithm = _check_algorithm(algorithm)
        self.leeway = leeway

    def verify(self, token: str) -> TokenClaims:
        """Verify and decode a token.

        Raises TokenExpired or TokenInvalid. The exception message is
        meant for server logs, not for the client.
        """
        try:
            header = jwt.get_unverified_header(token)
        except jwt.InvalidTokenError as e:
            raise TokenInvalid(f"Malformed token: {e}") from e

        alg = header.get("alg")
        if alg != self.algorithm:
            raise TokenInvalid(
                f"Unexpected signing algorithm {alg!r} (expected {self.algorithm})"
            )

        try:
            payload = jwt.decode(
                token,
                self._secret,
                algorithms=[self.algorithm],
                leeway=self.leeway,
                options={"require": ["sub", "exp"]},
            )
        except jwt.ExpiredSignatureError as e:
            raise TokenExpired("Token has expired") from e
        except jwt.InvalidTokenError as e:
            raise TokenInvalid(f"Invalid token: {e}") from e

        return TokenClaims.from_payload(payload)


def extract_bearer(authorization: Optional[str]) -> str:
    """Pull the token out of an `Authorization: Bearer <token>` header."""
    if not authorization or not authorization.startswith(BEARER_PREFIX):
        raise MissingCredentials("Missing or malformed Authorization header")
    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise MissingCredentials("Empty bearer token")
    return token
