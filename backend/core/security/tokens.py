"""
Session token verification for the external identity provider.

The identity provider signs a short-lived session JWT whose ``sub`` claim is
the user id.  We only verify it; sign-in itself happens at the provider.
``create_session_token`` exists for development and tests, where there is no
provider to mint tokens.
"""

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta

from jose import JWTError, jwt


@dataclass
class TokenPayload:
    """Verified session token claims."""

    sub: str  # Subject (identity provider user id)
    exp: datetime  # Expiration time
    iat: datetime  # Issued at
    sid: str | None = None  # Provider session id
    email: str | None = None


class TokenService:
    """Verifies provider session JWTs; issues them where no provider is present."""

    def __init__(
        self,
        key: str,
        algorithm: str = "HS256",
        issuer: str | None = None,
        expire_minutes: int = 60,
    ):
        self._key = key
        self._algorithm = algorithm
        self._issuer = issuer
        self._expire_minutes = expire_minutes

    def create_session_token(
        self,
        user_id: str,
        email: str | None = None,
        session_id: str | None = None,
    ) -> str:
        """Mint a token shaped like the provider's, valid for ``expire_minutes``."""
        issued = datetime.now(UTC)
        payload = {
            "sub": user_id,
            "iat": issued,
            "exp": issued + timedelta(minutes=self._expire_minutes),
        }

        if self._issuer:
            payload["iss"] = self._issuer
        if email:
            payload["email"] = email
        if session_id:
            payload["sid"] = session_id

        return jwt.encode(payload, self._key, algorithm=self._algorithm)

    def decode_token(self, token: str) -> TokenPayload | None:
        """Claims of a valid token; None for a bad signature, wrong issuer or expiry."""
        try:
            claims = jwt.decode(
                token,
                self._key,
                algorithms=[self._algorithm],
                issuer=self._issuer,
                options={"verify_aud": False},
            )
        except JWTError:
            return None

        if not claims.get("sub") or not claims.get("exp"):
            return None

        return TokenPayload(
            sub=str(claims["sub"]),
            exp=datetime.fromtimestamp(claims["exp"], tz=UTC),
            iat=datetime.fromtimestamp(claims.get("iat", 0), tz=UTC),
            sid=claims.get("sid"),
            email=claims.get("email"),
        )
