"""JWT verification for Supabase access tokens.

HS256 tokens are checked against the project's shared JWT secret; RS256 and
ES256 tokens against the key named by the token's ``kid`` in the project's
JWKS.
"""

import jwt
import pydantic

from curator.core.config import settings
from curator.core.jwks import JWKSService, jwks_service
from curator.schemas.auth import JWTClaims
from curator.utils.logging import get_logger

LOGGER = get_logger(__name__)

REQUIRED_CLAIMS = ["sub", "email", "exp", "iat", "iss"]
ASYMMETRIC_ALGORITHMS = ("RS256", "ES256")


class JWTVerifier:
    """Verifier for Supabase access tokens."""

    def __init__(self, supabase_url: str, jwt_secret: str = "", keys: JWKSService = None):
        """Initialize JWT verifier.

        Args:
            supabase_url: Supabase project URL for issuer validation
            jwt_secret: Supabase JWT secret for HS256 verification
            keys: JWKS cache for asymmetric keys
        """
        self.supabase_url = supabase_url.rstrip("/")
        self.expected_issuer = f"{self.supabase_url}/auth/v1"
        self.jwt_secret = jwt_secret
        self.keys = keys or jwks_service

    async def verify_token(self, token: str) -> JWTClaims:
        """Verify and decode a Supabase JWT.

        Args:
            token: JWT access token from the Authorization header

        Returns:
            JWTClaims: Decoded and validated claims

        Raises:
            jwt.InvalidTokenError: If the token is malformed, expired or badly signed
        """
        try:
            header = jwt.get_unverified_header(token)
        except jwt.DecodeError as e:
            raise jwt.InvalidTokenError("Malformed token") from e

        alg = header.get("alg")

        if alg == "HS256":
            if not self.jwt_secret:
                raise jwt.InvalidTokenError("HS256 token received but SUPABASE_JWT_SECRET is not configured")
            key = self.jwt_secret
        elif alg in ASYMMETRIC_ALGORITHMS:
            kid = header.get("kid")
            if not kid:
                raise jwt.InvalidTokenError("JWT header missing 'kid' (key ID)")
            try:
                jwk = await self.keys.get_key(kid)
            except RuntimeError as e:
                raise jwt.InvalidTokenError(f"Signing keys unavailable: {e}") from e
            if jwk is None:
                raise jwt.InvalidTokenError(f"No matching key found for kid: {kid}")
            key = jwk.key
        else:
            raise jwt.InvalidTokenError(f"Unsupported algorithm: {alg}")

        try:
            payload = jwt.decode(
                token,
                key,
                algorithms=[alg],
                audience="authenticated",
                issuer=self.expected_issuer,
                options={"require": REQUIRED_CLAIMS},
            )
        except jwt.ExpiredSignatureError as e:
            LOGGER.warning(f"Token expired: {e}")
            raise jwt.InvalidTokenError("Token has expired") from e
        except jwt.InvalidIssuerError as e:
            LOGGER.warning(f"Invalid issuer: {e}")
            raise jwt.InvalidTokenError("Invalid token issuer") from e

        try:
            return JWTClaims(**payload)
        except pydantic.ValidationError as e:
            LOGGER.warning(f"Token claims rejected: {e}")
            raise jwt.InvalidTokenError("Invalid token claims") from e


jwt_verifier = JWTVerifier(
    supabase_url=settings.supabase_url,
    jwt_secret=settings.supabase_jwt_secret,
)
