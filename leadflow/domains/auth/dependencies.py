# leadflow/domains/auth/dependencies.py
from functools import lru_cache
from typing import Optional

import jwt
from fastapi import Header
from jwt import PyJWKClient
from pydantic import ValidationError

from leadflow.core.settings import settings
from leadflow.shared.exceptions import InvalidTokenError

from .types import SupabaseJwtPayload


@lru_cache(maxsize=1)
def _jwks_client() -> Optional[PyJWKClient]:
    if not settings.SUPABASE_URL:
        return None
    return PyJWKClient(f"{settings.SUPABASE_URL}/auth/v1/jwks")


def decode_supabase_jwt(token: str) -> SupabaseJwtPayload:
    """
    Verifies a Supabase access token.

    HS256 with JWT_SECRET when it is configured (development), otherwise RS256
    against the project's JWKS endpoint.
    """
    try:
        if settings.JWT_SECRET:
            payload = jwt.decode(
                token,
                settings.JWT_SECRET,
                algorithms=["HS256"],
                options={"verify_aud": False},
            )
        else:
            client = _jwks_client()
            if client is None:
                raise InvalidTokenError("Supabase not configured")
            signing_key = client.get_signing_key_from_jwt(token).key
            payload = jwt.decode(
                token,
                signing_key,
                algorithms=["RS256"],
                options={"verify_aud": False},
            )
    except jwt.PyJWTError:
        raise InvalidTokenError("Invalid or expired token")

    try:
        return SupabaseJwtPayload(**dict(payload))
    except ValidationError:
        raise InvalidTokenError("Malformed token claims")


def get_current_user_id(authorization: Optional[str] = Header(None)) -> str:
    """
    Extracts and validates the bearer token from the Authorization header.
    Returns the user's UUID (the `sub` claim).
    """
    if not authorization or not authorization.startswith("Bearer "):
        raise InvalidTokenError("Missing token")

    payload = decode_supabase_jwt(authorization.split(" ", 1)[1])
    if not payload.sub:
        raise InvalidTokenError("Token has no subject")
    return payload.sub
