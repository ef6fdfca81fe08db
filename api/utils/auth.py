from typing import Optional

from fastapi import Cookie, Header, HTTPException, status

from api.schemas.auth_schemas import Member
from api.utils.jwt import verify_token


def _bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    scheme, _, token = authorization.partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        return None
    return token.strip()


def get_current_member(
    access_token: Optional[str] = Cookie(None),
    authorization: Optional[str] = Header(None),
) -> Member:
    """Resolve the authenticated member from the access_token cookie or a bearer header."""
    token = access_token or _bearer_token(authorization)
    if not token:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Missing token",
        )

    payload = verify_token(token)
    if not payload.sub:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Invalid token"
        )
    return Member(member_id=payload.sub)
