from datetime import datetime
from typing import Optional
from pydantic import BaseModel


class AuthTokenPayload(BaseModel):
    sub: str  # member id
    exp: Optional[datetime] = None


class Member(BaseModel):
    """Authenticated caller, as resolved from the identity token."""
    member_id: str
