from __future__ import annotations
from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from docvault.security.deps import Principal, auth_user

router = APIRouter(prefix="/api/user", tags=["user"])


class UserProfile(BaseModel):
    uid: str
    email: Optional[str] = None
    email_verified: bool = False
    name: Optional[str] = None
    picture: Optional[str] = None


class ProfileResponse(BaseModel):
    success: bool = True
    user: UserProfile


@router.get("/profile", response_model=ProfileResponse)
async def get_profile(principal: Principal = Depends(auth_user)) -> ProfileResponse:
    return ProfileResponse(
        user=UserProfile(
            uid=principal.uid,
            email=principal.email,
            email_verified=principal.email_verified,
            name=principal.name,
            picture=principal.picture,
        )
    )
