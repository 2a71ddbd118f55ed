from __future__ import annotations

from datetime import datetime

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from dashboard.api.deps import AdminContext, get_admin_ctx

router = APIRouter(tags=["auth"])


class MeResponse(BaseModel):
    id: str
    login: str
    name: str
    avatar_url: str
    session_expires_at: datetime


@router.get("/me", response_model=MeResponse)
def me(auth: AdminContext = Depends(get_admin_ctx)) -> MeResponse:
    u = auth.user
    return MeResponse(
        id=str(u.id),
        login=u.login,
        name=u.name,
        avatar_url=u.avatar_url,
        session_expires_at=auth.session.expires_at,
    )
