from __future__ import annotations

from datetime import timedelta

from fastapi import APIRouter, Depends, HTTPException
from pydantic import BaseModel, Field
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.status import HTTP_404_NOT_FOUND

from ops_console.access.roles import Role
from ops_console.api.deps import access_runtime, db_session
from ops_console.auth.jwt import JwtConfig, issue_token
from ops_console.services.access_service import AccessRuntime
from ops_console.services.admin_service import AdminService
from ops_console.settings import Settings, get_settings

router = APIRouter(prefix="/v1/dev", tags=["dev"])


class DevTokenRequest(BaseModel):
    subject: str = Field(min_length=1, max_length=256)
    email: str | None = Field(default=None, max_length=320)
    # Seeds the role directory; the token itself never carries a role.
    role: Role | None = None
    ttl_minutes: int = Field(default=60, ge=1, le=24 * 60)


class DevTokenResponse(BaseModel):
    access_token: str
    token_type: str = "bearer"


@router.post("/token", response_model=DevTokenResponse)
async def mint_dev_token(
    body: DevTokenRequest,
    settings: Settings = Depends(get_settings),
    session: AsyncSession = Depends(db_session),
    runtime: AccessRuntime = Depends(access_runtime),
) -> DevTokenResponse:
    if settings.env == "prod":
        raise HTTPException(status_code=HTTP_404_NOT_FOUND, detail="Not found")

    if body.role is not None:
        admin = AdminService(session=session, permissions=runtime.permissions)
        await admin.assign_role(
            user_id=body.subject, role=body.role, actor="dev-seed", reason="dev token seed"
        )

    token = issue_token(
        cfg=JwtConfig.from_settings(settings),
        subject=body.subject,
        email=body.email,
        ttl=timedelta(minutes=body.ttl_minutes),
    )
    return DevTokenResponse(access_token=token)
