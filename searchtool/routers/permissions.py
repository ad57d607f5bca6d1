# searchtool/routers/permissions.py
from typing import List
from fastapi import APIRouter, Depends
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from searchtool.database import get_db
from searchtool.core.auth import get_current_admin, get_current_user
from searchtool.models.permission import Permission
from searchtool.schemas.permission import PermissionResponse, PermissionUpdate
from searchtool.services.permissions import ensure_default_permissions, get_role_permissions

router = APIRouter(prefix="/api/permissions", tags=["permissions"])


@router.get("", response_model=List[PermissionResponse])
async def list_permissions(
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    await ensure_default_permissions(db)
    result = await db.execute(select(Permission).order_by(Permission.role))
    return result.scalars().all()


@router.get("/my")
async def my_permissions(
    db: AsyncSession = Depends(get_db),
    current_user = Depends(get_current_user)
):
    row = await get_role_permissions(db, current_user.role)
    if row is None:
        return {}
    return PermissionResponse.model_validate(row)


@router.patch("/{role}", response_model=PermissionResponse)
async def update_permissions(
    role: str,
    update_in: PermissionUpdate,
    db: AsyncSession = Depends(get_db),
    admin = Depends(get_current_admin)
):
    await ensure_default_permissions(db)
    result = await db.execute(select(Permission).where(Permission.role == role))
    row = result.scalar_one_or_none()
    if row is None:
        row = Permission(role=role)
        db.add(row)

    for flag, value in update_in.model_dump(exclude_unset=True).items():
        if value is not None:
            setattr(row, flag, value)
    await db.commit()
    await db.refresh(row)
    return row
