import logging
from sqlalchemy import select, func
from sqlalchemy.ext.asyncio import AsyncSession
from searchtool.models.permission import Permission, PERMISSION_FLAGS

logger = logging.getLogger(__name__)

DEFAULT_PERMISSIONS = {
    "admin": dict.fromkeys(PERMISSION_FLAGS, True),
    "editor": {
        "can_edit_consultant": True,
        "can_delete_consultant": False,
        "can_manage_users": False,
        "can_add_review": True,
        "can_rate": True,
        "can_edit_experience": True,
    },
    "viewer": {
        "can_edit_consultant": False,
        "can_delete_consultant": False,
        "can_manage_users": False,
        "can_add_review": True,
        "can_rate": True,
        "can_edit_experience": False,
    },
}

async def ensure_default_permissions(db: AsyncSession) -> None:
    """Seed one row per role if the table is empty."""
    result = await db.execute(select(func.count(Permission.id)))
    if result.scalar_one() > 0:
        return
    for role, flags in DEFAULT_PERMISSIONS.items():
        db.add(Permission(role=role, **flags))
    await db.commit()
    logger.info("Seeded default permissions for roles: %s", ", ".join(DEFAULT_PERMISSIONS))

async def get_role_permissions(db: AsyncSession, role: str):
    await ensure_default_permissions(db)
    result = await db.execute(select(Permission).where(Permission.role == role))
    return result.scalar_one_or_none()

async def can(db: AsyncSession, user, flag: str) -> bool:
    if user is None:
        return False
    row = await get_role_permissions(db, user.role)
    return bool(row and getattr(row, flag, False))
