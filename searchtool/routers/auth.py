# searchtool/routers/auth.py
import logging
from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from searchtool.models.user import User, ROLES
from searchtool.schemas.user import UserCreate, UserLogin, UserResponse, Token
from searchtool.database import get_db
from searchtool.utils.password import hash_password, verify_password
from searchtool.core.security import token_for_user
from searchtool.core.auth import get_current_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["auth"])


@router.post("/register", response_model=UserResponse, status_code=status.HTTP_201_CREATED)
async def register(user_in: UserCreate, db: AsyncSession = Depends(get_db)):
    email = user_in.email.strip().lower()
    result = await db.execute(select(User).where(User.email == email))
    if result.scalar_one_or_none():
        raise HTTPException(status_code=400, detail="Email already registered")

    try:
        hashed_pw = hash_password(user_in.password)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    user = User(
        email=email,
        name=user_in.name.strip(),
        hashed_password=hashed_pw,
        role=user_in.role if user_in.role in ROLES else "viewer",
    )
    db.add(user)
    await db.commit()
    await db.refresh(user)
    logger.info("Registered user %s with role %s", user.email, user.role)
    return user


@router.post("/login", response_model=Token)
async def login(user_in: UserLogin, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).where(User.email == user_in.email.strip().lower()))
    user = result.scalar_one_or_none()

    if not user or not verify_password(user_in.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid credentials",
        )

    return Token(token=token_for_user(user), user=UserResponse.model_validate(user))


@router.get("/me", response_model=UserResponse)
async def read_users_me(current_user: User = Depends(get_current_user)):
    return current_user
