import logging
from fastapi import APIRouter, Depends, HTTPException
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.future import select
from sqlalchemy.ext.asyncio import AsyncSession
from app.schemas.auth import RegisterIn, TokenOut, UserOut
from app.models.user import User
from app.db.session import get_db
from app.core.security import create_access_token, generate_referral_code, get_current_user, hash_password, verify_password
from app.core.enums import UserRole
from app.core.response_builders import build_user_response

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth", tags=["auth"])


async def _unique_referral_code(db: AsyncSession) -> str:
    while True:
        code = generate_referral_code()
        res = await db.execute(select(User.id).where(User.referral_code == code))
        if res.scalars().first() is None:
            return code


@router.post("/register", response_model=TokenOut)
async def register(payload: RegisterIn, db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(User).where(User.username == payload.username))
    existing_user = res.scalars().first()
    if existing_user:
        raise HTTPException(status_code=400, detail="Username already taken")

    role = UserRole(payload.role)
    new_user = User(
        username=payload.username,
        password_hash=hash_password(payload.password),
        role=role,
        full_name=payload.full_name,
        email=payload.email,
    )
    if role == UserRole.CHANNEL_PARTNER:
        new_user.referral_code = await _unique_referral_code(db)

    db.add(new_user)
    await db.commit()
    await db.refresh(new_user)
    logger.info(f"Registered {role} user {new_user.id}")

    token = create_access_token(new_user.id, new_user.role)
    return {"access_token": token}


@router.post("/login", response_model=TokenOut)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    res = await db.execute(select(User).where(User.username == form_data.username))
    user = res.scalars().first()
    if not user or not verify_password(form_data.password, user.password_hash):
        raise HTTPException(status_code=400, detail="Invalid credentials")

    token = create_access_token(user.id, user.role)
    return {"access_token": token}


@router.get("/me", response_model=UserOut)
async def me(current_user=Depends(get_current_user)):
    return build_user_response(current_user)
