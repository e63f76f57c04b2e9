import logging
from urllib.parse import quote

from fastapi import APIRouter, Depends, HTTPException, Request, status
from fastapi.security import OAuth2PasswordRequestForm
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.future import select

from docshare.core.config import settings
from docshare.core.database import get_db
from docshare.core.security import (
    create_access_token,
    get_current_user,
    get_password_hash,
    verify_password,
)
from docshare.models.user import User
from docshare.schemas.user import (
    ChangePasswordRequest,
    ForgotPasswordRequest,
    ResetPasswordRequest,
    Token,
    UserCreate,
    UserResponse,
)
from docshare.utils.email import (
    generate_reset_token,
    send_email,
    store_reset_token,
    verify_reset_token,
)
from docshare.utils.urls import build_external_url
from docshare.utils.validators import password_validation_rule

logger = logging.getLogger("docshare")

router = APIRouter(prefix="/api/auth", tags=["Auth"])
profile_router = APIRouter(prefix="/api/profile", tags=["Profile"])

password_rule = password_validation_rule(settings.PASSWORD_MIN_LENGTH, True, True)


def _check_password_strength(password: str) -> None:
    message = password_rule(password)
    if message:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=message)


def _reset_key(user: User) -> str:
    return f"password_reset:{user.id}"


@router.post("/register", response_model=Token)
async def register(user: UserCreate, db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).filter(User.email == user.email))
    if result.scalars().first():
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Email already registered"
        )
    _check_password_strength(user.password)

    db_user = User(
        name=user.name.strip(),
        email=user.email,
        hashed_password=get_password_hash(user.password),
    )
    db.add(db_user)
    await db.commit()
    logger.info("Registered user %s", db_user.id)

    access_token = create_access_token(data={"sub": user.email})
    return {"access_token": access_token, "token_type": "bearer"}

@router.post("/token", response_model=Token)
async def login(form_data: OAuth2PasswordRequestForm = Depends(), db: AsyncSession = Depends(get_db)):
    result = await db.execute(select(User).filter(User.email == form_data.username))
    user = result.scalars().first()

    if not user or not verify_password(form_data.password, user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Incorrect email or password",
            headers={"WWW-Authenticate": "Bearer"},
        )
    if not user.is_active:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Account is disabled")

    access_token = create_access_token(data={"sub": user.email})
    return {"access_token": access_token, "token_type": "bearer"}

@router.get("/me", response_model=UserResponse)
async def read_me(current_user: User = Depends(get_current_user)):
    return current_user

@router.post("/password/forgot")
async def forgot_password(
    body: ForgotPasswordRequest,
    request: Request,
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(User).filter(User.email == body.email))
    user = result.scalars().first()

    if not user:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Email not found")

    token = generate_reset_token()
    store_reset_token(_reset_key(user), token)
    reset_url = build_external_url(
        request, f"/auth/reset-password?token={quote(token)}&email={quote(user.email)}"
    )

    sent = await send_email(
        to_email=user.email,
        subject="Reset your DocShare password",
        body=f'Follow <a href="{reset_url}">this link</a> to choose a new password.'
    )
    if not sent:
        logger.warning("Password reset email for user %s was not delivered", user.id)

    return {"url": f"/auth/check-email?email={quote(user.email)}"}

@router.post("/password/reset")
async def reset_password(
    body: ResetPasswordRequest,
    db: AsyncSession = Depends(get_db)
):
    result = await db.execute(select(User).filter(User.email == body.email))
    user = result.scalars().first()

    if not user:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="User not found"
        )
    _check_password_strength(body.password)

    if not verify_reset_token(_reset_key(user), body.token):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Invalid or expired reset token"
        )

    user.hashed_password = get_password_hash(body.password)
    await db.commit()

    return {"message": "Password reset successfully"}

@profile_router.post("/changePassword")
async def change_password(
    body: ChangePasswordRequest,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user)
):
    if body.email and body.email != current_user.email:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    if not verify_password(body.current_password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Current password is incorrect"
        )
    _check_password_strength(body.new_password)

    if verify_password(body.new_password, current_user.hashed_password):
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="New password must be different from current password"
        )

    current_user.hashed_password = get_password_hash(body.new_password)
    await db.commit()

    return {"message": "Password changed successfully"}
