from datetime import datetime, timedelta, timezone
from typing import Any

from fastapi import Depends, HTTPException, status
from fastapi.security import OAuth2PasswordBearer
from jose import JWTError, jwt
from passlib.context import CryptContext
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docshare.core.config import settings
from docshare.core.database import get_db
from docshare.models.user import User

pwd_context = CryptContext(schemes=["argon2"], deprecated="auto")
oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token")
optional_oauth2_scheme = OAuth2PasswordBearer(tokenUrl="/api/auth/token", auto_error=False)

LINK_ACCESS_TOKEN_TYPE = "link_access"


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def get_password_hash(password: str) -> str:
    return pwd_context.hash(password)


def create_access_token(data: dict[str, Any], expires_delta: timedelta | None = None) -> str:
    to_encode = data.copy()
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)
    )
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, settings.SECRET_KEY, algorithm=settings.ALGORITHM)


def decode_token(token: str) -> dict[str, Any] | None:
    try:
        return jwt.decode(token, settings.SECRET_KEY, algorithms=[settings.ALGORITHM])
    except JWTError:
        return None


def create_link_access_token(link_id: str, visitor_id: str) -> str:
    """Short-lived token that lets one verified visitor download a link's document."""
    return create_access_token(
        {"sub": link_id, "visitor": visitor_id, "type": LINK_ACCESS_TOKEN_TYPE},
        expires_delta=timedelta(minutes=settings.LINK_ACCESS_TOKEN_EXPIRE_MINUTES),
    )


def verify_link_access_token(token: str, link_id: str) -> bool:
    payload = decode_token(token)
    if not payload:
        return False
    return payload.get("type") == LINK_ACCESS_TOKEN_TYPE and payload.get("sub") == link_id


async def _user_from_token(token: str, db: AsyncSession) -> User | None:
    payload = decode_token(token)
    if not payload or payload.get("type") == LINK_ACCESS_TOKEN_TYPE:
        return None
    email = payload.get("sub")
    if not email:
        return None
    res = await db.execute(select(User).where(User.email == email))
    user = res.scalars().first()
    if user is None or not user.is_active:
        return None
    return user


async def get_current_user(
    token: str = Depends(oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User:
    user = await _user_from_token(token, db)
    if user is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Could not validate credentials",
            headers={"WWW-Authenticate": "Bearer"},
        )
    return user


async def get_optional_user(
    token: str | None = Depends(optional_oauth2_scheme),
    db: AsyncSession = Depends(get_db),
) -> User | None:
    if not token:
        return None
    return await _user_from_token(token, db)
