from __future__ import annotations

import logging
import uuid

from fastapi import APIRouter, Depends, HTTPException, Request
from fastapi.responses import JSONResponse
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docshare.core.config import settings
from docshare.core.database import get_db
from docshare.core.security import (
    create_link_access_token,
    get_current_user,
    get_optional_user,
    get_password_hash,
    verify_password,
)
from docshare.models.document import Document
from docshare.models.link import Link
from docshare.models.link_visitor import LinkVisitor
from docshare.models.user import User
from docshare.routes.documents import get_owned_document
from docshare.schemas.link import (
    LinkCreate,
    LinkCreateResponse,
    LinkRequirements,
    SharedAccessRequest,
    SharedAccessResponse,
)
from docshare.services.access_gate import join_name, split_name, validate_access_values
from docshare.utils.dates import as_naive_utc, utcnow
from docshare.utils.urls import build_external_url, link_url

logger = logging.getLogger("docshare")

router = APIRouter(prefix="/api/links", tags=["Links"])


def _reject(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"message": message})


def _serialize_link(link: Link) -> dict:
    return {
        "linkId": link.id,
        "linkUrl": link.link_url,
        "documentId": link.document_id,
        "isPublic": link.is_public,
        "passwordRequired": link.password_required,
        "requiredUserDetailsOption": link.required_user_details_option,
        "expirationTime": link.expiration_time,
        "friendlyName": link.friendly_name,
        "createdAt": link.created_at,
    }


async def get_link(db: AsyncSession, link_id: str) -> Link | None:
    res = await db.execute(select(Link).where(Link.id == link_id))
    return res.scalars().first()


@router.post("", response_model=LinkCreateResponse)
async def create_link(
    body: LinkCreate,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    document = await get_owned_document(body.document_id, db, current_user)

    expiration_time = None
    if body.expiration_time is not None:
        expiration_time = as_naive_utc(body.expiration_time)
        if expiration_time <= utcnow():
            raise HTTPException(status_code=400, detail="Expiration time must be in the future")

    hashed_password = None
    if body.password is not None:
        if not body.password.strip():
            raise HTTPException(status_code=400, detail="Password must not be empty")
        if len(body.password) < settings.LINK_PASSWORD_MIN_LENGTH:
            raise HTTPException(
                status_code=400,
                detail=f"Password must be at least {settings.LINK_PASSWORD_MIN_LENGTH} characters long.",
            )
        hashed_password = get_password_hash(body.password)

    link_id = str(uuid.uuid4())
    link = Link(
        id=link_id,
        document_id=document.id,
        user_id=current_user.id,
        link_url=link_url(request, link_id),
        friendly_name=(body.friendly_name or "").strip() or None,
        is_public=body.is_public,
        password=hashed_password,
        expiration_time=expiration_time,
        required_user_details_option=body.required_user_details_option,
        created_at=utcnow(),
    )
    db.add(link)
    await db.commit()
    logger.info(
        "Created link %s for document %s (public=%s password=%s details=%s expires=%s)",
        link.id, document.id, link.is_public, link.password_required,
        link.required_user_details_option, link.expiration_time,
    )
    return {"link": _serialize_link(link)}


@router.get("/{link_id}", response_model=LinkRequirements)
async def get_link_requirements(link_id: str, db: AsyncSession = Depends(get_db)):
    link = await get_link(db, link_id)
    if not link:
        raise HTTPException(status_code=404, detail="Link not found")
    if link.is_expired(utcnow()):
        raise HTTPException(status_code=410, detail="Link has expired")
    return {
        "linkId": link.id,
        "passwordRequired": link.password_required,
        "userDetailsOption": link.required_user_details_option,
        "isPublic": link.is_public,
    }


@router.post("/shared_access", response_model=SharedAccessResponse)
async def shared_access(
    body: SharedAccessRequest,
    request: Request,
    db: AsyncSession = Depends(get_db),
    current_user: User | None = Depends(get_optional_user),
):
    link = await get_link(db, body.linkId)
    if not link:
        return _reject(404, "Link not found")
    if link.is_expired(utcnow()):
        return _reject(410, "This link has expired")
    if not link.is_public and current_user is None:
        return _reject(403, "This link is private. Please sign in to access it.")

    first_name, last_name = body.first_name.strip(), body.last_name.strip()
    email = body.email.strip()
    if current_user is not None:
        if not first_name and not last_name:
            first_name, last_name = split_name(current_user.name)
        email = email or current_user.email

    errors = validate_access_values(
        link.password_required,
        link.required_user_details_option,
        {"name": join_name(first_name, last_name), "email": email, "password": body.password},
    )
    if errors:
        field, message = next(iter(errors.items()))
        logger.info("Shared access to link %s rejected: %s %s", link.id, field, message)
        return _reject(400, f"{field.capitalize()}: {message.lstrip('*')}")

    if link.password_required and not verify_password(body.password, link.password):
        logger.info("Shared access to link %s rejected: wrong password", link.id)
        return _reject(401, "Invalid password")

    res = await db.execute(select(Document).where(Document.id == link.document_id))
    document = res.scalars().first()
    if not document:
        return _reject(404, "Document not found")

    visitor = LinkVisitor(
        id=str(uuid.uuid4()),
        link_id=link.id,
        first_name=first_name,
        last_name=last_name,
        email=email or None,
        created_at=utcnow(),
    )
    db.add(visitor)
    await db.commit()
    logger.info("Visitor %s accessed link %s", visitor.id, link.id)

    token = create_link_access_token(link.id, visitor.id)
    return {
        "data": {
            "documentId": document.id,
            "fileName": document.file_name,
            "fileType": document.file_type,
            "size": document.size or 0,
            "downloadUrl": build_external_url(request, f"/api/links/{link.id}/download?token={token}"),
        }
    }
