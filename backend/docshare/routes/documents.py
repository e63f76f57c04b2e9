from __future__ import annotations

import logging
import tempfile

from fastapi import APIRouter, Depends, HTTPException, UploadFile
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession
from starlette.concurrency import run_in_threadpool

from docshare.core.config import settings
from docshare.core.database import get_db
from docshare.core.security import get_current_user
from docshare.core.storage import FileMetadata, StorageError, StorageProvider, get_storage
from docshare.models.document import Document
from docshare.models.link import Link
from docshare.models.link_visitor import LinkVisitor
from docshare.models.user import User
from docshare.schemas.document import (
    ContactListResponse,
    DocumentListResponse,
    DocumentResponse,
    LinkListResponse,
    VisitorListResponse,
)
from docshare.services.documents import (
    contacts_for_user,
    document_counters,
    link_activity,
    serialize_document,
)
from docshare.utils.dates import utcnow

logger = logging.getLogger("docshare")

router = APIRouter(prefix="/api/documents", tags=["Documents"])
contacts_router = APIRouter(prefix="/api/contacts", tags=["Contacts"])

CHUNK_SIZE = 1024 * 1024


async def get_owned_document(document_id: str, db: AsyncSession, current_user: User) -> Document:
    res = await db.execute(select(Document).where(Document.id == document_id))
    document = res.scalars().first()
    if not document:
        raise HTTPException(status_code=404, detail="Document not found")
    if document.user_id != current_user.id and current_user.role != "Administrator":
        raise HTTPException(status_code=403, detail="Access denied")
    return document


@router.post("/upload", response_model=DocumentResponse)
async def upload_document(
    file: UploadFile,
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    if not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    content_type = (file.content_type or "application/octet-stream").split(";")[0].strip().lower()
    if content_type not in settings.ALLOWED_CONTENT_TYPES:
        raise HTTPException(status_code=400, detail=f"Unsupported file type: {content_type}")

    with tempfile.SpooledTemporaryFile(max_size=CHUNK_SIZE * 8) as tmp:
        size = 0
        while True:
            chunk = await file.read(CHUNK_SIZE)
            if not chunk:
                break
            size += len(chunk)
            if size > settings.MAX_FILE_SIZE:
                raise HTTPException(status_code=413, detail="File is too large")
            tmp.write(chunk)
        tmp.seek(0)

        metadata = FileMetadata(user_id=current_user.id, file_name=file.filename, file_type=content_type)
        try:
            result = await run_in_threadpool(storage.upload, tmp, size, metadata)
        except StorageError as e:
            raise HTTPException(status_code=502, detail=str(e))

    res = await db.execute(
        select(Document).where(Document.user_id == current_user.id, Document.file_path == result.file_path)
    )
    document = res.scalars().first()
    if document is None:
        document = Document(file_path=result.file_path, user_id=current_user.id, uploader=current_user)
        db.add(document)
    document.file_name = file.filename
    document.file_type = content_type
    document.size = size
    document.updated_at = utcnow()
    await db.commit()
    logger.info("Stored document %s (%s, %s bytes) for user %s", document.id, result.file_path, size, current_user.id)

    counters = (await document_counters(db, [document.id]))[document.id]
    return {"document": serialize_document(document, counters)}


@router.get("/list", response_model=DocumentListResponse)
async def list_documents(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    res = await db.execute(
        select(Document).where(Document.user_id == current_user.id).order_by(Document.created_at.desc())
    )
    documents = res.scalars().unique().all()
    counters = await document_counters(db, [d.id for d in documents])
    return {"documents": [serialize_document(d, counters[d.id]) for d in documents]}


@router.get("/{document_id}", response_model=DocumentResponse)
async def get_document(
    document_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    document = await get_owned_document(document_id, db, current_user)
    counters = (await document_counters(db, [document.id]))[document.id]
    return {"document": serialize_document(document, counters)}


@router.delete("/{document_id}")
async def delete_document(
    document_id: str,
    db: AsyncSession = Depends(get_db),
    storage: StorageProvider = Depends(get_storage),
    current_user: User = Depends(get_current_user),
):
    document = await get_owned_document(document_id, db, current_user)
    try:
        await run_in_threadpool(storage.delete, document.file_path)
    except StorageError:
        logger.exception("Storage delete failed for %s", document.file_path)
        raise HTTPException(status_code=502, detail="File deletion failed.")

    await db.delete(document)
    await db.commit()
    return {"status": "ok", "id": document_id}


@router.get("/{document_id}/links", response_model=LinkListResponse)
async def list_document_links(
    document_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    document = await get_owned_document(document_id, db, current_user)
    res = await db.execute(select(Link).where(Link.document_id == document.id).order_by(Link.created_at.desc()))
    links = res.scalars().all()
    activity = await link_activity(db, links)
    return {
        "links": [
            {
                "linkId": link.id,
                "friendlyName": link.friendly_name,
                "document_id": link.document_id,
                "createdLink": link.link_url,
                "lastActivity": activity[link.id].last_activity,
                "linkViews": activity[link.id].views,
            }
            for link in links
        ]
    }


@router.delete("/{document_id}/links/{link_id}")
async def delete_document_link(
    document_id: str,
    link_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    document = await get_owned_document(document_id, db, current_user)
    res = await db.execute(select(Link).where(Link.id == link_id, Link.document_id == document.id))
    link = res.scalars().first()
    if not link:
        raise HTTPException(status_code=404, detail="Link not found")

    await db.delete(link)
    await db.commit()
    logger.info("Deleted link %s of document %s", link_id, document_id)
    return {"message": "Link deleted", "linkId": link_id}


@router.get("/{document_id}/visitors", response_model=VisitorListResponse)
async def list_document_visitors(
    document_id: str,
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    document = await get_owned_document(document_id, db, current_user)
    res = await db.execute(
        select(LinkVisitor)
        .join(Link, Link.id == LinkVisitor.link_id)
        .where(Link.document_id == document.id)
        .order_by(LinkVisitor.created_at.desc())
    )
    return {
        "visitors": [
            {
                "id": v.id,
                "linkId": v.link_id,
                "name": v.full_name,
                "email": v.email or None,
                "visitedAt": v.created_at,
            }
            for v in res.scalars().all()
        ]
    }


@contacts_router.get("", response_model=ContactListResponse)
async def list_contacts(
    db: AsyncSession = Depends(get_db),
    current_user: User = Depends(get_current_user),
):
    return {"contacts": await contacts_for_user(db, current_user.id)}
