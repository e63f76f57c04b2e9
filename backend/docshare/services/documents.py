"""Read models derived from documents, links and their visitors."""
from __future__ import annotations

from collections import defaultdict
from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from docshare.models.document import Document
from docshare.models.link import Link
from docshare.models.link_visitor import LinkVisitor


@dataclass
class DocumentCounters:
    links: int = 0
    viewers: int = 0
    views: int = 0


@dataclass
class LinkActivity:
    views: int
    last_activity: datetime


def visitor_identity(visitor: LinkVisitor) -> str:
    """Visitors are the same person when their email, else their name, matches."""
    if visitor.email:
        return f"email:{visitor.email.strip().lower()}"
    if visitor.full_name:
        return f"name:{visitor.full_name.lower()}"
    return f"visit:{visitor.id}"


async def visitors_for_links(db: AsyncSession, link_ids: list[str]) -> list[LinkVisitor]:
    if not link_ids:
        return []
    res = await db.execute(
        select(LinkVisitor).where(LinkVisitor.link_id.in_(link_ids)).order_by(LinkVisitor.created_at)
    )
    return list(res.scalars().all())


async def document_counters(db: AsyncSession, document_ids: list[str]) -> dict[str, DocumentCounters]:
    counters = {doc_id: DocumentCounters() for doc_id in document_ids}
    if not document_ids:
        return counters

    res = await db.execute(select(Link.id, Link.document_id).where(Link.document_id.in_(document_ids)))
    link_to_document = {link_id: doc_id for link_id, doc_id in res.all()}
    for doc_id in link_to_document.values():
        counters[doc_id].links += 1

    identities: dict[str, set[str]] = defaultdict(set)
    for visitor in await visitors_for_links(db, list(link_to_document)):
        doc_id = link_to_document[visitor.link_id]
        counters[doc_id].views += 1
        identities[doc_id].add(visitor_identity(visitor))
    for doc_id, seen in identities.items():
        counters[doc_id].viewers = len(seen)
    return counters


async def link_activity(db: AsyncSession, links: list[Link]) -> dict[str, LinkActivity]:
    activity = {link.id: LinkActivity(views=0, last_activity=link.created_at) for link in links}
    for visitor in await visitors_for_links(db, list(activity)):
        entry = activity[visitor.link_id]
        entry.views += 1
        if visitor.created_at and visitor.created_at > entry.last_activity:
            entry.last_activity = visitor.created_at
    return activity


def serialize_document(document: Document, counters: DocumentCounters) -> dict:
    uploader = document.uploader
    return {
        "document_id": document.id,
        "fileName": document.file_name,
        "filePath": document.file_path,
        "fileType": document.file_type,
        "size": document.size or 0,
        "createdAt": document.created_at,
        "updatedAt": document.updated_at or document.created_at,
        "uploader": {"name": (uploader.name or uploader.email) if uploader else "", "avatar": None},
        "links": counters.links,
        "viewers": counters.viewers,
        "views": counters.views,
    }


async def contacts_for_user(db: AsyncSession, user_id: str) -> list[dict]:
    """One entry per distinct visitor across all of the user's links."""
    res = await db.execute(
        select(LinkVisitor, Link)
        .join(Link, Link.id == LinkVisitor.link_id)
        .join(Document, Document.id == Link.document_id)
        .where(Document.user_id == user_id)
        .order_by(LinkVisitor.created_at)
    )
    contacts: dict[str, dict] = {}
    for visitor, link in res.all():
        key = visitor_identity(visitor)
        entry = contacts.get(key)
        if entry is None:
            entry = contacts[key] = {
                "name": visitor.full_name,
                "email": visitor.email or None,
                "totalVisits": 0,
            }
        entry["totalVisits"] += 1
        entry["document_id"] = link.document_id
        entry["lastActivity"] = visitor.created_at
        entry["lastViewedLink"] = link.friendly_name or link.link_url
        if visitor.full_name:
            entry["name"] = visitor.full_name
    return sorted(contacts.values(), key=lambda c: c["lastActivity"], reverse=True)
