from datetime import datetime

from pydantic import BaseModel


class Uploader(BaseModel):
    name: str
    avatar: str | None = None

class DocumentInfo(BaseModel):
    document_id: str
    fileName: str
    filePath: str
    fileType: str | None
    size: int
    createdAt: datetime
    updatedAt: datetime
    uploader: Uploader
    links: int = 0
    viewers: int = 0
    views: int = 0

class DocumentResponse(BaseModel):
    document: DocumentInfo

class DocumentListResponse(BaseModel):
    documents: list[DocumentInfo]

class LinkDetail(BaseModel):
    linkId: str
    friendlyName: str | None
    document_id: str
    createdLink: str
    lastActivity: datetime
    linkViews: int

class LinkListResponse(BaseModel):
    links: list[LinkDetail]

class VisitorDetail(BaseModel):
    id: str
    linkId: str
    name: str
    email: str | None
    visitedAt: datetime

class VisitorListResponse(BaseModel):
    visitors: list[VisitorDetail]

class Contact(BaseModel):
    name: str
    email: str | None
    document_id: str
    lastActivity: datetime
    lastViewedLink: str
    totalVisits: int

class ContactListResponse(BaseModel):
    contacts: list[Contact]
