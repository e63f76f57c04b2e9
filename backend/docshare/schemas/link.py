from datetime import datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field


class LinkCreate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    document_id: str = Field(alias="documentId")
    is_public: bool = Field(True, alias="isPublic")
    required_user_details_option: Literal[0, 1, 2] = Field(0, alias="requiredUserDetailsOption")
    password: str | None = None
    expiration_time: datetime | None = Field(None, alias="expirationTime")
    friendly_name: str | None = Field(None, alias="friendlyName")

class LinkOut(BaseModel):
    linkId: str
    linkUrl: str
    documentId: str
    isPublic: bool
    passwordRequired: bool
    requiredUserDetailsOption: int
    expirationTime: datetime | None
    friendlyName: str | None
    createdAt: datetime

class LinkCreateResponse(BaseModel):
    link: LinkOut

class LinkRequirements(BaseModel):
    linkId: str
    passwordRequired: bool
    userDetailsOption: int
    isPublic: bool

class SharedAccessRequest(BaseModel):
    linkId: str
    first_name: str = ""
    last_name: str = ""
    email: str = ""
    password: str = ""

class SharedDocument(BaseModel):
    documentId: str
    fileName: str
    fileType: str | None
    size: int
    downloadUrl: str

class SharedAccessResponse(BaseModel):
    data: SharedDocument
