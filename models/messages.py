from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, ConfigDict, EmailStr, Field, StrictBool

from models.common import PageQuery


class MessagesQuery(PageQuery):
    status: Optional[Literal["unread", "read"]] = None


class MessageRead(BaseModel):
    read: StrictBool


class MessageArchive(BaseModel):
    archived: StrictBool


class MessageCreate(BaseModel):
    """Contact form submission as accepted by the CMS."""
    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=200)
    email: EmailStr
    subject: Optional[str] = Field(default=None, max_length=300)
    message: str = Field(min_length=1, max_length=10000)


class MessageOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    name: str
    email: str
    subject: Optional[str] = None
    message: str
    is_read: Optional[bool] = None
    is_archived: bool = False
    created_at: datetime


class MessageReadV1(BaseModel):
    """v1 clients may omit ``read``; it then marks the message read."""
    read: bool = True
