"""Platform administration schemas."""

from datetime import date, datetime
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class SystemSettingUpdate(BaseModel):
    value: str = Field(..., min_length=1, max_length=1000)


class SystemSettingResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    value: str
    updated_at: datetime | None = None


# ── Release notes ──
class ReleaseNoteCreate(BaseModel):
    version: str = Field(..., pattern=r"^\d+\.\d+\.\d+$")
    title: str = Field(..., min_length=1, max_length=255)
    description: str = Field(..., min_length=1)
    note_type: str = Field(default="feature", pattern="^(feature|improvement|fix)$")
    release_date: date
    is_published: bool = True


class ReleaseNoteUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    description: str | None = None
    note_type: str | None = Field(None, pattern="^(feature|improvement|fix)$")
    release_date: date | None = None
    is_published: bool | None = None


class ReleaseNoteResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    version: str
    title: str
    description: str
    note_type: str
    release_date: date
    is_published: bool


class ReleaseGroup(BaseModel):
    version: str
    release_date: date
    notes: list[ReleaseNoteResponse]


# ── Portal posts ──
class PortalPostCreate(BaseModel):
    title: str = Field(..., min_length=1, max_length=255)
    content: str = Field(..., min_length=1)
    category: str = Field(default="news", max_length=50)
    is_published: bool = False


class PortalPostUpdate(BaseModel):
    title: str | None = Field(None, min_length=1, max_length=255)
    content: str | None = None
    category: str | None = Field(None, max_length=50)
    is_published: bool | None = None


class PortalPostResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    content: str
    category: str
    is_published: bool
    published_at: datetime | None
    author_id: UUID | None
    created_at: datetime


# ── Notifications ──
class NotificationResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    title: str
    message: str
    notification_type: str
    data: dict | None
    is_read: bool
    created_at: datetime


# ── Inactivity job ──
class InactiveCheckResult(BaseModel):
    success: bool
    inactivityDays: int
    checked: int
    cancelled: int
    cancelledCompanies: list[str]
    errors: list[str] | None = None
