"""Note, project, deadline and attachment schema definitions."""

from typing import List, Literal, Optional

from pydantic import BaseModel, Field


class AttachmentInfo(BaseModel):
    file_id: str
    filename: str
    original_name: str
    mimetype: str
    size: int
    uploaded_at: str


# --- Notes ---

class NoteCreateRequest(BaseModel):
    title: str = Field(..., description="Note title, must not be blank")
    content: str = ""
    subject: str = ""


class NoteUpdateRequest(BaseModel):
    title: Optional[str] = None
    content: Optional[str] = None
    subject: Optional[str] = None


class NoteInfo(BaseModel):
    id: str
    student_id: str
    title: str
    content: str
    subject: str
    is_shared: bool
    created_at: str
    updated_at: str
    attachments: List[AttachmentInfo] = Field(default_factory=list)


# --- Projects ---

ProjectStatus = Literal["pending", "in_progress", "completed"]


class ProjectCreateRequest(BaseModel):
    title: str = Field(..., description="Project title, must not be blank")
    description: str = ""
    status: ProjectStatus = "pending"
    due_date: Optional[str] = Field(default=None, description="ISO-8601 date or datetime")


class ProjectUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    status: Optional[ProjectStatus] = None
    due_date: Optional[str] = None


class ProjectInfo(BaseModel):
    id: str
    student_id: str
    title: str
    description: str
    status: str
    due_date: Optional[str] = None
    is_shared: bool
    created_at: str
    updated_at: str
    attachments: List[AttachmentInfo] = Field(default_factory=list)


# --- Deadlines ---

DeadlinePriority = Literal["low", "medium", "high"]
DeadlineStatus = Literal["upcoming", "completed", "missed"]


class DeadlineCreateRequest(BaseModel):
    title: str = Field(..., description="Deadline title, must not be blank")
    due_date: str = Field(..., description="ISO-8601 date or datetime")
    description: str = ""
    priority: DeadlinePriority = "medium"


class DeadlineUpdateRequest(BaseModel):
    title: Optional[str] = None
    description: Optional[str] = None
    due_date: Optional[str] = None
    priority: Optional[DeadlinePriority] = None
    status: Optional[DeadlineStatus] = None


class DeadlineStatusRequest(BaseModel):
    status: DeadlineStatus


class DeadlineInfo(BaseModel):
    id: str
    student_id: str
    title: str
    description: str
    due_date: str
    priority: str
    status: str
    created_at: str
    attachments: List[AttachmentInfo] = Field(default_factory=list)
