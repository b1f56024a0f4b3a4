"""Group schema definitions.

Request bodies and response models for groups, invitations, shared resources
and group files.
"""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field

from schemas.student import StudentRef


# --- Requests ---

class CreateGroupRequest(BaseModel):
    name: str = Field(..., description="Group name, must not be blank")
    description: str = Field(default="")


class JoinGroupRequest(BaseModel):
    invite_code: str = Field(..., min_length=1, description="Case-insensitive invite code")


class InviteRequest(BaseModel):
    email: str = Field(..., min_length=1, description="Email of the student to invite")


class RespondInvitationRequest(BaseModel):
    status: str = Field(..., description="'accepted' or 'rejected'")


class ShareResourceRequest(BaseModel):
    resource_type: str = Field(..., description="'note' or 'project'")
    resource_id: str = Field(..., min_length=1)


# --- Responses ---

class GroupMemberInfo(BaseModel):
    student_id: str
    name: Optional[str] = None
    email: Optional[str] = None
    role: str
    joined_at: str


class GroupSummary(BaseModel):
    id: str
    name: str
    invite_code: str


class GroupInfo(BaseModel):
    id: str
    name: str
    description: str
    invite_code: str
    created_by: StudentRef
    created_at: str
    members: List[GroupMemberInfo]
    role: Optional[str] = Field(
        default=None, description="The requesting student's role in the group"
    )


class InvitationInfo(BaseModel):
    id: str
    group: Optional[GroupSummary] = None
    invited_by: StudentRef
    invited_user: StudentRef
    status: str
    created_at: str
    responded_at: Optional[str] = None


class RespondInvitationResponse(BaseModel):
    message: str
    status: str


class ResourceShareInfo(BaseModel):
    id: str
    group_id: str
    resource_type: str
    resource_id: str
    shared_by: StudentRef
    shared_at: str
    resource: Optional[Dict[str, Any]] = Field(
        default=None, description="The shared note or project, null if it no longer exists"
    )


class GroupFileInfo(BaseModel):
    id: str
    group_id: str
    file_id: str
    filename: str
    original_name: str
    mimetype: str
    size: int
    uploaded_by: StudentRef
    uploaded_at: str


class GroupCountResponse(BaseModel):
    count: int


class GroupDeletedResponse(BaseModel):
    message: str
    files_removed: int
    blobs_unreleased: int
    resources_removed: int
    invitations_removed: int
    memberships_removed: int


class MessageResponse(BaseModel):
    message: str
