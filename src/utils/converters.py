"""Conversions between SQLAlchemy models and pydantic schemas."""

from typing import Any, Dict, List, Optional

from models.attachment import AttachmentModel
from models.deadline import DeadlineModel
from models.group import GroupModel
from models.group_file import GroupFileModel
from models.group_invitation import GroupInvitationModel
from models.group_resource import GroupResourceModel
from models.note import NoteModel
from models.project import ProjectModel
from models.student import StudentModel
from schemas.group import (
    GroupFileInfo,
    GroupInfo,
    GroupMemberInfo,
    GroupSummary,
    InvitationInfo,
    ResourceShareInfo,
)
from schemas.resource import AttachmentInfo, DeadlineInfo, NoteInfo, ProjectInfo
from schemas.student import Student, StudentPublic, StudentRef


def model_to_student(model: StudentModel) -> Student:
    return Student(
        id=model.id,
        name=model.name,
        email=model.email,
        password_hash=model.password_hash,
        created_at=model.created_at,
    )


def student_to_public(student: Student) -> StudentPublic:
    return StudentPublic(id=student.id, name=student.name, email=student.email)


def student_ref(model: Optional[StudentModel], student_id: str) -> StudentRef:
    """Resolve a student reference, tolerating a missing student row."""
    if model is None:
        return StudentRef(id=student_id, name="Unknown")
    return StudentRef(id=model.id, name=model.name, email=model.email)


def group_to_info(model: GroupModel, requester_id: Optional[str] = None) -> GroupInfo:
    members = []
    role = None
    for membership in model.memberships:
        student = membership.student
        members.append(
            GroupMemberInfo(
                student_id=membership.student_id,
                name=student.name if student else None,
                email=student.email if student else None,
                role=membership.role,
                joined_at=membership.joined_at,
            )
        )
        if membership.student_id == requester_id:
            role = membership.role
    return GroupInfo(
        id=model.id,
        name=model.name,
        description=model.description or "",
        invite_code=model.invite_code,
        created_by=student_ref(model.creator, model.created_by),
        created_at=model.created_at,
        members=members,
        role=role,
    )


def invitation_to_info(model: GroupInvitationModel) -> InvitationInfo:
    group = None
    if model.group is not None:
        group = GroupSummary(
            id=model.group.id, name=model.group.name, invite_code=model.group.invite_code
        )
    return InvitationInfo(
        id=model.id,
        group=group,
        invited_by=student_ref(model.inviter, model.invited_by),
        invited_user=student_ref(model.invitee, model.invited_user),
        status=model.status,
        created_at=model.created_at,
        responded_at=model.responded_at,
    )


def share_to_info(
    model: GroupResourceModel, resource: Optional[Dict[str, Any]] = None
) -> ResourceShareInfo:
    return ResourceShareInfo(
        id=model.id,
        group_id=model.group_id,
        resource_type=model.resource_type,
        resource_id=model.resource_id,
        shared_by=student_ref(model.sharer, model.shared_by),
        shared_at=model.shared_at,
        resource=resource,
    )


def group_file_to_info(model: GroupFileModel) -> GroupFileInfo:
    return GroupFileInfo(
        id=model.id,
        group_id=model.group_id,
        file_id=model.file_id,
        filename=model.filename,
        original_name=model.original_name,
        mimetype=model.mimetype,
        size=model.size,
        uploaded_by=student_ref(model.uploader, model.uploaded_by),
        uploaded_at=model.uploaded_at,
    )


def attachment_to_info(model: AttachmentModel) -> AttachmentInfo:
    return AttachmentInfo(
        file_id=model.file_id,
        filename=model.filename,
        original_name=model.original_name,
        mimetype=model.mimetype,
        size=model.size,
        uploaded_at=model.uploaded_at,
    )


def note_to_info(model: NoteModel, attachments: List[AttachmentModel] = ()) -> NoteInfo:
    return NoteInfo(
        id=model.id,
        student_id=model.student_id,
        title=model.title,
        content=model.content or "",
        subject=model.subject or "",
        is_shared=bool(model.is_shared),
        created_at=model.created_at,
        updated_at=model.updated_at,
        attachments=[attachment_to_info(a) for a in attachments],
    )


def project_to_info(
    model: ProjectModel, attachments: List[AttachmentModel] = ()
) -> ProjectInfo:
    return ProjectInfo(
        id=model.id,
        student_id=model.student_id,
        title=model.title,
        description=model.description or "",
        status=model.status,
        due_date=model.due_date,
        is_shared=bool(model.is_shared),
        created_at=model.created_at,
        updated_at=model.updated_at,
        attachments=[attachment_to_info(a) for a in attachments],
    )


def deadline_to_info(
    model: DeadlineModel, attachments: List[AttachmentModel] = ()
) -> DeadlineInfo:
    return DeadlineInfo(
        id=model.id,
        student_id=model.student_id,
        title=model.title,
        description=model.description or "",
        due_date=model.due_date,
        priority=model.priority,
        status=model.status,
        created_at=model.created_at,
        attachments=[attachment_to_info(a) for a in attachments],
    )
