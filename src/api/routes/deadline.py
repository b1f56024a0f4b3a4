"""Deadline routes.

Deadlines have no share toggle; instead ``PATCH /{id}/status`` marks them
upcoming, completed or missed.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status

from api.routes.auth import get_current_student
from core.dependencies import AttachmentManagerDep, DeadlineManagerDep
from schemas.group import MessageResponse
from schemas.resource import (
    AttachmentInfo,
    DeadlineCreateRequest,
    DeadlineInfo,
    DeadlineStatusRequest,
    DeadlineUpdateRequest,
)
from schemas.student import Student
from utils.converters import attachment_to_info, deadline_to_info
from utils.deadline_manager import PARENT_TYPE

router = APIRouter(prefix="/api/deadlines", tags=["Deadline"])


@router.get("", response_model=List[DeadlineInfo], summary="List my deadlines")
def list_deadlines(
    deadline_manager: DeadlineManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> List[DeadlineInfo]:
    deadlines = deadline_manager.list_deadlines(current_student.id)
    attachments = attachment_manager.list_for_many(PARENT_TYPE, [d.id for d in deadlines])
    return [deadline_to_info(d, attachments[d.id]) for d in deadlines]


@router.post(
    "",
    response_model=DeadlineInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Create a deadline",
)
def create_deadline(
    req: DeadlineCreateRequest,
    deadline_manager: DeadlineManagerDep,
    current_student: Student = Depends(get_current_student),
) -> DeadlineInfo:
    return deadline_to_info(deadline_manager.create_deadline(current_student.id, req))


@router.get("/{deadline_id}", response_model=DeadlineInfo, summary="Get a deadline")
def get_deadline(
    deadline_id: str,
    deadline_manager: DeadlineManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> DeadlineInfo:
    deadline = deadline_manager.get_deadline(deadline_id, current_student.id)
    return deadline_to_info(deadline, attachment_manager.list_for(PARENT_TYPE, deadline.id))


@router.put("/{deadline_id}", response_model=DeadlineInfo, summary="Update a deadline")
def update_deadline(
    deadline_id: str,
    req: DeadlineUpdateRequest,
    deadline_manager: DeadlineManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> DeadlineInfo:
    deadline = deadline_manager.update_deadline(deadline_id, current_student.id, req)
    return deadline_to_info(deadline, attachment_manager.list_for(PARENT_TYPE, deadline.id))


@router.patch(
    "/{deadline_id}/status", response_model=DeadlineInfo, summary="Set deadline status"
)
def set_deadline_status(
    deadline_id: str,
    req: DeadlineStatusRequest,
    deadline_manager: DeadlineManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> DeadlineInfo:
    deadline = deadline_manager.set_status(deadline_id, current_student.id, req.status)
    return deadline_to_info(deadline, attachment_manager.list_for(PARENT_TYPE, deadline.id))


@router.delete("/{deadline_id}", response_model=MessageResponse, summary="Delete a deadline")
def delete_deadline(
    deadline_id: str,
    deadline_manager: DeadlineManagerDep,
    current_student: Student = Depends(get_current_student),
) -> MessageResponse:
    deadline_manager.delete_deadline(deadline_id, current_student.id)
    return MessageResponse(message="Deadline deleted.")


@router.post(
    "/{deadline_id}/attachments",
    response_model=AttachmentInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a file to a deadline",
)
def add_deadline_attachment(
    deadline_id: str,
    deadline_manager: DeadlineManagerDep,
    attachment_manager: AttachmentManagerDep,
    file: Optional[UploadFile] = File(default=None),
    current_student: Student = Depends(get_current_student),
) -> AttachmentInfo:
    deadline = deadline_manager.get_deadline(deadline_id, current_student.id)
    attachment = attachment_manager.add(
        PARENT_TYPE,
        deadline.id,
        current_student.id,
        file.file if file is not None else None,
        file.filename if file is not None else None,
        file.content_type if file is not None else None,
    )
    return attachment_to_info(attachment)


@router.delete(
    "/{deadline_id}/attachments/{file_id}",
    response_model=MessageResponse,
    summary="Remove a deadline attachment",
)
def remove_deadline_attachment(
    deadline_id: str,
    file_id: str,
    deadline_manager: DeadlineManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> MessageResponse:
    deadline = deadline_manager.get_deadline(deadline_id, current_student.id)
    attachment_manager.remove(PARENT_TYPE, deadline.id, file_id)
    return MessageResponse(message="Attachment removed.")
