"""Project routes."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status

from api.routes.auth import get_current_student
from core.dependencies import AttachmentManagerDep, ProjectManagerDep
from schemas.group import MessageResponse
from schemas.resource import (
    AttachmentInfo,
    ProjectCreateRequest,
    ProjectInfo,
    ProjectUpdateRequest,
)
from schemas.student import Student
from utils.converters import attachment_to_info, project_to_info
from utils.project_manager import PARENT_TYPE

router = APIRouter(prefix="/api/projects", tags=["Project"])


@router.get("", response_model=List[ProjectInfo], summary="List my projects")
def list_projects(
    project_manager: ProjectManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> List[ProjectInfo]:
    projects = project_manager.list_projects(current_student.id)
    attachments = attachment_manager.list_for_many(PARENT_TYPE, [p.id for p in projects])
    return [project_to_info(p, attachments[p.id]) for p in projects]


@router.post(
    "",
    response_model=ProjectInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Create a project",
)
def create_project(
    req: ProjectCreateRequest,
    project_manager: ProjectManagerDep,
    current_student: Student = Depends(get_current_student),
) -> ProjectInfo:
    return project_to_info(project_manager.create_project(current_student.id, req))


@router.get("/{project_id}", response_model=ProjectInfo, summary="Get a project")
def get_project(
    project_id: str,
    project_manager: ProjectManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> ProjectInfo:
    project = project_manager.get_project(project_id, current_student.id)
    return project_to_info(project, attachment_manager.list_for(PARENT_TYPE, project.id))


@router.put("/{project_id}", response_model=ProjectInfo, summary="Update a project")
def update_project(
    project_id: str,
    req: ProjectUpdateRequest,
    project_manager: ProjectManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> ProjectInfo:
    project = project_manager.update_project(project_id, current_student.id, req)
    return project_to_info(project, attachment_manager.list_for(PARENT_TYPE, project.id))


@router.patch(
    "/{project_id}/share", response_model=ProjectInfo, summary="Toggle project sharing"
)
def toggle_project_share(
    project_id: str,
    project_manager: ProjectManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> ProjectInfo:
    project = project_manager.toggle_share(project_id, current_student.id)
    return project_to_info(project, attachment_manager.list_for(PARENT_TYPE, project.id))


@router.delete("/{project_id}", response_model=MessageResponse, summary="Delete a project")
def delete_project(
    project_id: str,
    project_manager: ProjectManagerDep,
    current_student: Student = Depends(get_current_student),
) -> MessageResponse:
    project_manager.delete_project(project_id, current_student.id)
    return MessageResponse(message="Project deleted.")


@router.post(
    "/{project_id}/attachments",
    response_model=AttachmentInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a file to a project",
)
def add_project_attachment(
    project_id: str,
    project_manager: ProjectManagerDep,
    attachment_manager: AttachmentManagerDep,
    file: Optional[UploadFile] = File(default=None),
    current_student: Student = Depends(get_current_student),
) -> AttachmentInfo:
    project = project_manager.get_project(project_id, current_student.id)
    attachment = attachment_manager.add(
        PARENT_TYPE,
        project.id,
        current_student.id,
        file.file if file is not None else None,
        file.filename if file is not None else None,
        file.content_type if file is not None else None,
    )
    return attachment_to_info(attachment)


@router.delete(
    "/{project_id}/attachments/{file_id}",
    response_model=MessageResponse,
    summary="Remove a project attachment",
)
def remove_project_attachment(
    project_id: str,
    file_id: str,
    project_manager: ProjectManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> MessageResponse:
    project = project_manager.get_project(project_id, current_student.id)
    attachment_manager.remove(PARENT_TYPE, project.id, file_id)
    return MessageResponse(message="Attachment removed.")
