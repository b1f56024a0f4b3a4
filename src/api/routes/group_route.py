"""Group routes.

Groups, join-by-code, invitations, shared resources and group files. Domain
errors raised by the managers are turned into ``{"error": ...}`` responses by
the handlers registered in ``app.py``.
"""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status

from api.routes.auth import get_current_student
from core.dependencies import (
    GroupFileManagerDep,
    GroupManagerDep,
    InvitationManagerDep,
    ResourceShareManagerDep,
)
from schemas.group import (
    CreateGroupRequest,
    GroupCountResponse,
    GroupDeletedResponse,
    GroupFileInfo,
    GroupInfo,
    InvitationInfo,
    InviteRequest,
    JoinGroupRequest,
    MessageResponse,
    ResourceShareInfo,
    RespondInvitationRequest,
    RespondInvitationResponse,
    ShareResourceRequest,
)
from schemas.student import Student
from utils.converters import (
    group_file_to_info,
    group_to_info,
    invitation_to_info,
    share_to_info,
)

router = APIRouter(prefix="/api/groups", tags=["Group"])


@router.get("", response_model=List[GroupInfo], summary="List my groups")
def list_groups(
    group_manager: GroupManagerDep,
    current_student: Student = Depends(get_current_student),
) -> List[GroupInfo]:
    groups = group_manager.list_groups_for_student(current_student.id)
    return [group_to_info(group, current_student.id) for group in groups]


@router.post(
    "",
    response_model=GroupInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Create a group",
)
def create_group(
    req: CreateGroupRequest,
    group_manager: GroupManagerDep,
    current_student: Student = Depends(get_current_student),
) -> GroupInfo:
    group = group_manager.create_group(current_student.id, req.name, req.description)
    return group_to_info(group, current_student.id)


@router.post("/join", response_model=GroupInfo, summary="Join a group by invite code")
def join_group(
    req: JoinGroupRequest,
    group_manager: GroupManagerDep,
    current_student: Student = Depends(get_current_student),
) -> GroupInfo:
    group = group_manager.join_by_code(current_student.id, req.invite_code)
    return group_to_info(group, current_student.id)


# --- Static paths must stay above /{group_id} ---

@router.get(
    "/invitations",
    response_model=List[InvitationInfo],
    summary="List my pending invitations",
)
def list_my_invitations(
    invitation_manager: InvitationManagerDep,
    current_student: Student = Depends(get_current_student),
) -> List[InvitationInfo]:
    invitations = invitation_manager.list_pending_for_invitee(current_student.id)
    return [invitation_to_info(inv) for inv in invitations]


@router.patch(
    "/invitations/{invitation_id}/respond",
    response_model=RespondInvitationResponse,
    summary="Accept or reject an invitation",
)
def respond_to_invitation(
    invitation_id: str,
    req: RespondInvitationRequest,
    invitation_manager: InvitationManagerDep,
    current_student: Student = Depends(get_current_student),
) -> RespondInvitationResponse:
    invitation = invitation_manager.respond(invitation_id, current_student.id, req.status)
    return RespondInvitationResponse(
        message=f"Invitation {invitation.status}.", status=invitation.status
    )


@router.get(
    "/stats/dashboard",
    response_model=GroupCountResponse,
    summary="Number of groups I belong to",
)
def dashboard_stats(
    group_manager: GroupManagerDep,
    current_student: Student = Depends(get_current_student),
) -> GroupCountResponse:
    return GroupCountResponse(count=group_manager.count_groups_for_student(current_student.id))


# --- Group specific routes ---

@router.get("/{group_id}", response_model=GroupInfo, summary="Group details")
def get_group(
    group_id: str,
    group_manager: GroupManagerDep,
    current_student: Student = Depends(get_current_student),
) -> GroupInfo:
    group = group_manager.get_group(group_id, current_student.id)
    return group_to_info(group, current_student.id)


@router.get(
    "/{group_id}/resources",
    response_model=List[ResourceShareInfo],
    summary="Resources shared to the group",
)
def list_group_resources(
    group_id: str,
    share_manager: ResourceShareManagerDep,
    current_student: Student = Depends(get_current_student),
) -> List[ResourceShareInfo]:
    shares = share_manager.list_for_group(group_id, current_student.id)
    return [share_to_info(share, resource) for share, resource in shares]


@router.post(
    "/{group_id}/invite",
    response_model=InvitationInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Invite a student by email",
)
def invite_student(
    group_id: str,
    req: InviteRequest,
    invitation_manager: InvitationManagerDep,
    current_student: Student = Depends(get_current_student),
) -> InvitationInfo:
    invitation = invitation_manager.invite(group_id, current_student.id, req.email)
    return invitation_to_info(invitation)


@router.get(
    "/{group_id}/invitations",
    response_model=List[InvitationInfo],
    summary="All invitations of the group",
)
def list_group_invitations(
    group_id: str,
    invitation_manager: InvitationManagerDep,
    current_student: Student = Depends(get_current_student),
) -> List[InvitationInfo]:
    invitations = invitation_manager.list_for_group(group_id, current_student.id)
    return [invitation_to_info(inv) for inv in invitations]


@router.post(
    "/{group_id}/share",
    response_model=ResourceShareInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Share a note or project",
)
def share_resource(
    group_id: str,
    req: ShareResourceRequest,
    share_manager: ResourceShareManagerDep,
    current_student: Student = Depends(get_current_student),
) -> ResourceShareInfo:
    share = share_manager.share(group_id, current_student.id, req.resource_type, req.resource_id)
    return share_to_info(share)


@router.delete("/{group_id}", response_model=GroupDeletedResponse, summary="Delete a group")
def delete_group(
    group_id: str,
    group_manager: GroupManagerDep,
    current_student: Student = Depends(get_current_student),
) -> GroupDeletedResponse:
    """Delete a group and everything attached to it. Admin only."""
    report = group_manager.delete_group(group_id, current_student.id)
    return GroupDeletedResponse(
        message="Group deleted.",
        files_removed=report.files_removed,
        blobs_unreleased=report.blobs_unreleased,
        resources_removed=report.resources_removed,
        invitations_removed=report.invitations_removed,
        memberships_removed=report.memberships_removed,
    )


@router.delete("/{group_id}/leave", response_model=MessageResponse, summary="Leave a group")
def leave_group(
    group_id: str,
    group_manager: GroupManagerDep,
    current_student: Student = Depends(get_current_student),
) -> MessageResponse:
    group_manager.leave_group(group_id, current_student.id)
    return MessageResponse(message="You have left the group.")


@router.post(
    "/{group_id}/files",
    response_model=GroupFileInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a file to the group",
)
def upload_group_file(
    group_id: str,
    file_manager: GroupFileManagerDep,
    file: Optional[UploadFile] = File(default=None, description="File to upload"),
    current_student: Student = Depends(get_current_student),
) -> GroupFileInfo:
    group_file = file_manager.upload(
        group_id,
        current_student.id,
        file.file if file is not None else None,
        file.filename if file is not None else None,
        file.content_type if file is not None else None,
    )
    return group_file_to_info(group_file)


@router.get(
    "/{group_id}/files",
    response_model=List[GroupFileInfo],
    summary="List group files",
)
def list_group_files(
    group_id: str,
    file_manager: GroupFileManagerDep,
    current_student: Student = Depends(get_current_student),
) -> List[GroupFileInfo]:
    return [group_file_to_info(f) for f in file_manager.list(group_id, current_student.id)]


@router.delete(
    "/{group_id}/files/{group_file_id}",
    response_model=MessageResponse,
    summary="Delete a group file",
)
def delete_group_file(
    group_id: str,
    group_file_id: str,
    file_manager: GroupFileManagerDep,
    current_student: Student = Depends(get_current_student),
) -> MessageResponse:
    file_manager.remove(group_id, group_file_id, current_student.id)
    return MessageResponse(message="File deleted.")
