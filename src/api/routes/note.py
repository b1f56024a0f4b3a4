"""Note routes: per-student CRUD, share toggle and attachments."""

from typing import List, Optional

from fastapi import APIRouter, Depends, File, UploadFile, status

from api.routes.auth import get_current_student
from core.dependencies import AttachmentManagerDep, NoteManagerDep
from schemas.group import MessageResponse
from schemas.resource import AttachmentInfo, NoteCreateRequest, NoteInfo, NoteUpdateRequest
from schemas.student import Student
from utils.converters import attachment_to_info, note_to_info
from utils.note_manager import PARENT_TYPE

router = APIRouter(prefix="/api/notes", tags=["Note"])


@router.get("", response_model=List[NoteInfo], summary="List my notes")
def list_notes(
    note_manager: NoteManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> List[NoteInfo]:
    notes = note_manager.list_notes(current_student.id)
    attachments = attachment_manager.list_for_many(PARENT_TYPE, [n.id for n in notes])
    return [note_to_info(n, attachments[n.id]) for n in notes]


@router.post(
    "",
    response_model=NoteInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Create a note",
)
def create_note(
    req: NoteCreateRequest,
    note_manager: NoteManagerDep,
    current_student: Student = Depends(get_current_student),
) -> NoteInfo:
    return note_to_info(note_manager.create_note(current_student.id, req))


@router.get("/{note_id}", response_model=NoteInfo, summary="Get a note")
def get_note(
    note_id: str,
    note_manager: NoteManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> NoteInfo:
    note = note_manager.get_note(note_id, current_student.id)
    return note_to_info(note, attachment_manager.list_for(PARENT_TYPE, note.id))


@router.put("/{note_id}", response_model=NoteInfo, summary="Update a note")
def update_note(
    note_id: str,
    req: NoteUpdateRequest,
    note_manager: NoteManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> NoteInfo:
    note = note_manager.update_note(note_id, current_student.id, req)
    return note_to_info(note, attachment_manager.list_for(PARENT_TYPE, note.id))


@router.patch("/{note_id}/share", response_model=NoteInfo, summary="Toggle note sharing")
def toggle_note_share(
    note_id: str,
    note_manager: NoteManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> NoteInfo:
    note = note_manager.toggle_share(note_id, current_student.id)
    return note_to_info(note, attachment_manager.list_for(PARENT_TYPE, note.id))


@router.delete("/{note_id}", response_model=MessageResponse, summary="Delete a note")
def delete_note(
    note_id: str,
    note_manager: NoteManagerDep,
    current_student: Student = Depends(get_current_student),
) -> MessageResponse:
    note_manager.delete_note(note_id, current_student.id)
    return MessageResponse(message="Note deleted.")


@router.post(
    "/{note_id}/attachments",
    response_model=AttachmentInfo,
    status_code=status.HTTP_201_CREATED,
    summary="Attach a file to a note",
)
def add_note_attachment(
    note_id: str,
    note_manager: NoteManagerDep,
    attachment_manager: AttachmentManagerDep,
    file: Optional[UploadFile] = File(default=None),
    current_student: Student = Depends(get_current_student),
) -> AttachmentInfo:
    note = note_manager.get_note(note_id, current_student.id)
    attachment = attachment_manager.add(
        PARENT_TYPE,
        note.id,
        current_student.id,
        file.file if file is not None else None,
        file.filename if file is not None else None,
        file.content_type if file is not None else None,
    )
    return attachment_to_info(attachment)


@router.delete(
    "/{note_id}/attachments/{file_id}",
    response_model=MessageResponse,
    summary="Remove a note attachment",
)
def remove_note_attachment(
    note_id: str,
    file_id: str,
    note_manager: NoteManagerDep,
    attachment_manager: AttachmentManagerDep,
    current_student: Student = Depends(get_current_student),
) -> MessageResponse:
    note = note_manager.get_note(note_id, current_student.id)
    attachment_manager.remove(PARENT_TYPE, note.id, file_id)
    return MessageResponse(message="Attachment removed.")
