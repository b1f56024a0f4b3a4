"""Note management utilities."""

import logging
import secrets
from datetime import datetime
from typing import List

import pytz
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from models.note import NoteModel
from schemas.resource import NoteCreateRequest, NoteUpdateRequest
from utils.attachment_manager import AttachmentManager

logger = logging.getLogger(__name__)

PARENT_TYPE = "note"


class NoteManager:
    """Manages a student's notes."""

    def __init__(self, db: Session, attachment_manager: AttachmentManager):
        self.db = db
        self.attachments = attachment_manager

    def get_note(self, note_id: str, student_id: str) -> NoteModel:
        note = (
            self.db.query(NoteModel)
            .filter(NoteModel.id == note_id, NoteModel.student_id == student_id)
            .first()
        )
        if not note:
            raise NotFoundError("Note not found.")
        return note

    def list_notes(self, student_id: str) -> List[NoteModel]:
        return (
            self.db.query(NoteModel)
            .filter(NoteModel.student_id == student_id)
            .order_by(NoteModel.updated_at.desc())
            .all()
        )

    def create_note(self, student_id: str, req: NoteCreateRequest) -> NoteModel:
        title = req.title.strip()
        if not title:
            raise ValidationError("Title is required.")
        now = datetime.now(pytz.utc).isoformat()
        note = NoteModel(
            id=secrets.token_hex(12),
            student_id=student_id,
            title=title,
            content=req.content,
            subject=req.subject.strip(),
            is_shared=False,
            created_at=now,
            updated_at=now,
        )
        self.db.add(note)
        self.db.commit()
        self.db.refresh(note)
        logger.info("Created note %s for %s", note.id, student_id)
        return note

    def update_note(self, note_id: str, student_id: str, req: NoteUpdateRequest) -> NoteModel:
        note = self.get_note(note_id, student_id)
        changes = req.model_dump(exclude_unset=True, exclude_none=True)
        if "title" in changes:
            changes["title"] = changes["title"].strip()
            if not changes["title"]:
                raise ValidationError("Title cannot be empty.")
        for field, value in changes.items():
            setattr(note, field, value)
        note.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        self.db.refresh(note)
        return note

    def toggle_share(self, note_id: str, student_id: str) -> NoteModel:
        note = self.get_note(note_id, student_id)
        note.is_shared = not note.is_shared
        note.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        self.db.refresh(note)
        return note

    def delete_note(self, note_id: str, student_id: str) -> None:
        """Delete a note together with its attachments."""
        note = self.get_note(note_id, student_id)
        self.attachments.remove_all_for(PARENT_TYPE, note.id)
        self.db.delete(note)
        self.db.commit()
        logger.info("Deleted note %s", note_id)
