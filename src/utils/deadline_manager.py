"""Deadline management utilities."""

import logging
import secrets
from datetime import datetime
from typing import List

import pytz
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from models.deadline import DeadlineModel
from schemas.resource import DeadlineCreateRequest, DeadlineUpdateRequest
from utils.attachment_manager import AttachmentManager

logger = logging.getLogger(__name__)

PARENT_TYPE = "deadline"


class DeadlineManager:
    """Manages a student's deadlines."""

    def __init__(self, db: Session, attachment_manager: AttachmentManager):
        self.db = db
        self.attachments = attachment_manager

    def get_deadline(self, deadline_id: str, student_id: str) -> DeadlineModel:
        deadline = (
            self.db.query(DeadlineModel)
            .filter(DeadlineModel.id == deadline_id, DeadlineModel.student_id == student_id)
            .first()
        )
        if not deadline:
            raise NotFoundError("Deadline not found.")
        return deadline

    def list_deadlines(self, student_id: str) -> List[DeadlineModel]:
        """Deadlines of a student, soonest first."""
        return (
            self.db.query(DeadlineModel)
            .filter(DeadlineModel.student_id == student_id)
            .order_by(DeadlineModel.due_date.asc())
            .all()
        )

    def create_deadline(self, student_id: str, req: DeadlineCreateRequest) -> DeadlineModel:
        title = req.title.strip()
        due_date = req.due_date.strip()
        if not title or not due_date:
            raise ValidationError("Title and due date are required.")
        deadline = DeadlineModel(
            id=secrets.token_hex(12),
            student_id=student_id,
            title=title,
            description=req.description,
            due_date=due_date,
            priority=req.priority,
            status="upcoming",
            created_at=datetime.now(pytz.utc).isoformat(),
        )
        self.db.add(deadline)
        self.db.commit()
        self.db.refresh(deadline)
        logger.info("Created deadline %s for %s", deadline.id, student_id)
        return deadline

    def update_deadline(
        self, deadline_id: str, student_id: str, req: DeadlineUpdateRequest
    ) -> DeadlineModel:
        deadline = self.get_deadline(deadline_id, student_id)
        changes = req.model_dump(exclude_unset=True, exclude_none=True)
        for field in ("title", "due_date"):
            if field in changes:
                changes[field] = changes[field].strip()
                if not changes[field]:
                    raise ValidationError(f"{field} cannot be empty.")
        for field, value in changes.items():
            setattr(deadline, field, value)
        self.db.commit()
        self.db.refresh(deadline)
        return deadline

    def set_status(self, deadline_id: str, student_id: str, status: str) -> DeadlineModel:
        deadline = self.get_deadline(deadline_id, student_id)
        deadline.status = status
        self.db.commit()
        self.db.refresh(deadline)
        return deadline

    def delete_deadline(self, deadline_id: str, student_id: str) -> None:
        """Delete a deadline together with its attachments."""
        deadline = self.get_deadline(deadline_id, student_id)
        self.attachments.remove_all_for(PARENT_TYPE, deadline.id)
        self.db.delete(deadline)
        self.db.commit()
        logger.info("Deleted deadline %s", deadline_id)
