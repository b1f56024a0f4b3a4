"""Project management utilities."""

import logging
import secrets
from datetime import datetime
from typing import List

import pytz
from sqlalchemy.orm import Session

from core.exceptions import NotFoundError, ValidationError
from models.project import ProjectModel
from schemas.resource import ProjectCreateRequest, ProjectUpdateRequest
from utils.attachment_manager import AttachmentManager

logger = logging.getLogger(__name__)

PARENT_TYPE = "project"


class ProjectManager:
    """Manages a student's projects."""

    def __init__(self, db: Session, attachment_manager: AttachmentManager):
        self.db = db
        self.attachments = attachment_manager

    def get_project(self, project_id: str, student_id: str) -> ProjectModel:
        project = (
            self.db.query(ProjectModel)
            .filter(ProjectModel.id == project_id, ProjectModel.student_id == student_id)
            .first()
        )
        if not project:
            raise NotFoundError("Project not found.")
        return project

    def list_projects(self, student_id: str) -> List[ProjectModel]:
        return (
            self.db.query(ProjectModel)
            .filter(ProjectModel.student_id == student_id)
            .order_by(ProjectModel.updated_at.desc())
            .all()
        )

    def create_project(self, student_id: str, req: ProjectCreateRequest) -> ProjectModel:
        title = req.title.strip()
        if not title:
            raise ValidationError("Title is required.")
        now = datetime.now(pytz.utc).isoformat()
        project = ProjectModel(
            id=secrets.token_hex(12),
            student_id=student_id,
            title=title,
            description=req.description,
            status=req.status,
            due_date=req.due_date,
            is_shared=False,
            created_at=now,
            updated_at=now,
        )
        self.db.add(project)
        self.db.commit()
        self.db.refresh(project)
        logger.info("Created project %s for %s", project.id, student_id)
        return project

    def update_project(
        self, project_id: str, student_id: str, req: ProjectUpdateRequest
    ) -> ProjectModel:
        project = self.get_project(project_id, student_id)
        changes = req.model_dump(exclude_unset=True, exclude_none=True)
        if "title" in changes:
            changes["title"] = changes["title"].strip()
            if not changes["title"]:
                raise ValidationError("Title cannot be empty.")
        for field, value in changes.items():
            setattr(project, field, value)
        project.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        self.db.refresh(project)
        return project

    def toggle_share(self, project_id: str, student_id: str) -> ProjectModel:
        project = self.get_project(project_id, student_id)
        project.is_shared = not project.is_shared
        project.updated_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        self.db.refresh(project)
        return project

    def delete_project(self, project_id: str, student_id: str) -> None:
        """Delete a project together with its attachments."""
        project = self.get_project(project_id, student_id)
        self.attachments.remove_all_for(PARENT_TYPE, project.id)
        self.db.delete(project)
        self.db.commit()
        logger.info("Deleted project %s", project_id)
