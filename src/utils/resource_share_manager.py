"""Resource sharing index: notes and projects shared into groups."""

import logging
import secrets
from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple

import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from core.exceptions import DuplicateShareError, ValidationError
from models.group_resource import GroupResourceModel
from models.note import NoteModel
from models.project import ProjectModel
from utils.attachment_manager import AttachmentManager
from utils.converters import note_to_info, project_to_info
from utils.group_manager import load_group, require_member

logger = logging.getLogger(__name__)

RESOURCE_TYPES = ("note", "project")


class ResourceShareManager:
    """Manages GroupResource records."""

    def __init__(self, db: Session, attachment_manager: AttachmentManager):
        self.db = db
        self.attachments = attachment_manager

    def _find_share(
        self, group_id: str, resource_type: str, resource_id: str
    ) -> Optional[GroupResourceModel]:
        return (
            self.db.query(GroupResourceModel)
            .filter(
                GroupResourceModel.group_id == group_id,
                GroupResourceModel.resource_type == resource_type,
                GroupResourceModel.resource_id == resource_id,
            )
            .first()
        )

    def share(
        self, group_id: str, sharer_id: str, resource_type: str, resource_id: str
    ) -> GroupResourceModel:
        """Share a note or project into a group.

        Only group membership is checked. The resource id is taken as given;
        it is not checked against the sharer's own notes or projects.

        Raises:
            NotFoundError: If the group does not exist.
            ForbiddenError: If the sharer is not a member.
            ValidationError: If the type is unknown or the id is blank.
            DuplicateShareError: If the resource is already shared there.
        """
        group = load_group(self.db, group_id)
        require_member(self.db, group, sharer_id)

        if resource_type not in RESOURCE_TYPES:
            raise ValidationError("resource_type must be note or project.")
        resource_id = (resource_id or "").strip()
        if not resource_id:
            raise ValidationError("resource_id is required.")

        if self._find_share(group.id, resource_type, resource_id) is not None:
            raise DuplicateShareError()

        share = GroupResourceModel(
            id=secrets.token_hex(12),
            group_id=group.id,
            resource_type=resource_type,
            resource_id=resource_id,
            shared_by=sharer_id,
            shared_at=datetime.now(pytz.utc).isoformat(),
        )
        # The unique constraint on (group_id, resource_type, resource_id)
        # settles concurrent shares that both passed the check above.
        try:
            self.db.add(share)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicateShareError() from exc

        logger.info(
            "Student %s shared %s %s to group %s", sharer_id, resource_type, resource_id, group.id
        )
        self.db.refresh(share)
        return share

    def _resolve(self, resource_type: str, resource_id: str) -> Optional[Dict[str, Any]]:
        if resource_type == "note":
            note = self.db.query(NoteModel).filter(NoteModel.id == resource_id).first()
            if note is None:
                return None
            return note_to_info(note, self.attachments.list_for("note", note.id)).model_dump()
        project = self.db.query(ProjectModel).filter(ProjectModel.id == resource_id).first()
        if project is None:
            return None
        return project_to_info(
            project, self.attachments.list_for("project", project.id)
        ).model_dump()

    def list_for_group(
        self, group_id: str, requester_id: str
    ) -> List[Tuple[GroupResourceModel, Optional[Dict[str, Any]]]]:
        """Shared resources of a group, newest first, with their payloads.

        Returns:
            ``(share, resource)`` pairs; ``resource`` is None when the note or
            project no longer exists.
        """
        group = load_group(self.db, group_id)
        require_member(self.db, group, requester_id)

        shares = (
            self.db.query(GroupResourceModel)
            .options(joinedload(GroupResourceModel.sharer))
            .filter(GroupResourceModel.group_id == group.id)
            .order_by(GroupResourceModel.shared_at.desc())
            .all()
        )
        return [(share, self._resolve(share.resource_type, share.resource_id)) for share in shares]
