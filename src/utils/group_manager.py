"""Group management utilities.

Groups, memberships and invite codes. The module level helpers
``load_group``, ``require_member`` and ``require_admin`` are the single
authorization path for every group-scoped operation; they always read the
current membership rows, nothing is cached between calls.
"""

import logging
import secrets
from dataclasses import dataclass
from datetime import datetime
from typing import Callable, List, Optional

import pytz
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, joinedload

from config import INVITE_CODE_ALPHABET, INVITE_CODE_LENGTH, INVITE_CODE_MAX_ATTEMPTS
from core.blob_store import BlobStore
from core.exceptions import (
    AlreadyMemberError,
    CascadeDeleteError,
    ForbiddenError,
    NotFoundError,
    StorageError,
    ValidationError,
)
from models.group import GroupModel
from models.group_file import GroupFileModel
from models.group_invitation import GroupInvitationModel
from models.group_membership import GroupMembershipModel
from models.group_resource import GroupResourceModel

logger = logging.getLogger(__name__)

ROLE_ADMIN = "admin"
ROLE_MEMBER = "member"


def generate_invite_code() -> str:
    """Return a random uppercase alphanumeric invite code."""
    return "".join(secrets.choice(INVITE_CODE_ALPHABET) for _ in range(INVITE_CODE_LENGTH))


def load_group(db: Session, group_id: str) -> GroupModel:
    """Fetch a group or raise ``NotFoundError``."""
    group = db.query(GroupModel).filter(GroupModel.id == group_id).first()
    if not group:
        raise NotFoundError("Group not found.")
    return group


def find_membership(
    db: Session, group_id: str, student_id: str
) -> Optional[GroupMembershipModel]:
    return (
        db.query(GroupMembershipModel)
        .filter(
            GroupMembershipModel.group_id == group_id,
            GroupMembershipModel.student_id == student_id,
        )
        .first()
    )


def require_member(
    db: Session, group: GroupModel, student_id: str, message: str = "Access denied."
) -> GroupMembershipModel:
    membership = find_membership(db, group.id, student_id)
    if membership is None:
        raise ForbiddenError(message)
    return membership


def require_admin(
    db: Session, group: GroupModel, student_id: str, message: str
) -> GroupMembershipModel:
    membership = find_membership(db, group.id, student_id)
    if membership is None or membership.role != ROLE_ADMIN:
        raise ForbiddenError(message)
    return membership


@dataclass
class GroupDeletionReport:
    """Per-stage counts of a completed group deletion."""

    group_id: str
    files_removed: int = 0
    blobs_unreleased: int = 0
    resources_removed: int = 0
    invitations_removed: int = 0
    memberships_removed: int = 0


class GroupManager:
    """Manages group, membership and invite code operations."""

    def __init__(
        self,
        db: Session,
        blob_store: BlobStore,
        code_generator: Callable[[], str] = generate_invite_code,
    ):
        self.db = db
        self.blob_store = blob_store
        self.code_generator = code_generator

    def create_group(self, owner_id: str, name: str, description: str = "") -> GroupModel:
        """Create a group with the owner as its first admin.

        Invite code uniqueness is enforced by the unique index on
        ``groups.invite_code``; a collision rolls back and retries with a new
        code.

        Args:
            owner_id: Creating student.
            name: Group name.
            description: Optional description.

        Returns:
            The created GroupModel.

        Raises:
            ValidationError: If the name is blank.
            StorageError: If no unique invite code could be generated.
        """
        name = (name or "").strip()
        if not name:
            raise ValidationError("Group name is required.")
        description = (description or "").strip()

        for attempt in range(1, INVITE_CODE_MAX_ATTEMPTS + 1):
            now = datetime.now(pytz.utc).isoformat()
            code = self.code_generator().upper()
            group = GroupModel(
                id=secrets.token_hex(12),
                name=name,
                description=description,
                created_by=owner_id,
                invite_code=code,
                created_at=now,
            )
            self.db.add(group)
            try:
                self.db.flush()
            except IntegrityError as exc:
                self.db.rollback()
                if not self._invite_code_taken(code):
                    raise StorageError(f"Could not create group: {exc.orig}") from exc
                logger.warning(
                    "Invite code collision on attempt %d/%d, regenerating",
                    attempt,
                    INVITE_CODE_MAX_ATTEMPTS,
                )
                continue

            self.db.add(
                GroupMembershipModel(
                    group_id=group.id,
                    student_id=owner_id,
                    role=ROLE_ADMIN,
                    joined_at=now,
                )
            )
            self.db.commit()
            self.db.refresh(group)
            logger.info("Created group %s (%s) by %s", group.id, group.invite_code, owner_id)
            return group

        raise StorageError("Could not generate a unique invite code.")

    def _invite_code_taken(self, code: str) -> bool:
        return (
            self.db.query(GroupModel.id).filter(GroupModel.invite_code == code).first()
            is not None
        )

    def add_member(self, group_id: str, student_id: str, role: str = ROLE_MEMBER) -> bool:
        """Append a membership unless the student is already in the group.

        Returns:
            True if a membership was created, False if one already existed.
        """
        if find_membership(self.db, group_id, student_id) is not None:
            return False
        self.db.add(
            GroupMembershipModel(
                group_id=group_id,
                student_id=student_id,
                role=role,
                joined_at=datetime.now(pytz.utc).isoformat(),
            )
        )
        try:
            self.db.commit()
        except IntegrityError:
            # Lost a race against a concurrent insert of the same membership
            self.db.rollback()
            return False
        return True

    def join_by_code(self, student_id: str, code: str) -> GroupModel:
        """Join a group using its invite code.

        Args:
            student_id: Joining student.
            code: Invite code, matched case-insensitively.

        Returns:
            The joined group.

        Raises:
            ValidationError: If the code is blank.
            NotFoundError: If no group has this code.
            AlreadyMemberError: If the student is already a member.
        """
        code = (code or "").strip().upper()
        if not code:
            raise ValidationError("Invite code is required.")

        group = self.db.query(GroupModel).filter(GroupModel.invite_code == code).first()
        if not group:
            raise NotFoundError("Invalid invite code.")

        if not self.add_member(group.id, student_id, ROLE_MEMBER):
            raise AlreadyMemberError(f'You are already a member of "{group.name}".')

        logger.info("Student %s joined group %s by code", student_id, group.id)
        self.db.refresh(group)
        return group

    def get_group(self, group_id: str, requester_id: str) -> GroupModel:
        """Return a group with memberships and creator loaded.

        Raises:
            NotFoundError: If the group does not exist.
            ForbiddenError: If the requester is not a member.
        """
        group = (
            self.db.query(GroupModel)
            .options(
                joinedload(GroupModel.memberships).joinedload(GroupMembershipModel.student),
                joinedload(GroupModel.creator),
            )
            .filter(GroupModel.id == group_id)
            .first()
        )
        if not group:
            raise NotFoundError("Group not found.")
        require_member(self.db, group, requester_id, "Access denied. Not a member.")
        return group

    def list_groups_for_student(self, student_id: str) -> List[GroupModel]:
        return (
            self.db.query(GroupModel)
            .join(GroupMembershipModel, GroupMembershipModel.group_id == GroupModel.id)
            .filter(GroupMembershipModel.student_id == student_id)
            .order_by(GroupModel.created_at.desc())
            .all()
        )

    def count_groups_for_student(self, student_id: str) -> int:
        return (
            self.db.query(GroupMembershipModel)
            .filter(GroupMembershipModel.student_id == student_id)
            .count()
        )

    def leave_group(self, group_id: str, student_id: str) -> None:
        """Remove the student's membership.

        The group is kept even if this leaves it empty or without an admin.

        Raises:
            NotFoundError: If the group does not exist or the student is not
                a member of it.
        """
        group = load_group(self.db, group_id)
        membership = find_membership(self.db, group.id, student_id)
        if membership is None:
            raise NotFoundError("You are not a member of this group.")

        self.db.delete(membership)
        self.db.commit()
        logger.info("Student %s left group %s", student_id, group_id)

    def delete_group(self, group_id: str, requester_id: str) -> GroupDeletionReport:
        """Delete a group and everything that references it.

        Stages run in order and each one is committed on its own: group files
        (with their blobs), shared resources, invitations, memberships and
        finally the group row. Releasing a blob is best-effort; a failure is
        logged and counted in the report but does not stop the deletion. A
        database failure stops the cascade and is reported as
        ``CascadeDeleteError``.

        Args:
            group_id: Group to delete.
            requester_id: Must be an admin of the group.

        Returns:
            GroupDeletionReport with per-stage counts.

        Raises:
            NotFoundError: If the group does not exist.
            ForbiddenError: If the requester is not an admin.
            CascadeDeleteError: If a stage fails after the cascade started.
        """
        group = load_group(self.db, group_id)
        require_admin(
            self.db, group, requester_id, "Only the group admin can delete this group."
        )

        report = GroupDeletionReport(group_id=group_id)
        completed: List[str] = []
        stage = "files"
        try:
            files = (
                self.db.query(GroupFileModel).filter(GroupFileModel.group_id == group_id).all()
            )
            for group_file in files:
                try:
                    self.blob_store.delete(group_file.file_id)
                except StorageError as exc:
                    report.blobs_unreleased += 1
                    logger.warning(
                        "Could not release blob %s of group %s: %s",
                        group_file.file_id,
                        group_id,
                        exc,
                    )
            report.files_removed = (
                self.db.query(GroupFileModel)
                .filter(GroupFileModel.group_id == group_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            completed.append(stage)

            stage = "resources"
            report.resources_removed = (
                self.db.query(GroupResourceModel)
                .filter(GroupResourceModel.group_id == group_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            completed.append(stage)

            stage = "invitations"
            report.invitations_removed = (
                self.db.query(GroupInvitationModel)
                .filter(GroupInvitationModel.group_id == group_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            completed.append(stage)

            stage = "memberships"
            report.memberships_removed = (
                self.db.query(GroupMembershipModel)
                .filter(GroupMembershipModel.group_id == group_id)
                .delete(synchronize_session=False)
            )
            self.db.commit()
            completed.append(stage)

            stage = "group"
            self.db.query(GroupModel).filter(GroupModel.id == group_id).delete(
                synchronize_session=False
            )
            self.db.commit()
            completed.append(stage)
        except SQLAlchemyError as exc:
            self.db.rollback()
            logger.error(
                "Deletion of group %s stopped at stage '%s' (completed: %s): %s",
                group_id,
                stage,
                completed,
                exc,
            )
            raise CascadeDeleteError(group_id, completed, stage) from exc

        logger.info(
            "Deleted group %s (files=%d, unreleased_blobs=%d, resources=%d, "
            "invitations=%d, memberships=%d)",
            group_id,
            report.files_removed,
            report.blobs_unreleased,
            report.resources_removed,
            report.invitations_removed,
            report.memberships_removed,
        )
        return report
