"""Group invitation management.

Admin-initiated invitations resolved by the invitee. An invitation moves from
``pending`` to ``accepted`` or ``rejected`` exactly once.
"""

import logging
import secrets
from datetime import datetime
from typing import List, Optional

import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session, joinedload

from core.exceptions import (
    AlreadyMemberError,
    DuplicatePendingInvitationError,
    NotFoundError,
    SelfInviteError,
    ValidationError,
)
from models.group_invitation import GroupInvitationModel
from models.student import StudentModel
from utils.group_manager import (
    ROLE_MEMBER,
    GroupManager,
    find_membership,
    load_group,
    require_admin,
)
from utils.student_manager import normalize_email

logger = logging.getLogger(__name__)

STATUS_PENDING = "pending"
STATUS_ACCEPTED = "accepted"
STATUS_REJECTED = "rejected"
RESPONSE_STATUSES = (STATUS_ACCEPTED, STATUS_REJECTED)


class InvitationManager:
    """Manages the invitation ledger."""

    def __init__(self, db: Session, group_manager: GroupManager):
        self.db = db
        self.group_manager = group_manager

    def _query(self):
        return self.db.query(GroupInvitationModel).options(
            joinedload(GroupInvitationModel.group),
            joinedload(GroupInvitationModel.inviter),
            joinedload(GroupInvitationModel.invitee),
        )

    def _find_pending(self, group_id: str, invitee_id: str) -> Optional[GroupInvitationModel]:
        return (
            self.db.query(GroupInvitationModel)
            .filter(
                GroupInvitationModel.group_id == group_id,
                GroupInvitationModel.invited_user == invitee_id,
                GroupInvitationModel.status == STATUS_PENDING,
            )
            .first()
        )

    def invite(self, group_id: str, inviter_id: str, email: str) -> GroupInvitationModel:
        """Create a pending invitation for the student with ``email``.

        Args:
            group_id: Target group.
            inviter_id: Must be an admin of the group.
            email: Invitee email, matched case-insensitively.

        Returns:
            The pending invitation with inviter and invitee loaded.

        Raises:
            ValidationError: If the email is blank.
            NotFoundError: If the group or the invitee does not exist.
            ForbiddenError: If the inviter is not an admin.
            SelfInviteError: If the invitee is the inviter.
            AlreadyMemberError: If the invitee is already a member.
            DuplicatePendingInvitationError: If a pending invitation exists.
        """
        email = normalize_email(email)
        if not email:
            raise ValidationError("Email is required.")

        group = load_group(self.db, group_id)
        require_admin(self.db, group, inviter_id, "Only the group admin can invite members.")

        invitee = self.db.query(StudentModel).filter(StudentModel.email == email).first()
        if not invitee:
            raise NotFoundError(f'No student found with email "{email}".')

        if invitee.id == inviter_id:
            raise SelfInviteError()

        if find_membership(self.db, group.id, invitee.id) is not None:
            raise AlreadyMemberError(f"{invitee.name} is already a member.")

        duplicate_message = f"A pending invitation already exists for {invitee.name}."
        if self._find_pending(group.id, invitee.id) is not None:
            raise DuplicatePendingInvitationError(duplicate_message)

        invitation = GroupInvitationModel(
            id=secrets.token_hex(12),
            group_id=group.id,
            invited_by=inviter_id,
            invited_user=invitee.id,
            status=STATUS_PENDING,
            created_at=datetime.now(pytz.utc).isoformat(),
        )
        # The partial unique index on (group_id, invited_user) WHERE pending
        # settles concurrent invites that both passed the check above.
        try:
            self.db.add(invitation)
            self.db.commit()
        except IntegrityError as exc:
            self.db.rollback()
            raise DuplicatePendingInvitationError(duplicate_message) from exc

        logger.info(
            "Student %s invited %s to group %s (invitation %s)",
            inviter_id,
            invitee.id,
            group.id,
            invitation.id,
        )
        return self._query().filter(GroupInvitationModel.id == invitation.id).one()

    def list_pending_for_invitee(self, student_id: str) -> List[GroupInvitationModel]:
        """Pending invitations addressed to ``student_id``, newest first."""
        return (
            self._query()
            .filter(
                GroupInvitationModel.invited_user == student_id,
                GroupInvitationModel.status == STATUS_PENDING,
            )
            .order_by(GroupInvitationModel.created_at.desc())
            .all()
        )

    def list_for_group(self, group_id: str, requester_id: str) -> List[GroupInvitationModel]:
        """All invitations of a group regardless of status. Admin only."""
        group = load_group(self.db, group_id)
        require_admin(
            self.db, group, requester_id, "Only the group admin can view invitations."
        )
        return (
            self._query()
            .filter(GroupInvitationModel.group_id == group.id)
            .order_by(GroupInvitationModel.created_at.desc())
            .all()
        )

    def respond(self, invitation_id: str, invitee_id: str, decision: str) -> GroupInvitationModel:
        """Accept or reject a pending invitation.

        Responding to an invitation that is already resolved is reported the
        same way as an unknown invitation.

        Args:
            invitation_id: Invitation to resolve.
            invitee_id: Must be the invited student.
            decision: ``"accepted"`` or ``"rejected"``.

        Returns:
            The resolved invitation.

        Raises:
            ValidationError: If ``decision`` is not a valid response.
            NotFoundError: If there is no pending invitation with this id for
                this invitee.
        """
        if decision not in RESPONSE_STATUSES:
            raise ValidationError("Status must be accepted or rejected.")

        invitation = (
            self.db.query(GroupInvitationModel)
            .filter(
                GroupInvitationModel.id == invitation_id,
                GroupInvitationModel.invited_user == invitee_id,
                GroupInvitationModel.status == STATUS_PENDING,
            )
            .first()
        )
        if not invitation:
            raise NotFoundError("Invitation not found or already responded.")

        invitation.status = decision
        invitation.responded_at = datetime.now(pytz.utc).isoformat()
        self.db.commit()
        logger.info("Invitation %s %s by %s", invitation.id, decision, invitee_id)

        if decision == STATUS_ACCEPTED:
            try:
                group = load_group(self.db, invitation.group_id)
            except NotFoundError:
                logger.warning(
                    "Invitation %s accepted but group %s no longer exists",
                    invitation.id,
                    invitation.group_id,
                )
            else:
                if self.group_manager.add_member(group.id, invitee_id, ROLE_MEMBER):
                    logger.info("Student %s joined group %s by invitation", invitee_id, group.id)

        self.db.refresh(invitation)
        return invitation
