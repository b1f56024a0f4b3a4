from sqlalchemy import Column, Index, String, ForeignKey, text
from sqlalchemy.orm import relationship
from .base import Base


class GroupInvitationModel(Base):
    __tablename__ = "group_invitations"
    __table_args__ = (
        # One pending invitation per student per group at a time
        Index(
            "uq_group_invitations_pending",
            "group_id",
            "invited_user",
            unique=True,
            sqlite_where=text("status = 'pending'"),
            postgresql_where=text("status = 'pending'"),
        ),
    )

    id = Column(String, primary_key=True, index=True)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), index=True, nullable=False)
    invited_by = Column(String, ForeignKey("students.id"), nullable=False)
    invited_user = Column(String, ForeignKey("students.id"), index=True, nullable=False)
    status = Column(String, nullable=False, default="pending")  # 'pending', 'accepted', 'rejected'
    created_at = Column(String, nullable=False)
    responded_at = Column(String, nullable=True)

    group = relationship("GroupModel")
    inviter = relationship("StudentModel", foreign_keys=[invited_by])
    invitee = relationship("StudentModel", foreign_keys=[invited_user])
