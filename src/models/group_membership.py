from sqlalchemy import Column, Integer, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base


class GroupMembershipModel(Base):
    __tablename__ = "group_memberships"
    __table_args__ = (
        UniqueConstraint(
            "group_id",
            "student_id",
            name="uq_group_memberships_group_student",
        ),
    )

    # Autoincrement id doubles as the membership order within a group
    id = Column(Integer, primary_key=True, index=True)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), index=True, nullable=False)
    student_id = Column(String, ForeignKey("students.id", ondelete="CASCADE"), index=True, nullable=False)
    role = Column(String, nullable=False)  # 'admin' or 'member'
    joined_at = Column(String, nullable=False)

    group = relationship("GroupModel", back_populates="memberships")
    student = relationship("StudentModel")
