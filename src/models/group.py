from sqlalchemy import Column, ForeignKey, String, Text
from sqlalchemy.orm import relationship
from .base import Base


class GroupModel(Base):
    __tablename__ = "groups"

    id = Column(String, primary_key=True, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    created_by = Column(String, ForeignKey("students.id"), index=True, nullable=False)
    # Uppercase, unique across all groups
    invite_code = Column(String, unique=True, index=True, nullable=False)
    created_at = Column(String, nullable=False)

    memberships = relationship(
        "GroupMembershipModel",
        back_populates="group",
        order_by="GroupMembershipModel.id",
    )
    creator = relationship("StudentModel", foreign_keys=[created_by])
