from sqlalchemy import Column, String, ForeignKey, UniqueConstraint
from sqlalchemy.orm import relationship
from .base import Base


class GroupResourceModel(Base):
    __tablename__ = "group_resources"
    __table_args__ = (
        UniqueConstraint(
            "group_id",
            "resource_type",
            "resource_id",
            name="uq_group_resources_group_type_resource",
        ),
    )

    id = Column(String, primary_key=True, index=True)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), index=True, nullable=False)
    resource_type = Column(String, nullable=False)  # 'note' or 'project'
    # Not a foreign key: points into notes or projects depending on resource_type
    resource_id = Column(String, nullable=False)
    shared_by = Column(String, ForeignKey("students.id"), nullable=False)
    shared_at = Column(String, nullable=False)

    sharer = relationship("StudentModel")
