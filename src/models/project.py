from sqlalchemy import Boolean, Column, String, Text, ForeignKey
from .base import Base


class ProjectModel(Base):
    __tablename__ = "projects"

    id = Column(String, primary_key=True, index=True)
    student_id = Column(String, ForeignKey("students.id"), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    status = Column(String, nullable=False, default="pending")  # 'pending', 'in_progress', 'completed'
    due_date = Column(String, nullable=True)
    is_shared = Column(Boolean, nullable=False, default=False)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)
