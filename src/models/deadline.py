from sqlalchemy import Column, String, Text, ForeignKey
from .base import Base


class DeadlineModel(Base):
    __tablename__ = "deadlines"

    id = Column(String, primary_key=True, index=True)
    student_id = Column(String, ForeignKey("students.id"), index=True, nullable=False)
    title = Column(String, nullable=False)
    description = Column(Text, nullable=False, default="")
    due_date = Column(String, nullable=False)
    priority = Column(String, nullable=False, default="medium")  # 'low', 'medium', 'high'
    status = Column(String, nullable=False, default="upcoming")  # 'upcoming', 'completed', 'missed'
    created_at = Column(String, nullable=False)
