from sqlalchemy import Boolean, Column, String, Text, ForeignKey
from .base import Base


class NoteModel(Base):
    __tablename__ = "notes"

    id = Column(String, primary_key=True, index=True)
    student_id = Column(String, ForeignKey("students.id"), index=True, nullable=False)
    title = Column(String, nullable=False)
    content = Column(Text, nullable=False, default="")
    subject = Column(String, nullable=False, default="")
    is_shared = Column(Boolean, nullable=False, default=False)
    created_at = Column(String, nullable=False)
    updated_at = Column(String, nullable=False)
