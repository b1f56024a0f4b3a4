from sqlalchemy import Column, Integer, String, ForeignKey
from sqlalchemy.orm import relationship
from .base import Base


class GroupFileModel(Base):
    __tablename__ = "group_files"

    id = Column(String, primary_key=True, index=True)
    group_id = Column(String, ForeignKey("groups.id", ondelete="CASCADE"), index=True, nullable=False)
    file_id = Column(String, nullable=False)  # blob store reference
    filename = Column(String, nullable=False)
    original_name = Column(String, nullable=False)
    mimetype = Column(String, nullable=False)
    size = Column(Integer, nullable=False)
    uploaded_by = Column(String, ForeignKey("students.id"), nullable=False)
    uploaded_at = Column(String, nullable=False)

    uploader = relationship("StudentModel")
