"""Attachment database model.

Attachments belong to exactly one note, project or deadline. The parent is
identified by ``(parent_type, parent_id)``.
"""

from sqlalchemy import Column, Index, Integer, String
from .base import Base


class AttachmentModel(Base):
    """File attached to a note, project or deadline."""

    __tablename__ = "attachments"
    __table_args__ = (Index("ix_attachments_parent", "parent_type", "parent_id"),)

    # Blob store reference doubles as the primary key
    file_id = Column(String, primary_key=True)
    parent_type = Column(String, nullable=False)  # 'note', 'project' or 'deadline'
    parent_id = Column(String, nullable=False)
    filename = Column(String, nullable=False)
    original_name = Column(String, nullable=False)
    mimetype = Column(String, nullable=False)
    size = Column(Integer, nullable=False)
    uploaded_at = Column(String, nullable=False)
