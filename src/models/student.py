"""Student database model.

This module defines the Student database model using SQLAlchemy.
"""

from sqlalchemy import Column, String
from .base import Base


class StudentModel(Base):
    """Student database model."""

    __tablename__ = "students"

    id = Column(String, primary_key=True, index=True)
    email = Column(String, unique=True, index=True, nullable=False)  # lower-cased
    name = Column(String, nullable=False)
    password_hash = Column(String, nullable=False)
    created_at = Column(String, nullable=False)  # ISO format string
