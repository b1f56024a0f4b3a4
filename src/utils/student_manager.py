"""Student management utilities.

This module provides student storage, password hashing and credential
checks for registration and login.
"""

import logging
import secrets
from datetime import datetime
from typing import Optional

import bcrypt
import pytz
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import BCRYPT_ROUNDS
from core.exceptions import ConflictError, ValidationError
from models.student import StudentModel
from schemas.student import Student
from utils.converters import model_to_student

logger = logging.getLogger(__name__)

# bcrypt only looks at the first 72 bytes of a password
_BCRYPT_MAX_BYTES = 72


def normalize_email(email: str) -> str:
    return (email or "").strip().lower()


class StudentManager:
    """Manages student persistence and credentials using SQLAlchemy."""

    def __init__(self, db: Session):
        """Initialize StudentManager.

        Args:
            db: SQLAlchemy Session.
        """
        self.db = db

    def hash_password(self, password: str) -> str:
        """Hash a password using bcrypt.

        Args:
            password: Plain text password.

        Returns:
            Hashed password (bcrypt hash string).
        """
        password_bytes = password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        salt = bcrypt.gensalt(rounds=BCRYPT_ROUNDS)
        return bcrypt.hashpw(password_bytes, salt).decode("utf-8")

    def verify_password(self, plain_password: str, hashed_password: str) -> bool:
        """Verify a password against a bcrypt hash.

        Args:
            plain_password: Plain text password to verify.
            hashed_password: Bcrypt hash string to verify against.

        Returns:
            True if password matches, False otherwise.
        """
        password_bytes = plain_password.encode("utf-8")[:_BCRYPT_MAX_BYTES]
        try:
            return bcrypt.checkpw(password_bytes, hashed_password.encode("utf-8"))
        except ValueError as e:
            logger.error("Password verification error: %s", e)
            return False

    def create_student(self, name: str, email: str, password: str) -> Student:
        """Register a new student.

        Args:
            name: Display name.
            email: Email address, stored lower-cased.
            password: Plain text password.

        Returns:
            Created Student.

        Raises:
            ValidationError: If a field is blank.
            ConflictError: If the email is already registered.
        """
        name = (name or "").strip()
        email = normalize_email(email)
        if not name or not email or not password:
            raise ValidationError("All fields are required.")

        if self.get_student_by_email(email) is not None:
            raise ConflictError("Email is already registered.")

        model = StudentModel(
            id=secrets.token_hex(12),
            email=email,
            name=name,
            password_hash=self.hash_password(password),
            created_at=datetime.now(pytz.utc).isoformat(),
        )
        # Two concurrent registrations can both pass the check above; the
        # unique index on email decides.
        try:
            self.db.add(model)
            self.db.commit()
            self.db.refresh(model)
        except IntegrityError as e:
            self.db.rollback()
            raise ConflictError("Email is already registered.") from e

        logger.info("Registered student %s", model.id)
        return model_to_student(model)

    def authenticate(self, email: str, password: str) -> Student:
        """Check credentials and return the student.

        Raises:
            ValidationError: If the email is unknown or the password is wrong.
        """
        if not email or not password:
            raise ValidationError("All fields are required.")
        student = self.get_student_by_email(email)
        if student is None or not self.verify_password(password, student.password_hash):
            raise ValidationError("Invalid email or password.")
        return student

    def get_student_by_email(self, email: str) -> Optional[Student]:
        model = (
            self.db.query(StudentModel)
            .filter(StudentModel.email == normalize_email(email))
            .first()
        )
        if model:
            return model_to_student(model)
        return None

    def get_student_by_id(self, student_id: str) -> Optional[Student]:
        model = self.db.query(StudentModel).filter(StudentModel.id == student_id).first()
        if model:
            return model_to_student(model)
        return None
