"""Student schema definitions.

This module defines request and response models for registration, login and
the public view of a student.
"""

from typing import Optional

from pydantic import BaseModel, Field


class Student(BaseModel):
    """Student as stored, including the password hash."""

    id: str
    name: str
    email: str
    password_hash: str
    created_at: str


class StudentPublic(BaseModel):
    """Student without credentials."""

    id: str
    name: str
    email: str


class StudentRef(BaseModel):
    """Student reference resolved to display data."""

    id: str
    name: str
    email: Optional[str] = None


class RegisterRequest(BaseModel):
    name: str = Field(default="", description="Display name")
    email: str = Field(default="")
    password: str = Field(default="")


class LoginRequest(BaseModel):
    email: str = Field(default="")
    password: str = Field(default="")


class AuthResponse(BaseModel):
    token: str
    student: StudentPublic
