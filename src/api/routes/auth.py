"""Authentication routes.

This module handles HTTP endpoints for student registration and login, and
the bearer-token dependencies every other router uses.
"""

import logging
from datetime import datetime, timedelta
from typing import Optional

import pytz
from fastapi import APIRouter, Depends, Query, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jose import JWTError, jwt

from config import ACCESS_TOKEN_EXPIRE_MINUTES, JWT_ALGORITHM, JWT_SECRET_KEY
from core.dependencies import StudentManagerDep
from core.exceptions import AuthenticationError
from schemas.student import (
    AuthResponse,
    LoginRequest,
    RegisterRequest,
    Student,
    StudentPublic,
)
from utils.converters import student_to_public

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/auth", tags=["Auth"])

# auto_error is off so that a ?token= query parameter can be used instead,
# e.g. for file links opened directly in the browser
security = HTTPBearer(auto_error=False)


def create_access_token(data: dict, expires_delta: Optional[timedelta] = None) -> str:
    """Create a JWT access token.

    Args:
        data: Data to encode in the token.
        expires_delta: Optional expiration time delta.

    Returns:
        Encoded JWT token string.
    """
    to_encode = data.copy()
    if expires_delta:
        expire = datetime.now(pytz.utc) + expires_delta
    else:
        expire = datetime.now(pytz.utc) + timedelta(minutes=ACCESS_TOKEN_EXPIRE_MINUTES)
    to_encode.update({"exp": expire})
    return jwt.encode(to_encode, JWT_SECRET_KEY, algorithm=JWT_ALGORITHM)


def create_student_token(student: Student) -> str:
    return create_access_token(
        {"sub": student.id, "name": student.name, "email": student.email}
    )


def verify_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(security),
    token: Optional[str] = Query(default=None, include_in_schema=False),
) -> dict:
    """Verify the JWT from the Authorization header or ``token`` query param.

    Returns:
        Decoded token payload with ``sub``, ``name`` and ``email``.

    Raises:
        AuthenticationError: If the token is missing, invalid or expired.
    """
    raw_token = credentials.credentials if credentials else token
    if not raw_token:
        raise AuthenticationError("Access denied. No token provided.")
    try:
        payload = jwt.decode(raw_token, JWT_SECRET_KEY, algorithms=[JWT_ALGORITHM])
    except JWTError as e:
        raise AuthenticationError("Invalid or expired token.") from e
    if payload.get("sub") is None:
        raise AuthenticationError("Invalid or expired token.")
    return payload


def get_current_student(
    student_manager: StudentManagerDep,
    token_payload: dict = Depends(verify_token),
) -> Student:
    """Get the authenticated student.

    Raises:
        AuthenticationError: If the student in the token no longer exists.
    """
    student = student_manager.get_student_by_id(token_payload["sub"])
    if student is None:
        raise AuthenticationError("Student not found.")
    return student


@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a student",
)
def register(req: RegisterRequest, student_manager: StudentManagerDep) -> AuthResponse:
    student = student_manager.create_student(req.name, req.email, req.password)
    return AuthResponse(token=create_student_token(student), student=student_to_public(student))


@router.post("/login", response_model=AuthResponse, summary="Log in")
def login(req: LoginRequest, student_manager: StudentManagerDep) -> AuthResponse:
    """Log in with email and password.

    Unknown email and wrong password give the same 400 response.
    """
    student = student_manager.authenticate(req.email, req.password)
    logger.info("Student %s logged in", student.id)
    return AuthResponse(token=create_student_token(student), student=student_to_public(student))


@router.get("/me", response_model=StudentPublic, summary="Current student")
def me(current_student: Student = Depends(get_current_student)) -> StudentPublic:
    return student_to_public(current_student)
