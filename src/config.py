"""Configuration module for the StudyHub backend.

This module provides centralized configuration management, including directory
paths, API server settings, authentication and upload limits.
All configuration values can be overridden via environment variables.
"""

import os
from pathlib import Path
from typing import List

from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

# --- Directory Configuration ---

# Root directory of the project
ROOT_DIR = Path(__file__).parent.parent.resolve()

# Data directory name
DATA_DIR_NAME = "data"
DATA_DIR = Path(os.getenv("DATA_DIR", str(ROOT_DIR / DATA_DIR_NAME)))

# Blob store directory (uploaded file bytes, one file per blob)
BLOB_STORE_DIR_NAME = "uploads"
BLOB_STORE_DIR = Path(os.getenv("BLOB_STORE_DIR", str(DATA_DIR / BLOB_STORE_DIR_NAME)))

# --- Database Configuration ---

DATABASE_URL: str = os.getenv("DATABASE_URL", f"sqlite:///{DATA_DIR}/studyhub.db")

# --- API Server Configuration ---

API_HOST: str = os.getenv("API_HOST", "0.0.0.0")
API_PORT: int = int(os.getenv("API_PORT", "5000"))

# CORS allowed origins (comma-separated list)
# Default includes local development addresses. For production, set via
# CORS_ALLOWED_ORIGINS environment variable.
_CORS_ALLOWED_ORIGINS_STR: str = os.getenv(
    "CORS_ALLOWED_ORIGINS",
    "http://localhost:5000,http://127.0.0.1:5000,http://localhost:3000,"
    "http://127.0.0.1:3000",
)
CORS_ALLOWED_ORIGINS: List[str] = [
    origin.strip()
    for origin in _CORS_ALLOWED_ORIGINS_STR.split(",")
    if origin.strip()
]

# --- Logging Configuration ---

LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()

# --- Authentication Configuration ---

JWT_SECRET_KEY: str = os.getenv("JWT_SECRET_KEY", "your-secret-key-change-in-production")
JWT_ALGORITHM: str = "HS256"
ACCESS_TOKEN_EXPIRE_MINUTES: int = int(
    os.getenv("ACCESS_TOKEN_EXPIRE_MINUTES", str(60 * 24 * 7))  # 7 days
)

# Bcrypt rounds for password hashing (higher = more secure but slower)
BCRYPT_ROUNDS: int = int(os.getenv("BCRYPT_ROUNDS", "10"))

# --- Group Configuration ---

INVITE_CODE_LENGTH: int = 6
INVITE_CODE_ALPHABET: str = "ABCDEFGHIJKLMNOPQRSTUVWXYZ0123456789"
# Regeneration attempts when a freshly generated invite code collides
INVITE_CODE_MAX_ATTEMPTS: int = int(os.getenv("INVITE_CODE_MAX_ATTEMPTS", "10"))

# --- Upload Configuration ---

MAX_UPLOAD_SIZE: int = int(os.getenv("MAX_UPLOAD_SIZE", str(10 * 1024 * 1024)))  # 10MB

# Served with "Content-Disposition: inline", everything else as attachment
INLINE_MIME_TYPES: List[str] = [
    "application/pdf",
    "image/jpeg",
    "image/png",
    "image/gif",
    "image/webp",
]

DEFAULT_MIME_TYPE: str = "application/octet-stream"


