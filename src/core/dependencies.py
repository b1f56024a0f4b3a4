"""Dependency injection module for FastAPI.

Managers are built per request from the request-scoped database session and
the application's blob store.
"""

from typing import Annotated

from fastapi import Depends
from sqlalchemy.orm import Session

from core.blob_store import BlobStore, get_blob_store
from core.database import get_db
from utils import attachment_manager
from utils import deadline_manager
from utils import group_file_manager
from utils import group_manager
from utils import invitation_manager
from utils import note_manager
from utils import project_manager
from utils import resource_share_manager
from utils import student_manager


def get_student_manager(db: Session = Depends(get_db)) -> student_manager.StudentManager:
    """Get StudentManager instance with request-scoped DB session.

    Args:
        db: Database session.

    Returns:
        StudentManager instance.
    """
    return student_manager.StudentManager(db)


def get_group_manager(
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> group_manager.GroupManager:
    """Get GroupManager instance with request-scoped DB session."""
    return group_manager.GroupManager(db, blob_store)


def get_invitation_manager(
    db: Session = Depends(get_db),
    groups: group_manager.GroupManager = Depends(get_group_manager),
) -> invitation_manager.InvitationManager:
    """Get InvitationManager sharing the request's GroupManager."""
    return invitation_manager.InvitationManager(db, groups)


def get_group_file_manager(
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> group_file_manager.GroupFileManager:
    return group_file_manager.GroupFileManager(db, blob_store)


def get_attachment_manager(
    db: Session = Depends(get_db),
    blob_store: BlobStore = Depends(get_blob_store),
) -> attachment_manager.AttachmentManager:
    return attachment_manager.AttachmentManager(db, blob_store)


def get_note_manager(
    db: Session = Depends(get_db),
    attachments: attachment_manager.AttachmentManager = Depends(get_attachment_manager),
) -> note_manager.NoteManager:
    return note_manager.NoteManager(db, attachments)


def get_project_manager(
    db: Session = Depends(get_db),
    attachments: attachment_manager.AttachmentManager = Depends(get_attachment_manager),
) -> project_manager.ProjectManager:
    return project_manager.ProjectManager(db, attachments)


def get_deadline_manager(
    db: Session = Depends(get_db),
    attachments: attachment_manager.AttachmentManager = Depends(get_attachment_manager),
) -> deadline_manager.DeadlineManager:
    return deadline_manager.DeadlineManager(db, attachments)


def get_resource_share_manager(
    db: Session = Depends(get_db),
    attachments: attachment_manager.AttachmentManager = Depends(get_attachment_manager),
) -> resource_share_manager.ResourceShareManager:
    """Get ResourceShareManager; shared payloads embed attachments."""
    return resource_share_manager.ResourceShareManager(db, attachments)


# Type aliases for dependency injection
BlobStoreDep = Annotated[BlobStore, Depends(get_blob_store)]
StudentManagerDep = Annotated[
    student_manager.StudentManager, Depends(get_student_manager)
]
GroupManagerDep = Annotated[
    group_manager.GroupManager, Depends(get_group_manager)
]
InvitationManagerDep = Annotated[
    invitation_manager.InvitationManager, Depends(get_invitation_manager)
]
ResourceShareManagerDep = Annotated[
    resource_share_manager.ResourceShareManager, Depends(get_resource_share_manager)
]
GroupFileManagerDep = Annotated[
    group_file_manager.GroupFileManager, Depends(get_group_file_manager)
]
AttachmentManagerDep = Annotated[
    attachment_manager.AttachmentManager, Depends(get_attachment_manager)
]
NoteManagerDep = Annotated[note_manager.NoteManager, Depends(get_note_manager)]
ProjectManagerDep = Annotated[project_manager.ProjectManager, Depends(get_project_manager)]
DeadlineManagerDep = Annotated[
    deadline_manager.DeadlineManager, Depends(get_deadline_manager)
]
