"""SQLAlchemy models.

Importing this package registers every table with ``Base.metadata``.
"""

from .base import Base
from .student import StudentModel
from .group import GroupModel
from .group_membership import GroupMembershipModel
from .group_invitation import GroupInvitationModel
from .group_resource import GroupResourceModel
from .group_file import GroupFileModel
from .note import NoteModel
from .project import ProjectModel
from .deadline import DeadlineModel
from .attachment import AttachmentModel

__all__ = [
    "Base",
    "StudentModel",
    "GroupModel",
    "GroupMembershipModel",
    "GroupInvitationModel",
    "GroupResourceModel",
    "GroupFileModel",
    "NoteModel",
    "ProjectModel",
    "DeadlineModel",
    "AttachmentModel",
]
