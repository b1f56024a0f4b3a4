"""Attachments embedded in notes, projects and deadlines."""

import logging
from datetime import datetime
from typing import BinaryIO, Dict, Iterable, List, Optional, Union

import pytz
from sqlalchemy.orm import Session

from core.blob_store import BlobStore
from core.exceptions import NotFoundError, StorageError
from models.attachment import AttachmentModel
from utils.group_file_manager import store_upload

logger = logging.getLogger(__name__)


class AttachmentManager:
    """Manages attachment records and their blobs.

    Callers check ownership of the parent before calling in.
    """

    def __init__(self, db: Session, blob_store: BlobStore):
        self.db = db
        self.blob_store = blob_store

    def add(
        self,
        parent_type: str,
        parent_id: str,
        owner_id: str,
        content: Union[bytes, BinaryIO, None],
        original_name: Optional[str],
        mimetype: Optional[str],
    ) -> AttachmentModel:
        info = store_upload(
            self.blob_store,
            content,
            original_name,
            mimetype,
            {"entity_type": parent_type, "entity_id": parent_id, "owner_id": owner_id},
        )
        attachment = AttachmentModel(
            file_id=info.id,
            parent_type=parent_type,
            parent_id=parent_id,
            filename=info.filename,
            original_name=original_name,
            mimetype=info.content_type,
            size=info.length,
            uploaded_at=datetime.now(pytz.utc).isoformat(),
        )
        self.db.add(attachment)
        self.db.commit()
        self.db.refresh(attachment)
        logger.info("Attached %s to %s %s", info.id, parent_type, parent_id)
        return attachment

    def list_for(self, parent_type: str, parent_id: str) -> List[AttachmentModel]:
        return (
            self.db.query(AttachmentModel)
            .filter(
                AttachmentModel.parent_type == parent_type,
                AttachmentModel.parent_id == parent_id,
            )
            .order_by(AttachmentModel.uploaded_at)
            .all()
        )

    def list_for_many(
        self, parent_type: str, parent_ids: Iterable[str]
    ) -> Dict[str, List[AttachmentModel]]:
        """Attachments of several parents, grouped by parent id."""
        grouped: Dict[str, List[AttachmentModel]] = {pid: [] for pid in parent_ids}
        if not grouped:
            return grouped
        rows = (
            self.db.query(AttachmentModel)
            .filter(
                AttachmentModel.parent_type == parent_type,
                AttachmentModel.parent_id.in_(list(grouped)),
            )
            .order_by(AttachmentModel.uploaded_at)
            .all()
        )
        for row in rows:
            grouped[row.parent_id].append(row)
        return grouped

    def remove(self, parent_type: str, parent_id: str, file_id: str) -> None:
        """Delete one attachment, releasing its blob first.

        Raises:
            NotFoundError: If the parent has no such attachment.
            StorageError: If the blob could not be released.
        """
        attachment = (
            self.db.query(AttachmentModel)
            .filter(
                AttachmentModel.file_id == file_id,
                AttachmentModel.parent_type == parent_type,
                AttachmentModel.parent_id == parent_id,
            )
            .first()
        )
        if not attachment:
            raise NotFoundError("Attachment not found.")

        self.blob_store.delete(file_id)
        self.db.delete(attachment)
        self.db.commit()
        logger.info("Removed attachment %s from %s %s", file_id, parent_type, parent_id)

    def remove_all_for(self, parent_type: str, parent_id: str) -> int:
        """Delete every attachment of a parent; blob release is best-effort.

        Does not commit; the caller commits together with the parent delete.

        Returns:
            Number of attachment records removed.
        """
        attachments = self.list_for(parent_type, parent_id)
        for attachment in attachments:
            try:
                self.blob_store.delete(attachment.file_id)
            except StorageError as exc:
                logger.warning(
                    "Could not release blob %s of %s %s: %s",
                    attachment.file_id,
                    parent_type,
                    parent_id,
                    exc,
                )
            self.db.delete(attachment)
        return len(attachments)
