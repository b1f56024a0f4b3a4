"""Group file index: files uploaded directly to a group."""

import io
import logging
import secrets
from datetime import datetime
from typing import Any, BinaryIO, Dict, List, Optional, Union

import pytz
from sqlalchemy.orm import Session, joinedload

from config import DEFAULT_MIME_TYPE, MAX_UPLOAD_SIZE
from core.blob_store import CHUNK_SIZE, BlobInfo, BlobStore, make_storage_filename
from core.exceptions import ForbiddenError, NotFoundError, StorageError, ValidationError
from models.group_file import GroupFileModel
from utils.group_manager import load_group, require_member

logger = logging.getLogger(__name__)


def store_upload(
    blob_store: BlobStore,
    content: Union[bytes, BinaryIO, None],
    original_name: Optional[str],
    mimetype: Optional[str],
    metadata: Dict[str, Any],
) -> BlobInfo:
    """Validate an uploaded file and stream it into the blob store.

    The source is copied in chunks and the upload is aborted as soon as it
    passes ``MAX_UPLOAD_SIZE``, so at most one chunk is held in memory.

    Args:
        blob_store: Destination store.
        content: Raw bytes or a readable binary file object.
        original_name: Client-side filename.
        mimetype: Client-declared content type.
        metadata: Tags recorded with the blob.

    Raises:
        ValidationError: If no file was given or it exceeds ``MAX_UPLOAD_SIZE``.
        StorageError: If the blob store fails.
    """
    if content is None or not original_name:
        raise ValidationError("No file provided.")
    source = io.BytesIO(content) if isinstance(content, bytes) else content

    try:
        with blob_store.open_upload_stream(
            make_storage_filename(original_name),
            content_type=mimetype or DEFAULT_MIME_TYPE,
            metadata=metadata,
        ) as stream:
            while True:
                chunk = source.read(CHUNK_SIZE)
                if not chunk:
                    break
                if stream.length + len(chunk) > MAX_UPLOAD_SIZE:
                    raise ValidationError(
                        f"File too large. Maximum size is {MAX_UPLOAD_SIZE // (1024 * 1024)}MB."
                    )
                stream.write(chunk)
    except OSError as exc:
        raise StorageError(f"Could not store file: {exc}") from exc
    return blob_store.find(stream.id)


class GroupFileManager:
    """Manages GroupFile records and their blobs."""

    def __init__(self, db: Session, blob_store: BlobStore):
        self.db = db
        self.blob_store = blob_store

    def upload(
        self,
        group_id: str,
        uploader_id: str,
        content: Union[bytes, BinaryIO, None],
        original_name: Optional[str],
        mimetype: Optional[str],
    ) -> GroupFileModel:
        """Store a file and record it in the group.

        The bytes are written before the record; if the record cannot be
        written the blob is left behind unreferenced.

        Raises:
            NotFoundError: If the group does not exist.
            ForbiddenError: If the uploader is not a member.
            ValidationError: If no file was given or it is too large.
        """
        group = load_group(self.db, group_id)
        require_member(self.db, group, uploader_id)

        info = store_upload(
            self.blob_store,
            content,
            original_name,
            mimetype,
            {"entity_type": "group", "entity_id": group.id, "uploaded_by": uploader_id},
        )
        group_file = GroupFileModel(
            id=secrets.token_hex(12),
            group_id=group.id,
            file_id=info.id,
            filename=info.filename,
            original_name=original_name,
            mimetype=info.content_type,
            size=info.length,
            uploaded_by=uploader_id,
            uploaded_at=datetime.now(pytz.utc).isoformat(),
        )
        self.db.add(group_file)
        self.db.commit()
        logger.info(
            "Student %s uploaded %s (%d bytes) to group %s",
            uploader_id,
            info.filename,
            info.length,
            group.id,
        )
        return self._query().filter(GroupFileModel.id == group_file.id).one()

    def _query(self):
        return self.db.query(GroupFileModel).options(joinedload(GroupFileModel.uploader))

    def list(self, group_id: str, requester_id: str) -> List[GroupFileModel]:
        """Files of a group, newest first. Member only."""
        group = load_group(self.db, group_id)
        require_member(self.db, group, requester_id)
        return (
            self._query()
            .filter(GroupFileModel.group_id == group.id)
            .order_by(GroupFileModel.uploaded_at.desc())
            .all()
        )

    def remove(self, group_id: str, group_file_id: str, requester_id: str) -> None:
        """Delete a group file. Only its uploader may do this.

        The blob is released first and any failure there propagates, so the
        record is kept when the bytes could not be removed.

        Raises:
            NotFoundError: If the group or the file does not exist.
            ForbiddenError: If the requester is not a member or not the
                uploader.
            StorageError: If the blob could not be released.
        """
        group = load_group(self.db, group_id)
        require_member(self.db, group, requester_id)

        group_file = (
            self.db.query(GroupFileModel)
            .filter(GroupFileModel.id == group_file_id, GroupFileModel.group_id == group.id)
            .first()
        )
        if not group_file:
            raise NotFoundError("File not found.")
        if group_file.uploaded_by != requester_id:
            raise ForbiddenError("Only the uploader can delete this file.")

        self.blob_store.delete(group_file.file_id)
        self.db.delete(group_file)
        self.db.commit()
        logger.info("Student %s deleted file %s from group %s", requester_id, group_file_id, group_id)
