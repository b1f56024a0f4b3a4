"""Filesystem-backed blob store for uploaded file bytes.

Each blob is stored as two files under the store root: ``<id>.bin`` holding the
bytes and ``<id>.json`` holding the descriptor (filename, content type,
length, metadata, upload date). Blobs are referenced everywhere else only by
their opaque id.
"""

import json
import logging
import re
import secrets
import time
from dataclasses import asdict, dataclass, field
from datetime import datetime
from pathlib import Path
from typing import Any, BinaryIO, Dict, Iterator, Optional

import pytz
from fastapi import Request

from config import DEFAULT_MIME_TYPE
from core.exceptions import BlobNotFoundError, StorageError

logger = logging.getLogger(__name__)

CHUNK_SIZE = 256 * 1024
_BLOB_ID_RE = re.compile(r"^[0-9a-f]{24}$")
_WHITESPACE_RE = re.compile(r"\s+")


def make_storage_filename(original_name: str) -> str:
    """Derive a collision-resistant storage filename from an upload name.

    ``"lab report 1.pdf"`` becomes ``"1712345678901-lab_report_1.pdf"``.
    """
    safe_name = _WHITESPACE_RE.sub("_", original_name)
    return f"{int(time.time() * 1000)}-{safe_name}"


@dataclass
class BlobInfo:
    """Descriptor of a stored blob."""

    id: str
    filename: str
    content_type: str
    length: int
    upload_date: str
    metadata: Dict[str, Any] = field(default_factory=dict)


class BlobUploadStream:
    """Writable stream returned by ``BlobStore.open_upload_stream``.

    The blob becomes visible once the stream is closed. Leaving the ``with``
    block on an exception aborts the upload and removes the partial bytes.
    """

    def __init__(self, store: "BlobStore", blob_id: str, filename: str,
                 content_type: str, metadata: Dict[str, Any]):
        self.id = blob_id
        self._store = store
        self._filename = filename
        self._content_type = content_type
        self._metadata = metadata
        self._length = 0
        self._closed = False
        self._fh: BinaryIO = open(store.data_path(blob_id), "wb")

    @property
    def length(self) -> int:
        """Bytes written so far."""
        return self._length

    def write(self, data: bytes) -> None:
        if self._closed:
            raise StorageError("Upload stream is already closed.")
        self._fh.write(data)
        self._length += len(data)

    def close(self) -> BlobInfo:
        """Flush the bytes and publish the descriptor."""
        if self._closed:
            return self._store.find(self.id)
        self._fh.close()
        info = BlobInfo(
            id=self.id,
            filename=self._filename,
            content_type=self._content_type,
            length=self._length,
            upload_date=datetime.now(pytz.utc).isoformat(),
            metadata=self._metadata,
        )
        with open(self._store.info_path(self.id), "w", encoding="utf-8") as f:
            json.dump(asdict(info), f)
        self._closed = True
        return info

    def abort(self) -> None:
        if not self._fh.closed:
            self._fh.close()
        self._store.data_path(self.id).unlink(missing_ok=True)
        self._closed = True

    def __enter__(self) -> "BlobUploadStream":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if exc_type is not None:
            self.abort()
        else:
            self.close()


class BlobStore:
    """Stores file bytes on local disk under ``root``."""

    def __init__(self, root: Path):
        self.root = Path(root)
        self._ready = False

    def init(self) -> None:
        """Create the storage directory."""
        self.root.mkdir(parents=True, exist_ok=True)
        self._ready = True
        logger.info("Blob store ready at %s", self.root)

    def close(self) -> None:
        self._ready = False

    def _check_ready(self) -> None:
        if not self._ready:
            raise StorageError("Blob store is not initialized.")

    def data_path(self, blob_id: str) -> Path:
        return self.root / f"{blob_id}.bin"

    def info_path(self, blob_id: str) -> Path:
        return self.root / f"{blob_id}.json"

    def open_upload_stream(
        self,
        filename: str,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> BlobUploadStream:
        """Open a writable stream for a new blob.

        Args:
            filename: Storage filename recorded in the descriptor.
            content_type: MIME type of the content.
            metadata: Free-form tags, e.g. owning entity and uploader.

        Returns:
            A ``BlobUploadStream`` whose ``id`` is the new blob reference.
        """
        self._check_ready()
        blob_id = secrets.token_hex(12)
        try:
            return BlobUploadStream(
                self,
                blob_id,
                filename,
                content_type or DEFAULT_MIME_TYPE,
                dict(metadata or {}),
            )
        except OSError as exc:
            raise StorageError(f"Could not open upload stream: {exc}") from exc

    def upload_from_bytes(
        self,
        filename: str,
        content: bytes,
        content_type: Optional[str] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ) -> BlobInfo:
        """Store ``content`` in one go and return its descriptor."""
        try:
            with self.open_upload_stream(filename, content_type, metadata) as stream:
                stream.write(content)
        except OSError as exc:
            raise StorageError(f"Could not store file: {exc}") from exc
        return self.find(stream.id)

    def find(self, blob_id: str) -> BlobInfo:
        """Return the descriptor of a blob.

        Raises:
            BlobNotFoundError: If no such blob exists.
        """
        self._check_ready()
        if not _BLOB_ID_RE.match(blob_id or ""):
            raise BlobNotFoundError(blob_id)
        path = self.info_path(blob_id)
        if not path.exists():
            raise BlobNotFoundError(blob_id)
        with open(path, "r", encoding="utf-8") as f:
            return BlobInfo(**json.load(f))

    def exists(self, blob_id: str) -> bool:
        try:
            self.find(blob_id)
        except BlobNotFoundError:
            return False
        return True

    def open_download_stream(self, blob_id: str) -> BinaryIO:
        """Open a blob for reading. The caller closes the returned file."""
        self.find(blob_id)
        return open(self.data_path(blob_id), "rb")

    def iter_chunks(self, blob_id: str, chunk_size: int = CHUNK_SIZE) -> Iterator[bytes]:
        with self.open_download_stream(blob_id) as fh:
            while True:
                chunk = fh.read(chunk_size)
                if not chunk:
                    break
                yield chunk

    def delete(self, blob_id: str) -> None:
        """Delete a blob.

        Raises:
            BlobNotFoundError: If no such blob exists.
            StorageError: If the files cannot be removed.
        """
        self.find(blob_id)
        try:
            self.info_path(blob_id).unlink()
            self.data_path(blob_id).unlink(missing_ok=True)
        except OSError as exc:
            raise StorageError(f"Could not delete file {blob_id}: {exc}") from exc
        logger.info("Deleted blob %s", blob_id)


def get_blob_store(request: Request) -> BlobStore:
    """Dependency returning the application's blob store."""
    return request.app.state.blob_store
