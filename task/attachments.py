"""
Validation and storage of task attachments.

Files are checked as a batch before anything is written, so a rejected
request never leaves files behind. Once written, the caller owns the
returned records until they are bound to a task; if binding fails it must
call :meth:`AttachmentHandler.discard`.
"""
import logging
import os
import uuid
from dataclasses import dataclass
from typing import List

from django.conf import settings
from django.core.files.storage import default_storage

from utils.exceptions import InvalidAttachment, TooManyAttachments

logger = logging.getLogger(__name__)

DEFAULTS = {
    'ACCEPTED_MIME_TYPE': 'application/pdf',
    'MAX_FILE_SIZE': 5 * 1024 * 1024,
    'MAX_PER_TASK': 3,
    'UPLOAD_TO': 'tasks',
}


@dataclass
class StoredAttachment:
    name: str
    original_name: str
    mime_type: str
    size: int


class AttachmentHandler:

    def __init__(self, storage=None, limits=None):
        self.storage = storage or default_storage
        self.limits = {**DEFAULTS, **getattr(settings, 'TASK_ATTACHMENTS', {}), **(limits or {})}

    @property
    def max_per_task(self) -> int:
        return self.limits['MAX_PER_TASK']

    def validate(self, files, existing_count: int = 0) -> None:
        if not files:
            return

        if len(files) > self.max_per_task:
            raise InvalidAttachment(f"At most {self.max_per_task} files can be uploaded at once")

        if existing_count + len(files) > self.max_per_task:
            raise TooManyAttachments(f"Maximum {self.max_per_task} attachments allowed per task")

        accepted = self.limits['ACCEPTED_MIME_TYPE']
        max_size = self.limits['MAX_FILE_SIZE']
        for upload in files:
            if upload.content_type != accepted:
                raise InvalidAttachment('Only PDF files are allowed')
            if upload.size > max_size:
                raise InvalidAttachment(
                    f"File {upload.name} exceeds the {max_size // (1024 * 1024)}MB size limit"
                )

    def accept(self, files, existing_count: int = 0) -> List[StoredAttachment]:
        """
        Validate ``files`` and write them to storage.

        Raises InvalidAttachment or TooManyAttachments without writing
        anything; a storage failure part way through removes what was written.
        """
        files = list(files or [])
        self.validate(files, existing_count)

        stored = []
        try:
            for upload in files:
                name = self.storage.save(self._target_name(upload.name), upload)
                stored.append(StoredAttachment(
                    name=name,
                    original_name=os.path.basename(upload.name),
                    mime_type=upload.content_type,
                    size=upload.size,
                ))
        except Exception:
            logger.exception("Writing attachments failed, removing partial upload")
            self.discard(stored)
            raise

        return stored

    def discard(self, stored: List[StoredAttachment]) -> None:
        for item in stored:
            self.remove(item.name)

    def remove(self, name: str) -> bool:
        """Delete a stored file. Failures are logged, never raised."""
        if not name:
            return False
        try:
            self.storage.delete(name)
        except Exception as e:
            logger.error(f"Error deleting file {name}: {e}")
            return False
        return True

    def exists(self, name: str) -> bool:
        return bool(name) and self.storage.exists(name)

    def _target_name(self, original_name: str) -> str:
        extension = os.path.splitext(original_name)[1].lower() or '.pdf'
        return f"{self.limits['UPLOAD_TO']}/attachments-{uuid.uuid4().hex}{extension}"
