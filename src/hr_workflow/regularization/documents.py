from __future__ import annotations

import logging
import os
import secrets
from pathlib import Path
from typing import Callable, Iterable, Optional

from werkzeug.datastructures import FileStorage
from werkzeug.utils import secure_filename

from ..common.datetime_utils import now_local
from ..core.constants import ALLOWED_DOCUMENT_TYPES, DEFAULT_UPLOAD_FOLDER, MAX_DOCUMENT_SIZE, MAX_DOCUMENTS
from ..core.exceptions import NotFoundError, ValidationError
from .model import SupportingDocument

log = logging.getLogger(__name__)


class DocumentStorage:
    """Stores supporting documents for regularization requests on local disk."""

    def __init__(
        self,
        upload_folder: str = DEFAULT_UPLOAD_FOLDER,
        *,
        max_size: int = MAX_DOCUMENT_SIZE,
        max_count: int = MAX_DOCUMENTS,
        clock: Callable = now_local,
    ):
        self._root = Path(upload_folder).resolve()
        self._max_size = int(max_size)
        self._max_count = int(max_count)
        self._clock = clock

    @staticmethod
    def _size_of(file: FileStorage) -> int:
        stream = file.stream
        stream.seek(0, os.SEEK_END)
        size = stream.tell()
        stream.seek(0)
        return size

    def validate(self, file: FileStorage) -> tuple[str, str]:
        """Return ``(original_name, extension)`` or raise ValidationError."""

        original = (file.filename or "").strip()
        if not original:
            raise ValidationError("Uploaded file has no name")

        mime = (file.mimetype or "").lower()
        allowed_ext = ALLOWED_DOCUMENT_TYPES.get(mime)
        ext = Path(original).suffix.lower()
        if not allowed_ext or ext not in allowed_ext:
            raise ValidationError("Invalid file type. Only JPEG, PNG, GIF, PDF, DOC, and DOCX files are allowed")

        if self._size_of(file) > self._max_size:
            raise ValidationError(f"File {original} exceeds the {self._max_size // (1024 * 1024)}MB limit")
        return original, ext

    def store(self, file: FileStorage) -> SupportingDocument:
        original, ext = self.validate(file)
        now = self._clock()
        file_name = secure_filename(f"regularization-{int(now.timestamp() * 1000)}-{secrets.token_hex(4)}{ext}")

        self._root.mkdir(parents=True, exist_ok=True)
        target = self._root / file_name
        file.save(str(target))
        size = target.stat().st_size

        log.info("stored document %s (%s bytes)", file_name, size)
        return SupportingDocument(
            file_name=file_name,
            original_name=original,
            stored_path=str(target),
            file_size=size,
            mime_type=(file.mimetype or "").lower(),
            uploaded_at=now,
        )

    def store_all(self, files: Iterable[FileStorage]) -> list[SupportingDocument]:
        files = [f for f in files if f and f.filename]
        if len(files) > self._max_count:
            raise ValidationError(f"At most {self._max_count} documents can be attached")

        # Validate everything first so a bad file leaves nothing on disk.
        for f in files:
            self.validate(f)

        stored: list[SupportingDocument] = []
        try:
            for f in files:
                stored.append(self.store(f))
        except OSError:
            self.discard(stored)
            raise
        return stored

    def discard(self, documents: Iterable[SupportingDocument]) -> None:
        for doc in documents:
            try:
                Path(doc.stored_path).unlink()
            except FileNotFoundError:
                continue
            except OSError:
                log.warning("could not remove document %s", doc.stored_path, exc_info=True)

    def resolve(self, document: SupportingDocument) -> Path:
        """Absolute path of a stored document, refusing anything outside the upload folder."""

        path = Path(document.stored_path).resolve()
        if self._root not in path.parents:
            raise NotFoundError("Document not found")
        if not path.is_file():
            raise NotFoundError("Document file is missing")
        return path

    def limits(self) -> dict:
        return {
            "max_files": self._max_count,
            "max_file_size": self._max_size,
            "allowed_types": sorted(ALLOWED_DOCUMENT_TYPES),
        }


def find_document(documents, index: int) -> Optional[SupportingDocument]:
    if 0 <= index < len(documents):
        return documents[index]
    return None
