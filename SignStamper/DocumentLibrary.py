"""
Signature Stamper - Document Library

Local home for uploaded documents: metadata lives in SQLite, file bytes on
disk under the library root.

Layout:
    <root>/documents.db
    <root>/files/<owner_id>/<document id>_<original name>
    <root>/files/signed/<owner_id>/<document id>_<timestamp>_signed.pdf

A document starts as PENDING. Signing stamps the current file, stores the
result as a new file and moves the record to SIGNED, pointing at the signed
copy. The document id doubles as the share token.
"""

import hashlib
import io
import logging
import re
import sqlite3
import uuid
from contextlib import closing
from dataclasses import dataclass, asdict
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import List, Optional, Union

from pypdf import PdfReader

from .PDFStamper import PDFStamper, Clock, utc_now
from .StampConfig import StampError, DocumentParseError

logger = logging.getLogger(__name__)

# ==========================================
# Errors
# ==========================================

class LibraryError(StampError):
    """Base exception for document library operations."""
    pass

class DocumentNotFoundError(LibraryError):
    """Raised when a document id is unknown or not owned by the caller."""
    pass

class DocumentStateError(LibraryError):
    """Raised when a record points at a file that no longer exists."""
    pass

# ==========================================
# Records
# ==========================================

class DocumentStatus(str, Enum):
    PENDING = "pending"
    SIGNED = "signed"


@dataclass(frozen=True)
class DocumentRecord:
    id: str
    owner_id: str
    original_name: str
    original_hash: str
    file_path: str
    original_path: str
    status: DocumentStatus
    created_at: str
    signed_at: Optional[str] = None

    @classmethod
    def from_row(cls, row: sqlite3.Row) -> "DocumentRecord":
        data = dict(row)
        data["status"] = DocumentStatus(data["status"])
        return cls(**data)

    def to_dict(self) -> dict:
        data = asdict(self)
        data["status"] = self.status.value
        return data


_SCHEMA = """
CREATE TABLE IF NOT EXISTS documents (
    id            TEXT PRIMARY KEY,
    owner_id      TEXT NOT NULL,
    original_name TEXT NOT NULL,
    original_hash TEXT NOT NULL,
    file_path     TEXT NOT NULL,
    original_path TEXT NOT NULL,
    status        TEXT NOT NULL,
    created_at    TEXT NOT NULL,
    signed_at     TEXT
)
"""

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]+")


def _safe_name(name: str) -> str:
    """Reduces a user supplied name to a single safe path component."""
    cleaned = _UNSAFE_CHARS.sub("_", Path(name).name).strip("._")
    return cleaned or "document"

# ==========================================
# Document Library
# ==========================================

class DocumentLibrary:
    """
    Stores documents with their signing status and signs them in place.

    Each public method opens its own SQLite connection, so a library
    instance can be shared between threads.
    """

    def __init__(
        self,
        root: Union[str, Path],
        stamper: Optional[PDFStamper] = None,
        clock: Optional[Clock] = None,
    ):
        self.root = Path(root)
        self.files_dir = self.root / "files"
        self.db_path = self.root / "documents.db"
        self.clock = clock or utc_now
        self.stamper = stamper or PDFStamper(clock=self.clock)

        self.files_dir.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as conn, conn:
            conn.execute(_SCHEMA)

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _timestamp(self) -> datetime:
        return self.clock()

    def _store(self, relative: Path, data: bytes) -> Path:
        """Writes data below files/ and returns the path relative to the root."""
        target = self.files_dir / relative
        target.parent.mkdir(parents=True, exist_ok=True)
        target.write_bytes(data)
        return target.relative_to(self.root)

    # ------------------------------------------
    # Operations
    # ------------------------------------------

    def upload(self, owner_id: str, filename: str, pdf_bytes: bytes) -> DocumentRecord:
        """Stores a new PDF as a PENDING document."""
        try:
            with io.BytesIO(pdf_bytes) as probe:
                PdfReader(probe)
        except Exception as e:
            raise DocumentParseError(f"Uploaded file is not a readable PDF: {e}") from e

        now = self._timestamp()
        document_id = str(uuid.uuid4())
        stored = self._store(
            Path(_safe_name(owner_id)) / f"{document_id}_{_safe_name(filename)}",
            pdf_bytes,
        )

        record = DocumentRecord(
            id=document_id,
            owner_id=owner_id,
            original_name=filename,
            original_hash=hashlib.sha256(pdf_bytes).hexdigest(),
            file_path=stored.as_posix(),
            original_path=stored.as_posix(),
            status=DocumentStatus.PENDING,
            created_at=now.isoformat(),
        )
        with closing(self._connect()) as conn, conn:
            conn.execute(
                "INSERT INTO documents (id, owner_id, original_name, original_hash, "
                "file_path, original_path, status, created_at, signed_at) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)",
                (record.id, record.owner_id, record.original_name, record.original_hash,
                 record.file_path, record.original_path, record.status.value, record.created_at, record.signed_at),
            )

        logger.info("uploaded document %s for owner %s (%s)", record.id, owner_id, filename)
        return record

    def list_documents(self, owner_id: str) -> List[DocumentRecord]:
        """Returns the owner's documents, newest first."""
        with closing(self._connect()) as conn:
            rows = conn.execute(
                "SELECT * FROM documents WHERE owner_id = ? ORDER BY created_at DESC, rowid DESC",
                (owner_id,),
            ).fetchall()
        return [DocumentRecord.from_row(row) for row in rows]

    def get(self, document_id: str, owner_id: Optional[str] = None) -> DocumentRecord:
        """Looks up a document; with owner_id set, only that owner's documents match."""
        query = "SELECT * FROM documents WHERE id = ?"
        params = [document_id]
        if owner_id is not None:
            query += " AND owner_id = ?"
            params.append(owner_id)

        with closing(self._connect()) as conn:
            row = conn.execute(query, params).fetchone()
        if row is None:
            raise DocumentNotFoundError(f"Document not found: {document_id}")
        return DocumentRecord.from_row(row)

    def read_file(self, record: DocumentRecord) -> bytes:
        path = self.root / record.file_path
        if not path.is_file():
            raise DocumentStateError(f"Stored file for document {record.id} is missing: {path}")
        return path.read_bytes()

    def sign(
        self,
        document_id: str,
        signature_bytes: bytes,
        page_number: int,
        x: float,
        y: float,
        password: Optional[str] = None,
    ) -> DocumentRecord:
        """Stamps the signature onto the document's current file and marks it SIGNED."""
        record = self.get(document_id)
        signed_pdf = self.stamper.stamp(
            self.read_file(record), signature_bytes, page_number, x, y, password=password
        )

        now = self._timestamp()
        stored = self._store(
            Path("signed") / _safe_name(record.owner_id) / f"{record.id}_{now:%Y%m%d%H%M%S}_signed.pdf",
            signed_pdf,
        )

        try:
            with closing(self._connect()) as conn, conn:
                conn.execute(
                    "UPDATE documents SET status = ?, file_path = ?, signed_at = ? WHERE id = ?",
                    (DocumentStatus.SIGNED.value, stored.as_posix(), now.isoformat(), document_id),
                )
        except Exception:
            # The record still points at the previous file
            if stored.as_posix() != record.file_path:
                (self.root / stored).unlink(missing_ok=True)
            raise

        # Drop a previous signed copy; the original upload is kept
        if record.file_path not in (record.original_path, stored.as_posix()):
            (self.root / record.file_path).unlink(missing_ok=True)

        logger.info("signed document %s on page %d -> %s", document_id, page_number, stored)
        return self.get(document_id)

    def delete(self, document_id: str, owner_id: str) -> None:
        """Removes the owner's document record together with its stored files."""
        record = self.get(document_id, owner_id=owner_id)

        with closing(self._connect()) as conn, conn:
            conn.execute("DELETE FROM documents WHERE id = ?", (document_id,))

        for stored in {record.file_path, record.original_path}:
            path = self.root / stored
            if path.is_file():
                path.unlink()
        logger.info("deleted document %s", document_id)

    def share(self, document_id: str, owner_id: str) -> str:
        """Returns the share token for one of the owner's documents."""
        return self.get(document_id, owner_id=owner_id).id

    def get_public(self, token: str) -> dict:
        """Read-only view of a shared document; no owner check."""
        try:
            record = self.get(token)
        except DocumentNotFoundError:
            raise DocumentNotFoundError("Document not found or link expired") from None
        return {
            "file_path": record.file_path,
            "original_name": record.original_name,
            "status": record.status.value,
            "created_at": record.created_at,
        }
