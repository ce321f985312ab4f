"""
Transient storage for uploaded documents.

Uploads are written to the upload directory only for as long as text
extraction needs them and are always removed afterwards.
"""

import logging
import time
import uuid
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path

logger = logging.getLogger(__name__)

PDF_CONTENT_TYPE = "application/pdf"


def ensure_upload_dir(upload_dir: Path) -> Path:
    """Create the upload directory if it does not exist."""
    upload_dir = Path(upload_dir)
    upload_dir.mkdir(parents=True, exist_ok=True)
    return upload_dir


def is_pdf_upload(filename: str | None, content_type: str | None) -> bool:
    """Accept uploads declared as PDF by content type or file extension."""
    if content_type == PDF_CONTENT_TYPE:
        return True
    return bool(filename) and filename.lower().endswith(".pdf")


@contextmanager
def saved_upload(data: bytes, filename: str, upload_dir: Path) -> Iterator[Path]:
    """
    Write an upload to disk and delete it when the block exits.

    The file is named ``<epoch millis>-<random hex>-<original name>``, so
    concurrent uploads of the same file never share a path. Deletion happens
    whether or not the block raised; a failed deletion is logged.

    Args:
        data: Uploaded file content.
        filename: Original client filename.
        upload_dir: Directory to write into.

    Yields:
        Path of the stored file.
    """
    upload_dir = ensure_upload_dir(upload_dir)
    safe_name = Path(filename or "upload.pdf").name
    path = upload_dir / f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:12]}-{safe_name}"
    path.write_bytes(data)
    logger.info("Stored upload %s (%d bytes)", path, len(data))

    try:
        yield path
    finally:
        try:
            path.unlink(missing_ok=True)
        except OSError as e:
            logger.warning("File cleanup error for %s: %s", path, e)
