"""
app/api/dependencies.py

Shared FastAPI dependencies for request validation.
"""

from __future__ import annotations

from fastapi import File, HTTPException, UploadFile, status

CSV_CONTENT_TYPES = {
    "text/csv",
    "text/plain",
    "application/csv",
    "application/vnd.ms-excel",
}

_READ_CHUNK_BYTES = 64 * 1024


def get_csv_upload(file: UploadFile = File(...)) -> UploadFile:
    """
    Validate that the uploaded file is a CSV by extension or MIME type.
    """

    filename = (file.filename or "").strip().lower()
    content_type = (file.content_type or "").split(";", 1)[0].strip().lower()

    if not filename.endswith(".csv") and content_type not in CSV_CONTENT_TYPES:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Only CSV files are allowed.",
        )

    return file


def read_upload_bytes(file: UploadFile, *, max_bytes: int) -> bytes:
    """
    Read an upload fully, rejecting it once it grows past `max_bytes`.
    """

    raw_file = file.file
    raw_file.seek(0)
    chunks: list[bytes] = []
    total = 0
    while True:
        chunk = raw_file.read(_READ_CHUNK_BYTES)
        if not chunk:
            break
        total += len(chunk)
        if total > max_bytes:
            raise HTTPException(
                status_code=status.HTTP_413_REQUEST_ENTITY_TOO_LARGE,
                detail=f"CSV upload exceeds the maximum size of {max_bytes} bytes.",
            )
        chunks.append(chunk)
    return b"".join(chunks)
