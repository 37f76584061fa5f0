from __future__ import annotations

import asyncio
import uuid
from pathlib import Path

from fscs_backend.errors import NotFoundError, ValidationError


def validate_upload(data: bytes, *, max_size: int) -> None:
    if not data:
        raise ValidationError("File is empty")
    if len(data) > max_size:
        raise ValidationError(f"File is larger than {max_size} bytes")


class LocalFileStore:
    """Attachment bytes on disk, one file per attachment id."""

    def __init__(self, root: Path) -> None:
        self.root = root

    def _path(self, file_id: uuid.UUID) -> Path:
        return self.root / str(file_id)

    def _write(self, file_id: uuid.UUID, data: bytes) -> None:
        self.root.mkdir(parents=True, exist_ok=True)
        self._path(file_id).write_bytes(data)

    def _read(self, file_id: uuid.UUID) -> bytes:
        try:
            return self._path(file_id).read_bytes()
        except FileNotFoundError as exc:
            raise NotFoundError("File not found") from exc

    def _remove(self, file_id: uuid.UUID) -> None:
        self._path(file_id).unlink(missing_ok=True)

    async def put(self, file_id: uuid.UUID, data: bytes) -> None:
        await asyncio.to_thread(self._write, file_id, data)

    async def get(self, file_id: uuid.UUID) -> bytes:
        return await asyncio.to_thread(self._read, file_id)

    async def delete(self, file_id: uuid.UUID) -> None:
        await asyncio.to_thread(self._remove, file_id)
