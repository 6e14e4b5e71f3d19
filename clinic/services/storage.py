"""
File boundary: upload / download / delete on Django's default storage.

Paths are namespaced ``<prefix>/<player_id>/<epoch_ms>.<ext>`` so two
uploads for the same player never collide.
"""
from __future__ import annotations

import os
import time
from typing import Optional

import structlog
from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage

from clinic.exceptions import StorageError

logger = structlog.get_logger(__name__)


def build_path(prefix: str, player_id: int, filename: str, *, now_ms: Optional[int] = None) -> str:
    ext = os.path.splitext(filename or '')[1].lstrip('.').lower() or 'bin'
    ts = now_ms if now_ms is not None else int(time.time() * 1000)
    parts = [p for p in (prefix.strip('/'), str(player_id), f"{ts}.{ext}") if p]
    return '/'.join(parts)


def validate_upload(f) -> str:
    """Check size and MIME prefix of an uploaded file; return its content type."""
    if f is None:
        raise StorageError('Keine Datei übermittelt')
    size_mb = (getattr(f, 'size', 0) or 0) / (1024*1024)
    if size_mb > settings.UPLOAD_MAX_MB:
        raise StorageError('Datei zu groß')
    ctype = getattr(f, 'content_type', '') or ''
    if not any(ctype.startswith(prefix) for prefix in settings.ALLOWED_UPLOAD_TYPES):
        raise StorageError('Dateityp nicht unterstützt')
    return ctype


def upload(path: str, content) -> str:
    """Store ``content`` (bytes or a Django ``File``) at ``path``; return the stored reference."""
    if isinstance(content, (bytes, bytearray)):
        content = ContentFile(bytes(content))
    stored = default_storage.save(path, content)
    logger.info("file_uploaded", path=stored)
    return stored


def upload_for_player(prefix: str, player_id: int, f) -> str:
    validate_upload(f)
    return upload(build_path(prefix, player_id, getattr(f, 'name', '')), f)


def exists(path: str) -> bool:
    return bool(path) and default_storage.exists(path)


def open_file(path: str):
    if not exists(path):
        raise StorageError(f'Datei nicht gefunden: {path}')
    return default_storage.open(path, 'rb')


def download(path: str) -> bytes:
    with open_file(path) as fh:
        return fh.read()


def delete(path: str) -> None:
    default_storage.delete(path)
    logger.info("file_deleted", path=path)
