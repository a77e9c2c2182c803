from __future__ import annotations

import json
import re
from pathlib import Path
from typing import Any
from uuid import UUID

from .config import get_settings


_OWNER_TOKEN = re.compile(r'^[A-Za-z0-9_.@-]{1,128}$')


def owners_root() -> Path:
    root = get_settings().data_dir / 'owners'
    root.mkdir(parents=True, exist_ok=True)
    return root


def _safe_owner_id(owner_id: str) -> str:
    token = str(owner_id or '').strip()
    if not token:
        raise ValueError('owner_id is required')
    if not _OWNER_TOKEN.match(token) or token in {'.', '..'}:
        raise ValueError(f'invalid owner_id: {owner_id}')
    return token


def _safe_document_id(document_id: UUID | str) -> str:
    if isinstance(document_id, UUID):
        return str(document_id)
    token = str(document_id or '').strip()
    if not token:
        raise ValueError('document_id is required')
    try:
        return str(UUID(token))
    except Exception as exc:
        raise ValueError(f'invalid document_id: {document_id}') from exc


def owner_dir(owner_id: str) -> Path:
    path = owners_root() / _safe_owner_id(owner_id)
    path.mkdir(parents=True, exist_ok=True)
    return path


def documents_dir(owner_id: str) -> Path:
    path = owner_dir(owner_id) / 'documents'
    path.mkdir(parents=True, exist_ok=True)
    return path


def document_path(owner_id: str, document_id: UUID | str) -> Path:
    return documents_dir(owner_id) / f'{_safe_document_id(document_id)}.json'


def settings_path(owner_id: str) -> Path:
    return owner_dir(owner_id) / 'settings.json'


def write_json_atomic(path: Path, payload: dict[str, Any]) -> None:
    write_text_atomic(path, json.dumps(payload, ensure_ascii=False, indent=2))


def write_text_atomic(path: Path, content: str) -> None:
    write_bytes_atomic(path, content.encode('utf-8'))


def write_bytes_atomic(path: Path, data: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + '.tmp')
    try:
        tmp.write_bytes(data)
        tmp.replace(path)
    finally:
        if tmp.exists():
            tmp.unlink()


def read_json(path: Path) -> dict[str, Any]:
    return json.loads(path.read_text(encoding='utf-8'))
