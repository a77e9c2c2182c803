from __future__ import annotations

import logging
import threading
from typing import Any
from uuid import UUID, uuid4

from .storage import (
    document_path,
    documents_dir,
    read_json,
    settings_path,
    write_json_atomic,
)
from .types import CollegeSettings, DocumentType, GeneratedDocument, utcnow


logger = logging.getLogger(__name__)

_STATE_LOCK = threading.RLock()

# Fields a caller may change on an existing document.
_MUTABLE_FIELDS = {'title', 'content', 'metadata', 'status', 'document_type'}


def save_document(document: GeneratedDocument) -> GeneratedDocument:
    with _STATE_LOCK:
        document.updated_at = utcnow()
        write_json_atomic(
            document_path(document.owner_id, document.id),
            document.model_dump(mode='json'),
        )
    return document


def load_document(owner_id: str, document_id: UUID | str) -> GeneratedDocument | None:
    try:
        path = document_path(owner_id, document_id)
    except ValueError:
        return None
    if not path.exists():
        return None
    with _STATE_LOCK:
        payload = read_json(path)
    document = GeneratedDocument.model_validate(payload)
    if document.owner_id != owner_id:
        return None
    return document


def list_documents(
    owner_id: str,
    *,
    document_type: DocumentType | None = None,
    search: str | None = None,
) -> list[GeneratedDocument]:
    needle = (search or '').lower()
    rows: list[GeneratedDocument] = []
    with _STATE_LOCK:
        for path in documents_dir(owner_id).glob('*.json'):
            try:
                document = GeneratedDocument.model_validate(read_json(path))
            except ValueError as exc:
                logger.warning('Skipping unreadable document %s: %s', path.name, exc)
                continue
            if document.owner_id != owner_id:
                continue
            if document_type is not None and document.document_type != document_type:
                continue
            if needle and needle not in document.title.lower():
                continue
            rows.append(document)
    rows.sort(key=lambda item: item.created_at, reverse=True)
    return rows


def document_counts(owner_id: str) -> dict[str, int]:
    """Total number of stored documents plus one count per document type."""
    counts = {'total': 0, **{item.value: 0 for item in DocumentType}}
    for document in list_documents(owner_id):
        counts['total'] += 1
        counts[document.document_type.value] += 1
    return counts


def update_document(owner_id: str, document_id: UUID | str, **fields: Any) -> GeneratedDocument:
    unknown = set(fields) - _MUTABLE_FIELDS
    if unknown:
        raise ValueError(f'cannot update fields: {", ".join(sorted(unknown))}')
    with _STATE_LOCK:
        existing = load_document(owner_id, document_id)
        if existing is None:
            raise FileNotFoundError(f'Document not found: {document_id}')
        payload = existing.model_dump()
        payload.update(fields)
        updated = GeneratedDocument.model_validate(payload)
        return save_document(updated)


def delete_document(owner_id: str, document_id: UUID | str) -> bool:
    with _STATE_LOCK:
        if load_document(owner_id, document_id) is None:
            return False
        document_path(owner_id, document_id).unlink()
    return True


def create_revision(owner_id: str, document_id: UUID | str, *, content: str | None = None) -> GeneratedDocument:
    """Store a new draft that descends from an existing document."""
    with _STATE_LOCK:
        parent = load_document(owner_id, document_id)
        if parent is None:
            raise FileNotFoundError(f'Document not found: {document_id}')
        now = utcnow()
        revision = parent.model_copy(
            update={
                'id': uuid4(),
                'content': parent.content if content is None else content,
                'version': parent.version + 1,
                'parent_id': parent.id,
                'created_at': now,
                'updated_at': now,
            },
            deep=True,
        )
        return save_document(revision)


def load_college_settings(owner_id: str) -> CollegeSettings:
    path = settings_path(owner_id)
    if not path.exists():
        return CollegeSettings()
    with _STATE_LOCK:
        payload = read_json(path)
    return CollegeSettings.model_validate(payload)


def save_college_settings(owner_id: str, settings: CollegeSettings) -> CollegeSettings:
    with _STATE_LOCK:
        settings.updated_at = utcnow()
        write_json_atomic(settings_path(owner_id), settings.model_dump(mode='json'))
    return settings
