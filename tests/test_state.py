"""Tests for the owner-scoped document store."""

from datetime import timedelta
from uuid import uuid4

import pytest

from collegedocs.state import (
    create_revision,
    delete_document,
    document_counts,
    list_documents,
    load_college_settings,
    load_document,
    save_college_settings,
    save_document,
    update_document,
)
from collegedocs.storage import document_path, settings_path, write_bytes_atomic
from collegedocs.types import CollegeSettings, DocumentStatus, DocumentType, GeneratedDocument, utcnow


def _document(owner="staff-1", title="Fee Notice", document_type=DocumentType.notice, **extra):
    return GeneratedDocument(owner_id=owner, title=title, document_type=document_type, content="NOTICE\nbody", **extra)


class TestStorage:
    """Tests for paths and atomic writes."""

    def test_document_path_layout(self, data_dir):
        document_id = uuid4()
        path = document_path("staff-1", document_id)
        assert path == data_dir / "owners" / "staff-1" / "documents" / f"{document_id}.json"
        assert settings_path("staff-1") == data_dir / "owners" / "staff-1" / "settings.json"

    @pytest.mark.parametrize("owner", ["", "../etc", "a/b", ".."])
    def test_bad_owner_rejected(self, data_dir, owner):
        with pytest.raises(ValueError):
            document_path(owner, uuid4())

    def test_bad_document_id_rejected(self, data_dir):
        with pytest.raises(ValueError):
            document_path("staff-1", "not-a-uuid")

    def test_atomic_write_leaves_no_tmp(self, tmp_path):
        target = tmp_path / "nested" / "out.bin"
        write_bytes_atomic(target, b"abc")
        assert target.read_bytes() == b"abc"
        assert list(target.parent.iterdir()) == [target]


class TestDocuments:
    """Tests for document CRUD."""

    def test_save_and_load(self, data_dir):
        document = save_document(_document())
        loaded = load_document("staff-1", document.id)
        assert loaded == document
        assert loaded.status == DocumentStatus.draft

    def test_other_owner_cannot_see(self, data_dir):
        document = save_document(_document())
        assert load_document("staff-2", document.id) is None
        assert list_documents("staff-2") == []
        assert delete_document("staff-2", document.id) is False

    def test_load_invalid_id(self, data_dir):
        assert load_document("staff-1", "nope") is None
        assert load_document("staff-1", uuid4()) is None

    def test_list_newest_first_with_filter(self, data_dir):
        now = utcnow()
        old = save_document(_document(title="Old", created_at=now - timedelta(days=2)))
        new = save_document(_document(title="New", created_at=now))
        circular = save_document(_document(title="Circ", document_type=DocumentType.circular, created_at=now - timedelta(days=1)))
        assert [d.id for d in list_documents("staff-1")] == [new.id, circular.id, old.id]
        assert [d.id for d in list_documents("staff-1", document_type=DocumentType.notice)] == [new.id, old.id]

    def test_update(self, data_dir):
        document = save_document(_document())
        updated = update_document("staff-1", document.id, status=DocumentStatus.published, title="Final")
        assert updated.status == DocumentStatus.published
        assert load_document("staff-1", document.id).title == "Final"

    @pytest.mark.parametrize("fields", [{"version": 9}, {"parent_id": uuid4()}, {"created_at": utcnow()}])
    def test_update_rejects_unknown_fields(self, data_dir, fields):
        document = save_document(_document())
        with pytest.raises(ValueError, match="cannot update fields"):
            update_document("staff-1", document.id, **fields)
        assert load_document("staff-1", document.id) == document

    def test_list_search_by_title(self, data_dir):
        fee = save_document(_document(title="Fee Payment Notice"))
        save_document(_document(title="Sports Day"))
        assert [d.id for d in list_documents("staff-1", search="fee")] == [fee.id]
        assert [d.id for d in list_documents("staff-1", search="PAYMENT")] == [fee.id]
        assert list_documents("staff-1", search="exam") == []
        assert len(list_documents("staff-1", search="")) == 2

    def test_search_combines_with_type_filter(self, data_dir):
        save_document(_document(title="Exam Notice"))
        circular = save_document(_document(title="Exam Circular", document_type=DocumentType.circular))
        rows = list_documents("staff-1", document_type=DocumentType.circular, search="exam")
        assert [d.id for d in rows] == [circular.id]

    def test_document_counts(self, data_dir):
        save_document(_document())
        save_document(_document(title="Second"))
        save_document(_document(title="Circ", document_type=DocumentType.circular))
        save_document(_document(title="Mid I", document_type=DocumentType.timetable))
        save_document(_document(owner="staff-2"))
        assert document_counts("staff-1") == {
            "total": 4,
            "circular": 1,
            "notice": 2,
            "timetable": 1,
            "daily-timetable": 0,
        }
        assert document_counts("staff-3")["total"] == 0

    def test_update_missing(self, data_dir):
        with pytest.raises(FileNotFoundError):
            update_document("staff-1", uuid4(), title="x")

    def test_delete(self, data_dir):
        document = save_document(_document())
        assert delete_document("staff-1", document.id) is True
        assert load_document("staff-1", document.id) is None

    def test_create_revision(self, data_dir):
        parent = save_document(_document())
        revision = create_revision("staff-1", parent.id, content="NOTICE\nrevised")
        assert revision.id != parent.id
        assert revision.parent_id == parent.id
        assert revision.version == 2
        assert revision.content == "NOTICE\nrevised"
        assert load_document("staff-1", parent.id).content == "NOTICE\nbody"
        assert len(list_documents("staff-1")) == 2

    def test_create_revision_keeps_content(self, data_dir):
        parent = save_document(_document())
        assert create_revision("staff-1", parent.id).content == parent.content


class TestCollegeSettings:
    """Tests for per-owner college settings."""

    def test_defaults_when_missing(self, data_dir):
        settings = load_college_settings("staff-1")
        assert settings.college_short_name == "VIEW"
        assert settings.logo_url == "/default-logo.png"

    def test_round_trip(self, data_dir):
        save_college_settings("staff-1", CollegeSettings(college_name="GOVT ARTS COLLEGE", college_short_name="GAC"))
        loaded = load_college_settings("staff-1")
        assert loaded.college_name == "GOVT ARTS COLLEGE"
        assert load_college_settings("staff-2").college_short_name == "VIEW"
