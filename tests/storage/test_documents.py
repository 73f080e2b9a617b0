"""Tests for documents and version families."""

import pytest

from copyworx.errors import NotFoundError, ValidationFailure


# ── Create ───────────────────────────────────────────────────


def test_create_document_starts_family_at_v1(local, project):
    doc = local.documents.create_document(project.id, "Brief", "<p>Hello world</p>", template_id="t1")
    assert doc.version == 1
    assert doc.title == "Brief v1"
    assert doc.parent_version_id is None
    assert doc.metadata.word_count == 2
    assert doc.metadata.char_count == len("Hello world")
    assert doc.metadata.template_id == "t1"


def test_create_document_title_limit(local, project):
    local.documents.create_document(project.id, "t" * 200)
    with pytest.raises(ValidationFailure):
        local.documents.create_document(project.id, "t" * 201)


def test_create_document_unknown_project(local):
    with pytest.raises(NotFoundError):
        local.documents.create_document("missing", "Brief")


def test_create_document_unknown_folder(local, project):
    with pytest.raises(NotFoundError):
        local.documents.create_document(project.id, "Brief", folder_id="missing")


# ── Versions ─────────────────────────────────────────────────


def test_acme_brief_three_versions(local):
    acme = local.projects.create_project("Acme")
    v1 = local.documents.create_document(acme.id, "Brief", "<p>draft</p>")
    v2 = local.documents.create_document_version(acme.id, v1.id)
    v3 = local.documents.create_document_version(acme.id, v2.id, "<p>final copy</p>")

    versions = local.documents.get_document_versions(acme.id, "Brief")
    assert [d.version for d in versions] == [1, 2, 3]
    assert local.documents.get_latest_version(acme.id, "Brief").id == v3.id
    assert v2.parent_version_id == v1.id
    assert v3.parent_version_id == v2.id
    assert v2.content == "<p>draft</p>"
    assert v3.title == "Brief v3"
    assert v3.metadata.word_count == 2


def test_version_from_older_source_uses_family_max(local, project):
    v1 = local.documents.create_document(project.id, "Brief")
    local.documents.create_document_version(project.id, v1.id)
    v3 = local.documents.create_document_version(project.id, v1.id)
    assert v3.version == 3
    assert v3.parent_version_id == v1.id


def test_version_inherits_folder_and_tags(local, project):
    folder = local.folders.create_folder(project.id, "Campaigns")
    v1 = local.documents.create_document(project.id, "Brief", folder_id=folder.id)
    local.documents.update_document(project.id, v1.id, {"metadata": {"tags": ["launch"]}})
    v2 = local.documents.create_document_version(project.id, v1.id)
    assert v2.folder_id == folder.id
    assert v2.metadata.tags == ["launch"]


def test_version_of_missing_source(local, project):
    with pytest.raises(NotFoundError):
        local.documents.create_document_version(project.id, "missing")


def test_latest_version_of_unknown_family(local, project):
    assert local.documents.get_latest_version(project.id, "Nothing") is None


def test_has_multiple_versions_and_unique_titles(local, project):
    v1 = local.documents.create_document(project.id, "Brief")
    local.documents.create_document(project.id, "Email")
    assert not local.documents.has_multiple_versions(project.id, "Brief")
    local.documents.create_document_version(project.id, v1.id)
    assert local.documents.has_multiple_versions(project.id, "Brief")
    assert sorted(local.documents.get_unique_base_titles(project.id)) == ["Brief", "Email"]


# ── Update ───────────────────────────────────────────────────


def test_update_recomputes_counts(local, project):
    doc = local.documents.create_document(project.id, "Brief", "<p>one</p>")
    local.documents.update_document(
        project.id, doc.id, {"content": "<h1>Big</h1><p>news today</p>", "metadata": {"word_count": 99}}
    )
    fetched = local.documents.get_document(project.id, doc.id)
    assert fetched.metadata.word_count == 3
    assert fetched.metadata.char_count == len("Bignews today")


def test_update_protects_version_fields(local, project):
    doc = local.documents.create_document(project.id, "Brief")
    updated = local.documents.update_document(project.id, doc.id, {
        "id": "x",
        "project_id": "y",
        "version": 7,
        "parent_version_id": "z",
        "base_title": "Other",
        "title": "Hacked",
    })
    assert updated.id == doc.id
    assert updated.project_id == project.id
    assert updated.version == 1
    assert updated.parent_version_id is None
    assert updated.base_title == "Brief"
    assert updated.title == "Brief v1"


def test_update_missing_document(local, project):
    with pytest.raises(NotFoundError):
        local.documents.update_document(project.id, "missing", {"content": "x"})


def test_move_document(local, project):
    folder = local.folders.create_folder(project.id, "Campaigns")
    doc = local.documents.create_document(project.id, "Brief")
    assert local.documents.move_document(project.id, doc.id, folder.id).folder_id == folder.id
    assert [d.id for d in local.documents.get_folder_documents(project.id, folder.id)] == [doc.id]
    assert local.documents.move_document(project.id, doc.id, None).folder_id is None
    assert [d.id for d in local.documents.get_folder_documents(project.id, None)] == [doc.id]


# ── Rename / delete ──────────────────────────────────────────


def test_rename_starts_new_family(local, project):
    v1 = local.documents.create_document(project.id, "Brief")
    v2 = local.documents.create_document_version(project.id, v1.id)
    renamed = local.documents.rename_document(project.id, v2.id, "Launch Plan")
    assert renamed.base_title == "Launch Plan"
    assert renamed.version == 1
    assert renamed.title == "Launch Plan v1"
    assert renamed.parent_version_id is None
    assert [d.id for d in local.documents.get_document_versions(project.id, "Brief")] == [v1.id]


def test_rename_into_existing_family_fails(local, project):
    local.documents.create_document(project.id, "Brief")
    email = local.documents.create_document(project.id, "Email")
    with pytest.raises(ValidationFailure, match="already exists"):
        local.documents.rename_document(project.id, email.id, "Brief")


def test_delete_referenced_version_is_allowed(local, project):
    v1 = local.documents.create_document(project.id, "Brief")
    v2 = local.documents.create_document_version(project.id, v1.id)
    local.documents.delete_document(project.id, v1.id)
    remaining = local.documents.get_all_documents(project.id)
    assert [d.id for d in remaining] == [v2.id]
    assert remaining[0].parent_version_id == v1.id


def test_delete_missing_document(local, project):
    with pytest.raises(NotFoundError):
        local.documents.delete_document(project.id, "missing")
