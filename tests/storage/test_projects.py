"""Tests for ProjectStore: list parsing, CRUD, active pointer, brand voice, quota."""

import json
import logging

import pytest

from copyworx.errors import NotFoundError, QuotaExceededError, ValidationFailure
from copyworx.kv import MemoryKeyValueStore
from copyworx.models import BrandVoice
from copyworx.storage import LocalStorage
from copyworx.storage.projects import ACTIVE_PROJECT_KEY, PROJECTS_KEY


# ── Reading the stored list ──────────────────────────────────


def test_empty_store_has_no_projects(local):
    assert local.projects.get_all_projects() == []


def test_get_all_projects_is_idempotent(local):
    local.projects.create_project("Acme")
    local.projects.create_project("Beta")
    assert local.projects.get_all_projects() == local.projects.get_all_projects()


def test_corrupted_documents_field_reads_as_empty(local):
    local.kv.set_item(PROJECTS_KEY, json.dumps([
        {"id": "p1", "name": "Acme", "documents": "garbage", "folders": [], "personas": [], "snippets": []},
    ]))
    projects = local.projects.get_all_projects()
    assert len(projects) == 1
    assert projects[0].name == "Acme"
    assert projects[0].documents == []


def test_invalid_json_reads_as_empty(local, caplog):
    local.kv.set_item(PROJECTS_KEY, "{broken")
    with caplog.at_level(logging.WARNING):
        assert local.projects.get_all_projects() == []
    assert "not valid JSON" in caplog.text


def test_non_list_payload_reads_as_empty(local):
    local.kv.set_item(PROJECTS_KEY, json.dumps({"id": "p1"}))
    assert local.projects.get_all_projects() == []


def test_unreadable_project_entry_is_skipped(local):
    local.kv.set_item(PROJECTS_KEY, json.dumps([{"name": "no id"}, {"id": "p2", "name": "Ok"}]))
    assert [p.id for p in local.projects.get_all_projects()] == ["p2"]


def test_bad_nested_records_are_dropped_not_the_project(local, caplog):
    local.kv.set_item(PROJECTS_KEY, json.dumps([{
        "id": "p1",
        "name": "Legacy",
        "brandVoice": {"brandTone": "no name"},
        "documents": [
            {"id": "d1", "title": "Old doc", "content": "<p>x</p>"},
            {"id": "d2", "projectId": "p1", "baseTitle": "Brief", "title": "Brief v0", "version": 0},
            {"id": "d3", "projectId": "p1", "baseTitle": "Brief", "title": "Brief v1", "version": 1},
        ],
        "folders": [{"name": "no id"}],
    }]))
    with caplog.at_level(logging.WARNING):
        [legacy] = local.projects.get_all_projects()
    assert legacy.name == "Legacy"
    assert [d.id for d in legacy.documents] == ["d3"]
    assert legacy.folders == []
    assert legacy.brand_voice is None
    assert "Dropping unreadable ProjectDocument record 'd1'" in caplog.text


def test_unrelated_write_keeps_project_with_bad_document(local):
    local.kv.set_item(PROJECTS_KEY, json.dumps([{
        "id": "p1",
        "name": "Legacy",
        "documents": [{"id": "d1", "title": "Old doc", "content": "<p>x</p>"}],
    }]))
    local.projects.create_project("Other")
    stored = json.loads(local.kv.get_item(PROJECTS_KEY))
    assert [p["name"] for p in stored] == ["Legacy", "Other"]


def test_projects_stored_camel_case(local):
    project = local.projects.create_project("Acme")
    local.projects.save_brand_voice(project.id, BrandVoice(brand_name="Acme"))
    stored = json.loads(local.kv.get_item(PROJECTS_KEY))
    assert stored[0]["brandVoice"]["brandName"] == "Acme"
    assert "createdAt" in stored[0]


# ── CRUD ─────────────────────────────────────────────────────


def test_create_project_sanitizes_name(local):
    project = local.projects.create_project("  <Acme>  ")
    assert project.name == "Acme"
    assert project.documents == []
    assert project.created_at == project.updated_at


def test_create_project_rejects_empty_name(local):
    with pytest.raises(ValidationFailure):
        local.projects.create_project("   ")
    assert local.projects.get_all_projects() == []


def test_update_project_protects_identity(local, project):
    updated = local.projects.update_project(project.id, {"name": "Acme Corp", "id": "x", "created_at": "y"})
    assert updated.id == project.id
    assert updated.created_at == project.created_at
    assert updated.name == "Acme Corp"
    assert local.projects.get_project(project.id).name == "Acme Corp"


def test_update_missing_project_raises(local):
    with pytest.raises(NotFoundError):
        local.projects.update_project("missing", {"name": "X"})


def test_delete_project_reassigns_active(local):
    a = local.projects.create_project("A")
    b = local.projects.create_project("B")
    local.projects.set_active_project_id(a.id)
    local.projects.delete_project(a.id)
    assert local.projects.get_active_project_id() == b.id
    assert [p.id for p in local.projects.get_all_projects()] == [b.id]


def test_delete_missing_project_raises(local):
    with pytest.raises(NotFoundError):
        local.projects.delete_project("missing")


# ── Active project ───────────────────────────────────────────


def test_set_active_requires_existing_project(local):
    with pytest.raises(NotFoundError):
        local.projects.set_active_project_id("missing")
    assert local.kv.get_item(ACTIVE_PROJECT_KEY) is None


def test_current_project(local, project):
    assert local.projects.get_current_project() is None
    local.projects.set_active_project_id(project.id)
    assert local.projects.get_current_project().id == project.id


def test_ensure_default_project_only_when_empty(local):
    created = local.projects.ensure_default_project()
    assert created.name == "My First Project"
    assert local.projects.get_active_project_id() == created.id
    assert local.projects.ensure_default_project() is None


# ── Brand voice ──────────────────────────────────────────────


def test_save_and_delete_brand_voice(local, project):
    voice = BrandVoice(brand_name=" Acme ", brand_tone="Bold", forbidden_words=["synergy"])
    updated = local.projects.save_brand_voice(project.id, voice)
    assert updated.brand_voice.brand_name == "Acme"
    assert updated.brand_voice.saved_at

    cleared = local.projects.delete_brand_voice(project.id)
    assert cleared.brand_voice is None
    # Deleting again is harmless
    assert local.projects.delete_brand_voice(project.id).brand_voice is None


def test_brand_voice_requires_name(local, project):
    with pytest.raises(ValidationFailure):
        local.projects.save_brand_voice(project.id, BrandVoice(brand_name=""))


# ── Quota ────────────────────────────────────────────────────


def test_quota_exceeded_raises_with_guidance():
    local = LocalStorage(MemoryKeyValueStore(capacity=400))
    with pytest.raises(QuotaExceededError, match="clear some data"):
        for i in range(20):
            local.projects.create_project(f"Project {i}")
    assert 0 < len(local.projects.get_all_projects()) < 20


def test_quota_warning_logged_when_nearly_full(caplog):
    local = LocalStorage(MemoryKeyValueStore(capacity=1000))
    local.kv.set_item("filler", "x" * 930)
    with caplog.at_level(logging.WARNING):
        with pytest.raises(QuotaExceededError):
            local.projects.create_project("Acme")
    assert "full" in caplog.text


def test_quota_warning_counts_the_pending_write(caplog):
    local = LocalStorage(MemoryKeyValueStore(capacity=1000))
    local.kv.set_item("filler", "x" * 680)
    assert local.projects.storage_usage_percent() < 90
    with caplog.at_level(logging.WARNING):
        local.projects.create_project("Acme")
    assert "full" in caplog.text
    assert local.projects.storage_usage_percent() > 90
