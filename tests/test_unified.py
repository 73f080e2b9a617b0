"""Tests for the unified facade: cloud first, local fallback, migration."""

import httpx
import pytest

from backend import storage
from backend.app import create_app
from copyworx.cloud import CloudStorage
from copyworx.config import Settings
from copyworx.errors import NotFoundError
from copyworx.kv import FileKeyValueStore
from copyworx.models import PersonaDraft, SnippetDraft
from copyworx.unified import UnifiedStorage, build_storage


def _down_cloud() -> CloudStorage:
    def refuse(request):
        raise httpx.ConnectError("refused", request=request)

    return CloudStorage("http://cloud.test", transport=httpx.MockTransport(refuse))


def _broken_cloud() -> CloudStorage:
    return CloudStorage(
        "http://cloud.test",
        transport=httpx.MockTransport(lambda req: httpx.Response(500, json={"error": "boom"})),
    )


def _server_cloud() -> CloudStorage:
    app = create_app(storage.data_dir())
    return CloudStorage("http://testserver", transport=httpx.ASGITransport(app=app))


# ── Local mode ───────────────────────────────────────────────


async def test_local_mode_never_calls_cloud(local):
    calls = []

    def handler(request):
        calls.append(request)
        return httpx.Response(500)

    cloud = CloudStorage("http://cloud.test", transport=httpx.MockTransport(handler))
    unified = UnifiedStorage(local, cloud, mode="local")
    project = await unified.create_project("Acme")
    assert [p.id for p in await unified.get_all_projects()] == [project.id]
    assert calls == []


async def test_without_cloud_everything_is_local(local):
    unified = UnifiedStorage(local)
    project = await unified.create_project("Acme")
    doc = await unified.create_document(project.id, "Brief", "<p>Hi there</p>")
    v2 = await unified.create_document_version(project.id, doc.id)
    assert (await unified.get_latest_version(project.id, "Brief")).id == v2.id
    renamed = await unified.rename_document(project.id, v2.id, "Plan")
    assert renamed.title == "Plan v1"
    assert local.documents.get_document(project.id, renamed.id) is not None


# ── Fallback ─────────────────────────────────────────────────


@pytest.mark.parametrize("make_cloud", [_down_cloud, _broken_cloud])
async def test_cloud_failure_falls_back_to_local(local, make_cloud):
    unified = UnifiedStorage(local, make_cloud())
    project = await unified.create_project("Acme")
    folder = await unified.create_folder(project.id, "Campaigns")
    persona = await unified.create_persona(project.id, PersonaDraft(name="Wes"))
    snippet = await unified.create_snippet(project.id, SnippetDraft(name="Sig", content="<p>x</p>"))
    await unified.set_active_project_id(project.id)

    assert [p.id for p in await unified.get_all_projects()] == [project.id]
    assert [f.id for f in await unified.get_all_folders(project.id)] == [folder.id]
    assert [p.id for p in await unified.get_project_personas(project.id)] == [persona.id]
    assert (await unified.increment_snippet_usage(project.id, snippet.id)).usage_count == 1
    assert await unified.get_active_project_id() == project.id


async def test_local_errors_propagate_after_fallback(local):
    unified = UnifiedStorage(local, _down_cloud())
    with pytest.raises(NotFoundError):
        await unified.delete_document("missing", "missing")


async def test_folder_operations_fall_back(local):
    unified = UnifiedStorage(local, _down_cloud())
    project = await unified.create_project("Acme")
    a = await unified.create_folder(project.id, "A")
    b = await unified.create_folder(project.id, "B")
    assert (await unified.update_folder(project.id, b.id, {"name": "Bee"})).name == "Bee"
    assert (await unified.move_folder(project.id, b.id, a.id)).parent_folder_id == a.id
    await unified.delete_folder(project.id, b.id)
    assert [f.id for f in await unified.get_all_folders(project.id)] == [a.id]


# ── Cloud path ───────────────────────────────────────────────


async def test_sync_is_cached_locally(local):
    unified = UnifiedStorage(local, _server_cloud())
    project = await unified.create_project("Acme")
    await unified.create_folder(project.id, "Campaigns")
    assert local.projects.get_all_projects() == []

    projects = await unified.get_all_projects()
    assert [p.id for p in projects] == [project.id]
    cached = local.projects.get_project(project.id)
    assert [f.name for f in cached.folders] == ["Campaigns"]


async def test_snippet_writes_mirror_into_local_cache(local):
    unified = UnifiedStorage(local, _server_cloud())
    project = await unified.create_project("Acme")
    await unified.get_all_projects()

    snippet = await unified.create_snippet(project.id, SnippetDraft(name="Sig", content="<p>x</p>"))
    assert local.snippets.get_snippet(project.id, snippet.id) is not None

    await unified.increment_snippet_usage(project.id, snippet.id)
    assert local.snippets.get_snippet(project.id, snippet.id).usage_count == 1

    await unified.update_snippet(project.id, snippet.id, {"name": "Signature"})
    assert local.snippets.get_snippet(project.id, snippet.id).name == "Signature"

    await unified.delete_snippet(project.id, snippet.id)
    assert local.snippets.get_snippet(project.id, snippet.id) is None


async def test_snippet_mirror_skips_uncached_project(local):
    unified = UnifiedStorage(local, _server_cloud())
    project = await unified.create_project("Acme")
    snippet = await unified.create_snippet(project.id, SnippetDraft(name="Sig", content="<p>x</p>"))
    assert snippet.project_id == project.id
    assert local.projects.get_all_projects() == []


async def test_documents_through_cloud(local):
    unified = UnifiedStorage(local, _server_cloud())
    project = await unified.create_project("Acme")
    v1 = await unified.create_document(project.id, "Brief", "<p>one</p>")
    v2 = await unified.create_document_version(project.id, v1.id, "<p>one two</p>")
    assert (await unified.get_latest_version(project.id, "Brief")).id == v2.id
    assert (await unified.get_document(project.id, v1.id)).version == 1
    updated = await unified.update_document(project.id, v2.id, {"content": "<p>a b c</p>"})
    assert updated.metadata.word_count == 3
    await unified.delete_document(project.id, v1.id)
    assert [d.id for d in await unified.get_all_documents(project.id)] == [v2.id]
    assert local.documents.get_all_documents(project.id) == []


async def test_update_through_cloud_keeps_version_identity(local):
    unified = UnifiedStorage(local, _server_cloud())
    project = await unified.create_project("Acme")
    v1 = await unified.create_document(project.id, "Brief", "<p>one</p>")
    v2 = await unified.create_document_version(project.id, v1.id)

    updated = await unified.update_document(project.id, v2.id, {
        "base_title": "Other",
        "version": 9,
        "parent_version_id": None,
        "title": "Hacked",
        "content": "<p>new words here</p>",
    })
    assert (updated.base_title, updated.version, updated.parent_version_id) == ("Brief", 2, v1.id)
    assert updated.title == "Brief v2"
    assert updated.metadata.word_count == 3
    assert await unified.get_document_versions(project.id, "Other") == []


async def test_unknown_active_project_rejected_on_cloud_path(local):
    unified = UnifiedStorage(local, _server_cloud())
    with pytest.raises(NotFoundError):
        await unified.set_active_project_id("missing")
    assert await unified.get_active_project_id() is None


# ── Migration ────────────────────────────────────────────────


async def test_migration_without_cloud_fails(local):
    outcome = await UnifiedStorage(local).migrate_local_to_cloud()
    assert not outcome.success
    assert outcome.errors == ["Cloud storage not configured"]


async def test_migration_with_nothing_to_move(local):
    unified = UnifiedStorage(local, _down_cloud())
    outcome = await unified.migrate_local_to_cloud()
    assert outcome.success
    assert unified.is_migration_complete()


async def test_migration_failure_keeps_flag_clear(local):
    local.projects.create_project("Acme")
    unified = UnifiedStorage(local, _broken_cloud())
    outcome = await unified.migrate_local_to_cloud()
    assert not outcome.success
    assert outcome.errors == ["boom"]
    assert not unified.is_migration_complete()
    assert unified.has_local_data_to_migrate()


async def test_migration_moves_project_trees_once(local):
    project = local.projects.create_project("Acme")
    folder = local.folders.create_folder(project.id, "Campaigns")
    v1 = local.documents.create_document(project.id, "Brief", "<p>x</p>", folder_id=folder.id)
    local.documents.create_document_version(project.id, v1.id)
    local.projects.set_active_project_id(project.id)

    unified = UnifiedStorage(local, _server_cloud())
    outcome = await unified.migrate_local_to_cloud()
    assert outcome.success
    assert outcome.migrated == 1
    assert unified.is_migration_complete()
    assert not unified.has_local_data_to_migrate()

    snapshot = await unified.cloud.sync_all_projects()
    [migrated] = snapshot.projects
    assert migrated.id != project.id
    assert snapshot.active_project_id == migrated.id
    new_folder = migrated.folders[0]
    docs = sorted(migrated.documents, key=lambda d: d.version)
    assert all(d.folder_id == new_folder.id for d in docs)
    assert docs[1].parent_version_id == docs[0].id

    again = await unified.migrate_local_to_cloud()
    assert again.success
    assert again.migrated == 0
    assert len((await unified.cloud.sync_all_projects()).projects) == 1


# ── Initialize / wiring ──────────────────────────────────────


def test_initialize_picks_mode(local):
    local.projects.create_project("Acme")
    status = UnifiedStorage(local, _down_cloud(), mode="cloud").initialize()
    assert status.mode == "hybrid"
    assert status.migration_needed
    assert not status.migration_complete

    status = UnifiedStorage(local, None, mode="hybrid").initialize()
    assert status.mode == "local"
    assert not status.migration_needed

    assert UnifiedStorage(local, _down_cloud(), mode="local").initialize().mode == "local"


def test_build_storage(tmp_path):
    unified = build_storage(Settings(data_dir=tmp_path, storage_capacity=1000))
    assert unified.cloud is None
    assert isinstance(unified.local.kv, FileKeyValueStore)

    unified = build_storage(Settings(data_dir=tmp_path, cloud_url="http://cloud.test/", storage_mode="local"))
    assert unified.cloud.base_url == "http://cloud.test"
    assert unified.mode == "local"
