import io

import pytest
from sqlalchemy.exc import OperationalError
from werkzeug.datastructures import FileStorage

from draftpress.application.assets import AssetGarbageCollector
from draftpress.application.cms.delete_draft import delete_draft
from draftpress.application.cms.purge_drafts import purge_deleted_drafts
from draftpress.application.cms.restore_version import undo_entity
from draftpress.application.cms.upload_asset import upload_asset
from draftpress.domain.exceptions import AssetCleanupFailed, ConstraintViolation
from draftpress.models import OrphanedBlob
from draftpress.storage import LocalBlobStore


class RecordingBlobStore(LocalBlobStore):
    def __init__(self, root):
        super().__init__(root)
        self.calls = []
        self.fail = False

    def remove(self, paths):
        paths = list(paths)
        self.calls.append(paths)
        if self.fail:
            raise AssetCleanupFailed("backend unavailable")
        return super().remove(paths)


@pytest.fixture()
def blobs(tmp_path):
    return RecordingBlobStore(str(tmp_path / "blobs"))


def put_all(store, paths):
    for path in paths:
        store.put(path, b"data")


def test_referenced_blobs_are_retained(engine, save, blobs):
    put_all(blobs, ["kept.png", "gone.png"])
    save("asset", filename="kept.png", storage_path="kept.png")

    result = AssetGarbageCollector(blobs).collect(["kept.png", "gone.png", None])

    assert result.retained == ["kept.png"]
    assert result.removed == ["gone.png"]
    assert blobs.exists("kept.png")
    assert not blobs.exists("gone.png")


def test_deletes_run_in_bounded_batches(engine, blobs):
    paths = [f"orphan-{index}.png" for index in range(5)]
    put_all(blobs, paths)

    result = AssetGarbageCollector(blobs, batch_size=2).collect(paths)

    assert [len(call) for call in blobs.calls] == [2, 2, 1]
    assert sorted(result.removed) == sorted(paths)


def test_failures_are_kept_for_the_next_sweep(engine, blobs):
    put_all(blobs, ["stuck.png"])
    gc = AssetGarbageCollector(blobs)

    blobs.fail = True
    result = gc.collect(["stuck.png"])

    assert result.failed == ["stuck.png"]
    pending = OrphanedBlob.query.one()
    assert pending.storage_path == "stuck.png"
    assert "backend unavailable" in pending.last_error

    gc.collect(["stuck.png"])
    assert OrphanedBlob.query.one().attempts == 2

    blobs.fail = False
    result = gc.sweep()

    assert result.removed == ["stuck.png"]
    assert OrphanedBlob.query.count() == 0
    assert not blobs.exists("stuck.png")


def test_published_asset_keeps_its_blob_until_purged(engine, save, age_deletion):
    engine.blob_store.put("2024/02/hero.png", b"data")
    asset = save("asset", filename="hero.png", storage_path="2024/02/hero.png")
    engine.publisher.publish("asset", asset.id)

    delete_draft(kind="asset", entity_id=asset.id, actor_id="user-1")
    engine.publisher.unpublish("asset", asset.id)
    assert engine.blob_store.exists("2024/02/hero.png")

    age_deletion("asset", asset.id, days=60)
    purge_deleted_drafts(retention_days=30)

    assert not engine.blob_store.exists("2024/02/hero.png")


def test_deleted_upload_keeps_its_blob_so_undo_can_restore_it(engine, age_deletion):
    upload = FileStorage(stream=io.BytesIO(b"png"), filename="logo.png", content_type="image/png")
    asset = upload_asset(file=upload, actor_id="user-1")

    delete_draft(kind="asset", entity_id=asset.id, actor_id="user-1")
    assert engine.blob_store.exists(asset.storage_path)

    undo_entity(kind="asset", entity_id=asset.id, actor_id="user-1")
    restored = engine.store("asset").get_draft(asset.id)
    assert restored.storage_path == asset.storage_path
    assert engine.blob_store.exists(restored.storage_path)

    delete_draft(kind="asset", entity_id=asset.id, actor_id="user-1")
    age_deletion("asset", asset.id, days=60)
    purge_deleted_drafts(retention_days=30)

    assert not engine.blob_store.exists(restored.storage_path)


def test_custom_font_files_count_as_references(engine, save, blobs):
    put_all(blobs, ["fonts/brand.woff2"])
    save("font", name="brand", family="Brand", type="custom", storage_path="fonts/brand.woff2")

    result = AssetGarbageCollector(blobs).collect(["fonts/brand.woff2"])

    assert result.retained == ["fonts/brand.woff2"]
    assert blobs.exists("fonts/brand.woff2")


def test_failed_reference_check_is_kept_for_the_next_sweep(engine, monkeypatch, blobs):
    put_all(blobs, ["unchecked.png"])
    gc = AssetGarbageCollector(blobs)

    def unavailable(paths):
        raise OperationalError("SELECT storage_path", {}, Exception("database is locked"))

    monkeypatch.setattr(gc, "referenced_paths", unavailable)
    result = gc.collect(["unchecked.png"])

    assert result.failed == ["unchecked.png"]
    assert blobs.calls == []
    assert OrphanedBlob.query.one().storage_path == "unchecked.png"

    monkeypatch.undo()
    assert gc.sweep().removed == ["unchecked.png"]
    assert not blobs.exists("unchecked.png")


def test_paths_outside_the_upload_folder_fail_cleanly(engine):
    gc = AssetGarbageCollector(engine.blob_store)

    with pytest.raises(AssetCleanupFailed):
        engine.blob_store.remove(["../outside.png"])

    result = gc.collect(["../outside.png"])

    assert result.failed == ["../outside.png"]
    assert OrphanedBlob.query.one().storage_path == "../outside.png"


def test_failed_upload_releases_its_blob(engine, monkeypatch, blobs):
    engine.blob_store = blobs
    engine.gc.blob_store = blobs

    def reject(*args, **kwargs):
        raise ConstraintViolation("rejected")

    monkeypatch.setattr(engine.store("asset"), "upsert_draft", reject)
    upload = FileStorage(stream=io.BytesIO(b"png"), filename="logo.png", content_type="image/png")

    with pytest.raises(ConstraintViolation):
        upload_asset(file=upload, actor_id="user-1")

    assert len(blobs.calls) == 1
    assert not blobs.exists(blobs.calls[0][0])


def test_disallowed_uploads_never_reach_storage(engine):
    upload = FileStorage(stream=io.BytesIO(b"#!"), filename="script.sh")

    with pytest.raises(ConstraintViolation):
        upload_asset(file=upload, actor_id="user-1")
