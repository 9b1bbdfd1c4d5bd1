import pytest
from sqlalchemy import update

from draftpress.application.cms.delete_draft import delete_draft
from draftpress.application.cms.restore_version import (
    list_versions,
    redo_entity,
    restore_version,
    undo_entity,
)
from draftpress.domain.exceptions import HistoryIntegrityError, NothingToRestore
from draftpress.extensions import db
from draftpress.models import Version
from draftpress.utils.hashing import content_hash


def undo(page_id):
    return undo_entity(kind="page", entity_id=page_id, actor_id="user-1")


def redo(page_id):
    return redo_entity(kind="page", entity_id=page_id, actor_id="user-1")


def draft_name(engine, page_id):
    return engine.store("page").get_draft(page_id).name


def test_hash_chain_links_every_entry(engine, save):
    page = save("page", name="v1", slug="about")
    save("page", page.id, name="v2")
    save("page", page.id, name="v3")

    entries = engine.history.verify_chain("page", page.id)

    assert entries[0].previous_hash == content_hash("page", None)
    for previous, entry in zip(entries, entries[1:]):
        assert entry.previous_hash == previous.current_hash
    assert engine.history.head("page", page.id).head_hash == entries[-1].current_hash


def test_undo_redo_round_trip(engine, save):
    page = save("page", name="v1", slug="about")
    save("page", page.id, name="v2")
    save("page", page.id, name="v3")

    undo(page.id)
    assert draft_name(engine, page.id) == "v2"
    undo(page.id)
    assert draft_name(engine, page.id) == "v1"

    with pytest.raises(NothingToRestore):
        undo(page.id)

    redo(page.id)
    assert draft_name(engine, page.id) == "v2"
    redo(page.id)
    assert draft_name(engine, page.id) == "v3"

    with pytest.raises(NothingToRestore):
        redo(page.id)

    engine.history.verify_chain("page", page.id)


def test_new_edit_clears_the_redo_stack(engine, save):
    page = save("page", name="v1", slug="about")
    save("page", page.id, name="v2")

    undo(page.id)
    save("page", page.id, name="v2b")

    with pytest.raises(NothingToRestore):
        redo(page.id)

    undo(page.id)
    assert draft_name(engine, page.id) == "v1"


def test_undo_brings_back_a_deleted_draft(engine, save):
    page = save("page", name="About", slug="about")
    delete_draft(kind="page", entity_id=page.id, actor_id="user-1")
    assert engine.store("page").find(page.id, False) is None

    undo(page.id)

    assert draft_name(engine, page.id) == "About"


def test_publish_markers_do_not_enter_the_undo_stack(engine, save):
    page = save("page", name="v1", slug="about")
    save("page", page.id, name="v2")
    engine.publisher.publish("page", page.id)

    version = undo(page.id)

    assert draft_name(engine, page.id) == "v1"
    assert version.action == "restore"
    assert [entry.action for entry in engine.history.entries("page", page.id)] == [
        "create", "update", "publish", "restore",
    ]
    # the published row is not touched by undo
    assert engine.store("page").get_published(page.id).name == "v2"


def test_snapshots_bound_replay_and_restore_uses_them(engine, save):
    page = save("page", name="n0", slug="about")
    for number in range(1, 12):
        save("page", page.id, name=f"n{number}")

    entries = engine.history.entries("page", page.id)
    assert [entry.sequence for entry in entries if entry.has_snapshot] == [10]
    assert entries[9].snapshot_state["name"] == "n9"

    for sequence, expected in ((3, "n2"), (9, "n8"), (11, "n10")):
        entries = engine.history.entries("page", page.id)
        target = next(entry for entry in entries if entry.sequence == sequence)
        restore_version(kind="page", entity_id=page.id, version_id=target.id, actor_id="user-1")
        assert draft_name(engine, page.id) == expected

    engine.history.verify_chain("page", page.id)


def test_tampered_draft_halts_undo_until_reconciled(engine, save):
    page = save("page", name="v1", slug="about")
    save("page", page.id, name="v2")

    row = engine.store("page").get_draft(page.id)
    row.name = "edited behind the log"
    db.session.commit()

    with pytest.raises(HistoryIntegrityError):
        undo(page.id)

    engine.history.reconcile("page", page.id, actor_id="user-1")
    db.session.commit()
    engine.history.verify_chain("page", page.id)

    with pytest.raises(NothingToRestore):
        undo(page.id)

    save("page", page.id, name="v3")
    undo(page.id)
    assert draft_name(engine, page.id) == "edited behind the log"


def test_version_entries_are_immutable(engine, save):
    page = save("page", name="v1", slug="about")
    version = Version.query.filter_by(entity_id=page.id).one()

    version.description = "rewritten"
    with pytest.raises(RuntimeError):
        db.session.flush()
    db.session.rollback()


def test_list_versions_paginates_newest_first(engine, save):
    page = save("page", name="v0", slug="about")
    for number in range(1, 5):
        save("page", page.id, name=f"v{number}")

    items, cursor = list_versions(kind="page", entity_id=page.id, limit=2)
    assert [item.sequence for item in items] == [5, 4]
    assert cursor["has_more"] is True

    items, cursor = list_versions(kind="page", entity_id=page.id, limit=2, cursor=cursor["next_cursor"])
    assert [item.sequence for item in items] == [3, 2]

    items, cursor = list_versions(kind="page", entity_id=page.id, limit=2, cursor=cursor["next_cursor"])
    assert [item.sequence for item in items] == [1]
    assert cursor == {"has_more": False, "next_cursor": None}


def test_undoing_a_page_delete_brings_back_its_layer_tree(engine, save):
    page = save("page", name="About", slug="about")
    layers = save("page_layers", page_id=page.id, layers=[{"id": "root", "children": []}])
    delete_draft(kind="page", entity_id=page.id, actor_id="user-1")
    assert engine.store("page_layers").find(layers.id, False) is None

    undo(page.id)

    assert engine.store("page").find(page.id, False) is not None
    assert engine.store("page_layers").get_draft(layers.id).layers == [{"id": "root", "children": []}]

    result = engine.publisher.publish("page", page.id)
    assert ("page_layers", layers.id) in result.created

    redo(page.id)

    assert engine.store("page").find(page.id, False) is None
    assert engine.store("page_layers").find(layers.id, False) is None


def test_cascade_redo_skips_children_edited_since_the_undo(engine, save):
    page = save("page", name="About", slug="about")
    layers = save("page_layers", page_id=page.id, layers=[])
    delete_draft(kind="page", entity_id=page.id, actor_id="user-1")

    cascade = engine.history.stack_tops("page_layers", layers.id)[0].meta["cascade"]
    assert engine.history.stack_tops("page", page.id)[0].meta["cascade"] == cascade

    undo(page.id)
    save("page_layers", layers.id, layers=[{"id": "hero", "children": []}])
    redo(page.id)

    # the layer edit cleared its own redo stack, so it stays live
    assert engine.store("page").find(page.id, False) is None
    assert engine.store("page_layers").get_draft(layers.id).layers == [{"id": "hero", "children": []}]


def test_undo_walks_back_past_many_entries(engine, save):
    page = save("page", name="n0", slug="about")
    for number in range(1, 25):
        save("page", page.id, name=f"n{number}")

    for _ in range(24):
        undo(page.id)
    assert draft_name(engine, page.id) == "n0"

    for _ in range(24):
        redo(page.id)
    assert draft_name(engine, page.id) == "n24"


def test_verification_starts_at_the_latest_snapshot(engine, save):
    page = save("page", name="n0", slug="about")
    for number in range(1, 12):
        save("page", page.id, name=f"n{number}")

    head = engine.history.head("page", page.id)
    assert head.snapshot_sequence == 10

    db.session.execute(
        update(Version)
        .where(Version.entity_id == page.id, Version.sequence == 3)
        .values(previous_hash="0" * 64)
    )
    db.session.commit()

    entries = engine.history.verify_chain("page", page.id)
    assert [entry.sequence for entry in entries] == [10, 11, 12]

    with pytest.raises(HistoryIntegrityError):
        engine.history.verify_chain("page", page.id, full=True)


def test_restore_reads_only_the_entries_it_replays(engine, save):
    page = save("page", name="n0", slug="about")
    for number in range(1, 14):
        save("page", page.id, name=f"n{number}")

    # entries before the snapshot can no longer be replayed
    db.session.execute(
        update(Version)
        .where(Version.entity_id == page.id, Version.sequence < 10)
        .values(redo=[{"op": "replace", "path": "/missing/field", "value": 1}])
    )
    db.session.commit()

    target = Version.query.filter_by(entity_id=page.id, sequence=11).one()
    restore_version(kind="page", entity_id=page.id, version_id=target.id, actor_id="user-1")

    assert draft_name(engine, page.id) == "n10"
