import pytest

from draftpress.application.cms.delete_draft import delete_draft
from draftpress.application.cms.restore_version import undo_entity
from draftpress.domain.exceptions import ConflictStaleWrite, ConstraintViolation, NotFound
from draftpress.models import Version


def versions_of(entity_type, entity_id):
    return (
        Version.query
        .filter_by(entity_type=entity_type, entity_id=entity_id)
        .order_by(Version.sequence)
        .all()
    )


def test_create_draft_records_history_and_hash(engine, save):
    page = save("page", name="About", slug="about")
    store = engine.store("page")

    assert page.is_published is False
    assert page.content_hash == store.hash_state(store.state_of(page))
    assert store.find(page.id, True) is None

    entries = versions_of("page", page.id)
    assert [entry.action for entry in entries] == ["create"]
    assert entries[0].undo is None


def test_unchanged_save_writes_nothing(engine, save):
    page = save("page", name="About", slug="about")
    before_hash = page.content_hash

    save("page", page.id, name="About")

    assert engine.store("page").get_draft(page.id).content_hash == before_hash
    assert len(versions_of("page", page.id)) == 1


def test_update_changes_hash_and_appends_entry(engine, save):
    page = save("page", name="About", slug="about")
    first_hash = page.content_hash

    updated = save("page", page.id, expected_hash=first_hash, name="About us")

    assert updated.content_hash != first_hash
    entries = versions_of("page", page.id)
    assert [entry.action for entry in entries] == ["create", "update"]
    assert entries[1].previous_hash == entries[0].current_hash
    assert entries[1].redo == [{"op": "replace", "path": "/name", "value": "About us"}]


def test_stale_expected_hash_is_rejected(engine, save):
    page = save("page", name="About", slug="about")
    current_hash = page.content_hash

    with pytest.raises(ConflictStaleWrite) as excinfo:
        save("page", page.id, expected_hash="0" * 64, name="Lost update")

    assert excinfo.value.current_hash == current_hash
    assert engine.store("page").get_draft(page.id).name == "About"


def test_slug_unique_among_siblings_only(engine, save):
    folder = save("page_folder", name="Blog", slug="blog")
    save("page", name="About", slug="about")

    with pytest.raises(ConstraintViolation):
        save("page", name="About again", slug="about")

    nested = save("page", name="About", slug="about", page_folder_id=folder.id)
    assert nested.page_folder_id == folder.id


def test_missing_parent_is_a_constraint_violation(engine, save):
    with pytest.raises(ConstraintViolation):
        save("page_layers", page_id="missing-page", layers=[])

    with pytest.raises(ConstraintViolation):
        save("page_layers", layers=[])


def test_unknown_fields_are_rejected(engine, save):
    with pytest.raises(ConstraintViolation):
        save("page", name="About", slug="about", colour="red")


def test_invalid_page_content_is_rejected(engine, save):
    with pytest.raises(ConstraintViolation):
        save("page", name="Bad slug", slug="Not A Slug")

    with pytest.raises(ConstraintViolation):
        save("page", name="Forbidden", error_page=403)

    with pytest.raises(ConstraintViolation):
        save("page", name="Dynamic index", is_index=True, is_dynamic=True)

    with pytest.raises(ConstraintViolation):
        save("component", name="Card", layers=[{"id": "a"}, {"id": "a"}])


def test_folders_cannot_nest_inside_themselves(engine, save):
    outer = save("page_folder", name="Outer", slug="outer")
    inner = save("page_folder", name="Inner", slug="inner", page_folder_id=outer.id)

    with pytest.raises(ConstraintViolation):
        save("page_folder", outer.id, page_folder_id=inner.id)


def test_page_delete_cascades_to_its_layer_tree(engine, save):
    page = save("page", name="About", slug="about")
    layers = save("page_layers", page_id=page.id, layers=[{"id": "root"}])

    deleted = delete_draft(kind="page", entity_id=page.id, actor_id="user-1")

    assert ("page", page.id) in deleted
    assert ("page_layers", layers.id) in deleted
    assert engine.store("page_layers").find(layers.id, False) is None
    assert engine.store("page_layers").find(layers.id, False, include_deleted=True).is_deleted
    assert [entry.action for entry in versions_of("page_layers", layers.id)] == ["create", "delete"]


def test_collection_delete_leaves_items_for_the_next_publish(engine, save):
    collection = save("collection", name="Posts", identifier="posts")
    item = save("collection_item", collection_id=collection.id)

    deleted = delete_draft(kind="collection", entity_id=collection.id, actor_id="user-1")

    assert deleted == [("collection", collection.id)]
    assert engine.store("collection_item").find(item.id, False) is not None


def test_deleted_drafts_cannot_be_edited(engine, save):
    page = save("page", name="About", slug="about")
    delete_draft(kind="page", entity_id=page.id, actor_id="user-1")

    with pytest.raises(NotFound):
        save("page", page.id, name="Ghost")

    with pytest.raises(NotFound):
        engine.store("page").get_published(page.id)


def test_unknown_kind_is_not_found(engine):
    with pytest.raises(NotFound):
        engine.store("widget")


def test_asset_folder_delete_cascades_to_folders_and_assets(engine, save):
    media = save("asset_folder", name="Media")
    photos = save("asset_folder", name="Photos", asset_folder_id=media.id, depth=1)
    asset = save("asset", filename="a.png", storage_path="2024/05/a.png", asset_folder_id=photos.id)

    deleted = delete_draft(kind="asset_folder", entity_id=media.id, actor_id="user-1")

    assert set(deleted) == {
        ("asset_folder", media.id),
        ("asset_folder", photos.id),
        ("asset", asset.id),
    }
    cascades = {versions_of(kind, entity_id)[-1].meta["cascade"] for kind, entity_id in deleted}
    assert len(cascades) == 1


def test_undo_of_an_asset_folder_delete_restores_its_contents(engine, save):
    media = save("asset_folder", name="Media")
    asset = save("asset", filename="a.png", storage_path="2024/05/a.png", asset_folder_id=media.id)
    delete_draft(kind="asset_folder", entity_id=media.id, actor_id="user-1")

    undo_entity(kind="asset_folder", entity_id=media.id, actor_id="user-1")

    assert engine.store("asset").get_draft(asset.id).asset_folder_id == media.id


def test_asset_folder_names_are_unique_among_siblings(engine, save):
    save("asset_folder", name="Media")

    with pytest.raises(ConstraintViolation):
        save("asset_folder", name="Media")


def test_publishing_an_asset_folder_publishes_its_assets(engine, save):
    media = save("asset_folder", name="Media")
    asset = save("asset", filename="a.png", storage_path="2024/05/a.png", asset_folder_id=media.id)

    result = engine.publisher.publish("asset_folder", media.id)

    assert ("asset", asset.id) in result.created
    assert engine.store("asset").get_published(asset.id).asset_folder_id == media.id


def test_font_rules(engine, save):
    save("font", name="inter", family="Inter", weights=["400", "700"])

    with pytest.raises(ConstraintViolation):
        save("font", name="inter", family="Inter Copy")
    with pytest.raises(ConstraintViolation):
        save("font", name="brand", family="Brand", type="custom")
    with pytest.raises(ConstraintViolation):
        save("font", name="odd", family="Odd", type="bitmap")
