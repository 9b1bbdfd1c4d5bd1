import pytest

from draftpress.application.rendering import (
    fetch_collection_items,
    fetch_page_by_path,
    resolve_fetch_context,
)
from draftpress.domain.exceptions import NotFound

LIVE = resolve_fetch_context(preview=False)
PREVIEW = resolve_fetch_context(preview=True)


def test_home_page_serves_each_state(engine, save):
    home = save("page", name="Home", is_index=True)
    save("page_layers", page_id=home.id, layers=[{"id": "hero"}])
    engine.publisher.publish("page", home.id)
    save("page", home.id, name="Home (draft)")

    live = fetch_page_by_path("", LIVE, settings=engine.settings)
    preview = fetch_page_by_path("/", PREVIEW, settings=engine.settings)

    assert live["page"]["name"] == "Home"
    assert live["layers"] == [{"id": "hero"}]
    assert live["is_published"] is True
    assert preview["page"]["name"] == "Home (draft)"


def test_unpublished_pages_are_not_served_live(engine, save):
    save("page", name="About", slug="about")

    with pytest.raises(NotFound):
        fetch_page_by_path("about", LIVE)

    assert fetch_page_by_path("about", PREVIEW)["page"]["slug"] == "about"


def test_folder_paths_resolve_static_and_index_pages(engine, save):
    folder = save("page_folder", name="Blog", slug="blog")
    index = save("page", name="Blog home", is_index=True, page_folder_id=folder.id)
    hello = save("page", name="Hello", slug="hello", page_folder_id=folder.id)

    assert fetch_page_by_path("blog", PREVIEW)["page"]["id"] == index.id
    assert fetch_page_by_path("/blog/hello/", PREVIEW)["page"]["id"] == hello.id

    with pytest.raises(NotFound):
        fetch_page_by_path("news/hello", PREVIEW)


def test_dynamic_pages_match_items_by_slug_field(engine, save):
    collection = save("collection", name="Posts", identifier="posts")
    slug_field = save("collection_field", collection_id=collection.id, key="slug", type="text")
    item = save("collection_item", collection_id=collection.id)
    save("collection_item_value", item_id=item.id, field_id=slug_field.id, value="first-post")
    folder = save("page_folder", name="Blog", slug="blog")
    page = save(
        "page",
        name="Post",
        slug="post",
        page_folder_id=folder.id,
        is_dynamic=True,
        settings={"cms": {"collection_id": collection.id, "slug_field_id": slug_field.id}},
    )

    with pytest.raises(NotFound):
        fetch_page_by_path("blog/first-post", LIVE)

    # The dynamic page drags its collection along.
    engine.publisher.publish("page", page.id)
    result = fetch_page_by_path("blog/first-post", LIVE)

    assert result["page"]["id"] == page.id
    assert result["item"] == {"id": item.id, "values": {"slug": "first-post"}}


def test_collection_items_are_paginated(engine, save):
    collection = save("collection", name="Posts", identifier="posts")
    title = save("collection_field", collection_id=collection.id, key="title", type="text")
    for number in range(5):
        item = save("collection_item", collection_id=collection.id, manual_order=number)
        save("collection_item_value", item_id=item.id, field_id=title.id, value=f"Post {number}")

    ctx = resolve_fetch_context(preview=True, page=3, items_per_page=2)
    result = fetch_collection_items(collection.id, ctx)

    assert result["total"] == 5
    assert [item["values"]["title"] for item in result["items"]] == ["Post 4"]

    with pytest.raises(NotFound):
        fetch_collection_items(collection.id, LIVE)


def test_translations_follow_the_requested_locale(engine, save):
    page = save("page", name="About", slug="about")
    locale = save("locale", code="fr", label="Français")
    save(
        "translation",
        locale_id=locale.id,
        source_type="page",
        source_id=page.id,
        content_key="title",
        content_value="À propos",
        is_completed=True,
    )

    ctx = resolve_fetch_context(preview=True, locale="fr")
    assert fetch_page_by_path("about", ctx)["translations"] == {"title": "À propos"}
    assert fetch_page_by_path("about", PREVIEW)["translations"] == {}
