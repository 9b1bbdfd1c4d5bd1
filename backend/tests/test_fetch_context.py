from flask import request

from draftpress.application.rendering import fetch_context_from_request, resolve_fetch_context


def test_preview_reads_drafts_and_live_reads_published():
    assert resolve_fetch_context(preview=True).is_published is False
    assert resolve_fetch_context(preview=False).is_published is True


def test_unusable_page_numbers_fall_back_to_the_first_page():
    assert resolve_fetch_context(preview=False, page="abc").page == 1
    assert resolve_fetch_context(preview=False, page="0").page == 1
    assert resolve_fetch_context(preview=False, page=-4).page == 1
    assert resolve_fetch_context(preview=False, page="3").page == 3


def test_offset_and_limit_follow_items_per_page():
    ctx = resolve_fetch_context(preview=False, page=3, items_per_page=10)
    assert (ctx.offset, ctx.limit) == (20, 10)

    unlimited = resolve_fetch_context(preview=False, page=3, items_per_page=0)
    assert (unlimited.offset, unlimited.limit) == (0, None)


def test_layer_pages_override_the_page_number():
    ctx = resolve_fetch_context(
        preview=False,
        page=2,
        items_per_page=5,
        layer_pages={"grid": "4", "list": "nope"},
    )

    assert ctx.layer_pages == {"grid": 4, "list": 1}
    assert ctx.for_layer("grid").page == 4
    assert ctx.for_layer("grid").offset == 15
    assert ctx.for_layer("other").page == 2
    assert ctx.for_layer("grid", items_per_page=3).limit == 3


def test_context_from_request(app):
    query = "/?preview=1&page=2&p_grid=3&locale=fr&per_page=5"

    with app.test_request_context(query):
        editor = fetch_context_from_request(request, preview_allowed=True)
        visitor = fetch_context_from_request(request, preview_allowed=False, items_per_page=20)

    assert editor.is_published is False
    assert (editor.page, editor.items_per_page, editor.locale) == (2, 5, "fr")
    assert editor.layer_pages == {"grid": 3}
    assert visitor.is_published is True
    assert visitor.items_per_page == 5
