import unicodedata

from draftpress.utils.hashing import canonical_json, content_hash, normalize_fields


def test_hash_ignores_key_order_and_volatile_fields():
    first = content_hash("page", {"name": "About", "slug": "about", "settings": {"a": 1, "b": 2}})
    second = content_hash(
        "page",
        {
            "settings": {"b": 2, "a": 1},
            "slug": "about",
            "name": "About",
            "id": "ignored",
            "updated_at": "2024-01-01T00:00:00",
            "is_published": True,
        },
    )
    assert first == second
    assert len(first) == 64


def test_hash_is_stable_across_calls():
    fields = {"layers": [{"id": "l1", "children": [{"id": "l2"}]}]}
    assert content_hash("page_layers", fields) == content_hash("page_layers", fields)


def test_hash_normalizes_unicode():
    composed = unicodedata.normalize("NFC", "Café")
    decomposed = unicodedata.normalize("NFD", "Café")
    assert composed != decomposed
    assert content_hash("page", {"name": composed}) == content_hash("page", {"name": decomposed})


def test_hash_depends_on_kind_and_content():
    fields = {"name": "Shared"}
    assert content_hash("component", fields) != content_hash("layer_style", fields)
    assert content_hash("page", {"name": "A"}) != content_hash("page", {"name": "B"})


def test_absent_state_hashes_differently_from_empty_content():
    assert content_hash("page", None) != content_hash("page", {})
    assert normalize_fields(None) is None


def test_canonical_json_has_no_insignificant_whitespace():
    assert canonical_json({"b": [1, 2], "a": {"d": 1, "c": 2}}) == '{"a":{"c":2,"d":1},"b":[1,2]}'
