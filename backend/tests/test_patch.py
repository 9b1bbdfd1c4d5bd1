import pytest

from draftpress.utils.patch import PatchError, apply_patch, create_patch


def test_create_and_delete_address_the_whole_document():
    document = {"name": "About", "layers": []}

    assert create_patch(None, document) == [{"op": "add", "path": "", "value": document}]
    assert apply_patch(None, create_patch(None, document)) == document
    assert create_patch(document, None) == [{"op": "remove", "path": ""}]
    assert apply_patch(document, create_patch(document, None)) is None


def test_patch_only_touches_changed_keys():
    before = {"name": "About", "slug": "about", "settings": {"seo": {"title": "Old"}}}
    after = {"name": "About", "slug": "about", "settings": {"seo": {"title": "New"}}}

    patch = create_patch(before, after)

    assert patch == [{"op": "replace", "path": "/settings/seo/title", "value": "New"}]
    assert apply_patch(before, patch) == after
    assert apply_patch(after, create_patch(after, before)) == before


def test_list_edits_and_growth():
    before = {"layers": [{"id": "a", "text": "x"}]}
    after = {"layers": [{"id": "a", "text": "y"}, {"id": "b", "text": "z"}]}

    patch = create_patch(before, after)

    assert {"op": "replace", "path": "/layers/0/text", "value": "y"} in patch
    assert apply_patch(before, patch) == after
    assert apply_patch(after, create_patch(after, before)) == before


def test_moved_layers_replace_the_whole_list():
    before = {"layers": [{"id": "a"}, {"id": "b"}]}
    after = {"layers": [{"id": "b"}, {"id": "a"}]}

    patch = create_patch(before, after)

    assert patch == [{"op": "replace", "path": "/layers", "value": after["layers"]}]


def test_keys_with_slashes_are_escaped():
    before = {"settings": {}}
    after = {"settings": {"a/b": 1, "c~d": 2}}

    assert apply_patch(before, create_patch(before, after)) == after


def test_apply_does_not_mutate_input():
    document = {"name": "About"}
    apply_patch(document, [{"op": "replace", "path": "/name", "value": "Home"}])
    assert document == {"name": "About"}


@pytest.mark.parametrize(
    "document, patch",
    [
        ({"name": "x"}, [{"op": "remove", "path": "/missing"}]),
        ({"layers": []}, [{"op": "replace", "path": "/layers/3", "value": 1}]),
        (None, [{"op": "replace", "path": "/name", "value": 1}]),
        ({"name": "x"}, [{"op": "move", "path": "/name"}]),
        ({"name": "x"}, [{"op": "add", "path": "name", "value": 1}]),
    ],
)
def test_unresolvable_patches_raise(document, patch):
    with pytest.raises(PatchError):
        apply_patch(document, patch)
