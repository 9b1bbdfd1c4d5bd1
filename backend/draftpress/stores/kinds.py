# draftpress/stores/kinds.py
from draftpress.domain.exceptions import ConstraintViolation
from draftpress.domain.invariants.collection import ASSET_FIELD_TYPES, assert_collection, assert_field
from draftpress.domain.invariants.page import assert_layer_tree, assert_page, assert_slug
from draftpress.models import (
    Asset,
    AssetFolder,
    Collection,
    CollectionField,
    CollectionItem,
    CollectionItemValue,
    Component,
    Font,
    LayerStyle,
    Locale,
    Page,
    PageFolder,
    PageLayers,
    Translation,
)
from draftpress.utils.layers import layer_references
from .base import EntityStore, ParentRef


def assert_not_nested_in_itself(store, row, column):
    """Walk up the folder chain to refuse cycles."""
    seen = {row.id}
    parent_id = getattr(row, column)
    while parent_id:
        if parent_id in seen:
            raise ConstraintViolation(f"Folder {row.id} cannot be nested inside itself")
        seen.add(parent_id)
        parent = store.find(parent_id, row.is_published)
        parent_id = getattr(parent, column) if parent is not None else None


class PageFolderStore(EntityStore):
    kind = "page_folder"
    model = PageFolder
    fields = {
        "name": "",
        "slug": "",
        "page_folder_id": None,
        "order": 0,
        "depth": 0,
        "settings": {},
    }
    parents = (ParentRef("page_folder", "page_folder_id", required=False),)
    order_by = ("order",)
    unique_among_siblings = (("page_folder_id", "slug"),)

    def check(self, row):
        assert_slug(row.slug)
        assert_not_nested_in_itself(self, row, "page_folder_id")


class PageStore(EntityStore):
    kind = "page"
    model = Page
    fields = {
        "name": "",
        "slug": "",
        "page_folder_id": None,
        "order": 0,
        "depth": 0,
        "is_index": False,
        "is_dynamic": False,
        "error_page": None,
        "settings": {},
    }
    parents = (ParentRef("page_folder", "page_folder_id", required=False),)
    order_by = ("order",)
    unique_among_siblings = (("page_folder_id", "slug"),)

    def check(self, row):
        assert_page(row)

    def references(self, row):
        if not row.is_dynamic:
            return []
        collection_id = ((row.settings or {}).get("cms") or {}).get("collection_id")
        return [("collection", collection_id)] if collection_id else []


class PageLayersStore(EntityStore):
    kind = "page_layers"
    model = PageLayers
    fields = {
        "page_id": None,
        "layers": [],
        "generated_css": None,
    }
    parents = (ParentRef("page", "page_id"),)
    unique_among_siblings = (("page_id",),)

    def check(self, row):
        assert_layer_tree(row.layers)

    def references(self, row):
        return layer_references(row.layers)


class ComponentStore(EntityStore):
    kind = "component"
    model = Component
    fields = {
        "name": "",
        "layers": [],
    }

    def check(self, row):
        if not row.name:
            raise ConstraintViolation("Component name is required.")
        assert_layer_tree(row.layers)

    def references(self, row):
        return [key for key in layer_references(row.layers) if key != ("component", row.id)]


class LayerStyleStore(EntityStore):
    kind = "layer_style"
    model = LayerStyle
    fields = {
        "name": "",
        "classes": "",
        "design": {},
    }


class CollectionStore(EntityStore):
    kind = "collection"
    model = Collection
    fields = {
        "name": "",
        "identifier": "",
        "order": 0,
        "sorting": None,
    }
    order_by = ("order",)
    unique_among_siblings = (("identifier",),)

    def check(self, row):
        assert_collection(row)


class CollectionFieldStore(EntityStore):
    kind = "collection_field"
    model = CollectionField
    fields = {
        "collection_id": None,
        "name": "",
        "key": "",
        "type": "text",
        "order": 0,
        "default": None,
        "fillable": True,
        "reference_collection_id": None,
        "settings": {},
    }
    parents = (ParentRef("collection", "collection_id"),)
    order_by = ("order",)
    unique_among_siblings = (("collection_id", "key"),)

    def check(self, row):
        assert_field(row)


class CollectionItemStore(EntityStore):
    kind = "collection_item"
    model = CollectionItem
    fields = {
        "collection_id": None,
        "manual_order": 0,
        "is_publishable": True,
    }
    parents = (ParentRef("collection", "collection_id"),)
    order_by = ("manual_order",)

    def is_publishable(self, row):
        return bool(row.is_publishable)


class CollectionItemValueStore(EntityStore):
    kind = "collection_item_value"
    model = CollectionItemValue
    fields = {
        "item_id": None,
        "field_id": None,
        "value": None,
    }
    parents = (
        ParentRef("collection_item", "item_id"),
        ParentRef("collection_field", "field_id"),
    )
    unique_among_siblings = (("item_id", "field_id"),)

    def check(self, row):
        if row.value is not None and not isinstance(row.value, str):
            raise ConstraintViolation("Item values are stored as strings.")

    def references(self, row):
        if not row.value:
            return []
        field = self.engine.store("collection_field").find(
            row.field_id, row.is_published, include_deleted=True
        )
        if field is not None and field.type in ASSET_FIELD_TYPES:
            return [("asset", row.value)]
        return []


class LocaleStore(EntityStore):
    kind = "locale"
    model = Locale
    fields = {
        "code": "",
        "label": "",
        "is_default": False,
    }
    unique_among_siblings = (("code",),)

    def check(self, row):
        if not row.code:
            raise ConstraintViolation("Locale code is required.")


class TranslationStore(EntityStore):
    kind = "translation"
    model = Translation
    fields = {
        "locale_id": None,
        "source_type": "page",
        "source_id": "",
        "content_key": "",
        "content_type": "text",
        "content_value": None,
        "is_completed": False,
    }
    parents = (ParentRef("locale", "locale_id"),)
    unique_among_siblings = (("locale_id", "source_type", "source_id", "content_key"),)


class AssetFolderStore(EntityStore):
    kind = "asset_folder"
    model = AssetFolder
    fields = {
        "name": "",
        "asset_folder_id": None,
        "order": 0,
        "depth": 0,
    }
    parents = (ParentRef("asset_folder", "asset_folder_id", required=False),)
    order_by = ("order",)
    unique_among_siblings = (("asset_folder_id", "name"),)

    def check(self, row):
        if not row.name:
            raise ConstraintViolation("Folder name is required.")
        assert_not_nested_in_itself(self, row, "asset_folder_id")


class AssetStore(EntityStore):
    kind = "asset"
    model = Asset
    fields = {
        "filename": "",
        "asset_folder_id": None,
        "mime_type": None,
        "storage_path": None,
        "file_size": None,
        "width": None,
        "height": None,
        "source": "library",
        "content": None,
    }
    parents = (ParentRef("asset_folder", "asset_folder_id", required=False),)
    storage_path_field = "storage_path"

    def check(self, row):
        if not row.storage_path and not row.content:
            raise ConstraintViolation("Asset needs a storage path or inline content.")


FONT_TYPES = {"google", "custom", "default"}


class FontStore(EntityStore):
    kind = "font"
    model = Font
    fields = {
        "name": "",
        "family": "",
        "type": "google",
        "variants": [],
        "weights": [],
        "category": "",
        "format": None,
        "url": None,
        "storage_path": None,
        "file_hash": None,
    }
    unique_among_siblings = (("name",),)
    storage_path_field = "storage_path"

    def check(self, row):
        if not row.name or not row.family:
            raise ConstraintViolation("Font name and family are required.")
        if row.type not in FONT_TYPES:
            raise ConstraintViolation(f"Unknown font type: {row.type}")
        if row.type == "custom" and not row.storage_path:
            raise ConstraintViolation("Custom fonts need an uploaded file.")


STORE_CLASSES = (
    PageFolderStore,
    PageStore,
    PageLayersStore,
    ComponentStore,
    LayerStyleStore,
    CollectionStore,
    CollectionFieldStore,
    CollectionItemStore,
    CollectionItemValueStore,
    LocaleStore,
    TranslationStore,
    AssetFolderStore,
    AssetStore,
    FontStore,
)
