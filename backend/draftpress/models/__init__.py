from .page import PageFolder, Page, PageLayers
from .component import Component, LayerStyle
from .collection import Collection, CollectionField, CollectionItem, CollectionItemValue
from .localisation import Locale, Translation
from .asset import AssetFolder, Asset
from .font import Font
from .version import Version, VersionHead
from .setting import Setting
from .orphaned_blob import OrphanedBlob
from .webhook import Webhook

__all__ = [
    "PageFolder",
    "Page",
    "PageLayers",
    "Component",
    "LayerStyle",
    "Collection",
    "CollectionField",
    "CollectionItem",
    "CollectionItemValue",
    "Locale",
    "Translation",
    "AssetFolder",
    "Asset",
    "Font",
    "Version",
    "VersionHead",
    "Setting",
    "OrphanedBlob",
    "Webhook",
]
