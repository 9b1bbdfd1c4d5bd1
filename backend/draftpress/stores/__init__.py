from .base import EntityKey, EntityStore, ParentRef
from .kinds import STORE_CLASSES


def build_stores(engine):
    return {store_class.kind: store_class(engine) for store_class in STORE_CLASSES}


__all__ = ["EntityKey", "EntityStore", "ParentRef", "STORE_CLASSES", "build_stores"]
