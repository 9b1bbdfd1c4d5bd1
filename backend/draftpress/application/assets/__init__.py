from .garbage_collector import AssetGarbageCollector, CollectionResult

__all__ = ["AssetGarbageCollector", "CollectionResult"]
