# draftpress/engine.py
from flask import current_app

from draftpress.application.assets import AssetGarbageCollector
from draftpress.application.history import VersionLog
from draftpress.application.publishing import PublishCoordinator
from draftpress.application.settings_cache import SettingsCache
from draftpress.application.tasks import TaskDispatcher, register_webhooks
from draftpress.domain.exceptions import NotFound
from draftpress.storage import create_blob_store
from draftpress.stores import build_stores

EXTENSION_KEY = "draftpress"


class ContentEngine:
    """Wires the stores, version log, publisher and asset GC of one app."""

    def __init__(
        self,
        *,
        blob_store,
        snapshot_interval=10,
        asset_batch_size=100,
        publish_timeout=None,
        settings=None,
        tasks=None,
    ):
        self.blob_store = blob_store
        self.history = VersionLog(self, snapshot_interval=snapshot_interval)
        self.stores = build_stores(self)
        self.gc = AssetGarbageCollector(blob_store, batch_size=asset_batch_size)
        self.publisher = PublishCoordinator(self, timeout_seconds=publish_timeout)
        self.settings = settings
        self.tasks = tasks

    def store(self, kind):
        try:
            return self.stores[kind]
        except KeyError:
            raise NotFound(f"Unknown entity kind: {kind}") from None

    @property
    def kinds(self):
        return tuple(self.stores)


def init_engine(app):
    tasks = TaskDispatcher(
        app,
        max_workers=app.config["TASK_MAX_WORKERS"],
        max_attempts=app.config["TASK_MAX_ATTEMPTS"],
        backoff_seconds=app.config["TASK_RETRY_BACKOFF_SECONDS"],
        run_inline=app.config["TASKS_RUN_INLINE"],
    )
    register_webhooks(tasks)

    engine = ContentEngine(
        blob_store=create_blob_store(app.config),
        snapshot_interval=app.config["VERSION_SNAPSHOT_INTERVAL"],
        asset_batch_size=app.config["ASSET_DELETE_BATCH_SIZE"],
        publish_timeout=app.config["PUBLISH_TIMEOUT_SECONDS"],
        settings=SettingsCache(),
        tasks=tasks,
    )
    app.extensions[EXTENSION_KEY] = engine
    return engine


def get_engine() -> ContentEngine:
    return current_app.extensions[EXTENSION_KEY]
