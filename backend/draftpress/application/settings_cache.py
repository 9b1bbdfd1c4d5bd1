# draftpress/application/settings_cache.py
import copy
import threading

from draftpress.extensions import db
from draftpress.models import Setting


class SettingsCache:
    """
    Read-through cache over the ``settings`` table.

    Handed explicitly to readers; the publish coordinator invalidates it
    after every committed run.
    """

    def __init__(self):
        self._lock = threading.Lock()
        self._values = None

    def _load(self):
        with self._lock:
            if self._values is None:
                self._values = {setting.key: setting.value for setting in Setting.query.all()}
            return self._values

    def get(self, key, default=None):
        values = self._load()
        return copy.deepcopy(values.get(key, default))

    def invalidate(self):
        with self._lock:
            self._values = None


def set_setting(key, value):
    """Upsert one setting inside the caller's transaction."""
    setting = db.session.get(Setting, key)
    if setting is None:
        setting = Setting(key=key)
        db.session.add(setting)
    setting.value = value
    return setting
