from .version_log import VersionLog

__all__ = ["VersionLog"]
