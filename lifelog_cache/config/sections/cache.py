from datetime import timedelta
from pathlib import Path

from lifelog_cache.config.serializable import Serializable

DEFAULT_RETENTION_WINDOW = timedelta(days=7)
DEFAULT_SYNC_INTERVAL = timedelta(minutes=8)
DEFAULT_PRUNE_INTERVAL = timedelta(hours=1)


class Cache(Serializable):
    database_path: str = str(Path.home() / ".local" / "share" / "lifelog-cache" / "lifelogs_cache.db")
    retention_hours: float = DEFAULT_RETENTION_WINDOW.total_seconds() / 3600
    sync_interval_seconds: float = DEFAULT_SYNC_INTERVAL.total_seconds()
    prune_interval_seconds: float = DEFAULT_PRUNE_INTERVAL.total_seconds()

    @property
    def retention_window(self) -> timedelta:
        return timedelta(hours=float(self.retention_hours))

    @property
    def sync_interval(self) -> timedelta:
        return timedelta(seconds=float(self.sync_interval_seconds))

    @property
    def prune_interval(self) -> timedelta:
        return timedelta(seconds=float(self.prune_interval_seconds))
