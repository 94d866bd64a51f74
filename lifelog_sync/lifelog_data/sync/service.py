import logging
import threading
from collections.abc import Mapping

from lifelog_cache.client import Client
from lifelog_cache.config import settings
from lifelog_cache.models import LifelogQuery
from lifelog_data.sync.coordinator import FetchPage, SyncCoordinator
from lifelog_data.sync.resolver import LifelogsFailure, LifelogsResult, QueryResolver
from lifelog_data.sync.retention import RetentionPruner
from lifelog_data.sync.scheduler import PeriodicTask

logger = logging.getLogger(__name__)


class LifelogCacheService:
    """Wires the coordinator, resolver and pruner around one provider client."""

    def __init__(self, fetch_page: FetchPage | None = None, pruner: RetentionPruner | None = None) -> None:
        if fetch_page is None:
            fetch_page = Client().fetch_page
        self.pruner = pruner or RetentionPruner()
        self.coordinator = SyncCoordinator(fetch_page, pruner=self.pruner)
        self.resolver = QueryResolver(fetch_page, pruner=self.pruner)
        self.stop_event = threading.Event()
        self.tasks = [
            PeriodicTask(
                "lifelog-sync",
                settings.cache.sync_interval,
                self.coordinator.run_once,
                stop_event=self.stop_event,
            ),
            PeriodicTask(
                "lifelog-prune",
                settings.cache.prune_interval,
                self.pruner.prune,
                run_immediately=False,
                stop_event=self.stop_event,
            ),
        ]

    def start(self) -> None:
        for task in self.tasks:
            logger.info("Starting %s every %s", task.name, task.interval)
            task.start()

    def stop(self, timeout: float | None = None) -> None:
        self.stop_event.set()
        for task in self.tasks:
            task.stop(timeout)

    def get_lifelogs(self, query: LifelogQuery | Mapping[str, object]) -> LifelogsResult | LifelogsFailure:
        return self.resolver.get_lifelogs(query)
