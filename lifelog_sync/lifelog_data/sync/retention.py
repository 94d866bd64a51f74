import logging
from collections.abc import Callable
from datetime import datetime, timedelta

from django.utils.timezone import now

from lifelog_cache.config import settings
from lifelog_cache.exceptions import LifelogCacheError
from lifelog_cache.utils import retention_cutoff
from lifelog_data.models import Lifelog

logger = logging.getLogger(__name__)


class RetentionPruner:
    """Deletes cached lifelogs whose start time fell out of the retention window."""

    def __init__(
        self,
        window: timedelta | None = None,
        clock: Callable[[], datetime] = now,
    ) -> None:
        self.window = window if window is not None else settings.cache.retention_window
        self.clock = clock

    def cutoff(self) -> datetime:
        return retention_cutoff(self.clock(), window=self.window)

    def prune(self) -> int:
        cutoff = self.cutoff()
        deleted = Lifelog.objects.delete_older_than(cutoff)
        logger.info("PRUNE cutoff=%s deleted=%s", cutoff.isoformat(), deleted)
        return deleted

    def prune_quietly(self) -> int | None:
        try:
            return self.prune()
        except LifelogCacheError as error:
            logger.error("PRUNE failed: %s", error)
            return None
