import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass

from lifelog_cache.exceptions import LifelogCacheError
from lifelog_cache.models import LifelogPage
from lifelog_cache.type_defs import QueryParams
from lifelog_cache.utils import format_api_datetime
from lifelog_data.models import Lifelog, SyncState
from lifelog_data.sync.retention import RetentionPruner

logger = logging.getLogger(__name__)

FetchPage = Callable[[QueryParams], LifelogPage]

INCREMENTAL_REQUEST_DEFAULTS: QueryParams = {
    "timezone": "UTC",
    "direction": "desc",
    "includeMarkdown": True,
    "includeHeadings": True,
}


@dataclass(frozen=True)
class SyncPassResult:
    status: str
    fetched: int = 0
    next_cursor: str | None = None
    error: str | None = None


class SyncCoordinator:
    """Pulls new lifelogs from the provider, resuming from the persisted watermark.

    A pass loads :class:`SyncState`, asks the provider for everything since
    ``last_pull_time`` (continuing from ``last_cursor`` when one is stored),
    stores the entries and then advances the watermark. A failed pass only
    records the error, so the next pass retries the same window. Entries that
    straddle window boundaries are delivered twice and deduplicated by id.
    """

    def __init__(self, fetch_page: FetchPage, pruner: RetentionPruner | None = None) -> None:
        self.fetch_page = fetch_page
        self.pruner = pruner
        self._pass_lock = threading.Lock()

    @staticmethod
    def build_params(state: SyncState) -> QueryParams:
        params: QueryParams = dict(INCREMENTAL_REQUEST_DEFAULTS)
        if state.last_pull_time is not None:
            params["start"] = format_api_datetime(state.last_pull_time)
        if state.last_cursor:
            params["cursor"] = state.last_cursor
        return params

    def run_once(self) -> SyncPassResult:
        if not self._pass_lock.acquire(blocking=False):
            logger.info("SYNC_PASS skipped reason=previous_pass_running")
            return SyncPassResult(status="skipped")
        try:
            return self._run_pass()
        finally:
            self._pass_lock.release()

    def _run_pass(self) -> SyncPassResult:
        try:
            state = SyncState.load()
        except LifelogCacheError as error:
            logger.error("SYNC_PASS failed to load sync state: %s", error)
            return SyncPassResult(status="failed", error=str(error))

        logger.info(
            "SYNC_PASS start last_pull_time=%s last_cursor=%s version=%s",
            state.last_pull_time.isoformat() if state.last_pull_time else None,
            state.last_cursor,
            state.version,
        )
        try:
            return self.pull(state)
        except Exception as error:
            # A background pass must never take the process down.
            logger.exception("SYNC_PASS failed: %s", error)
            self._record_failure(str(error) or type(error).__name__)
            return SyncPassResult(status="failed", error=str(error))

    def pull(self, state: SyncState) -> SyncPassResult:
        params = self.build_params(state)
        try:
            page = self.fetch_page(params)
            Lifelog.objects.upsert_many(page.entries)
            advanced = state.record_success(page.next_cursor)
        except LifelogCacheError as error:
            logger.warning("SYNC_PASS failed: %s", error)
            self._record_failure(str(error))
            return SyncPassResult(status="failed", error=str(error))

        logger.info(
            "SYNC_PASS done fetched=%s next_cursor=%s advanced=%s",
            len(page.entries),
            page.next_cursor,
            advanced,
        )
        if page.entries and self.pruner is not None:
            self.pruner.prune_quietly()
        return SyncPassResult(
            status="success" if advanced else "stale",
            fetched=len(page.entries),
            next_cursor=page.next_cursor,
        )

    @staticmethod
    def _record_failure(message: str) -> None:
        try:
            SyncState.record_failure(message)
        except LifelogCacheError as error:
            logger.error("Unable to record sync failure %r: %s", message, error)
