import logging
from collections.abc import Mapping
from dataclasses import dataclass

from lifelog_cache.exceptions import LifelogCacheError, StorageError
from lifelog_cache.models import LifelogEntry, LifelogQuery
from lifelog_cache.type_defs import JsonObject
from lifelog_data.models import Lifelog
from lifelog_data.sync.coordinator import FetchPage
from lifelog_data.sync.retention import RetentionPruner

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LifelogsResult:
    entries: list[JsonObject]
    next_cursor: str | None = None
    from_cache: bool = False

    def to_response(self) -> JsonObject:
        return {
            "data": {"lifelogs": list(self.entries)},
            "meta": {"lifelogs": {"count": len(self.entries), "nextCursor": self.next_cursor}},
        }


@dataclass(frozen=True)
class LifelogsFailure:
    message: str

    def to_response(self) -> JsonObject:
        return {"error": self.message, "isError": True}


def _cached_payloads(rows: list[LifelogEntry]) -> list[JsonObject]:
    try:
        return [row.to_dict() for row in rows]
    except ValueError as error:
        raise StorageError(f"Unreadable cached lifelog payload: {error}") from error


class QueryResolver:
    """Answers lifelog queries from the local cache, falling back to the provider.

    Any cached row inside the requested range counts as a hit, even when the
    provider may hold newer entries for the same range.
    """

    def __init__(self, fetch_page: FetchPage, pruner: RetentionPruner | None = None) -> None:
        self.fetch_page = fetch_page
        self.pruner = pruner if pruner is not None else RetentionPruner()

    def resolve(self, query: LifelogQuery) -> LifelogsResult:
        query.validate()
        range_start, range_end = query.resolve_range()

        rows = Lifelog.objects.query_range(range_start, range_end, query.direction, query.limit)
        if rows:
            logger.debug("Cache hit: %s lifelogs for %s..%s", len(rows), range_start, range_end)
            return LifelogsResult(entries=_cached_payloads(rows), from_cache=True)

        logger.info("Cache miss for %s..%s; fetching from provider", range_start, range_end)
        page = self.fetch_page(query.to_params())
        Lifelog.objects.upsert_many(page.entries)
        self.pruner.prune_quietly()
        return LifelogsResult(
            entries=[entry.to_dict() for entry in page.entries],
            next_cursor=page.next_cursor,
        )

    def get_lifelogs(self, query: LifelogQuery | Mapping[str, object]) -> LifelogsResult | LifelogsFailure:
        try:
            if not isinstance(query, LifelogQuery):
                query = LifelogQuery.from_params(query)
            return self.resolve(query)
        except LifelogCacheError as error:
            logger.warning("get_lifelogs failed: %s", error)
            return LifelogsFailure(message=f"fetch failed: {error}")
