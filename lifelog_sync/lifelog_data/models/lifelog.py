import logging
from collections.abc import Iterable
from datetime import datetime

from django.db import DatabaseError, models, transaction

from lifelog_cache.exceptions import StorageError
from lifelog_cache.models import LifelogEntry

logger = logging.getLogger(__name__)


class LifelogQuerySet(models.QuerySet):
    def upsert(self, entry: LifelogEntry) -> None:
        self.upsert_many([entry])

    def upsert_many(self, entries: Iterable[LifelogEntry]) -> int:
        """Insert entries whose id is not stored yet; existing rows are left untouched.

        Deduplication is delegated to the primary key (INSERT ... ON CONFLICT DO
        NOTHING), so concurrent writers delivering the same id cannot race.
        Returns the number of entries submitted.
        """
        rows = [
            self.model(id=entry.id, start_time=entry.start_time, payload=entry.payload)
            for entry in entries
        ]
        if not rows:
            return 0
        try:
            with transaction.atomic(using=self.db):
                self.bulk_create(rows, ignore_conflicts=True)
        except DatabaseError as error:
            raise StorageError(f"Failed to store {len(rows)} lifelogs: {error}") from error
        return len(rows)

    def query_range(
        self,
        start: datetime | None = None,
        end: datetime | None = None,
        direction: str = "desc",
        limit: int | None = None,
    ) -> list[LifelogEntry]:
        queryset = self
        if start is not None:
            queryset = queryset.filter(start_time__gte=start)
        if end is not None:
            queryset = queryset.filter(start_time__lte=end)
        if direction == "asc":
            queryset = queryset.order_by("start_time", "id")
        else:
            queryset = queryset.order_by("-start_time", "-id")
        if limit is not None:
            queryset = queryset[:limit]

        try:
            return [row.as_entry() for row in queryset]
        except DatabaseError as error:
            raise StorageError(f"Failed to read lifelogs: {error}") from error

    def delete_older_than(self, cutoff: datetime) -> int:
        try:
            deleted, _per_model = self.filter(start_time__lt=cutoff).delete()
        except DatabaseError as error:
            raise StorageError(f"Failed to delete lifelogs older than {cutoff.isoformat()}: {error}") from error
        return deleted


class Lifelog(models.Model):
    id = models.CharField(max_length=255, primary_key=True)
    start_time = models.DateTimeField(db_index=True)
    payload = models.TextField()

    objects = LifelogQuerySet.as_manager()

    class Meta:
        ordering = ["-start_time", "-id"]

    def __str__(self) -> str:
        return f"Lifelog {self.id} @ {self.start_time.isoformat()}"

    def as_entry(self) -> LifelogEntry:
        return LifelogEntry(id=self.id, start_time=self.start_time, payload=self.payload)
