import logging

from django.db import DatabaseError, models
from django.db.models import F
from django.utils.timezone import now

from lifelog_cache.exceptions import StorageError

logger = logging.getLogger(__name__)

SINGLETON_ID = 1


class SyncState(models.Model):
    """Progress of the incremental pull; a single row with id 1.

    Only the sync coordinator writes here. ``version`` is bumped on every
    recorded success so a pass that loaded an older row cannot move the
    cursor backwards.
    """

    id = models.PositiveSmallIntegerField(primary_key=True, default=SINGLETON_ID)
    last_pull_time = models.DateTimeField(null=True)
    last_cursor = models.TextField(null=True)
    last_error = models.TextField(null=True)
    last_error_time = models.DateTimeField(null=True)
    version = models.PositiveIntegerField(default=0)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        verbose_name = "Sync State"
        verbose_name_plural = "Sync State"

    @classmethod
    def load(cls) -> "SyncState":
        try:
            # get_or_create retries the lookup when a concurrent first start wins the insert.
            state, created = cls.objects.get_or_create(
                id=SINGLETON_ID,
                defaults={"last_pull_time": now(), "last_cursor": None},
            )
        except DatabaseError as error:
            raise StorageError(f"Failed to load sync state: {error}") from error
        if created:
            logger.info("Initialized sync state with last_pull_time=%s", state.last_pull_time.isoformat())
        return state

    def record_success(self, next_cursor: str | None) -> bool:
        """Advance the watermark in one statement; both fields change or neither does."""
        pulled_at = now()
        try:
            updated = type(self).objects.filter(id=self.id, version=self.version).update(
                last_pull_time=pulled_at,
                last_cursor=next_cursor,
                version=F("version") + 1,
                updated_at=pulled_at,
            )
        except DatabaseError as error:
            raise StorageError(f"Failed to record sync success: {error}") from error

        if not updated:
            logger.warning(
                "Sync state changed since version %s was loaded; keeping the newer watermark.",
                self.version,
            )
            return False

        self.last_pull_time = pulled_at
        self.last_cursor = next_cursor
        self.version += 1
        self.updated_at = pulled_at
        return True

    @classmethod
    def record_failure(cls, message: str) -> None:
        failed_at = now()
        changes = {"last_error": message, "last_error_time": failed_at, "updated_at": failed_at}
        try:
            if not cls.objects.filter(id=SINGLETON_ID).update(**changes):
                cls.load()
                cls.objects.filter(id=SINGLETON_ID).update(**changes)
        except DatabaseError as error:
            raise StorageError(f"Failed to record sync failure: {error}") from error
