import json
from datetime import timedelta

from django.core.management.base import BaseCommand, CommandError

from lifelog_cache.exceptions import StorageError
from lifelog_data.sync.retention import RetentionPruner


class Command(BaseCommand):
    help = "Delete cached lifelogs older than the retention window"

    def add_arguments(self, parser) -> None:  # type: ignore[no-untyped-def]
        parser.add_argument(
            "--retention-hours",
            type=float,
            default=None,
            help="Override the configured retention window (e.g. 72).",
        )

    def handle(self, *args, **options) -> None:
        _ = args
        retention_hours = options["retention_hours"]
        if retention_hours is not None and retention_hours <= 0:
            raise CommandError("--retention-hours must be positive")

        window = timedelta(hours=retention_hours) if retention_hours is not None else None
        pruner = RetentionPruner(window=window)
        try:
            deleted = pruner.prune()
        except StorageError as error:
            raise CommandError(str(error)) from error

        self.stdout.write(
            json.dumps(
                {"retention_hours": pruner.window.total_seconds() / 3600, "deleted": deleted},
                sort_keys=True,
                separators=(",", ":"),
            )
        )
