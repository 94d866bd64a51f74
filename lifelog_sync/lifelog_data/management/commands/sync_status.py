import json
from datetime import datetime
from typing import Any

from django.core.management.base import BaseCommand
from django.utils.timezone import now

from lifelog_data.models import Lifelog, SyncState
from lifelog_data.models.sync_state import SINGLETON_ID


class Command(BaseCommand):
    help = "Emit lifelog sync state as single-line JSON"

    def add_arguments(self, parser) -> None:  # type: ignore[no-untyped-def]
        parser.add_argument(
            "--stale-threshold-seconds",
            type=int,
            default=0,
            help="Mark the cache stale when the last successful pull is older than this threshold.",
        )
        parser.add_argument(
            "--fail-on-stale",
            action="store_true",
            help="Exit with status code 2 when the cache is stale.",
        )

    @staticmethod
    def _isoformat(value: datetime | None) -> str | None:
        if value is None:
            return None
        return value.isoformat()

    def _build_payload(self, stale_threshold_seconds: int) -> dict[str, Any]:
        state_row = SyncState.objects.filter(id=SINGLETON_ID).first()
        cached_lifelogs = Lifelog.objects.count()
        current_time = now()
        if state_row is None:
            return {
                "status": "uninitialized",
                "last_pull_time": None,
                "last_cursor": None,
                "last_error": None,
                "last_error_time": None,
                "pull_age_seconds": None,
                "version": 0,
                "cached_lifelogs": cached_lifelogs,
                "is_stale": False,
            }

        pull_age_seconds: int | None = None
        if state_row.last_pull_time is not None:
            pull_age_seconds = max(
                0, int((current_time - state_row.last_pull_time).total_seconds())
            )

        failing = bool(
            state_row.last_error_time is not None
            and (
                state_row.last_pull_time is None
                or state_row.last_error_time > state_row.last_pull_time
            )
        )
        is_stale = bool(
            pull_age_seconds is not None
            and 0 < stale_threshold_seconds < pull_age_seconds
        )

        return {
            "status": "failing" if failing else "ok",
            "last_pull_time": self._isoformat(state_row.last_pull_time),
            "last_cursor": state_row.last_cursor,
            "last_error": state_row.last_error,
            "last_error_time": self._isoformat(state_row.last_error_time),
            "pull_age_seconds": pull_age_seconds,
            "version": state_row.version,
            "cached_lifelogs": cached_lifelogs,
            "is_stale": is_stale,
        }

    def handle(self, *args, **options) -> None:
        _ = args
        stale_threshold_seconds = max(0, int(options["stale_threshold_seconds"]))
        fail_on_stale = bool(options["fail_on_stale"])

        payload = self._build_payload(stale_threshold_seconds)
        self.stdout.write(json.dumps(payload, sort_keys=True, separators=(",", ":")))

        if fail_on_stale and payload.get("is_stale"):
            raise SystemExit(2)
