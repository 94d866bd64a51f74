import json
import logging
import signal
import threading

from django.core.management.base import BaseCommand

from lifelog_data.sync.service import LifelogCacheService

logger = logging.getLogger(__name__)


class Command(BaseCommand):
    help = "Pull new lifelogs from the Limitless API into the local cache"

    def add_arguments(self, parser) -> None:  # type: ignore[no-untyped-def]
        parser.add_argument(
            "--daemon",
            action="store_true",
            help="Keep running: sync every sync_interval_seconds and prune every prune_interval_seconds.",
        )

    def handle(self, *args, **options) -> None:
        _ = args
        service = LifelogCacheService()

        if not options["daemon"]:
            result = service.coordinator.run_once()
            self.stdout.write(
                json.dumps(
                    {
                        "status": result.status,
                        "fetched": result.fetched,
                        "next_cursor": result.next_cursor,
                        "error": result.error,
                    },
                    sort_keys=True,
                    separators=(",", ":"),
                )
            )
            if result.status == "failed":
                raise SystemExit(1)
            return

        stopped = threading.Event()

        def _request_stop(signum: int, _frame: object) -> None:
            logger.info("Received signal %s; stopping lifelog cache tasks", signum)
            stopped.set()

        signal.signal(signal.SIGINT, _request_stop)
        signal.signal(signal.SIGTERM, _request_stop)

        service.start()
        try:
            stopped.wait()
        finally:
            # An in-flight pass finishes; success is recorded in one statement.
            service.stop(timeout=60)
