import json

from django.core.management.base import BaseCommand

from lifelog_cache.models import SORT_DIRECTIONS
from lifelog_data.sync.resolver import LifelogsFailure
from lifelog_data.sync.service import LifelogCacheService


class Command(BaseCommand):
    help = "Return lifelogs for a date or time range, serving from the local cache when possible"

    def add_arguments(self, parser) -> None:  # type: ignore[no-untyped-def]
        parser.add_argument("--date", help="Day to fetch (YYYY-MM-DD).")
        parser.add_argument("--start", help="Inclusive lower bound (YYYY-MM-DD HH:MM:SS).")
        parser.add_argument("--end", help="Inclusive upper bound (YYYY-MM-DD HH:MM:SS).")
        parser.add_argument("--timezone", help="IANA timezone for --date and naive bounds.")
        parser.add_argument("--cursor", help="Provider cursor, forwarded on cache misses.")
        parser.add_argument("--limit", type=int)
        parser.add_argument("--direction", choices=sorted(SORT_DIRECTIONS), default="desc")
        parser.add_argument("--no-markdown", action="store_true", help="Ask the provider to omit markdown.")
        parser.add_argument("--no-headings", action="store_true", help="Ask the provider to omit headings.")
        parser.add_argument("--indent", type=int, default=None)

    def handle(self, *args, **options) -> None:
        _ = args
        query = {
            "date": options["date"],
            "start": options["start"],
            "end": options["end"],
            "timezone": options["timezone"],
            "cursor": options["cursor"],
            "limit": options["limit"],
            "direction": options["direction"],
            "includeMarkdown": not options["no_markdown"],
            "includeHeadings": not options["no_headings"],
        }
        result = LifelogCacheService().get_lifelogs(query)

        self.stdout.write(json.dumps(result.to_response(), indent=options["indent"], ensure_ascii=False))
        if isinstance(result, LifelogsFailure):
            raise SystemExit(1)
