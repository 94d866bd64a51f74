from dataclasses import dataclass, fields
from datetime import datetime
from typing import Mapping, Self

from lifelog_cache.exceptions import InvalidQueryError
from lifelog_cache.type_defs import QueryParams, is_query_params
from lifelog_cache.utils import day_bounds, ensure_aware, get_zone, parse_date, parse_datetime

SORT_DIRECTIONS = frozenset({"asc", "desc"})

# Provider parameter name -> dataclass field name.
_PARAM_ALIASES = {
    "includeMarkdown": "include_markdown",
    "includeHeadings": "include_headings",
}
_TEXT_FIELDS = ("timezone", "date", "start", "end", "cursor")
_FLAG_FIELDS = ("include_markdown", "include_headings")


@dataclass(frozen=True)
class LifelogQuery:
    timezone: str | None = None
    date: str | None = None
    start: str | None = None
    end: str | None = None
    cursor: str | None = None
    direction: str = "desc"
    limit: int | None = None
    include_markdown: bool = True
    include_headings: bool = True

    @classmethod
    def from_params(cls, params: Mapping[str, object]) -> Self:
        params = dict(params)
        if not is_query_params(params):
            raise InvalidQueryError("Query parameters must be scalar values keyed by name")

        known = {field.name for field in fields(cls)}
        values: dict[str, object] = {}
        for key, value in params.items():
            name = _PARAM_ALIASES.get(key, key)
            if name not in known:
                raise InvalidQueryError(f"Unknown query parameter: {key}")
            if value is None:
                continue
            # Integral floats count as integers.
            if name == "limit" and isinstance(value, float) and value.is_integer():
                value = int(value)
            values[name] = value
        return cls(**values)

    def to_params(self) -> QueryParams:
        params: QueryParams = {
            "timezone": self.timezone,
            "date": self.date,
            "start": self.start,
            "end": self.end,
            "cursor": self.cursor,
            "direction": self.direction,
            "limit": self.limit,
            "includeMarkdown": self.include_markdown,
            "includeHeadings": self.include_headings,
        }
        return {key: value for key, value in params.items() if value is not None}

    def validate(self) -> None:
        for name in _TEXT_FIELDS:
            value = getattr(self, name)
            if value is not None and not isinstance(value, str):
                raise InvalidQueryError(f"{name} must be a string, got {value!r}")
        for name in _FLAG_FIELDS:
            value = getattr(self, name)
            if not isinstance(value, bool):
                raise InvalidQueryError(f"{name} must be true or false, got {value!r}")
        if not isinstance(self.direction, str) or self.direction not in SORT_DIRECTIONS:
            raise InvalidQueryError(f"direction must be 'asc' or 'desc', got {self.direction!r}")
        if self.limit is not None:
            if isinstance(self.limit, bool) or not isinstance(self.limit, int) or self.limit <= 0:
                raise InvalidQueryError(f"limit must be a positive integer, got {self.limit!r}")
        self.resolve_range()

    def resolve_range(self) -> tuple[datetime | None, datetime | None]:
        """Turn ``date``/``start``/``end`` into concrete bounds.

        ``date`` covers its whole day in the query timezone; an explicit ``start``
        or ``end`` replaces the matching side of that day. Naive timestamps are
        read in the query timezone as well.
        """
        zone = get_zone(self.timezone)
        if zone is None:
            raise InvalidQueryError(f"Unknown timezone: {self.timezone!r}")

        range_start: datetime | None = None
        range_end: datetime | None = None
        if self.date is not None:
            day = parse_date(self.date)
            if day is None:
                raise InvalidQueryError(f"Invalid date {self.date!r} (expected YYYY-MM-DD)")
            range_start, range_end = day_bounds(day, zone)

        if self.start is not None:
            range_start = self._parse_bound("start", self.start, zone)
        if self.end is not None:
            range_end = self._parse_bound("end", self.end, zone)

        if range_start is not None and range_end is not None and range_end < range_start:
            raise InvalidQueryError(
                f"end ({range_end.isoformat()}) is earlier than start ({range_start.isoformat()})"
            )
        return range_start, range_end

    @staticmethod
    def _parse_bound(name: str, value: str, zone) -> datetime:  # type: ignore[no-untyped-def]
        parsed = parse_datetime(value)
        if parsed is None:
            raise InvalidQueryError(f"Invalid {name} {value!r} (expected YYYY-MM-DD HH:MM:SS)")
        return ensure_aware(parsed, zone)
