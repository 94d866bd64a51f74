from lifelog_cache.utils.datetime import (
    API_DATE_FMT,
    API_DATETIME_FMT,
    day_bounds,
    ensure_aware,
    format_api_datetime,
    get_zone,
    parse_date,
    parse_datetime,
    retention_cutoff,
)

__all__ = [
    "API_DATE_FMT",
    "API_DATETIME_FMT",
    "day_bounds",
    "ensure_aware",
    "format_api_datetime",
    "get_zone",
    "parse_date",
    "parse_datetime",
    "retention_cutoff",
]
