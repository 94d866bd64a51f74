import json
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Self

from lifelog_cache.type_defs import JsonObject, is_json_object
from lifelog_cache.utils import ensure_aware, parse_datetime


@dataclass(frozen=True)
class LifelogEntry:
    """One lifelog as delivered by the provider.

    ``payload`` is the provider's JSON body serialized once on arrival and never
    re-encoded afterwards, so fields the cache does not know about survive intact.
    """

    id: str
    start_time: datetime
    payload: str

    @classmethod
    def from_dict(cls, data: JsonObject) -> Self:
        raw_id = data.get("id")
        if isinstance(raw_id, bool) or not isinstance(raw_id, (str, int)) or str(raw_id).strip() == "":
            raise ValueError(f"Lifelog is missing a usable id: {raw_id!r}")

        raw_start_time = data.get("startTime")
        start_time = parse_datetime(raw_start_time) if isinstance(raw_start_time, str) else None
        if start_time is None:
            raise ValueError(f"Lifelog {raw_id} has an invalid startTime: {raw_start_time!r}")

        return cls(
            id=str(raw_id),
            start_time=ensure_aware(start_time).astimezone(timezone.utc),
            payload=json.dumps(data, ensure_ascii=False),
        )

    def to_dict(self) -> JsonObject:
        data = json.loads(self.payload)
        if not is_json_object(data):
            raise ValueError(f"Stored payload for lifelog {self.id} is not a JSON object")
        return data


@dataclass(frozen=True)
class LifelogPage:
    entries: list[LifelogEntry]
    next_cursor: str | None = None
