from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable

from disphoria.storage import JsonStore, check_key, clone_value


@dataclass(frozen=True)
class LeaderboardEntry:
    user_id: str
    value: int
    counters: dict[str, Any]

    def count(self, field: str) -> int:
        return to_count(self.counters.get(field))


EntryFilter = Callable[[LeaderboardEntry], bool]


class CounterStore(JsonStore):
    """
    Per-guild ``{user_id: {field: count}}`` counters with ranked views.

    Counters only go up. Rankings are computed from the resident document on
    each call; entries with equal values keep the order in which their users
    were first recorded.
    """

    def __init__(self, filename: str, *, counter_fields: tuple[str, ...], **kwargs: Any) -> None:
        super().__init__(filename, **kwargs)
        self.counter_fields = tuple(counter_fields)

    def get_counters(self, guild_id: str, user_id: str) -> dict[str, Any] | None:
        row = self.get(guild_id, user_id)
        return row if isinstance(row, dict) else None

    async def increment(
        self,
        guild_id: str,
        user_id: str,
        counter_field: str,
        *,
        extra: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        uid = check_key(user_id, "user_id")
        field = check_key(counter_field, "counter_field")
        extra_fields = clone_value(extra) or {}

        def apply(record: dict[str, Any]) -> dict[str, Any]:
            row = record.get(uid)
            if not isinstance(row, dict):
                row = {}
                record[uid] = row
            for name in self.counter_fields:
                row.setdefault(name, 0)
            row[field] = to_count(row.get(field)) + 1
            for key, value in extra_fields.items():
                if value is None:
                    row.pop(key, None)
                else:
                    row[key] = value
            return clone_value(row)

        return await self.update(guild_id, apply)

    def get_leaderboard(
        self,
        guild_id: str,
        counter_field: str,
        predicate: EntryFilter | None = None,
        limit: int = 10,
    ) -> list[LeaderboardEntry]:
        record = self.get_all(guild_id)
        if not record or int(limit) <= 0:
            return []
        entries: list[LeaderboardEntry] = []
        for user_id, row in record.items():
            if not isinstance(row, dict):
                continue
            entry = LeaderboardEntry(user_id=user_id, value=to_count(row.get(counter_field)), counters=row)
            if predicate is not None and not predicate(entry):
                continue
            entries.append(entry)
        # sorted() is stable, including with reverse=True.
        entries.sort(key=lambda entry: entry.value, reverse=True)
        return entries[: int(limit)]


def to_count(value: Any) -> int:
    if isinstance(value, bool):
        return 0
    try:
        out = int(value)
    except (TypeError, ValueError, OverflowError):
        return 0
    return out if out > 0 else 0
