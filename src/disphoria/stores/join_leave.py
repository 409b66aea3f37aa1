from __future__ import annotations

import time
from dataclasses import dataclass
from typing import Any

from disphoria.config import DEFAULT_LEADERBOARD_LIMIT
from disphoria.leaderboard import CounterStore, EntryFilter, LeaderboardEntry, to_count


JOIN_LEAVE_FILE = "join_leave.json"
COUNTER_FIELDS = {
    "join": "joins",
    "joins": "joins",
    "leave": "leaves",
    "leaves": "leaves",
}


def counter_field_for(kind: str) -> str:
    field = COUNTER_FIELDS.get(str(kind or "").strip().lower())
    if field is None:
        raise ValueError(f"Unknown join/leave kind: {kind!r}")
    return field


@dataclass(frozen=True)
class JoinLeaveStats:
    joins: int
    leaves: int
    last_join_at: int | None = None
    last_leave_at: int | None = None
    last_leave_reason: str | None = None

    @staticmethod
    def from_row(row: dict[str, Any]) -> "JoinLeaveStats":
        return JoinLeaveStats(
            joins=to_count(row.get("joins")),
            leaves=to_count(row.get("leaves")),
            last_join_at=_optional_int(row.get("lastJoinAt")),
            last_leave_at=_optional_int(row.get("lastLeaveAt")),
            last_leave_reason=row.get("lastLeaveReason") or None,
        )


class JoinLeaveStore(CounterStore):
    def __init__(self, *, default_limit: int = DEFAULT_LEADERBOARD_LIMIT, **kwargs: Any) -> None:
        super().__init__(JOIN_LEAVE_FILE, counter_fields=("joins", "leaves"), **kwargs)
        self.default_limit = default_limit

    async def add_event(
        self,
        guild_id: str,
        user_id: str,
        kind: str,
        timestamp: int | None = None,
        meta: dict[str, Any] | None = None,
    ) -> JoinLeaveStats:
        field = counter_field_for(kind)
        ts = int(timestamp) if timestamp is not None else int(time.time() * 1000)
        if field == "joins":
            extra: dict[str, Any] = {"lastJoinAt": ts}
        else:
            reason = str((meta or {}).get("reason") or "").strip()
            extra = {"lastLeaveAt": ts, "lastLeaveReason": reason or None}
        row = await self.increment(guild_id, user_id, field, extra=extra)
        return JoinLeaveStats.from_row(row)

    def get_user_stats(self, guild_id: str, user_id: str) -> JoinLeaveStats | None:
        row = self.get_counters(guild_id, user_id)
        return JoinLeaveStats.from_row(row) if row is not None else None

    def get_leaderboard(
        self,
        guild_id: str,
        kind: str,
        predicate: EntryFilter | None = None,
        limit: int | None = None,
    ) -> list[LeaderboardEntry]:
        if limit is None:
            limit = self.default_limit
        return super().get_leaderboard(guild_id, counter_field_for(kind), predicate, limit)


def _optional_int(value: Any) -> int | None:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None
