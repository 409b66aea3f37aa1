from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any

from disphoria.storage import JsonStore, check_key


LEAVE_TRACKER_FILE = "leave_tracker.json"


@dataclass(frozen=True)
class LeaveTrackerConfig:
    channel_id: str
    enabled: bool
    updated_at: str | None
    updated_by: str | None


class LeaveTrackerStore(JsonStore):
    def __init__(self, **kwargs: Any) -> None:
        super().__init__(LEAVE_TRACKER_FILE, **kwargs)

    def get_config(self, guild_id: str) -> LeaveTrackerConfig | None:
        record = self.get_all(guild_id)
        if not record or not record.get("channelId"):
            return None
        return LeaveTrackerConfig(
            channel_id=str(record["channelId"]),
            enabled=record.get("enabled") is not False,
            updated_at=record.get("updatedAt") or None,
            updated_by=record.get("updatedBy") or None,
        )

    async def set_config(self, guild_id: str, channel_id: str, updated_by: str | None = None) -> LeaveTrackerConfig | None:
        record = {
            "channelId": check_key(channel_id, "channel_id"),
            "enabled": True,
            "updatedAt": _now(),
        }
        if updated_by:
            record["updatedBy"] = str(updated_by)
        await self.set(guild_id, value=record)
        return self.get_config(guild_id)

    async def disable(self, guild_id: str) -> LeaveTrackerConfig | None:
        def apply(record: dict[str, Any]) -> None:
            record["enabled"] = False
            record["updatedAt"] = _now()

        await self.update(guild_id, apply)
        return self.get_config(guild_id)


def _now() -> str:
    return datetime.now(tz=timezone.utc).isoformat()
