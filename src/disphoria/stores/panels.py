from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from disphoria.storage import JsonStore, check_key


@dataclass(frozen=True)
class PanelRecord:
    channel_id: str
    message_id: str


class PanelStore(JsonStore):
    """Tracks the one live control panel message a guild has per store."""

    def get_panel(self, guild_id: str) -> PanelRecord | None:
        record = self.get_all(guild_id) or {}
        channel_id = str(record.get("channelId") or "").strip()
        message_id = str(record.get("messageId") or "").strip()
        if not channel_id or not message_id:
            return None
        return PanelRecord(channel_id=channel_id, message_id=message_id)

    async def set_panel(self, guild_id: str, channel_id: str, message_id: str) -> PanelRecord:
        panel = PanelRecord(
            channel_id=check_key(channel_id, "channel_id"),
            message_id=check_key(message_id, "message_id"),
        )

        def apply(record: dict[str, Any]) -> None:
            record["channelId"] = panel.channel_id
            record["messageId"] = panel.message_id

        await self.update(guild_id, apply)
        return panel

    async def clear_panel(self, guild_id: str) -> None:
        def apply(record: dict[str, Any]) -> None:
            record.pop("channelId", None)
            record.pop("messageId", None)

        await self.update(guild_id, apply)
