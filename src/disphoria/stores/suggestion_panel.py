from __future__ import annotations

from typing import Any

from disphoria.leaderboard import to_count
from disphoria.stores.panels import PanelStore


SUGGESTION_CONFIG_FILE = "suggestion_config.json"


class SuggestionPanelStore(PanelStore):
    def __init__(self, **kwargs: Any) -> None:
        super().__init__(SUGGESTION_CONFIG_FILE, **kwargs)

    async def next_suggestion_number(self, guild_id: str) -> int:
        """Allocate the next sequential suggestion number for a guild, starting at 1."""

        def apply(record: dict[str, Any]) -> int:
            number = to_count(record.get("nextNumber")) or 1
            record["nextNumber"] = number + 1
            return number

        return await self.update(guild_id, apply)
