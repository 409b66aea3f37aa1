from __future__ import annotations

from typing import Any

from disphoria.stores.panels import PanelStore


BOOSTER_ROLE_CONFIG_FILE = "booster_role_config.json"


class BoosterRoleConfigStore(PanelStore):
    def __init__(self, **kwargs: Any) -> None:
        super().__init__(BOOSTER_ROLE_CONFIG_FILE, **kwargs)

    def is_enabled(self, guild_id: str) -> bool:
        value = self.get(guild_id, "enabled")
        return True if value is None else bool(value)

    async def set_enabled(self, guild_id: str, enabled: bool) -> bool:
        await self.set(guild_id, "enabled", value=bool(enabled))
        return bool(enabled)
