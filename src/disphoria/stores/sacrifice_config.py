from __future__ import annotations

from typing import Any

from disphoria.storage import JsonStore


SACRIFICE_CONFIG_FILE = "sacrifice_config.json"


def normalize_gif_url(value: Any) -> str | None:
    if not isinstance(value, str):
        return None
    trimmed = value.strip()
    return trimmed or None


class SacrificeConfigStore(JsonStore):
    """Per-channel GIF overrides for sacrifice panels: ``channels.<id>.gifUrl``."""

    def __init__(self, **kwargs: Any) -> None:
        super().__init__(SACRIFICE_CONFIG_FILE, **kwargs)

    def get_panel_gif(self, guild_id: str, channel_id: str) -> str | None:
        return normalize_gif_url(self.get(guild_id, "channels", channel_id, "gifUrl"))

    async def set_panel_gif(self, guild_id: str, channel_id: str, gif_url: str | None) -> None:
        url = normalize_gif_url(gif_url)
        if url is None:
            await self.delete(guild_id, "channels", channel_id)
            return
        await self.set(guild_id, "channels", channel_id, value={"gifUrl": url})

    def list_panel_gifs(self, guild_id: str) -> dict[str, str]:
        channels = self.get(guild_id, "channels")
        if not isinstance(channels, dict):
            return {}
        out: dict[str, str] = {}
        for channel_id, record in channels.items():
            url = normalize_gif_url(record.get("gifUrl")) if isinstance(record, dict) else None
            if url:
                out[channel_id] = url
        return out
