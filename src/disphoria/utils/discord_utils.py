from __future__ import annotations

import discord

from disphoria.services.logger_service import LoggerService
from disphoria.stores.guild_colour import GuildColourStore
from disphoria.stores.panels import PanelRecord


def apply_default_colour(
    embed: discord.Embed,
    colours: GuildColourStore,
    guild_id: str,
    fallback: int | None = None,
) -> discord.Embed:
    embed.colour = discord.Colour(colours.resolve_embed_colour(guild_id, fallback))
    return embed


async def retire_previous_panel(
    guild: discord.Guild,
    panel: PanelRecord | None,
    *,
    keep_channel_id: str | int | None = None,
    logger: LoggerService | None = None,
) -> bool:
    """
    Delete a guild's previously posted panel message before a new one is recorded.

    This is best-effort: a panel that was already deleted, lives in a channel we can
    no longer see, or fails to delete for any Discord HTTP reason is logged and
    skipped so the new panel can still be posted and saved. A panel in
    ``keep_channel_id`` is left alone because the caller edits it in place.
    """

    if panel is None:
        return False
    if keep_channel_id is not None and str(keep_channel_id) == panel.channel_id:
        return False
    try:
        channel = guild.get_channel(int(panel.channel_id))
        if channel is None:
            channel = await guild.fetch_channel(int(panel.channel_id))
        message = await channel.fetch_message(int(panel.message_id))
        await message.delete()
    except (discord.Forbidden, discord.HTTPException) as exc:
        if logger is not None:
            logger.log(
                "panel.retire_failed",
                guild_id=str(guild.id),
                channel_id=panel.channel_id,
                message_id=panel.message_id,
                error=str(exc),
            )
        return False
    return True
