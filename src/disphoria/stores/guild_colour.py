from __future__ import annotations

from typing import Any

from disphoria.config import DEFAULT_EMBED_COLOUR
from disphoria.storage import JsonStore, is_clear


GUILD_COLOUR_FILE = "guild_colours.json"
MAX_COLOUR = 0xFFFFFF


def parse_colour(value: Any) -> int | None:
    """Accept an int or a ``#RRGGBB``/``0xRRGGBB`` string; blank or None means no colour."""
    if is_clear(value):
        return None
    if isinstance(value, bool):
        raise ValueError("Colour must be an integer or hex string.")
    if isinstance(value, int):
        colour = value
    elif isinstance(value, str):
        text = value.strip().lower()
        if not text:
            return None
        if text.startswith("#"):
            text = text[1:]
        elif text.startswith("0x"):
            text = text[2:]
        try:
            colour = int(text, 16)
        except ValueError as exc:
            raise ValueError(f"Invalid hex colour: {value!r}") from exc
    else:
        raise ValueError("Colour must be an integer or hex string.")
    if not 0 <= colour <= MAX_COLOUR:
        raise ValueError(f"Colour {colour:#x} is outside the RGB range.")
    return colour


class GuildColourStore(JsonStore):
    def __init__(self, *, default_colour: int = DEFAULT_EMBED_COLOUR, **kwargs: Any) -> None:
        super().__init__(GUILD_COLOUR_FILE, **kwargs)
        self.default_colour = default_colour

    def get_colour(self, guild_id: str) -> int | None:
        try:
            return parse_colour(self.get(guild_id, "colour"))
        except ValueError:
            return None

    async def set_colour(self, guild_id: str, colour: int | str | None) -> int | None:
        parsed = parse_colour(colour)
        await self.set(guild_id, "colour", value=parsed)
        return parsed

    def resolve_embed_colour(self, guild_id: str, fallback: int | None = None) -> int:
        colour = self.get_colour(guild_id)
        if colour is not None:
            return colour
        return self.default_colour if fallback is None else fallback
