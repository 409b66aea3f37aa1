from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


DATA_DIR_ENV = "DISPHORIABOT_DATA_DIR"
DEFAULT_EMBED_COLOUR = 0x5865F2
DEFAULT_LEADERBOARD_LIMIT = 10


@dataclass(frozen=True)
class Settings:
    data_dir: Path | None
    default_embed_colour: int
    leaderboard_limit: int

    @staticmethod
    def load(path: Path = Path("settings.txt")) -> "Settings":
        values = _parse_settings_file(path)
        for key in ("DATA_DIR", "DEFAULT_EMBED_COLOUR", "LEADERBOARD_LIMIT"):
            env_value = os.getenv(f"DISPHORIABOT_{key}")
            if env_value is not None:
                values[key] = env_value
        raw_dir = values.get("DATA_DIR", "").strip()
        data_dir = Path(raw_dir) if raw_dir else None
        try:
            colour = int(values.get("DEFAULT_EMBED_COLOUR", f"{DEFAULT_EMBED_COLOUR:06X}").strip().lstrip("#"), 16)
        except ValueError as exc:
            raise RuntimeError("DEFAULT_EMBED_COLOUR must be a hex colour like #5865F2.") from exc
        try:
            limit = int(values.get("LEADERBOARD_LIMIT", str(DEFAULT_LEADERBOARD_LIMIT)))
        except ValueError as exc:
            raise RuntimeError("LEADERBOARD_LIMIT must be an integer.") from exc
        if not 0 <= colour <= 0xFFFFFF:
            raise RuntimeError("DEFAULT_EMBED_COLOUR is outside the RGB range.")
        return Settings(
            data_dir=data_dir,
            default_embed_colour=colour,
            leaderboard_limit=max(1, limit),
        )


def _parse_settings_file(path: Path) -> dict[str, str]:
    values: dict[str, str] = {}
    if not path.exists():
        return values
    for raw_line in path.read_text(encoding="utf-8").splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        values[key.strip()] = value.strip()
    return values
