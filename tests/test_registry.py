from __future__ import annotations

import asyncio
from pathlib import Path

import pytest

from disphoria.config import Settings
from disphoria.registry import StoreRegistry
from disphoria.services.logger_service import LoggerService


SETTINGS_ENV_KEYS = ("DISPHORIABOT_DATA_DIR", "DISPHORIABOT_DEFAULT_EMBED_COLOUR", "DISPHORIABOT_LEADERBOARD_LIMIT")


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    for key in SETTINGS_ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


def _make_settings(tmp_path: Path) -> Settings:
    return Settings(
        data_dir=tmp_path / "data",
        default_embed_colour=0x123456,
        leaderboard_limit=3,
    )


def test_registry_wires_every_store_to_one_directory(tmp_path: Path) -> None:
    registry = StoreRegistry.create(_make_settings(tmp_path), logger=LoggerService(echo=False))
    asyncio.run(registry.load_all())

    assert (tmp_path / "data").is_dir()
    assert all(store.loaded for store in registry.stores())
    filenames = [store.filename for store in registry.stores()]
    assert len(set(filenames)) == len(filenames)
    assert "sacrifice_config.json" in filenames
    assert "booster_role_config.json" in filenames
    assert "join_leave.json" in filenames
    assert registry.colours.resolve_embed_colour("g") == 0x123456
    assert registry.join_leave.default_limit == 3


def test_stores_write_independently(tmp_path: Path) -> None:
    registry = StoreRegistry.create(_make_settings(tmp_path), logger=LoggerService(echo=False))

    async def scenario() -> None:
        await asyncio.gather(
            registry.sacrifice.set_panel_gif("g", "c", "https://x/a.gif"),
            registry.booster_roles.set_panel("g", "1", "2"),
            registry.join_leave.add_event("g", "u", "leave", 5),
            registry.colours.set_colour("g", 0xFF00FF),
        )

    asyncio.run(scenario())

    fresh = StoreRegistry.create(_make_settings(tmp_path), logger=LoggerService(echo=False))
    assert fresh.sacrifice.get_panel_gif("g", "c") == "https://x/a.gif"
    assert fresh.booster_roles.get_panel("g").message_id == "2"
    assert fresh.join_leave.get_user_stats("g", "u").leaves == 1
    assert fresh.colours.get_colour("g") == 0xFF00FF


def test_reset_cache_follows_new_env_override(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DISPHORIABOT_DATA_DIR", str(tmp_path / "one"))
    registry = StoreRegistry.create(logger=LoggerService(echo=False))
    asyncio.run(registry.sacrifice.set_panel_gif("g", "c", "https://x/one.gif"))
    assert (tmp_path / "one" / "sacrifice_config.json").exists()

    monkeypatch.setenv("DISPHORIABOT_DATA_DIR", str(tmp_path / "two"))
    registry.reset_cache()
    assert registry.sacrifice.get_panel_gif("g", "c") is None
    asyncio.run(registry.sacrifice.set_panel_gif("g", "c", "https://x/two.gif"))
    assert (tmp_path / "two" / "sacrifice_config.json").exists()


def test_settings_load_reads_file_and_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "settings.txt"
    path.write_text(
        "# store settings\nDATA_DIR=/srv/disphoria\nDEFAULT_EMBED_COLOUR=#00F0FF\nnot a setting\nLEADERBOARD_LIMIT=25\n",
        encoding="utf-8",
    )
    settings = Settings.load(path)
    assert settings.data_dir == Path("/srv/disphoria")
    assert settings.default_embed_colour == 0x00F0FF
    assert settings.leaderboard_limit == 25

    monkeypatch.setenv("DISPHORIABOT_DATA_DIR", str(tmp_path))
    monkeypatch.setenv("DISPHORIABOT_LEADERBOARD_LIMIT", "0")
    overridden = Settings.load(path)
    assert overridden.data_dir == tmp_path
    assert overridden.leaderboard_limit == 1


def test_settings_defaults_without_file(tmp_path: Path) -> None:
    settings = Settings.load(tmp_path / "missing.txt")
    assert settings.data_dir is None
    assert settings.leaderboard_limit == 10


def test_settings_reject_bad_colour(tmp_path: Path) -> None:
    path = tmp_path / "settings.txt"
    path.write_text("DEFAULT_EMBED_COLOUR=purple\n", encoding="utf-8")
    with pytest.raises(RuntimeError):
        Settings.load(path)
