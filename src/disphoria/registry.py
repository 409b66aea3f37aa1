from __future__ import annotations

import asyncio
from dataclasses import dataclass

from disphoria.config import DEFAULT_EMBED_COLOUR, DEFAULT_LEADERBOARD_LIMIT, Settings
from disphoria.data_dir import DataDirResolver
from disphoria.services.logger_service import LoggerService
from disphoria.storage import JsonStore
from disphoria.stores.booster_role_config import BoosterRoleConfigStore
from disphoria.stores.guild_colour import GuildColourStore
from disphoria.stores.join_leave import JoinLeaveStore
from disphoria.stores.leave_tracker import LeaveTrackerStore
from disphoria.stores.sacrifice_config import SacrificeConfigStore
from disphoria.stores.suggestion_panel import SuggestionPanelStore


@dataclass
class StoreRegistry:
    resolver: DataDirResolver
    logger: LoggerService
    sacrifice: SacrificeConfigStore
    booster_roles: BoosterRoleConfigStore
    suggestions: SuggestionPanelStore
    join_leave: JoinLeaveStore
    colours: GuildColourStore
    leave_tracker: LeaveTrackerStore

    @classmethod
    def create(cls, settings: Settings | None = None, *, logger: LoggerService | None = None) -> "StoreRegistry":
        resolver = DataDirResolver(settings.data_dir if settings else None)
        logger = logger or LoggerService()
        shared = {"resolver": resolver, "logger": logger}
        return cls(
            resolver=resolver,
            logger=logger,
            sacrifice=SacrificeConfigStore(**shared),
            booster_roles=BoosterRoleConfigStore(**shared),
            suggestions=SuggestionPanelStore(**shared),
            join_leave=JoinLeaveStore(
                default_limit=settings.leaderboard_limit if settings else DEFAULT_LEADERBOARD_LIMIT,
                **shared,
            ),
            colours=GuildColourStore(
                default_colour=settings.default_embed_colour if settings else DEFAULT_EMBED_COLOUR,
                **shared,
            ),
            leave_tracker=LeaveTrackerStore(**shared),
        )

    def stores(self) -> list[JsonStore]:
        return [
            self.sacrifice,
            self.booster_roles,
            self.suggestions,
            self.join_leave,
            self.colours,
            self.leave_tracker,
        ]

    async def load_all(self) -> None:
        self.resolver.resolve()
        await asyncio.gather(*(store.load() for store in self.stores()))

    def reset_cache(self) -> None:
        self.resolver.reset_cache()
        for store in self.stores():
            store.reset_cache()
