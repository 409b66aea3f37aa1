from __future__ import annotations

import os
from pathlib import Path

from disphoria.config import DATA_DIR_ENV
from disphoria.errors import StorageUnavailable


DEFAULT_DATA_DIR = Path("data")


class DataDirResolver:
    """
    Decide where store files live and make sure the directory exists.

    Resolution order is the explicit ``override`` given to the constructor, then
    the ``DISPHORIABOT_DATA_DIR`` environment variable, then ``data`` relative to
    the working directory the bot is started from.
    The answer is memoized until ``reset_cache`` is called, so tests that swap the
    environment variable between cases must reset in their teardown.
    """

    def __init__(self, override: Path | str | None = None, *, env_var: str = DATA_DIR_ENV, default: Path = DEFAULT_DATA_DIR) -> None:
        self.override = Path(override) if override else None
        self.env_var = env_var
        self.default = default
        self._cached: Path | None = None

    def resolve(self) -> Path:
        if self._cached is not None:
            return self._cached
        target = self._candidate()
        try:
            target.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            raise StorageUnavailable(f"Cannot create data directory {target}: {exc}") from exc
        if not target.is_dir():
            raise StorageUnavailable(f"Data directory {target} is not a directory.")
        self._cached = target
        return target

    def path_for(self, filename: str) -> Path:
        return self.resolve() / filename

    def reset_cache(self) -> None:
        self._cached = None

    def _candidate(self) -> Path:
        if self.override is not None:
            return self.override.expanduser()
        env_value = os.getenv(self.env_var, "").strip()
        if env_value:
            return Path(env_value).expanduser()
        return self.default


_DEFAULT_RESOLVER = DataDirResolver()


def default_resolver() -> DataDirResolver:
    return _DEFAULT_RESOLVER


def resolve_data_dir() -> Path:
    return _DEFAULT_RESOLVER.resolve()


def resolve_data_path(filename: str) -> Path:
    return _DEFAULT_RESOLVER.path_for(filename)


def reset_data_dir_cache() -> None:
    _DEFAULT_RESOLVER.reset_cache()
