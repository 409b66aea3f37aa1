from __future__ import annotations

import asyncio
import contextlib
import json
import os
from pathlib import Path
from typing import Any, Callable, Iterable

import aiofiles

from disphoria.data_dir import DataDirResolver, default_resolver
from disphoria.errors import CorruptStore, InvalidKey, StorageUnavailable
from disphoria.services.logger_service import LoggerService


DEFAULT_TOP_KEY = "guilds"


class JsonStore:
    """
    One JSON document per store, keyed ``{top_key: {guild_id: record}}``.

    The document is loaded at most once per process and kept resident. Every
    mutation runs under the store lock against a copy of the guild record; the
    new document is written to ``<file>.tmp`` and renamed over the target before
    it replaces the in-memory document, so a failed write leaves both disk and
    memory as they were. Readers always get copies.
    """

    def __init__(
        self,
        filename: str,
        *,
        top_key: str = DEFAULT_TOP_KEY,
        resolver: DataDirResolver | None = None,
        logger: LoggerService | None = None,
    ) -> None:
        self.filename = filename
        self.top_key = top_key
        self.resolver = resolver or default_resolver()
        self.logger = logger or LoggerService()
        self._lock = asyncio.Lock()
        self._data: dict[str, Any] | None = None
        self._path: Path | None = None

    @property
    def path(self) -> Path:
        if self._path is None:
            self._path = self.resolver.path_for(self.filename)
        return self._path

    @property
    def loaded(self) -> bool:
        return self._data is not None

    async def load(self) -> None:
        if self._data is not None:
            return
        async with self._lock:
            await self._load_unlocked()

    async def _load_unlocked(self) -> dict[str, Any]:
        if self._data is not None:
            return self._data
        path = self.path
        try:
            async with aiofiles.open(path, "r", encoding="utf-8") as f:
                raw: str | None = await f.read()
        except FileNotFoundError:
            raw = None
        except (OSError, UnicodeDecodeError) as exc:
            self._data = self._recover(CorruptStore(path, str(exc)))
            return self._data
        self._data = self._decode(path, raw)
        return self._data

    def _ensure_loaded(self) -> dict[str, Any]:
        # Reads before load() fall back to one blocking read.
        if self._data is not None:
            return self._data
        path = self.path
        try:
            raw: str | None = path.read_text(encoding="utf-8")
        except FileNotFoundError:
            raw = None
        except (OSError, UnicodeDecodeError) as exc:
            self._data = self._recover(CorruptStore(path, str(exc)))
            return self._data
        self._data = self._decode(path, raw)
        return self._data

    def _decode(self, path: Path, raw: str | None) -> dict[str, Any]:
        if raw is None or not raw.strip():
            self.logger.log("store.loaded", store=self.filename, guilds=0, created=raw is None)
            return self._empty()
        try:
            parsed = json.loads(raw)
        except (ValueError, RecursionError) as exc:
            return self._recover(CorruptStore(path, f"invalid JSON: {exc}"))
        if not isinstance(parsed, dict):
            return self._recover(CorruptStore(path, "top-level value is not an object"))
        guilds = parsed.setdefault(self.top_key, {})
        if not isinstance(guilds, dict):
            return self._recover(CorruptStore(path, f"'{self.top_key}' is not an object"))
        dropped = [key for key, value in guilds.items() if not isinstance(value, dict)]
        for key in dropped:
            guilds.pop(key, None)
        self.logger.log("store.loaded", store=self.filename, guilds=len(guilds), dropped=len(dropped))
        return parsed

    def _recover(self, error: CorruptStore) -> dict[str, Any]:
        self.logger.log("store.corrupt", store=self.filename, path=str(error.path), reason=error.reason)
        return self._empty()

    def _empty(self) -> dict[str, Any]:
        return {self.top_key: {}}

    def get(self, guild_id: str, *keys: str) -> Any:
        gid = check_key(guild_id, "guild_id")
        path = [check_key(key, "key") for key in keys]
        node: Any = self._guilds().get(gid)
        for key in path:
            if not isinstance(node, dict):
                return None
            node = node.get(key)
        return clone_value(node)

    def get_all(self, guild_id: str) -> dict[str, Any] | None:
        gid = check_key(guild_id, "guild_id")
        record = self._guilds().get(gid)
        return clone_value(record) if isinstance(record, dict) else None

    def guild_ids(self) -> list[str]:
        return list(self._guilds().keys())

    def snapshot(self) -> dict[str, Any]:
        return clone_value(self._ensure_loaded())

    def _guilds(self) -> dict[str, Any]:
        return self._ensure_loaded()[self.top_key]

    async def set(self, guild_id: str, *keys: str, value: Any) -> None:
        gid = check_key(guild_id, "guild_id")
        path = [check_key(key, "key") for key in keys]
        if is_clear(value):
            await self._mutate(gid, lambda record: _remove_path(record, path))
            return
        stored = clone_value(value)
        if not path and not isinstance(stored, dict):
            raise TypeError("A whole guild record must be a mapping.")

        def apply(record: dict[str, Any]) -> None:
            if not path:
                record.clear()
                record.update(stored)
                return
            node = record
            for key in path[:-1]:
                child = node.get(key)
                if not isinstance(child, dict):
                    child = {}
                    node[key] = child
                node = child
            node[path[-1]] = stored

        await self._mutate(gid, apply)

    async def delete(self, guild_id: str, *keys: str) -> None:
        await self.set(guild_id, *keys, value=None)

    async def update(self, guild_id: str, mutator: Callable[[dict[str, Any]], Any]) -> Any:
        """Run ``mutator`` on a copy of the guild record and persist the result."""
        return await self._mutate(check_key(guild_id, "guild_id"), mutator)

    async def _mutate(self, guild_id: str, mutator: Callable[[dict[str, Any]], Any]) -> Any:
        # Once started, a write finishes even if the awaiting caller is cancelled.
        task = asyncio.ensure_future(self._mutate_locked(guild_id, mutator))
        try:
            return await asyncio.shield(task)
        except asyncio.CancelledError:
            task.add_done_callback(self._report_orphaned_write)
            raise

    def _report_orphaned_write(self, task: asyncio.Future) -> None:
        if task.cancelled():
            return
        exc = task.exception()
        if exc is not None:
            self.logger.log("store.write_failed", store=self.filename, path=str(self.path), error=str(exc), orphaned=True)

    async def _mutate_locked(self, guild_id: str, mutator: Callable[[dict[str, Any]], Any]) -> Any:
        async with self._lock:
            current = await self._load_unlocked()
            guilds = dict(current[self.top_key])
            record = guilds.get(guild_id)
            record = clone_value(record) if isinstance(record, dict) else {}
            result = mutator(record)
            _prune(record)
            if record:
                guilds[guild_id] = record
            else:
                guilds.pop(guild_id, None)
            draft = dict(current)
            draft[self.top_key] = guilds
            await self._write_unlocked(draft)
            self._data = draft
            return result

    async def _write_unlocked(self, document: dict[str, Any]) -> None:
        path = self.path
        tmp = path.with_suffix(path.suffix + ".tmp")
        payload = json.dumps(document, indent=2, ensure_ascii=False)
        try:
            async with aiofiles.open(tmp, "w", encoding="utf-8") as f:
                await f.write(payload)
            os.replace(tmp, path)
        except OSError as exc:
            with contextlib.suppress(OSError):
                tmp.unlink()
            self.logger.log("store.write_failed", store=self.filename, path=str(path), error=str(exc))
            raise StorageUnavailable(f"Failed to write {path}: {exc}") from exc

    def reset_cache(self) -> None:
        self._data = None
        self._path = None
        self._lock = asyncio.Lock()


def check_key(value: Any, label: str) -> str:
    if value is None:
        raise InvalidKey(f"{label} is required.")
    text = str(value).strip()
    if not text:
        raise InvalidKey(f"{label} must not be empty.")
    return text


def is_clear(value: Any) -> bool:
    return value is None or (isinstance(value, str) and value == "")


def clone_value(value: Any) -> Any:
    if value is None:
        return None
    # Copies hold exactly what the file would: string keys, unbounded ints.
    return json.loads(json.dumps(value))


def _remove_path(record: dict[str, Any], path: Iterable[str]) -> None:
    keys = list(path)
    if not keys:
        record.clear()
        return
    node: Any = record
    for key in keys[:-1]:
        node = node.get(key) if isinstance(node, dict) else None
        if node is None:
            return
    if isinstance(node, dict):
        node.pop(keys[-1], None)


def _prune(node: dict[str, Any]) -> None:
    for key in list(node.keys()):
        child = node[key]
        if isinstance(child, dict):
            _prune(child)
            if not child:
                del node[key]
