from __future__ import annotations

import asyncio
import json
from pathlib import Path

from disphoria.data_dir import DataDirResolver
from disphoria.leaderboard import CounterStore, LeaderboardEntry, to_count
from disphoria.services.logger_service import LoggerService


def _make_store(tmp_path: Path) -> CounterStore:
    return CounterStore(
        "counters.json",
        counter_fields=("joins", "leaves"),
        resolver=DataDirResolver(tmp_path),
        logger=LoggerService(echo=False),
    )


def _seed(store: CounterStore, guild_id: str, rows: list[tuple[str, dict]]) -> None:
    async def scenario() -> None:
        for user_id, row in rows:
            await store.set(guild_id, user_id, value=row)

    asyncio.run(scenario())


def _ids(entries: list[LeaderboardEntry]) -> list[str]:
    return [entry.user_id for entry in entries]


def test_descending_with_insertion_order_tie_break(tmp_path: Path) -> None:
    store = _make_store(tmp_path)
    _seed(
        store,
        "g",
        [
            ("u1", {"joins": 1, "leaves": 5}),
            ("u3", {"joins": 1, "leaves": 9}),
            ("u2", {"joins": 1, "leaves": 9}),
        ],
    )

    board = store.get_leaderboard("g", "leaves", None, 10)

    assert _ids(board) == ["u3", "u2", "u1"]
    assert [entry.value for entry in board] == [9, 9, 5]
    assert board[0].count("joins") == 1


def test_tie_break_survives_reload(tmp_path: Path) -> None:
    store = _make_store(tmp_path)
    _seed(store, "g", [("b", {"leaves": 2}), ("a", {"leaves": 2}), ("c", {"leaves": 3})])

    reloaded = _make_store(tmp_path)
    assert _ids(reloaded.get_leaderboard("g", "leaves", None, 10)) == ["c", "b", "a"]
    assert _ids(reloaded.get_leaderboard("g", "leaves", None, 10)) == ["c", "b", "a"]


def test_limit_is_enforced(tmp_path: Path) -> None:
    store = _make_store(tmp_path)
    _seed(store, "g", [("u1", {"leaves": 1}), ("u2", {"leaves": 2}), ("u3", {"leaves": 3})])

    assert _ids(store.get_leaderboard("g", "leaves", None, 1)) == ["u3"]
    assert store.get_leaderboard("g", "leaves", None, 0) == []
    assert store.get_leaderboard("g", "leaves", None, -4) == []


def test_unknown_guild_is_empty(tmp_path: Path) -> None:
    store = _make_store(tmp_path)
    assert store.get_leaderboard("nobody", "leaves", None, 10) == []


def test_missing_field_counts_as_zero(tmp_path: Path) -> None:
    store = _make_store(tmp_path)
    _seed(store, "g", [("u1", {"joins": 4}), ("u2", {"joins": 2}), ("u3", {"leaves": "junk"})])

    board = store.get_leaderboard("g", "bans", None, 10)

    assert _ids(board) == ["u1", "u2", "u3"]
    assert all(entry.value == 0 for entry in board)
    assert board[2].count("leaves") == 0


def test_predicate_filters_entries(tmp_path: Path) -> None:
    store = _make_store(tmp_path)
    _seed(store, "g", [("u1", {"leaves": 1}), ("u2", {"leaves": 7}), ("u3", {"leaves": 3})])

    board = store.get_leaderboard("g", "leaves", lambda entry: entry.value >= 3, 10)

    assert _ids(board) == ["u2", "u3"]


def test_increment_creates_zeroed_record_and_persists(tmp_path: Path) -> None:
    store = _make_store(tmp_path)

    row = asyncio.run(store.increment("g", "u1", "leaves"))
    assert row == {"joins": 0, "leaves": 1}

    row = asyncio.run(store.increment("g", "u1", "leaves", extra={"note": "x"}))
    assert row == {"joins": 0, "leaves": 2, "note": "x"}

    row = asyncio.run(store.increment("g", "u1", "joins", extra={"note": None}))
    assert row == {"joins": 1, "leaves": 2}

    saved = json.loads((tmp_path / "counters.json").read_text(encoding="utf-8"))
    assert saved == {"guilds": {"g": {"u1": {"joins": 1, "leaves": 2}}}}
    assert store.get_counters("g", "u1") == {"joins": 1, "leaves": 2}
    assert store.get_counters("g", "u2") is None


def test_concurrent_increments_are_all_counted(tmp_path: Path) -> None:
    store = _make_store(tmp_path)

    async def scenario() -> None:
        await asyncio.gather(
            *(store.increment("g", "u1", "leaves") for _ in range(30)),
            *(store.increment("g", f"other-{i}", "joins") for i in range(5)),
        )

    asyncio.run(scenario())

    fresh = _make_store(tmp_path)
    assert fresh.get_counters("g", "u1") == {"joins": 0, "leaves": 30}
    assert len(fresh.get_all("g")) == 6


def test_to_count_coerces_bad_values_to_zero() -> None:
    assert to_count(None) == 0
    assert to_count("12") == 12
    assert to_count(-3) == 0
    assert to_count(True) == 0
    assert to_count(float("inf")) == 0
    assert to_count(4.9) == 4
