"""Tests for the exchange catalogue and YAML store."""

from __future__ import annotations

import datetime as dt

import pytest
import yaml

from tradeclock.core.errors import DegenerateScheduleError, InvalidScheduleError
from tradeclock.data.exchanges import (
    DEFAULT_EXCHANGES,
    ExchangeRecord,
    ExchangeStore,
    resolve_exchanges_path,
    store_cache_key,
)
from tradeclock.session.schedule import Weekday


def _record(id: str, **kwargs) -> dict:
    base = {
        "id": id,
        "name": id.upper(),
        "timezone": "UTC",
        "opening": "09:00",
        "closing": "17:00",
    }
    base.update(kwargs)
    return base


def _write(path, records) -> None:
    with open(path, "w", encoding="utf-8") as f:
        yaml.safe_dump({"exchanges": records}, f, allow_unicode=True)


class TestExchangeRecord:
    def test_defaults_to_weekdays(self):
        exchange = ExchangeRecord(**_record("x")).to_exchange()
        assert exchange.schedule.trading_days == Weekday.WEEKDAYS
        assert exchange.schedule.opening_time == dt.time(9, 0)
        assert exchange.is_selected

    def test_yaml_sexagesimal_time(self):
        # Unquoted 16:30 loads from YAML as 990
        record = ExchangeRecord(**_record("x", closing=990))
        assert record.closing == "16:30"

    def test_round_trip_through_exchange(self):
        record = ExchangeRecord(**_record("x", trading_days=["Sun", "Mon"], display_order=3))
        again = ExchangeRecord.from_exchange(record.to_exchange())
        assert again.trading_days == ["Mon", "Sun"]
        assert again.display_order == 3


class TestExchangeStore:
    def test_seeds_defaults_without_file(self, tmp_path):
        store = ExchangeStore(tmp_path / "exchanges.yaml")
        assert len(store) == len(DEFAULT_EXCHANGES)
        assert "nyse" in store
        assert store.get("tse").schedule.time_zone_id == "Asia/Tokyo"
        assert store.get("missing") is None

    def test_ordering(self, tmp_path):
        path = tmp_path / "exchanges.yaml"
        _write(path, [
            _record("b", name="Beta", continent="Europe"),
            _record("a", name="Alpha", continent="Europe"),
            _record("z", name="Zed", continent="Asia"),
            _record("first", name="Last", continent="Zulu", display_order=-1),
        ])
        store = ExchangeStore(path)
        assert [e.id for e in store.all_exchanges()] == ["first", "z", "a", "b"]

    def test_selected_only(self, tmp_path):
        path = tmp_path / "exchanges.yaml"
        _write(path, [_record("a"), _record("b", selected=False)])
        store = ExchangeStore(path)
        assert [e.id for e in store.selected_exchanges()] == ["a"]
        assert [key for key, _ in store.schedules()] == ["a"]
        assert [key for key, _ in store.schedules(selected_only=False)] == ["a", "b"]

    def test_bad_records_skipped(self, tmp_path):
        path = tmp_path / "exchanges.yaml"
        _write(path, [
            _record("ok"),
            _record("badtime", opening="noon"),
            _record("badday", trading_days=["Caturday"]),
            {"name": "no id"},
        ])
        store = ExchangeStore(path)
        assert [e.id for e in store] == ["ok"]
        assert set(store.load_errors) == {"badtime", "badday", "#3"}

    def test_degenerate_allowed_by_default(self, tmp_path):
        path = tmp_path / "exchanges.yaml"
        _write(path, [_record("flat", opening="10:00", closing="10:00")])
        store = ExchangeStore(path)
        assert store.get("flat").schedule.is_degenerate

    def test_degenerate_rejected_when_strict(self, tmp_path):
        path = tmp_path / "exchanges.yaml"
        _write(path, [_record("flat", opening="10:00", closing="10:00"), _record("ok")])
        store = ExchangeStore(path, strict=True)
        assert "flat" not in store
        assert "flat" in store.load_errors
        assert "10:00" in store.load_errors["flat"]
        assert issubclass(DegenerateScheduleError, Exception)

    def test_selection_persists(self, tmp_path):
        path = tmp_path / "exchanges.yaml"
        store = ExchangeStore(path)
        store.set_selection("moex", False)
        assert path.exists()

        reloaded = ExchangeStore(path)
        assert not reloaded.get("moex").is_selected
        assert "moex" not in [e.id for e in reloaded.selected_exchanges()]

        reloaded.toggle_selection("moex")
        assert ExchangeStore(path).get("moex").is_selected

    def test_unknown_selection_raises(self):
        store = ExchangeStore()
        with pytest.raises(KeyError):
            store.set_selection("nope", True)

    def test_move_renumbers(self, tmp_path):
        path = tmp_path / "exchanges.yaml"
        _write(path, [_record("a", display_order=0), _record("b", display_order=1), _record("c", display_order=2)])
        store = ExchangeStore(path)

        ordered = store.move(2, 0)
        assert [e.id for e in ordered] == ["c", "a", "b"]
        assert [e.display_order for e in ordered] == [0, 1, 2]

        ordered = store.move(0, 2)
        assert [e.id for e in ordered] == ["a", "b", "c"]
        assert [e.id for e in ExchangeStore(path)] == ["a", "b", "c"]

    def test_move_out_of_range(self):
        store = ExchangeStore()
        with pytest.raises(IndexError):
            store.move(0, len(store))

    def test_update_display_orders_ignores_unknown(self):
        store = ExchangeStore()
        store.update_display_orders({"tse": -5, "ghost": 1})
        assert store.all_exchanges()[0].id == "tse"

    def test_no_autosave_without_path(self, tmp_path):
        store = ExchangeStore()
        store.set_selection("lse", False)
        with pytest.raises(ValueError):
            store.save()
        target = store.save(tmp_path / "out.yaml")
        assert not ExchangeStore(target).get("lse").is_selected

    def test_shipped_catalogue_loads(self):
        from pathlib import Path

        path = Path(__file__).resolve().parent.parent / "configs" / "exchanges.yaml"
        store = ExchangeStore(path, autosave=False)
        assert not store.load_errors
        assert store.get("lse").schedule.closing_time == dt.time(16, 30)
        assert len(store) == 8

    def test_empty_exchanges_key_loads_nothing(self, tmp_path):
        path = tmp_path / "exchanges.yaml"
        path.write_text("exchanges:\n")
        store = ExchangeStore(path)
        assert len(store) == 0
        assert store.load_errors == {}

    def test_empty_file_loads_nothing(self, tmp_path):
        path = tmp_path / "exchanges.yaml"
        path.write_text("")
        assert len(ExchangeStore(path)) == 0

    def test_top_level_list_rejected(self, tmp_path):
        path = tmp_path / "exchanges.yaml"
        path.write_text("- id: a\n")
        with pytest.raises(InvalidScheduleError, match="mapping"):
            ExchangeStore(path)

    def test_exchanges_not_a_list_rejected(self, tmp_path):
        path = tmp_path / "exchanges.yaml"
        path.write_text("exchanges:\n  id: a\n")
        with pytest.raises(InvalidScheduleError, match="must be a list"):
            ExchangeStore(path)

    def test_unparseable_yaml_rejected(self, tmp_path):
        path = tmp_path / "exchanges.yaml"
        path.write_text("exchanges: [unclosed\n")
        with pytest.raises(InvalidScheduleError, match="Cannot parse"):
            ExchangeStore(path)

    def test_duplicate_id_keeps_first(self, tmp_path):
        path = tmp_path / "exchanges.yaml"
        _write(path, [_record("a", name="A"), _record("a", name="B"), _record("b")])
        store = ExchangeStore(path)
        assert len(store) == 2
        assert store.get("a").name == "A"
        assert store.load_errors == {"a": "Duplicate exchange id"}

        # Saving must not drop the first record
        store.set_selection("b", False)
        assert ExchangeStore(path).get("a").name == "A"


class TestStoreHelpers:
    def test_relative_path_anchored_at_root(self, tmp_path):
        assert resolve_exchanges_path("./configs/exchanges.yaml", tmp_path) == tmp_path / "configs" / "exchanges.yaml"

    def test_absolute_path_kept(self, tmp_path):
        target = tmp_path / "x.yaml"
        assert resolve_exchanges_path(target, "/elsewhere") == target

    def test_cache_key_changes_when_file_rewritten(self, tmp_path):
        import os

        path = tmp_path / "exchanges.yaml"
        assert store_cache_key(path) == (str(path), 0.0)

        store = ExchangeStore(path)
        store.set_selection("lse", False)
        first = store_cache_key(path)
        os.utime(path, (first[1] + 10, first[1] + 10))
        assert store_cache_key(path) != first
        assert not ExchangeStore(path).get("lse").is_selected
