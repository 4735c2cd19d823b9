"""Exchange catalogue: records, built-in defaults and a YAML-backed store."""

from __future__ import annotations

import dataclasses
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Iterator

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from tradeclock.core.errors import DegenerateScheduleError, InvalidScheduleError
from tradeclock.core.logging_utils import get_logger
from tradeclock.session.schedule import TradingSchedule, Weekday, parse_time

logger = get_logger("data.exchanges")

DEFAULT_TRADING_DAYS = ["Mon", "Tue", "Wed", "Thu", "Fri"]


@dataclass(frozen=True)
class Exchange:
    """A stock exchange as shown on the board."""

    id: str
    name: str
    schedule: TradingSchedule
    continent: str = ""
    country: str = ""
    city: str = ""
    flag: str = ""
    schedule_url: str = ""
    is_selected: bool = True
    display_order: int = 0

    def sort_key(self) -> tuple[int, str, str]:
        return (self.display_order, self.continent, self.name)


class ExchangeRecord(BaseModel):
    """On-disk form of an exchange."""

    id: str
    name: str
    timezone: str
    opening: str
    closing: str
    trading_days: list[str] = Field(default_factory=lambda: list(DEFAULT_TRADING_DAYS))
    continent: str = ""
    country: str = ""
    city: str = ""
    flag: str = ""
    schedule_url: str = ""
    selected: bool = True
    display_order: int = 0

    @field_validator("opening", "closing", mode="before")
    @classmethod
    def _normalize_time(cls, value: Any) -> str:
        # YAML reads unquoted 09:30 as a sexagesimal int
        if isinstance(value, int):
            value = f"{value // 60:02d}:{value % 60:02d}"
        try:
            return parse_time(value).strftime("%H:%M")
        except InvalidScheduleError as e:
            raise ValueError(str(e)) from e

    @field_validator("trading_days")
    @classmethod
    def _check_days(cls, value: list[str]) -> list[str]:
        try:
            Weekday.parse(value)
        except InvalidScheduleError as e:
            raise ValueError(str(e)) from e
        return value

    def to_exchange(self) -> Exchange:
        return Exchange(
            id=self.id,
            name=self.name,
            schedule=TradingSchedule(
                time_zone_id=self.timezone,
                opening_time=parse_time(self.opening),
                closing_time=parse_time(self.closing),
                trading_days=Weekday.parse(self.trading_days),
            ),
            continent=self.continent,
            country=self.country,
            city=self.city,
            flag=self.flag,
            schedule_url=self.schedule_url,
            is_selected=self.selected,
            display_order=self.display_order,
        )

    @classmethod
    def from_exchange(cls, exchange: Exchange) -> "ExchangeRecord":
        schedule = exchange.schedule
        return cls(
            id=exchange.id,
            name=exchange.name,
            timezone=schedule.time_zone_id,
            opening=schedule.opening_time.strftime("%H:%M"),
            closing=schedule.closing_time.strftime("%H:%M"),
            trading_days=schedule.trading_days.short_names(),
            continent=exchange.continent,
            country=exchange.country,
            city=exchange.city,
            flag=exchange.flag,
            schedule_url=exchange.schedule_url,
            selected=exchange.is_selected,
            display_order=exchange.display_order,
        )


def _default(
    id: str, name: str, timezone: str, opening: str, closing: str,
    continent: str, country: str, city: str, flag: str,
) -> dict[str, Any]:
    return {
        "id": id,
        "name": name,
        "timezone": timezone,
        "opening": opening,
        "closing": closing,
        "continent": continent,
        "country": country,
        "city": city,
        "flag": flag,
        "schedule_url": f"https://www.tradinghours.com/markets/{id}",
    }


DEFAULT_EXCHANGES: list[dict[str, Any]] = [
    _default("lse", "London Stock Exchange", "Europe/London", "08:00", "16:30",
             "Europe", "UK", "London", "🇬🇧"),
    _default("nyse", "New York Stock Exchange", "America/New_York", "09:30", "16:00",
             "North America", "USA", "New York", "🇺🇸"),
    _default("tse", "Tokyo Stock Exchange", "Asia/Tokyo", "09:00", "15:30",
             "Asia", "Japan", "Tokyo", "🇯🇵"),
    _default("seb", "Swiss Electronic Bourse", "Europe/Zurich", "09:00", "17:30",
             "Europe", "Switzerland", "Zurich", "🇨🇭"),
    _default("bmv", "Bolsa Mexicana de Valores", "America/Mexico_City", "07:30", "14:00",
             "North America", "Mexico", "Mexico City", "🇲🇽"),
    _default("moex", "Moscow Exchange", "Europe/Moscow", "09:50", "18:50",
             "Europe", "Russia", "Moscow", "🇷🇺"),
    _default("hkex", "Hong Kong Stock Exchange", "Asia/Hong_Kong", "09:30", "16:00",
             "Asia", "Hong Kong", "Hong Kong", "🇭🇰"),
    _default("nasdaq", "NASDAQ", "America/New_York", "09:30", "16:00",
             "North America", "USA", "New York", "🇺🇸"),
]


class ExchangeStore:
    """Ordered exchange catalogue with selection flags, persisted as YAML.

    Ordering is by display order, then continent, then name. When ``path`` is
    set and ``autosave`` is on, every mutation is written back immediately.
    """

    def __init__(
        self,
        path: str | Path | None = None,
        strict: bool = False,
        autosave: bool = True,
    ):
        self.path = Path(path) if path else None
        self.strict = strict
        self.autosave = autosave
        self.load_errors: dict[str, str] = {}
        self._exchanges: dict[str, Exchange] = {}

        if self.path is not None and self.path.exists():
            self._load_from_file(self.path)
        else:
            self.load_records(DEFAULT_EXCHANGES)
            if self.path is not None:
                logger.info(f"No exchange file at {self.path}, seeded {len(self._exchanges)} defaults")

    # ── Loading / saving ──────────────────────────────────────────────────

    def _load_from_file(self, path: Path) -> None:
        try:
            with open(path, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise InvalidScheduleError(f"Cannot parse {path}: {e}") from e

        data = data or {}
        if not isinstance(data, dict):
            raise InvalidScheduleError(f"{path}: expected a mapping with an 'exchanges' list")
        records = data.get("exchanges") or []
        if not isinstance(records, list):
            raise InvalidScheduleError(f"{path}: 'exchanges' must be a list")
        self.load_records(records)
        logger.info(f"Loaded {len(self._exchanges)} exchanges from {path}")

    def load_records(self, records: list[dict[str, Any]]) -> None:
        """Replace the catalogue with parsed records, skipping bad ones."""
        self._exchanges = {}
        self.load_errors = {}
        for i, raw in enumerate(records):
            key = str(raw.get("id", f"#{i}")) if isinstance(raw, dict) else f"#{i}"
            try:
                exchange = self._parse_record(raw)
            except InvalidScheduleError as e:
                logger.warning(f"Rejected exchange {key}: {e}")
                self.load_errors[key] = str(e)
                continue
            if exchange.id in self._exchanges:
                logger.warning(f"Rejected exchange {key}: duplicate id")
                self.load_errors[key] = "Duplicate exchange id"
                continue
            self._exchanges[exchange.id] = exchange

    def _parse_record(self, raw: Any) -> Exchange:
        if not isinstance(raw, dict):
            raise InvalidScheduleError(f"Expected a mapping, got {type(raw).__name__}")
        try:
            exchange = ExchangeRecord(**raw).to_exchange()
        except ValidationError as e:
            raise InvalidScheduleError(str(e)) from e

        if exchange.schedule.is_degenerate:
            at = exchange.schedule.opening_time.strftime("%H:%M")
            if self.strict:
                raise DegenerateScheduleError(exchange.id, at)
            logger.warning(f"Exchange {exchange.id} opens and closes at {at}; treating as always closed")
        return exchange

    def save(self, path: str | Path | None = None) -> Path:
        """Write the catalogue to YAML in board order."""
        target = Path(path) if path else self.path
        if target is None:
            raise ValueError("No path to save exchanges to")
        target.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "exchanges": [
                ExchangeRecord.from_exchange(e).model_dump() for e in self.all_exchanges()
            ]
        }
        with open(target, "w", encoding="utf-8") as f:
            yaml.safe_dump(payload, f, sort_keys=False, allow_unicode=True)
        return target

    def _persist(self) -> None:
        if self.autosave and self.path is not None:
            self.save()

    # ── Queries ───────────────────────────────────────────────────────────

    def all_exchanges(self) -> list[Exchange]:
        return sorted(self._exchanges.values(), key=Exchange.sort_key)

    def selected_exchanges(self) -> list[Exchange]:
        return [e for e in self.all_exchanges() if e.is_selected]

    def get(self, exchange_id: str) -> Exchange | None:
        return self._exchanges.get(exchange_id)

    def schedules(self, selected_only: bool = True) -> list[tuple[str, TradingSchedule]]:
        """(id, schedule) pairs in board order, ready for evaluate_board."""
        exchanges = self.selected_exchanges() if selected_only else self.all_exchanges()
        return [(e.id, e.schedule) for e in exchanges]

    def __iter__(self) -> Iterator[Exchange]:
        return iter(self.all_exchanges())

    def __len__(self) -> int:
        return len(self._exchanges)

    def __contains__(self, exchange_id: object) -> bool:
        return exchange_id in self._exchanges

    # ── Mutations ─────────────────────────────────────────────────────────

    def _require(self, exchange_id: str) -> Exchange:
        if exchange_id not in self._exchanges:
            raise KeyError(f"Unknown exchange: {exchange_id}")
        return self._exchanges[exchange_id]

    def set_selection(self, exchange_id: str, selected: bool) -> Exchange:
        exchange = dataclasses.replace(self._require(exchange_id), is_selected=selected)
        self._exchanges[exchange_id] = exchange
        self._persist()
        return exchange

    def toggle_selection(self, exchange_id: str) -> Exchange:
        return self.set_selection(exchange_id, not self._require(exchange_id).is_selected)

    def update_display_orders(self, orders: dict[str, int]) -> None:
        """Set display order for several exchanges at once. Unknown ids are ignored."""
        for exchange_id, order in orders.items():
            if exchange_id not in self._exchanges:
                logger.warning(f"Ignoring display order for unknown exchange {exchange_id}")
                continue
            self._exchanges[exchange_id] = dataclasses.replace(
                self._exchanges[exchange_id], display_order=order
            )
        self._persist()

    def move(self, from_index: int, to_index: int) -> list[Exchange]:
        """Move the exchange at ``from_index`` to ``to_index`` in board order.

        Display orders are renumbered to match list positions.
        """
        ordered = self.all_exchanges()
        if not (0 <= from_index < len(ordered) and 0 <= to_index < len(ordered)):
            raise IndexError(f"Move {from_index} -> {to_index} out of range for {len(ordered)} exchanges")
        ordered.insert(to_index, ordered.pop(from_index))
        self.update_display_orders({e.id: i for i, e in enumerate(ordered)})
        return self.all_exchanges()


def resolve_exchanges_path(path: str | Path, root: str | Path) -> Path:
    """Anchor a relative exchanges file at the project root instead of the CWD."""
    path = Path(path)
    return path if path.is_absolute() else Path(root) / path


def store_cache_key(path: str | Path) -> tuple[str, float]:
    """(path, mtime) key for caching a loaded store; changes whenever the file is rewritten."""
    path = Path(path)
    mtime = path.stat().st_mtime if path.exists() else 0.0
    return str(path), mtime
