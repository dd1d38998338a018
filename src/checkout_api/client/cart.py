"""
Client-side cart persisted to a JSON file.

Quantities here are forgiving: anything that does not parse becomes 1. The
server never uses this module; it re-validates and re-prices every line.
"""

from __future__ import annotations

import json
import re
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Callable, List

import structlog

logger = structlog.get_logger(__name__)

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")

CartListener = Callable[[List["CartRow"]], None]


def parse_quantity(value: str | int | float | None) -> int:
    """Coerce loose input to an integer >= 1; never raises."""
    if isinstance(value, bool) or value is None:
        return 1
    if isinstance(value, (int, float)):
        value = str(value)
    match = _LEADING_INT.match(value) if isinstance(value, str) else None
    if match is None:
        return 1
    return max(1, int(match.group(1)))


def format_money(cents: int) -> str:
    return f"${cents / 100:.2f}"


@dataclass
class CartRow:
    name: str
    unit_price_cents: int
    qty: int


class CartStore:
    def __init__(self, path: Path) -> None:
        self.path = path
        self._listeners: list[CartListener] = []

    def subscribe(self, listener: CartListener) -> None:
        self._listeners.append(listener)

    def _read(self) -> list[CartRow]:
        try:
            raw = json.loads(self.path.read_text(encoding="utf-8") or "[]")
            return [
                CartRow(
                    name=str(row["name"]),
                    unit_price_cents=int(row["unit_price_cents"]),
                    qty=parse_quantity(row.get("qty")),
                )
                for row in raw
            ]
        except FileNotFoundError:
            return []
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning("cart.unreadable", path=str(self.path), error=str(e))
            return []

    def _write(self, rows: list[CartRow]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        self.path.write_text(
            json.dumps([asdict(r) for r in rows], ensure_ascii=False), encoding="utf-8"
        )
        for listener in self._listeners:
            listener(list(rows))

    def lines(self) -> list[CartRow]:
        return self._read()

    def clear(self) -> None:
        self._write([])

    def add_item(
        self, name: str, unit_price_cents: int, qty: str | int | float | None = 1
    ) -> None:
        qty = parse_quantity(qty)
        rows = self._read()
        for row in rows:
            if row.name == name:
                row.qty += qty
                break
        else:
            rows.append(CartRow(name, unit_price_cents, qty))
        self._write(rows)

    def remove_item(self, index: int) -> None:
        rows = self._read()
        if 0 <= index < len(rows):
            del rows[index]
        self._write(rows)

    def set_quantity(self, index: int, qty: str | int | float | None) -> None:
        rows = self._read()
        if not 0 <= index < len(rows):
            return
        rows[index].qty = parse_quantity(qty)
        self._write(rows)

    def subtotal_cents(self) -> int:
        return sum(r.unit_price_cents * r.qty for r in self._read())

    def checkout_cart(self) -> list[dict[str, object]]:
        """The ``cart`` payload for POST /api/checkout; prices are left to the server."""
        return [{"name": r.name, "qty": r.qty} for r in self._read()]
