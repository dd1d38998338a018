from __future__ import annotations

import threading
from dataclasses import dataclass
from types import MappingProxyType
from typing import Iterable, Mapping, Tuple

import structlog

logger = structlog.get_logger(__name__)

DEFAULT_PRICES: Mapping[str, int] = MappingProxyType(
    {
        # rice platters
        "Chicken Over Rice": 999,
        "Fish Over Rice": 999,
        "Lamb And Chicken Over Rice": 1099,
        "Lamb Over Rice": 1099,
        # wraps
        "Chicken and Lamb Shawarma": 799,
        "Chicken Shawarma": 799,
        "Chicken Tikka Roll": 799,
        "Kabab Roll": 799,
        # burgers
        "Beef Burger": 699,
        "Beef Burger Combo": 999,
        "Chicken Burger": 599,
        "Chicken Burger Combo": 899,
        "Fish Burger": 599,
        "Fish Burger Combo": 899,
        "Zinger Burger": 599,
        "Zinger Burger Combo": 899,
        # sides
        "Small Fries": 299,
        "Medium Fries": 399,
        "Large Fries": 499,
        "Chicken Nuggets (5 pc)": 599,
        "Chicken Nuggets Combo": 999,
        "Chicken Tender (3 pc)": 599,
        "Chicken Tender Combo": 999,
        # drinks
        "16 OZ Mango Lassi": 399,
        "16 OZ Sweet Lassi": 399,
        "16 OZ Salt Lassi": 399,
        "Soda Can": 150,
        "Water Bottle": 100,
        # wings
        "BBQ Wings (5 pc)": 899,
        "Buffalo Wings (5 pc)": 899,
        "Garlic Parmesan Wings (5 pc)": 899,
        # bbq
        "Chicken Kabab": 250,
        "Chicken Tikka Boti (5 pc)": 699,
        "Tandoor Chicken leg (1 pc)": 499,
        "Tandoor Chicken leg (2 pc)": 899,
        # dessert
        "Rice Pudding": 499,
        "Perry's Ice Cream (8 oz cup)": 499,
        "Perry's Cone": 200,
        "Gulab Jamun (3 pc)": 399,
        # pizza
        "Cheese Pizza (Small)": 999,
        "Cheese Pizza (Medium)": 1299,
        "Cheese Pizza (Large)": 1499,
        "Cheese Pizza (Extra Large)": 1799,
        "Veggie Pizza (Small)": 1199,
        "Veggie Pizza (Medium)": 1499,
        "Veggie Pizza (Large)": 1799,
        "Veggie Pizza (Extra Large)": 2099,
        "Buffalo Chicken Pizza (Small)": 1199,
        "Buffalo Chicken Pizza (Medium)": 1499,
        "Buffalo Chicken Pizza (Large)": 1799,
        "Buffalo Chicken Pizza (Extra Large)": 2099,
        # toppings
        "Pizza Topping (Small)": 100,
        "Pizza Topping (Medium)": 150,
        "Pizza Topping (Large)": 150,
        "Pizza Topping (Extra Large)": 200,
    }
)


@dataclass(frozen=True)
class PriceBook:
    """Immutable snapshot of the price table (item name -> unit price in cents)."""

    prices: Mapping[str, int]

    @staticmethod
    def of(prices: Mapping[str, int]) -> "PriceBook":
        for name, cents in prices.items():
            if isinstance(cents, bool) or not isinstance(cents, int) or cents < 0:
                raise ValueError(f"invalid price for {name!r}: {cents!r}")
        return PriceBook(MappingProxyType(dict(prices)))

    def lookup(self, name: str) -> int | None:
        return self.prices.get(name)

    def __contains__(self, name: object) -> bool:
        return name in self.prices

    def __len__(self) -> int:
        return len(self.prices)


@dataclass(frozen=True)
class PriceHealth:
    ok: bool
    missing_keys: Tuple[str, ...]


class PriceAuthority:
    """
    Process-wide holder of the current PriceBook.

    Readers grab one snapshot and price a whole request against it. Writers
    swap the snapshot reference wholesale, so a reader sees either the old or
    the new table, never a mix.
    """

    def __init__(self, book: PriceBook | None = None) -> None:
        self._book = book if book is not None else PriceBook.of(DEFAULT_PRICES)
        self._write_lock = threading.Lock()

    def snapshot(self) -> PriceBook:
        return self._book

    def lookup(self, name: str) -> int | None:
        return self._book.lookup(name)

    def replace(self, new_table: Mapping[str, int] | PriceBook) -> PriceBook:
        book = new_table if isinstance(new_table, PriceBook) else PriceBook.of(new_table)
        with self._write_lock:
            self._book = book
        logger.info("price_book.replaced", items=len(book))
        return book

    def health_check(self, required_keys: Iterable[str]) -> PriceHealth:
        book = self._book
        missing = tuple(k for k in required_keys if k not in book)
        return PriceHealth(ok=not missing, missing_keys=missing)
