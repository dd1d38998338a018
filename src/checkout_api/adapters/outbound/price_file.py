from __future__ import annotations

import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Annotated

import structlog
from pydantic import Field, TypeAdapter, ValidationError
from returns.result import Failure, Result, Success

from checkout_api.core.domain.model.errors import ConfigurationError
from checkout_api.core.domain.model.price_book import PriceAuthority, PriceBook

logger = structlog.get_logger(__name__)

_PRICE_TABLE = TypeAdapter(dict[str, Annotated[int, Field(strict=True, ge=0)]])


def load_price_file(path: Path) -> Result[PriceBook, ConfigurationError]:
    """Parse a JSON object of ``name -> unit price in cents``."""
    try:
        raw = path.read_bytes()
    except OSError as e:
        return Failure(ConfigurationError(f"cannot read {path}: {e}"))
    try:
        table = _PRICE_TABLE.validate_json(raw)
    except ValidationError as e:
        return Failure(
            ConfigurationError(f"invalid price table in {path}: {e.error_count()} error(s)")
        )
    return Success(PriceBook.of(table))


@dataclass
class PriceFileWatcher:
    """
    Polls a price file and publishes a fresh PriceBook into the authority
    whenever its modification time changes.

    A file that fails to load leaves the current table in place.
    """

    path: Path
    authority: PriceAuthority
    interval_seconds: float = 1.0
    _last_mtime: int | None = None
    _stop: threading.Event = field(default_factory=threading.Event)
    _thread: threading.Thread | None = None

    def poll_once(self) -> bool:
        """Reload if the file changed since the last poll. Returns True on reload."""
        try:
            mtime = self.path.stat().st_mtime_ns
        except FileNotFoundError:
            return False
        if mtime == self._last_mtime:
            return False
        self._last_mtime = mtime

        result = load_price_file(self.path)
        if isinstance(result, Failure):
            logger.warning(
                "price_file.reload_failed", path=str(self.path), error=str(result.failure())
            )
            return False
        self.authority.replace(result.unwrap())
        logger.info("price_file.reloaded", path=str(self.path))
        return True

    def start(self) -> None:
        if self._thread is not None:
            return
        self.poll_once()
        self._stop.clear()
        self._thread = threading.Thread(
            target=self._run, name="price-file-watcher", daemon=True
        )
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        if self._thread is not None:
            self._thread.join(timeout=self.interval_seconds * 2)
            self._thread = None

    def _run(self) -> None:
        while not self._stop.wait(self.interval_seconds):
            try:
                self.poll_once()
            except OSError as e:
                logger.warning("price_file.poll_failed", path=str(self.path), error=str(e))
