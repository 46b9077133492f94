"""Periodic data refresh and color-field cycling."""

from __future__ import annotations

import threading
from collections.abc import Callable, Mapping

from .logger import get_logger
from .schemas import FieldConfig
from .sources import DataSource
from .view import next_color_field

logger = get_logger(__name__)

DEFAULT_POLL_INTERVAL = 1.0  # seconds
DEFAULT_CYCLE_INTERVAL = 5.0  # seconds


class Ticker:
    """Calls ``callback`` every ``interval`` seconds on a daemon thread.

    ``stop()`` cancels the timer; ``set_interval()`` restarts it with the new
    interval. Exceptions raised by the callback stop the ticker.
    """

    def __init__(self, interval: float, callback: Callable[[], None]):
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        self.interval = interval
        self.callback = callback
        self._stop = threading.Event()
        self._thread: threading.Thread | None = None

    @property
    def running(self) -> bool:
        return self._thread is not None and self._thread.is_alive()

    def start(self) -> None:
        if self.running:
            return
        self._stop = threading.Event()
        self._thread = threading.Thread(target=self._run, args=(self._stop,), daemon=True)
        self._thread.start()

    def stop(self) -> None:
        self._stop.set()
        thread = self._thread
        if thread is not None and thread is not threading.current_thread():
            thread.join(timeout=self.interval + 1)
        self._thread = None

    def set_interval(self, interval: float) -> None:
        if interval <= 0:
            raise ValueError(f"Interval must be positive, got {interval}")
        was_running = self.running
        self.stop()
        self.interval = interval
        if was_running:
            self.start()

    def _run(self, stop: threading.Event) -> None:
        while not stop.wait(self.interval):
            try:
                self.callback()
            except Exception:
                logger.exception("Ticker callback failed; stopping")
                stop.set()


class DataPoller:
    """Refreshes a DataSource on a fixed interval."""

    def __init__(
        self,
        source: DataSource,
        interval: float = DEFAULT_POLL_INTERVAL,
        on_refresh: Callable[[DataSource, bool], None] | None = None,
    ):
        self.source = source
        self.on_refresh = on_refresh
        self._ticker = Ticker(interval, self.poll_once)

    def poll_once(self) -> bool:
        ok = self.source.refresh()
        if self.on_refresh is not None:
            self.on_refresh(self.source, ok)
        return ok

    def start(self) -> None:
        self._ticker.start()

    def stop(self) -> None:
        self._ticker.stop()

    def set_interval(self, interval: float) -> None:
        self._ticker.set_interval(interval)


class ColorCycler:
    """Advances the coloring field through the colorable fields on a timer."""

    def __init__(
        self,
        schema: Mapping[str, FieldConfig],
        current: str | None = None,
        interval: float = DEFAULT_CYCLE_INTERVAL,
        on_change: Callable[[str | None], None] | None = None,
    ):
        self.schema = schema
        self.current = current
        self.on_change = on_change
        self._lock = threading.Lock()
        self._ticker = Ticker(interval, self.advance)

    def advance(self) -> str | None:
        with self._lock:
            self.current = next_color_field(self.current, self.schema)
            current = self.current
        logger.changes(f"Coloring by {current}")
        if self.on_change is not None:
            self.on_change(current)
        return current

    def start(self) -> None:
        self._ticker.start()

    def stop(self) -> None:
        self._ticker.stop()

    def set_interval(self, interval: float) -> None:
        self._ticker.set_interval(interval)
