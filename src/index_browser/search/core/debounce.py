"""Debounced dispatch of reactive inputs and query generation tokens.

Each reactive input (the free-text query, the raw filter string) is a channel
with its own timer:

    Idle --edit--> Pending --quiet period elapses--> Fired --> Idle
                      ^  |
                      +--+ edit while pending restarts the timer

Only a timer that fires without being superseded hands its value downstream.
An index switch flushes every pending channel immediately.

The coordinator also owns the :class:`GenerationCounter`. Every dispatched
request, debounced or not, takes a generation from it, and a response is only
applied when its generation is still the latest one.
"""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from typing import Any, Callable, Dict, List, Optional, Tuple

logger = logging.getLogger(__name__)


TEXT_QUERY_CHANNEL = "text_query"
RAW_FILTER_CHANNEL = "raw_filter"


class TimerState(Enum):
    """Debounce state of one channel."""

    IDLE = "idle"
    PENDING = "pending"
    FIRED = "fired"


class GenerationCounter:
    """Monotonically increasing request generations.

    Generations are compared and then forgotten; the counter only remembers
    the latest one handed out.
    """

    def __init__(self) -> None:
        self._latest = 0

    @property
    def latest(self) -> int:
        return self._latest

    def mint(self) -> int:
        self._latest += 1
        return self._latest

    def is_latest(self, generation: int) -> bool:
        return generation == self._latest


class DebounceCoordinator:
    """Per-channel trailing-edge debounce on the running asyncio loop."""

    def __init__(
        self,
        delay_seconds: float,
        generations: Optional[GenerationCounter] = None,
    ):
        if delay_seconds < 0:
            raise ValueError(f"delay_seconds cannot be negative, got {delay_seconds}")
        self.delay_seconds = delay_seconds
        self.generations = generations or GenerationCounter()
        self._timers: Dict[str, asyncio.TimerHandle] = {}
        self._pending: Dict[str, Tuple[Any, Callable[[Any], None]]] = {}
        self._states: Dict[str, TimerState] = {}

    def state(self, channel: str) -> TimerState:
        return self._states.get(channel, TimerState.IDLE)

    @property
    def pending(self) -> List[str]:
        """Channels with a timer still running."""
        return [channel for channel, state in self._states.items() if state is TimerState.PENDING]

    def submit(self, channel: str, value: Any, callback: Callable[[Any], None]) -> None:
        """Record an edit: cancel the channel's timer and start a new one.

        Must be called from within a running event loop.
        """
        self._cancel_timer(channel)
        loop = asyncio.get_running_loop()
        self._pending[channel] = (value, callback)
        self._states[channel] = TimerState.PENDING
        self._timers[channel] = loop.call_later(self.delay_seconds, self._fire, channel)
        logger.debug(f"Debounce '{channel}' pending for {self.delay_seconds:.3f}s")

    def flush(self, channel: str) -> bool:
        """Fire ``channel`` now if it is pending. Returns True if it fired."""
        if self.state(channel) is not TimerState.PENDING:
            return False
        self._cancel_timer(channel)
        self._fire(channel)
        return True

    def flush_all(self) -> List[str]:
        """Fire every pending channel now, returning the channels fired."""
        fired = []
        for channel in list(self.pending):
            if self.flush(channel):
                fired.append(channel)
        return fired

    def cancel(self, channel: str) -> None:
        """Drop a pending edit without firing it."""
        self._cancel_timer(channel)
        self._pending.pop(channel, None)
        self._states[channel] = TimerState.IDLE

    def cancel_all(self) -> None:
        for channel in list(self._states):
            self.cancel(channel)

    def _cancel_timer(self, channel: str) -> None:
        handle = self._timers.pop(channel, None)
        if handle is not None:
            handle.cancel()

    def _fire(self, channel: str) -> None:
        self._timers.pop(channel, None)
        entry = self._pending.pop(channel, None)
        if entry is None:
            self._states[channel] = TimerState.IDLE
            return
        value, callback = entry
        self._states[channel] = TimerState.FIRED
        logger.debug(f"Debounce '{channel}' fired")
        try:
            callback(value)
        finally:
            self._states[channel] = TimerState.IDLE
