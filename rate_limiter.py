#!/usr/bin/env python3
"""
rate_limiter.py

Thread-safe sliding-window limiter shared by every submitter thread.

- At most `max_calls` admissions in any trailing `window_s` seconds
- Callers at capacity wait on a Condition, which releases the lock while they
  sleep, so other threads can still check in and get admitted
- Waits can be aborted through an explicit CancelToken
"""

import threading
import time
from collections import deque

from config import parse_window
from errors import CancellationError, ConfigurationError
from logger import log as root_log

log = root_log.getChild('rate_limiter')


class CancelToken:
    """
    One-shot cancellation flag that can be shared between threads.

    Waiters register a callback so they are woken the moment cancel() is
    called instead of sleeping out their full wait.
    """

    def __init__(self):
        self._event     = threading.Event()
        self._lock      = threading.Lock()
        self._callbacks = []

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def cancel(self):
        with self._lock:
            if self._event.is_set():
                return
            self._event.set()
            callbacks = list(self._callbacks)
        for cb in callbacks:
            cb()

    def add_callback(self, cb):
        with self._lock:
            if not self._event.is_set():
                self._callbacks.append(cb)
                return
        cb()

    def remove_callback(self, cb):
        with self._lock:
            try:
                self._callbacks.remove(cb)
            except ValueError:
                pass

    def raise_if_cancelled(self, message: str = "Operation was cancelled"):
        if self._event.is_set():
            raise CancellationError(message)


class SlidingWindowLimiter:
    def __init__(self, max_calls, window='second'):
        if isinstance(max_calls, bool) or not isinstance(max_calls, int):
            raise ConfigurationError(f"max_calls must be an integer, got {max_calls!r}")
        if max_calls <= 0:
            raise ConfigurationError(f"max_calls must be positive, got {max_calls}")

        self.max_calls = max_calls
        self.window_s  = parse_window(window)
        self.calls     = deque()   # monotonic admission timestamps, oldest first
        self._cond     = threading.Condition()
        self._admitted = 0
        self._waits    = 0

    def acquire(self, cancel: CancelToken = None):
        """
        Block until a slot is free in the trailing window, then take it.

        Raises CancellationError if `cancel` fires before admission; in that
        case no timestamp is recorded.
        """
        if cancel is not None:
            cancel.add_callback(self._wake)
        try:
            with self._cond:
                while True:
                    if cancel is not None:
                        cancel.raise_if_cancelled("Wait for rate-limit capacity was cancelled")
                    now = time.monotonic()
                    # 1. Drop timestamps older than window_s
                    self._expire(now)
                    if len(self.calls) < self.max_calls:
                        break
                    # 2. At the cap: sleep (lock released) until the oldest slot frees
                    wait = self.window_s - (now - self.calls[0])
                    if wait > 0:
                        self._waits += 1
                        log.debug(f"At capacity ({self.max_calls}/{self.window_s}s); waiting {wait:.3f}s")
                        self._cond.wait(wait)
                # 3. Record this call
                self._record(now)
        finally:
            if cancel is not None:
                cancel.remove_callback(self._wake)

    def remaining(self) -> int:
        """How many calls remain in the current window."""
        with self._cond:
            self._expire(time.monotonic())
            return self.max_calls - len(self.calls)

    def stats(self) -> dict:
        with self._cond:
            return {
                'max_calls': self.max_calls,
                'window_s':  self.window_s,
                'admitted':  self._admitted,
                'waits':     self._waits,
            }

    def _expire(self, now):
        cutoff = now - self.window_s
        while self.calls and self.calls[0] <= cutoff:
            self.calls.popleft()

    def _record(self, now):
        self.calls.append(now)
        self._admitted += 1

    def _wake(self):
        with self._cond:
            self._cond.notify_all()
