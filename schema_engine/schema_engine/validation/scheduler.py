"""Debounced, superseding validation runs for interactive editors.

Editors call :meth:`DebouncedValidator.submit` on every change.  A run starts
only after the quiet period has passed without another submission, and when
a run finishes only the result of the latest submission is delivered; a run
overtaken by a newer submission is discarded.  The validation engine itself
stays synchronous and pure.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Callable
from typing import Any

from schema_engine.config import load_settings
from schema_engine.models.validation import ValidationSummary
from schema_engine.validation.engine import ValidationEngine
from schema_engine.validation.models import ValidationContext

logger = logging.getLogger(__name__)

TimerFactory = Callable[..., Any]


class DebouncedValidator:
    """Run a :class:`ValidationEngine` after a quiet period.

    Parameters
    ----------
    engine:
        Engine used for each run.
    on_result:
        Called with the summary of the latest submission.  Invoked on the
        timer thread, or on the caller's thread for :meth:`flush`, while
        the scheduler lock is held; submissions from other threads wait.
        It may call :meth:`submit` itself.
    quiet_period:
        Seconds without submissions before a run starts.  ``None`` uses
        ``Settings.validation_debounce_seconds``.
    timer_factory:
        Callable with the :class:`threading.Timer` signature.
    """

    def __init__(
        self,
        engine: ValidationEngine,
        on_result: Callable[[ValidationSummary], None],
        *,
        quiet_period: float | None = None,
        timer_factory: TimerFactory = threading.Timer,
    ) -> None:
        if quiet_period is None:
            quiet_period = load_settings().validation_debounce_seconds
        self._engine = engine
        self._on_result = on_result
        self._quiet_period = quiet_period
        self._timer_factory = timer_factory
        # Re-entrant so on_result may submit again while delivery holds the lock.
        self._lock = threading.RLock()
        self._timer: Any = None
        self._pending: ValidationContext | None = None
        self._generation = 0

    @property
    def quiet_period(self) -> float:
        return self._quiet_period

    @property
    def has_pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def submit(self, context: ValidationContext) -> int:
        """Schedule validation of *context*, superseding any earlier request.

        Returns the generation number of this request.
        """
        with self._lock:
            self._generation += 1
            generation = self._generation
            self._pending = context
            if self._timer is not None:
                self._timer.cancel()
            self._timer = self._timer_factory(self._quiet_period, self._run, args=(generation,))
            self._timer.daemon = True
            self._timer.start()
        logger.debug("Validation request %d scheduled in %.3fs", generation, self._quiet_period)
        return generation

    def flush(self) -> ValidationSummary | None:
        """Run the pending request now.  Returns ``None`` if nothing is pending."""
        with self._lock:
            if self._pending is None:
                return None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            generation = self._generation
        return self._run(generation)

    def cancel(self) -> None:
        """Drop the pending request and discard any run in progress."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            self._pending = None
            self._generation += 1

    def _run(self, generation: int) -> ValidationSummary | None:
        with self._lock:
            if generation != self._generation or self._pending is None:
                return None
            context = self._pending
            self._pending = None
            self._timer = None

        summary = self._engine.run(context)

        # Delivery holds the lock so a concurrent submit cannot slip in after
        # the generation check.
        with self._lock:
            if generation != self._generation:
                logger.debug("Discarding result of superseded validation request %d", generation)
                return None
            self._on_result(summary)
        return summary
