"""
Cancellable scheduled callbacks.

The music loop changes tempo while it runs, so its timer has to be replaced
rather than left ticking at the old rate. Every scheduled callback is a
ScheduledTask handle that can be cancelled or rescheduled at a new interval;
rescheduling always stops the old timer first, so one handle never has two
pending ticks.

Two schedulers share the same interface:
- TextualScheduler: real timers on a Textual message pump (app or widget)
- ManualScheduler: a clock that only moves when told to (deterministic tests,
  headless runs)
"""

from typing import Any, Callable, Optional


class ScheduledTask:
    """Handle for a one-shot or repeating callback."""

    def __init__(self, scheduler: "Scheduler", callback: Callable[[], Any],
                 interval: float, repeat: bool) -> None:
        self._scheduler = scheduler
        self.callback = callback
        self.interval = interval
        self.repeat = repeat
        self.active = False
        # Backend-specific state (Textual Timer, due time, ...)
        self._backend: Any = None

    def cancel(self) -> None:
        """Stop the task. Safe to call more than once."""
        if self.active:
            self._scheduler._stop(self)
            self.active = False

    def reschedule(self, interval: Optional[float] = None) -> None:
        """Cancel any pending run and start again, optionally at a new interval."""
        self.cancel()
        if interval is not None:
            self.interval = interval
        self._scheduler._start(self)
        self.active = True

    def _fire(self) -> None:
        if not self.repeat:
            self.active = False
        self.callback()


class Scheduler:
    """Base class: subclasses start and stop the underlying timers."""

    def every(self, interval: float, callback: Callable[[], Any]) -> ScheduledTask:
        """Run callback every `interval` seconds until cancelled."""
        task = ScheduledTask(self, callback, interval, repeat=True)
        task.reschedule()
        return task

    def after(self, delay: float, callback: Callable[[], Any]) -> ScheduledTask:
        """Run callback once, `delay` seconds from now."""
        task = ScheduledTask(self, callback, delay, repeat=False)
        task.reschedule()
        return task

    def _start(self, task: ScheduledTask) -> None:
        raise NotImplementedError

    def _stop(self, task: ScheduledTask) -> None:
        raise NotImplementedError


class TextualScheduler(Scheduler):
    """Schedules on a Textual App or Widget via set_interval / set_timer."""

    def __init__(self, pump) -> None:
        self._pump = pump

    def _start(self, task: ScheduledTask) -> None:
        if task.repeat:
            task._backend = self._pump.set_interval(task.interval, task._fire)
        else:
            task._backend = self._pump.set_timer(task.interval, task._fire)

    def _stop(self, task: ScheduledTask) -> None:
        if task._backend is not None:
            task._backend.stop()
            task._backend = None


class ManualScheduler(Scheduler):
    """
    A clock that advances only when advance() is called.

    Usage:
        scheduler = ManualScheduler()
        scheduler.every(0.5, tick)
        scheduler.advance(1.0)   # tick runs twice
    """

    # Tolerance for accumulated float error when comparing due times
    EPSILON = 1e-9

    def __init__(self, now: float = 0.0) -> None:
        self.now = now
        self._pending: list[ScheduledTask] = []
        self._sequence = 0

    def _start(self, task: ScheduledTask) -> None:
        self._sequence += 1
        task._backend = (self.now + task.interval, self._sequence)
        self._pending.append(task)

    def _stop(self, task: ScheduledTask) -> None:
        if task in self._pending:
            self._pending.remove(task)
        task._backend = None

    @property
    def pending(self) -> list[ScheduledTask]:
        """Tasks waiting to run."""
        return list(self._pending)

    def advance(self, seconds: float) -> None:
        """Move the clock forward, running everything that falls due, in order."""
        target = self.now + seconds
        while True:
            due = [t for t in self._pending if t._backend[0] <= target + self.EPSILON]
            if not due:
                break
            task = min(due, key=lambda t: t._backend)
            due_time, sequence = task._backend
            self.now = due_time
            if task.repeat:
                task._backend = (due_time + task.interval, sequence)
            else:
                self._pending.remove(task)
            task._fire()
        self.now = target
