import heapq
import itertools
import logging

from flappy_game import GameSession, Phase

logger = logging.getLogger(__name__)

# absorbs float error in start + n * interval sums
_EPSILON = 1e-9

__all__ = ["PeriodicTask", "SimulationClock", "GameRunner"]


class PeriodicTask:
    """
    A callback fired every `interval` simulated seconds by a SimulationClock.
    The n-th firing is due at first_due + n * interval, so due times never drift.
    """

    def __init__(self, clock, interval, callback, first_due, seq, name=None):
        self.clock = clock
        self.seq = seq
        self.interval = interval
        self.callback = callback
        self.first_due = first_due
        self.name = name or getattr(callback, "__name__", "task")
        self.runs = 0
        self.cancelled = False

    @property
    def next_due(self):
        return self.first_due + self.runs * self.interval

    def cancel(self):
        """Stop the task for good and drop it from its clock. Safe to call from inside any callback."""
        if not self.cancelled:
            self.cancelled = True
            self.clock._discard(self)
            logger.debug("Cancelled task %s after %d runs", self.name, self.runs)

    def __repr__(self):
        state = "cancelled" if self.cancelled else f"due at {self.next_due:.3f}"
        return f"<PeriodicTask {self.name} every {self.interval}s, {state}>"


class SimulationClock:
    """
    Single-threaded event queue of periodic tasks on a simulated time line.

    advance(seconds) moves time forward and runs, in due-time order, every
    callback that falls inside the window. Ties go to the task scheduled
    first. Only one callback runs at a time, so callbacks that share state
    never interleave.
    """

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._order = itertools.count()

    def schedule_periodic(self, interval, callback, name=None, delay=None):
        """Fire callback every `interval` seconds, first after `delay` (defaults to interval)."""
        if interval <= 0:
            raise ValueError(f"interval must be positive, got {interval}")
        first_due = self.now + (interval if delay is None else delay)
        task = PeriodicTask(self, interval, callback, first_due, next(self._order), name)
        self._push(task)
        return task

    def _push(self, task):
        # seq is fixed per task, so ties keep going to the task scheduled first
        heapq.heappush(self._queue, (task.next_due, task.seq, task))

    def _discard(self, task):
        entries = [entry for entry in self._queue if entry[2] is not task]
        if len(entries) != len(self._queue):
            heapq.heapify(entries)
            self._queue = entries

    def pending(self):
        return [task for _, _, task in sorted(self._queue)]

    def cancel_all(self):
        for _, _, task in list(self._queue):
            task.cancel()
        self._queue = []

    def advance(self, seconds):
        """Run every task due up to now + seconds. Returns the number of callbacks run."""
        if seconds < 0:
            raise ValueError(f"cannot move the clock backwards by {seconds}")
        target = self.now + seconds
        fired = 0
        while self._queue and self._queue[0][0] <= target + _EPSILON:
            due, _, task = heapq.heappop(self._queue)
            if task.cancelled:
                continue
            self.now = due
            task.runs += 1
            try:
                task.callback()
            finally:
                if not task.cancelled:
                    self._push(task)
            fired += 1
        self.now = max(self.now, target)
        return fired


class GameRunner:
    """
    Drives a GameSession from a SimulationClock.

    While the session is RUNNING the clock carries two tasks: the world
    update every tick_interval and the pipe spawner every spawn_interval.
    Both are cancelled as soon as the session leaves RUNNING.
    """

    def __init__(self, session=None, clock=None):
        self.session = session or GameSession()
        self.clock = clock or SimulationClock()
        self.tick_task = None
        self.spawn_task = None
        self.session.subscribe(self._on_snapshot)
        if self.session.phase is Phase.RUNNING:
            self._start_timers()

    @property
    def running(self):
        return self.tick_task is not None

    def snapshot(self):
        return self.session.snapshot()

    def jump(self):
        self.session.jump()

    def start(self):
        self.session.start()

    def reset(self):
        self._stop_timers()
        self.session.reset()

    def advance(self, seconds):
        return self.clock.advance(seconds)

    def _on_snapshot(self, snapshot):
        if snapshot.phase is Phase.RUNNING and not self.running:
            self._start_timers()
        elif snapshot.phase is not Phase.RUNNING and self.running:
            self._stop_timers()

    def _start_timers(self):
        cfg = self.session.config
        self.tick_task = self.clock.schedule_periodic(
            cfg.tick_interval, self.session.tick, name="world-update")
        self.spawn_task = self.clock.schedule_periodic(
            cfg.spawn_interval, self.session.spawn_pipe, name="pipe-spawner")
        logger.debug("Timers started at t=%.3f", self.clock.now)

    def _stop_timers(self):
        for task in (self.tick_task, self.spawn_task):
            if task is not None:
                task.cancel()
        self.tick_task = None
        self.spawn_task = None
