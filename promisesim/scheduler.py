# -*- coding: utf-8 -*-

"""Single-threaded cooperative scheduler.

Callbacks are registered with a delay, and stored in a queue ordered by
deadline. The scheduler runs them one by one, in the thread calling `run()`,
waiting between two deadlines. Callbacks registered with the same deadline
are executed in the order of registration.

The time source is a clock object, with two methods:

- `time()`: returns the current time, in seconds.
- `sleep_until(deadline)`: returns when the clock has reached `deadline`.

`MonotonicClock` really waits; `VirtualClock` jumps directly to the next
deadline, so hours of simulated delays are executed instantly.
"""

import heapq
import itertools
import logging
import time

from .errors import SchedulerIdleError

_logger = logging.getLogger(__name__)


class MonotonicClock(object):
    """Wall-clock time, based on `time.monotonic()`."""

    def time(self):
        return time.monotonic()

    def sleep_until(self, deadline):
        delay = deadline - time.monotonic()
        if delay > 0:
            time.sleep(delay)


class VirtualClock(object):
    """Simulated time. Waiting for a deadline sets the time to it instantly.

    Attributes:
        now (float): current simulated time, in seconds.
    """

    def __init__(self, start=0.0):
        self.now = start

    def time(self):
        return self.now

    def sleep_until(self, deadline):
        if deadline > self.now:
            self.now = deadline


class Scheduler(object):
    """Timer-ordered queue of callbacks, executed in a single thread.

    Registering a callback never blocks, and never executes it synchronously:
    the callback is executed later, during a call to `step()`, `run()` or
    `run_until_settled()`.

    An exception raised by a callback is logged, and doesn't stop the loop.
    """

    def __init__(self, clock=None):
        """
        Args:
            clock (optional): time source. Default to a MonotonicClock.
        """
        self.clock = clock or MonotonicClock()
        self._queue = []
        self._counter = itertools.count()

    @property
    def pending(self):
        """int: number of callbacks waiting to be executed."""
        return len(self._queue)

    def time(self):
        """Returns the current time of the clock, in seconds."""
        return self.clock.time()

    def call_later(self, delay, callback, *args):
        """Schedule a callback to be executed after a delay.

        Args:
            delay (float): delay in seconds. Must not be negative.
            callback (callable): function to call.
            *args: arguments passed to the callback.
        """
        if delay < 0:
            raise ValueError('Negative delay: %s' % delay)
        deadline = self.clock.time() + delay
        heapq.heappush(self._queue,
                       (deadline, next(self._counter), callback, args))
        _logger.log(5, 'Callback %s scheduled at %.3f', callback, deadline)

    def step(self):
        """Wait for the next deadline, then execute the corresponding callback.

        Returns:
            boolean: True if a callback has been executed; False if the queue
                was empty.
        """
        if not self._queue:
            return False
        deadline, _, callback, args = heapq.heappop(self._queue)
        self.clock.sleep_until(deadline)
        try:
            callback(*args)
        except Exception:
            _logger.exception('Scheduled callback %s has raised an exception',
                              callback)
        return True

    def run(self):
        """Execute all callbacks, until the queue is empty.

        Callbacks registered during the execution are executed too.
        """
        _logger.debug('Start scheduler loop (%s callbacks)', self.pending)
        while self.step():
            pass
        _logger.debug('Scheduler loop done.')

    def run_until_settled(self, promise):
        """Execute the callbacks until the promise is settled.

        Args:
            promise (Promise): promise to wait.
        Raises:
            SchedulerIdleError: if there is no more callback to execute, while
                the promise is still pending.
        """
        while promise.is_pending():
            if not self.step():
                raise SchedulerIdleError('%r will never be settled: nothing '
                                         'is scheduled.' % promise)
