# -*- coding: utf-8 -*-

"""Deferred Task Simulator.

Simulates asynchronous operations: a task is a Promise settled by a timer,
after a fixed delay, with a success or a failure.

Example:

    >>> simulator = TaskSimulator()
    >>> task = simulator.create_task('Task 1', 3000)
    >>> simulator.wait(task)  # 3 seconds later
    'Task 1 complete.'
"""

import logging
import random

from .errors import TaskFailure
from .promise import Promise
from .scheduler import Scheduler

_logger = logging.getLogger(__name__)


def _ignore_error(error):
    pass


class Task(Promise):
    """Promise settled by the scheduler, after a delay.

    The outcome is decided when the delay has elapsed, by drawing a random
    number: the task is fulfilled with `success_value` if the number is lower
    than `success_probability`; otherwise it's rejected with a `TaskFailure`
    containing `error_value`.

    Attributes:
        name (str): label of the task.
        delay_ms (int): delay before the settlement, in milliseconds.
        success_probability (float): probability of success, in [0, 1].
        success_value (str): result of the task, if it succeeds.
        error_value (str): message of the error, if it fails.
        created_at (float): scheduler time at creation.
        settled_at (float): scheduler time at settlement. None until the task
            is settled.
    """

    def __init__(self, scheduler, random_source, name, delay_ms,
                 success_probability=1.0, result=None, error=None):
        if delay_ms < 0:
            raise ValueError('Task delay must be positive (got %s)' %
                             delay_ms)
        if not 0.0 <= success_probability <= 1.0:
            raise ValueError('Task success probability must be in [0, 1] '
                             '(got %s)' % success_probability)

        self.name = name
        self.delay_ms = delay_ms
        self.success_probability = success_probability
        self.success_value = result if result is not None else \
            '%s complete.' % name
        self.error_value = error if error is not None else \
            '%s failed.' % name
        self.created_at = scheduler.time()
        self.settled_at = None

        self._scheduler = scheduler
        self._random = random_source

        Promise.__init__(self, self._schedule, _name=name or 'TASK')

    def _schedule(self, fulfill, reject):
        self._scheduler.call_later(self.delay_ms / 1000.0, self._settle,
                                   fulfill, reject)

    def _settle(self, fulfill, reject):
        self.settled_at = self._scheduler.time()
        if self._random.random() < self.success_probability:
            _logger.debug('Task "%s" fulfilled after %s ms', self.name,
                          self.delay_ms)
            fulfill(self.success_value)
        else:
            _logger.debug('Task "%s" rejected after %s ms', self.name,
                          self.delay_ms)
            reject(TaskFailure(self.error_value))


class TaskSimulator(object):
    """Creates simulated tasks, and combines them.

    Attributes:
        scheduler (Scheduler): loop settling the tasks.
        output (logging.Logger): sink of the lines reported to the user.
    """

    def __init__(self, scheduler=None, random_source=None, output=None):
        """
        Args:
            scheduler (Scheduler, optional): default to a new scheduler using
                the real time.
            random_source (random.Random, optional): source of the random
                outcomes. Default to an unseeded generator.
            output (logging.Logger, optional): default to the
                'promisesim.output' logger.
        """
        self.scheduler = scheduler or Scheduler()
        self.output = output or logging.getLogger('promisesim.output')
        self._random = random_source or random.Random()

    def create_task(self, name, delay_ms, success_probability=1.0,
                    result=None, error=None):
        """Start a new task.

        The task is pending when returned. It will be settled by the
        scheduler once `delay_ms` milliseconds have elapsed.

        Args:
            name (str): label of the task.
            delay_ms (int): delay before settlement, in milliseconds.
            success_probability (float, optional): in [0, 1]. Default to 1.0
                (the task never fails).
            result (str, optional): value of the task when it succeeds.
                Default to "<name> complete."
            error (str, optional): error message when it fails. Default to
                "<name> failed."
        Returns:
            Task: pending task.
        Raises:
            ValueError: if the delay is negative, or the probability not in
                [0, 1].
        """
        return Task(self.scheduler, self._random, name, delay_ms,
                    success_probability, result=result, error=error)

    def wait(self, task):
        """Run the scheduler until the task is settled, and get its outcome.

        Other tasks continue to be settled in the meantime. Can be called
        several times on the same task; the outcome is always the same.

        Args:
            task (Promise): the task (or any promise) to wait.
        Returns:
            *: the result of the task.
        Raises:
            TaskFailure: if the task is rejected.
            SchedulerIdleError: if the task can't be settled anymore.
        """
        # The caller receives the failure: the rejection is not unhandled.
        task.catch(_ignore_error)
        self.scheduler.run_until_settled(task)
        return task.result(0)

    def chain(self, task, continuation):
        """Start a dependent task after the success of the first one.

        `continuation` is called with the result of `task`, only if `task`
        is fulfilled. If `task` is rejected, the continuation is skipped, and
        the error is transmitted as is.

        Args:
            task (Promise): the first task.
            continuation (callable): receives the result of `task`, and
                returns the next Task (or a direct value).
        Returns:
            Promise: settled with the outcome of the task returned by the
                continuation.
        """
        return task.then(continuation)

    def all(self, tasks):
        """Wait for a group of tasks, already running concurrently.

        Args:
            tasks (list of Task): tasks to aggregate.
        Returns:
            Promise<list>: fulfilled with the results in the order of
                `tasks`, or rejected as soon as one of the tasks fails.
        """
        return Promise.all(tasks)
