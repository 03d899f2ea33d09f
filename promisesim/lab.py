# -*- coding: utf-8 -*-

"""Lab scenarios: promises with simulated asynchronous tasks.

Each scenario prints a "Starting ..." line immediately, then reports the
outcome of its tasks when they are settled. Each function returns the
Promise of the final report; it's always fulfilled, as failures are caught
and reported too.

All scenarios use a delay of 3 seconds per task.
"""

import logging

from .errors import TaskFailure
from .promise import Promise, reduce_coroutine

_logger = logging.getLogger(__name__)

DELAY_MS = 3000


def _report_error(output):
    def on_error(error):
        output.error('%s', error)
    return on_error


def basic_promise(simulator):
    """Task 1: a single task, resolved after a delay."""
    output = simulator.output
    output.info('Starting Task 1...')
    task = simulator.create_task(
        'Task 1', DELAY_MS,
        result='Task 1 complete: Simple promise resolved!')
    return task.then(output.info).catch(_report_error(output))


def success_or_failure(simulator):
    """Task 2: a task with a 50% chance of success."""
    output = simulator.output
    output.info('Starting Task 2...')
    task = simulator.create_task(
        'Task 2', DELAY_MS, 0.5,
        result='Task 2 complete: Success!',
        error='Task 2 failed: Something went wrong.')
    return task.then(output.info).catch(_report_error(output))


def chained_promises(simulator):
    """Task 3: the second part starts only after the first one is done."""
    output = simulator.output
    output.info('Starting Task 3...')
    first_part = simulator.create_task('Task 3 part 1', DELAY_MS)

    def start_second_part(message):
        output.info(message)
        return simulator.create_task('Task 3 part 2', DELAY_MS)

    second_part = simulator.chain(first_part, start_second_part)
    return second_part.then(output.info).catch(_report_error(output))


@reduce_coroutine()
def multiple_operations(simulator):
    """Task 4: three tasks running at the same time.

    Task C has a 70% chance of success. If it fails, none of the results are
    displayed, only the error.
    """
    output = simulator.output
    output.info('Starting Task 4...')
    tasks = [simulator.create_task('Task A', DELAY_MS),
             simulator.create_task('Task B', DELAY_MS),
             simulator.create_task('Task C', DELAY_MS, 0.7)]
    try:
        messages = yield simulator.all(tasks)
    except TaskFailure as error:
        output.error('%s', error)
        return
    for message in messages:
        output.info(message)


SCENARIOS = [basic_promise, success_or_failure, chained_promises,
             multiple_operations]


def run(simulator):
    """Start all the scenarios at the same time.

    Returns:
        Promise: fulfilled when every scenario has reported its outcome.
    """
    _logger.debug('Start %s scenarios', len(SCENARIOS))
    reports = [scenario(simulator) for scenario in SCENARIOS]
    report = Promise.all(reports)
    report.safeguard()
    return report
