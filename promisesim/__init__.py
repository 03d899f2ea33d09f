# -*- coding: utf-8 -*-

from .__version__ import __version__  # noqa

import logging
import random

from . import lab
from .common import config
from .common import log
from .errors import SchedulerIdleError, TaskFailure
from .scheduler import MonotonicClock, Scheduler, VirtualClock
from .simulator import Task, TaskSimulator

__all__ = ['SchedulerIdleError', 'TaskFailure', 'MonotonicClock',
           'Scheduler', 'VirtualClock', 'Task', 'TaskSimulator', 'main']


def main():
    """Entry point: run the lab until all the tasks are settled."""

    # Start log and load config
    with log.Context():
        logger = logging.getLogger(__name__)

        config.load()
        log.set_debug_mode(config.get('debug_mode'))
        log.set_logs_level(config.get('log_levels'))

        if config.get('virtual_time'):
            clock = VirtualClock()
        else:
            clock = MonotonicClock()
        simulator = TaskSimulator(Scheduler(clock),
                                  random.Random(config.get('random_seed')))

        report = lab.run(simulator)
        simulator.wait(report)

        # Tasks still running are settled before exiting.
        simulator.scheduler.run()
        logger.debug('Lab done.')
    return 0


if __name__ == "__main__":
    main()
