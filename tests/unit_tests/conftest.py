# -*- coding: utf-8 -*-

import logging
import uuid

import pytest

from promisesim.scheduler import Scheduler, VirtualClock
from promisesim.simulator import TaskSimulator


class CatchOutput(logging.Handler):
    """Keep the lines sent to the output logger, with their time."""

    def __init__(self, clock):
        logging.Handler.__init__(self)
        self.clock = clock
        self.lines = []
        self.records = []

    def emit(self, record):
        self.lines.append(record.getMessage())
        self.records.append((self.clock.time(), record.levelname,
                             record.getMessage()))


class FixedRandom(object):
    """Random source always returning the same number."""

    def __init__(self, value):
        self.value = value

    def random(self):
        return self.value


@pytest.fixture
def clock():
    return VirtualClock()


@pytest.fixture
def scheduler(clock):
    return Scheduler(clock)


@pytest.fixture
def output(request, clock):
    """Isolated output logger. `output.catcher` contains the lines."""
    logger = logging.getLogger('promisesim_test.output.%s' % uuid.uuid4())
    logger.setLevel(logging.INFO)
    logger.propagate = False
    logger.catcher = CatchOutput(clock)
    logger.addHandler(logger.catcher)

    request.addfinalizer(lambda: logger.removeHandler(logger.catcher))
    return logger


@pytest.fixture
def simulator(scheduler, output):
    """Simulator on virtual time, whose tasks always succeed."""
    return TaskSimulator(scheduler, FixedRandom(0.0), output)


@pytest.fixture
def fixed_random():
    return FixedRandom
