# -*- coding: utf-8 -*-

import logging
import random
import time

import pytest

from promisesim.errors import SchedulerIdleError, TaskFailure
from promisesim.promise import Deferred, Promise, reduce_coroutine
from promisesim.simulator import Task, TaskSimulator


class TestCreateTask(object):

    def test_task_is_pending_when_created(self, simulator, scheduler):
        task = simulator.create_task('Task 1', 3000)

        assert isinstance(task, Task)
        assert isinstance(task, Promise)
        assert task.state == Promise.PENDING
        assert task.settled_at is None
        assert scheduler.pending == 1

    def test_task_attributes(self, simulator):
        task = simulator.create_task('Task X', 1500, 0.25, result='ok',
                                     error='ko')
        assert task.name == 'Task X'
        assert task.delay_ms == 1500
        assert task.success_probability == 0.25
        assert task.success_value == 'ok'
        assert task.error_value == 'ko'

    def test_default_messages(self, simulator):
        task = simulator.create_task('Task A', 10)
        assert task.success_value == 'Task A complete.'
        assert task.error_value == 'Task A failed.'

    def test_zero_delay_is_not_synchronous(self, simulator):
        task = simulator.create_task('Now', 0)
        assert task.is_pending()
        assert simulator.wait(task) == 'Now complete.'

    @pytest.mark.parametrize('delay', [-1, -3000])
    def test_negative_delay(self, simulator, delay):
        with pytest.raises(ValueError):
            simulator.create_task('Bad', delay)

    @pytest.mark.parametrize('probability', [-0.1, 1.5])
    def test_invalid_probability(self, simulator, probability):
        with pytest.raises(ValueError):
            simulator.create_task('Bad', 10, probability)

    @pytest.mark.parametrize('delay', [0, 1, 250, 3000, 86400000])
    def test_settles_after_delay(self, simulator, clock, delay):
        clock.now = 100.0
        task = simulator.create_task('Timed', delay)
        simulator.wait(task)

        assert task.created_at == 100.0
        assert task.settled_at >= task.created_at + delay / 1000.0
        assert clock.time() == pytest.approx(100.0 + delay / 1000.0)

    def test_tasks_count_down_concurrently(self, simulator, clock):
        tasks = [simulator.create_task('T%s' % i, 3000) for i in range(5)]
        simulator.wait(simulator.all(tasks))

        assert clock.time() == 3.0
        assert all(t.settled_at == 3.0 for t in tasks)

    def test_repr(self, simulator):
        task = simulator.create_task('Task 1', 10)
        assert repr(task) == 'Promise(Task 1 P)'
        simulator.wait(task)
        assert repr(task) == 'Promise(Task 1 F)'

    def test_repr_without_name(self, simulator):
        assert repr(simulator.create_task('', 10)) == 'Promise(TASK P)'


class TestRandomOutcome(object):

    def test_always_succeeds_with_probability_one(self, scheduler, output):
        simulator = TaskSimulator(scheduler, random.Random(), output)
        tasks = [simulator.create_task('T', 10, 1.0) for _ in range(200)]
        scheduler.run()

        assert all(t.state == Promise.FULFILLED for t in tasks)

    def test_always_fails_with_probability_zero(self, scheduler, output):
        simulator = TaskSimulator(scheduler, random.Random(), output)
        tasks = [simulator.create_task('T', 10, 0.0) for _ in range(200)]
        scheduler.run()

        assert all(t.state == Promise.REJECTED for t in tasks)

    def test_outcome_drawn_against_probability(self, scheduler, output,
                                               fixed_random):
        simulator = TaskSimulator(scheduler, fixed_random(0.5), output)
        success = simulator.create_task('S', 10, 0.7)
        failure = simulator.create_task('F', 10, 0.3)
        scheduler.run()

        assert success.state == Promise.FULFILLED
        assert failure.state == Promise.REJECTED

    def test_outcome_drawn_at_settlement(self, scheduler, output,
                                         fixed_random):
        source = fixed_random(0.9)
        simulator = TaskSimulator(scheduler, source, output)
        task = simulator.create_task('Late draw', 100, 0.5)
        source.value = 0.1

        assert simulator.wait(task) == 'Late draw complete.'

    def test_seeded_random_is_reproducible(self, scheduler, output):
        def outcomes(seed):
            simulator = TaskSimulator(scheduler, random.Random(seed), output)
            tasks = [simulator.create_task('T', 1, 0.5) for _ in range(50)]
            scheduler.run()
            return [t.state for t in tasks]

        assert outcomes(42) == outcomes(42)

    def test_failure_carries_error_message(self, scheduler, output,
                                           fixed_random):
        simulator = TaskSimulator(scheduler, fixed_random(0.99), output)
        task = simulator.create_task('Task 2', 3000, 0.5,
                                     error='Task 2 failed: Something went '
                                           'wrong.')
        scheduler.run()

        error = task.exception(0)
        assert isinstance(error, TaskFailure)
        assert error.message == 'Task 2 failed: Something went wrong.'
        assert str(error) == 'Task 2 failed: Something went wrong.'


class TestWait(object):

    def test_wait_returns_result(self, simulator):
        task = simulator.create_task('Task 1', 3000, result='resolved!')
        assert simulator.wait(task) == 'resolved!'

    def test_wait_raises_failure(self, simulator):
        task = simulator.create_task('Task 1', 3000, 0.0)
        with pytest.raises(TaskFailure) as exc_info:
            simulator.wait(task)
        assert exc_info.value.message == 'Task 1 failed.'

    def test_wait_same_task_twice(self, simulator):
        task = simulator.create_task('Task 1', 3000)
        assert simulator.wait(task) == simulator.wait(task)

    def test_wait_leaves_later_tasks_pending(self, simulator, scheduler):
        first = simulator.create_task('First', 1000)
        second = simulator.create_task('Second', 2000)

        simulator.wait(first)
        assert second.is_pending()
        assert scheduler.pending == 1

    def test_wait_never_settled_promise(self, simulator):
        with pytest.raises(SchedulerIdleError):
            simulator.wait(Deferred().promise)

    def test_default_collaborators(self):
        simulator = TaskSimulator()
        assert simulator.output.name == 'promisesim.output'
        task = simulator.create_task('Quick', 1)
        assert simulator.wait(task) == 'Quick complete.'

    @pytest.mark.parametrize('delay', [0, 20, 50])
    def test_real_clock_settles_after_delay(self, delay):
        simulator = TaskSimulator()
        start = time.monotonic()
        task = simulator.create_task('Real', delay)
        simulator.wait(task)

        assert time.monotonic() >= start + delay / 1000.0
        assert task.settled_at >= task.created_at + delay / 1000.0

    def test_coroutine_wait(self, simulator, clock):
        """`yield task` suspends the coroutine only."""

        @reduce_coroutine()
        def sequence():
            first = yield simulator.create_task('A', 1000)
            second = yield simulator.create_task('B', 1000)
            yield [first, second, clock.time()]

        p = sequence()
        assert p.is_pending()
        assert simulator.wait(p) == ['A complete.', 'B complete.', 2.0]


class TestChain(object):

    def test_chain_runs_continuation_after_success(self, simulator, clock):
        calls = []
        first = simulator.create_task('Part 1', 3000)

        def continuation(message):
            calls.append((message, clock.time()))
            return simulator.create_task('Part 2', 3000)

        chained = simulator.chain(first, continuation)
        assert calls == []

        assert simulator.wait(chained) == 'Part 2 complete.'
        assert calls == [('Part 1 complete.', 3.0)]
        assert clock.time() == 6.0

    def test_chain_skips_continuation_on_failure(self, scheduler, output,
                                                 fixed_random):
        simulator = TaskSimulator(scheduler, fixed_random(0.5), output)
        calls = []
        first = simulator.create_task('Part 1', 3000, 0.0)
        chained = simulator.chain(first, calls.append)

        with pytest.raises(TaskFailure):
            simulator.wait(chained)
        assert calls == []
        assert chained.exception(0) is first.exception(0)

    def test_chain_with_failing_second_task(self, simulator):
        first = simulator.create_task('Part 1', 1000)
        chained = simulator.chain(
            first, lambda _: simulator.create_task('Part 2', 1000, 0.0))

        with pytest.raises(TaskFailure) as exc_info:
            simulator.wait(chained)
        assert str(exc_info.value) == 'Part 2 failed.'

    def test_chain_with_direct_value(self, simulator):
        first = simulator.create_task('Part 1', 1000)
        chained = simulator.chain(first, lambda message: message.upper())
        assert simulator.wait(chained) == 'PART 1 COMPLETE.'

    def test_chain_continuation_raising(self, simulator):
        def continuation(message):
            raise KeyError(message)

        chained = simulator.chain(simulator.create_task('Part 1', 10),
                                  continuation)
        with pytest.raises(KeyError):
            simulator.wait(chained)


class TestAll(object):

    def test_all_keeps_input_order(self, simulator):
        tasks = [simulator.create_task('Task A', 3000),
                 simulator.create_task('Task B', 1000),
                 simulator.create_task('Task C', 2000)]

        results = simulator.wait(simulator.all(tasks))
        assert results == ['Task A complete.', 'Task B complete.',
                           'Task C complete.']

    def test_all_rejected_by_failing_task(self, simulator):
        tasks = [simulator.create_task('Task A', 3000),
                 simulator.create_task('Task B', 3000),
                 simulator.create_task('Task C', 3000, 0.0)]

        with pytest.raises(TaskFailure) as exc_info:
            simulator.wait(simulator.all(tasks))
        assert exc_info.value.message == 'Task C failed.'

    def test_all_reports_failure_without_waiting(self, simulator, clock):
        slow = simulator.create_task('Slow', 10000)
        failing = simulator.create_task('Failing', 1000, 0.0)
        aggregate = simulator.all([slow, failing])

        with pytest.raises(TaskFailure):
            simulator.wait(aggregate)
        assert clock.time() == 1.0
        assert slow.is_pending()

        # The remaining task is still settled later.
        simulator.scheduler.run()
        assert slow.state == Promise.FULFILLED
        assert aggregate.exception(0) is failing.exception(0)

    def test_all_keeps_first_failure(self, simulator):
        first = simulator.create_task('First', 1000, 0.0)
        second = simulator.create_task('Second', 2000, 0.0)
        aggregate = simulator.all([second, first])

        simulator.scheduler.run()
        assert aggregate.exception(0).message == 'First failed.'

    def test_all_empty(self, simulator):
        assert simulator.wait(simulator.all([])) == []


class TestUnhandledFailure(object):

    @pytest.fixture(autouse=True)
    def warning_level(self, caplog):
        caplog.set_level(logging.WARNING)

    def _warnings(self, caplog):
        return [r.getMessage() for r in caplog.records
                if r.levelno == logging.WARNING]

    def test_unobserved_failure_is_logged(self, simulator, caplog):
        simulator.create_task('Lonely', 1000, 0.0)
        simulator.scheduler.run()

        warnings = self._warnings(caplog)
        assert len(warnings) == 1
        assert 'Unhandled rejection' in warnings[0]
        assert 'Lonely failed.' in warnings[0]

    def test_unobserved_chain_failure_is_logged(self, simulator, caplog):
        task = simulator.create_task('Lonely', 1000, 0.0)
        simulator.chain(task, lambda message: message)
        simulator.scheduler.run()

        warnings = self._warnings(caplog)
        assert len(warnings) == 1
        assert 'Lonely R -> <lambda> R' in warnings[0]

    def test_caught_failure_is_not_logged(self, simulator, caplog):
        task = simulator.create_task('Handled', 1000, 0.0)
        task.catch(lambda error: None)
        simulator.scheduler.run()

        assert self._warnings(caplog) == []

    def test_waited_failure_is_not_logged(self, simulator, caplog):
        task = simulator.create_task('Waited', 1000, 0.0)
        with pytest.raises(TaskFailure):
            simulator.wait(task)

        assert self._warnings(caplog) == []

    def test_aggregated_failure_logged_once(self, simulator, caplog):
        tasks = [simulator.create_task('Task A', 1000),
                 simulator.create_task('Task C', 1000, 0.0)]
        simulator.all(tasks)
        simulator.scheduler.run()

        warnings = self._warnings(caplog)
        assert len(warnings) == 1
        assert 'ALL' in warnings[0]
