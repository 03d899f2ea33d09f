# -*- coding: utf-8 -*-

import logging
from functools import partial
from threading import Condition, Lock
from .util import is_thenable

_logger = logging.getLogger(__name__)


class TimeoutError(Exception):
    """The promise has not been settled within the time allowed."""
    pass


class Promise(object):
    """Handle on a value which will be known later.

    A Promise starts in the PENDING state, and is settled exactly once: either
    FULFILLED with a result, or REJECTED with an exception. Once settled, its
    state never changes again.

    Callbacks can be attached with `then()` and `catch()`. They are called as
    soon as the Promise is settled (immediately if it's already the case), and
    they produce a new Promise, so operations can be chained.

    All calls to the methods are thread-safe.
    """

    PENDING = 'pending'
    FULFILLED = 'fulfilled'
    REJECTED = 'rejected'

    def __init__(self, executor, _name=None, _previous=None):
        """Constructor of the Promise.

        Generate the two settlement callbacks, then call the `executor` with
        them. The executor is fully executed before the constructor returns.
        If the executor raises an exception, the Promise is rejected with it.

        Args:
            executor (callable): Takes 2 callable arguments:
                The first one, `on_fulfilled()`, should be called when the
                operation is done, with the result's value as its only
                argument.
                The second, `on_rejected()`, should be called when the
                operation has failed. Its argument must be an instance of
                `Exception`.
            _name (str): if set, name used when converted to text.
        """

        self._state = self.PENDING
        self._result = None
        self._error = None
        self._condition = Condition()
        self._name = _name or getattr(executor, '__name__', '???')
        self._previous = _previous

        self._callbacks = []
        self._errbacks = []
        # A promise rejected by its executor is returned already rejected:
        # the caller had no chance to set an errback.
        self._in_executor = True

        def on_fulfilled(result):
            with self._condition:
                if self._state != self.PENDING:
                    _logger.warning('Try to fulfill Promise %r already '
                                    'settled. New result will be ignored: %r',
                                    self, result)
                    return
                self._result = result
                self._state = self.FULFILLED
                self._condition.notify_all()

                callbacks = self._callbacks
                # Free the references
                self._callbacks = None
                self._errbacks = None

            for callback in callbacks:
                self._exec_callback(callback, result)

        def on_rejected(error):
            with self._condition:
                if self._state != self.PENDING:
                    _logger.warning('Try to reject Promise %r already '
                                    'settled. New error will be ignored: %r',
                                    self, error)
                    return
                if not isinstance(error, BaseException):
                    # result() will raise a TypeError "exceptions must derive
                    # from BaseException" instead of the real value.
                    _logger.warning('Promise %r rejected with non-exception '
                                    'value: %r', self, error)
                self._error = error
                self._state = self.REJECTED
                self._condition.notify_all()

                errbacks = self._errbacks
                self._callbacks = None
                self._errbacks = None

            if not errbacks and not self._in_executor:
                _logger.warning('Unhandled rejection of %r: %s', self, error)
            for errback in errbacks:
                self._exec_callback(errback, error, is_errback=True)

        try:
            executor(on_fulfilled, on_rejected)
        except Exception as error:
            on_rejected(error)
        finally:
            self._in_executor = False

    @property
    def state(self):
        """str: one of PENDING, FULFILLED or REJECTED."""
        with self._condition:
            return self._state

    def is_pending(self):
        return self.state == self.PENDING

    def result(self, timeout=None):
        """Wait for the result and returns it as soon as it's available.

        This call blocks the current thread. Don't use it from the thread
        who is supposed to settle the promise.

        Args:
            timeout (float, optional): if set, maximum time (in seconds) to
                wait the promise to be settled. By default, it can wait
                indefinitely.
        Returns:
            *: value encapsulated, defined by the operation.
        Raises:
            TimeoutError: if the promise is not settled within the delay.
            *: If the promise is rejected, the rejection cause is raised.
        """
        with self._condition:
            if self._state == self.PENDING:
                self._condition.wait(timeout)

            if self._state == self.PENDING:
                raise TimeoutError()
            elif self._state == self.REJECTED:
                raise self._error
            else:
                return self._result

    def exception(self, timeout=None):
        """Wait for the promise to be settled and returns its error.

        Args:
            timeout (float, optional): if set, maximum time to wait the
                promise to be settled. By default, it can wait indefinitely.
        Returns:
            Exception: the error causing the rejection of the Promise.
            None: if the promise is fulfilled.
        Raises:
            TimeoutError: if the promise is not settled within the delay.
        """

        with self._condition:
            if self._state == self.PENDING:
                self._condition.wait(timeout)

            if self._state == self.PENDING:
                raise TimeoutError()
            else:
                return self._error

    def then(self, on_fulfilled=None, on_rejected=None):
        """Create a new promise from callbacks called when this one is settled.

        If the promise is fulfilled, the `on_fulfilled` callback will be
        called. Otherwise (the promise has been rejected), the `on_rejected`
        callback is called.
        In any case, the callback will define the state of the returned
        Promise. If the callback raises an exception, the new Promise is
        rejected. The callback can returns:
        - A value: the new promise will be fulfilled with this value.
        - Another Promise, or any object with a `then` method: when fulfilled
            or rejected, will transfer its status (state and result/error) to
            the Promise returned by this method.

        If a callback is not defined, the state of the "self" promise is
        transferred to the new promise (the state and the value/error).

        Args:
            on_fulfilled (callable, optional):  This callback will receive the
                result of the original promise as argument.
            on_rejected (callable, optional): This callback will receive the
                exception raised by the original promise as argument.
        Returns:
            Promise<*>: new promise depending of self.
        """

        def chained_promise(fulfilled, rejected):

            def adopt(value):
                if is_thenable(value):
                    value.then(fulfilled, rejected)
                else:
                    fulfilled(value)

            def callback(result):
                if on_fulfilled is None:
                    return fulfilled(result)
                try:
                    new_result = on_fulfilled(result)
                except Exception as error:
                    return rejected(error)
                adopt(new_result)

            def errback(error):
                if on_rejected is None:
                    return rejected(error)
                try:
                    new_result = on_rejected(error)
                except Exception as new_error:
                    return rejected(new_error)
                adopt(new_result)

            self._add_callback(callback)
            self._add_errback(errback)

        if not on_rejected:
            name = '%s' % getattr(on_fulfilled, '__name__', '???')
        elif not on_fulfilled:
            name = '<None, %s>' % getattr(on_rejected, '__name__', '???')
        else:
            name = '<%s, %s>' % (getattr(on_fulfilled, '__name__', '???'),
                                 getattr(on_rejected, '__name__', '???'))
        return Promise(chained_promise, _name=name, _previous=self)

    def catch(self, on_rejected):
        """Create a new promise with a callback called when an error occurs.

        Alias of `self.then(None, on_rejected)`

        Args:
            on_rejected (callable): Must take an argument instance of Exception
                (or one of its subclass). Will be called if `self` is rejected.
        returns:
            Promise<*>: new Promise chained to `self`. If `self` is fulfilled,
                the promised value will be the same as `self`. Otherwise, the
                value returned by the `on_rejected()` callback.
        """
        return self.then(None, on_rejected)

    def safeguard(self):
        """Catch all errors and log them with the most details possible.

        If no error handler has been set (via then() or catch()), a rejection
        goes unnoticed. Calling `safeguard()` after all chains are set will
        log these errors as ERROR, with their traceback.
        """
        def guard(error):
            _logger.error('[SAFEGUARD] %s', self,
                          exc_info=(type(error), error,
                                    getattr(error, '__traceback__', None)))

        self._add_errback(guard)

    def __repr__(self):
        return 'Promise(%s)' % self._inner_print()

    def _inner_print(self):
        with self._condition:
            if self._state == self.REJECTED:
                state = 'R'
            elif self._state == self.FULFILLED:
                state = 'F'
            else:
                state = 'P'

        if self._previous:
            return '%s -> %s %s' % (self._previous._inner_print(), self._name,
                                    state)
        return '%s %s' % (self._name, state)

    @staticmethod
    def resolve(value):
        """Create a promise who resolves the selected value.

        Args:
            value: result of the promise. If it's a promise, it's returned as
                is.
        Returns:
            Promise: new Promise already fulfilled, containing the value
                passed in parameter.
        """
        if is_thenable(value):
            return value
        return Promise(lambda ok, error: ok(value), _name='RESOLVE')

    @staticmethod
    def reject(reason):
        """Create a Promise rejected for the reason specified.

        Args:
            reason (Exception): error set to the Promise
        Returns:
            Promise: new Promise already rejected.
        """
        return Promise(lambda ok, error: error(reason), _name='REJECT')

    @staticmethod
    def all(promises):
        """Create a Promise who wait a list of promises to be all fulfilled.

        The resulting Promise resolves when all of the promises in the list
        are fulfilled, and returns a list of all the resulting values, keeping
        the order of the promise list (not the order of completion).
        Items who are not promises are considered as already fulfilled.

        As soon as one promise is rejected, the resulting promise is rejected
        with the same reason. The other promises are not interrupted, but
        their results (and their errors) are ignored.

        Args:
            promises (list of Promise)
        Returns:
            Promise<list>: fulfilled when all promises are fulfilled, or
                rejected when one of the promises has been rejected.
        """
        promises = [Promise.resolve(p) for p in promises]
        if not promises:
            return Promise.resolve([])

        lock = Lock()
        context = {'remaining': len(promises), 'settled': False}
        results = [None] * len(promises)

        def executor(resolve, reject):
            def resolve_one_promise(index, value):
                with lock:
                    if context['settled']:
                        return
                    results[index] = value
                    context['remaining'] -= 1
                    if context['remaining']:
                        return
                    context['settled'] = True
                resolve(results)

            def reject_one_promise(reason):
                with lock:
                    if context['settled']:
                        _logger.debug('Promise.all() already settled. '
                                      'Error ignored: %r', reason)
                        return
                    context['settled'] = True
                reject(reason)

            for index, p in enumerate(promises):
                p.then(partial(resolve_one_promise, index), reject_one_promise)

        return Promise(executor, _name='ALL')

    @staticmethod
    def _exec_callback(callback, value, is_errback=False):
        try:
            callback(value)
        except Exception:
            if is_errback:
                _logger.exception("Promise errback raise an exception!")
            else:
                _logger.exception("Promise callback raise an exception!")

    def _add_callback(self, callback):
        execute_now = False
        result = None

        with self._condition:
            if self._state == self.PENDING:
                self._callbacks.append(callback)
            elif self._state == self.FULFILLED:
                execute_now = True
                result = self._result

        if execute_now:
            self._exec_callback(callback, result)

    def _add_errback(self, errback):
        execute_now = False
        error = None

        with self._condition:
            if self._state == self.PENDING:
                self._errbacks.append(errback)
            elif self._state == self.REJECTED:
                execute_now = True
                error = self._error

        if execute_now:
            self._exec_callback(errback, error, is_errback=True)
