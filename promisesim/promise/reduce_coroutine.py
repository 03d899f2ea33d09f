# -*- coding: utf-8 -*-

from .deferred import Deferred
from .util import is_thenable


def reduce_coroutine(safeguard=False):
    """Decorator who converts a coroutine of promises into a single promise.

    The decorated function is a generator. Each time it yields a Promise, the
    generator is suspended until the Promise is settled; then the result is
    sent back as the value of the `yield` expression, or the error is raised
    at the `yield` location. Only this logical sequence is suspended: the
    caller gets a Promise immediately.

    The result of the resulting Promise is, in order of priority:
     - the first non-promise value yielded (the generator is then closed);
     - the value passed to `return`;
     - the result of the last promise yielded.

    Example:

        >>> @reduce_coroutine()
        ... def two_steps(simulator):
        ...     first = yield simulator.create_task('A', 1000)
        ...     second = yield simulator.create_task('B', 1000)
        ...     yield '%s %s' % (first, second)

    Args:
        safeguard (boolean): if true, use `Promise.safeguard()` on the
            resulting promise.
    """

    def decorator(func):
        def wrapper(*args, **kwargs):
            """
            Args:
                *args
                **kwargs
            Returns:
                Promise<*>
            """
            df = Deferred(name='COROUTINE %s' % func.__name__)
            if safeguard:
                df.promise.safeguard()

            try:
                # Create generator; Initialization phase
                gen = func(*args, **kwargs)
            except Exception as error:
                df.reject(error)
                return df.promise

            def _call_next_or_set_result(value):
                if is_thenable(value):
                    value.then(iter_next, iter_error)
                else:
                    gen.close()
                    df.resolve(value)

            def _set_return_value(stop, default=None):
                if stop.value is not None:
                    df.resolve(stop.value)
                else:
                    df.resolve(default)

            def iter_next(yielded_value):
                try:
                    next_value = gen.send(yielded_value)
                except StopIteration as stop:
                    return _set_return_value(stop, yielded_value)
                except Exception as error:
                    return df.reject(error)
                _call_next_or_set_result(next_value)

            def iter_error(raised_error):
                try:
                    next_value = gen.throw(raised_error)
                except StopIteration as stop:
                    # The error has been caught by the generator.
                    return _set_return_value(stop)
                except Exception as error:
                    return df.reject(error)
                _call_next_or_set_result(next_value)

            # Start and resolve loop.
            try:
                first_value = next(gen)
            except StopIteration as stop:
                _set_return_value(stop)
                return df.promise
            except Exception as error:
                df.reject(error)
                return df.promise
            _call_next_or_set_result(first_value)

            return df.promise

        wrapper.__name__ = func.__name__
        wrapper.__doc__ = func.__doc__
        return wrapper
    return decorator
