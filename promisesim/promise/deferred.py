# -*- coding: utf-8 -*-

from .promise import Promise


class Deferred(object):
    """Producer side of a Promise.

    A Deferred is the "creator" side of an async task, whereas a Promise
    represents the asynchronous value from the "consumer" side. It's useful
    when the code who settles the value is not the code who creates the
    Promise, like a timer callback.

    Attributes:
        promise (Promise): the Promise associated to the Deferred.
        resolve (function): fulfill the promise with the value passed.
        reject (function): reject the promise with the exception passed.
    """

    def __init__(self, name=None):
        self.promise = Promise(self._executor, _name=name or 'DEFERRED')

    def _executor(self, resolve, reject):
        self.resolve = resolve
        self.reject = reject
