# -*- coding: utf-8 -*-

from .deferred import Deferred
from .promise import Promise, TimeoutError
from .reduce_coroutine import reduce_coroutine
from .util import is_thenable

__all__ = ['Deferred', 'Promise', 'TimeoutError', 'is_thenable',
           'reduce_coroutine']
