# -*- coding: utf-8 -*-


class TaskFailure(Exception):
    """A simulated task has been settled unsuccessfully.

    Attributes:
        message (str): error value of the task.
    """

    def __init__(self, message):
        Exception.__init__(self, message)
        self.message = message

    def __str__(self):
        return self.message


class SchedulerIdleError(Exception):
    """Nothing is scheduled anymore, but a promise is still pending.

    Waiting for this promise would block forever.
    """
    pass
