# -*- coding: utf-8 -*-

"""Configuration module of the logs.

This module configure the python ``logging`` module, in order to have useful
and easy to activate logs.

All log entries are written in a file and displayed to the output console.
The log file is rotated each day, and the last 7 files are kept.

On console output, if the system supports it, logs entries will be colorized.

The lines reported by the lab (logger 'promisesim.output') are not log
entries: they are displayed as is, without date nor level, on the standard
output (or on the error output, for the errors). They are not written in the
log file.

Non-caught exceptions are logged before the program quit.
"""

import logging
import logging.handlers
import os.path
import sys

from . import path as promisesim_path

OUTPUT_LOGGER = 'promisesim.output'


def _support_color_output():
    """Try to guess if the standard output supports color term code.

    Returns:
        boolean: True if we are sure the output supports color; False otherwise
    """
    if hasattr(sys.stdout, 'isatty') and sys.stdout.isatty():
        if not sys.platform.startswith('win'):
            return True
    return False


def _get_file_handler(filename):
    """Open a new file for using as a log output.

    The handler rotates the log file at midnight. If filename is
    'promisesim.log', 'promisesim.log' is always the current log file, and
    older logs are renamed with the format 'promisesim.log.YYYY-MM-DD'.

    Args:
        filename (str): name of the log file. Ex: 'promisesim.log'
    Returns:
        FileHandler: a valid fileHandler using the log file, or None if the
            file creation has failed.
    """
    try:
        log_path = os.path.join(promisesim_path.get_log_dir(), filename)
        return logging.handlers.TimedRotatingFileHandler(
            log_path, when='midnight', backupCount=7, delay=True)
    except OSError:
        logging.getLogger(__name__).warning('Unable to create the log file',
                                            exc_info=True)
        return None


class ColoredFormatter(logging.Formatter):
    """Formatter who display colored messages using ANSI escape codes."""

    _colors = {
        'RESET': '\033[0m',
        'DEBUG': '\033[34m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[31m',
        'NAME': '\033[36m',
        'DATE': '\033[30;1m',
        'EXCEPTION_NAME': '\033[31;1m',
        'EXCEPTION_STR': '\033[37;1m'
    }

    def _colorize(self, msg, color):
        return self._colors.get(color, '') + msg + self._colors.get('RESET')

    def formatTime(self, record, datefmt=None):
        result = logging.Formatter.formatTime(self, record, datefmt)
        return self._colorize(result, 'DATE')

    def formatException(self, ei):
        msg = logging.Formatter.formatException(self, ei)
        msg_lines = msg.split('\n')
        last_line = msg_lines[-1]
        result = '\n'.join(msg_lines[:-1]) + '\n'
        result += self._colorize(last_line.split(':')[0], 'EXCEPTION_NAME')
        result += ':' + self._colorize(':'.join(last_line.split(':')[1:]),
                                       'EXCEPTION_STR')
        return result

    def format(self, record):
        # The record is shared between handlers: the file handler must not
        # receive the color codes.
        record = logging.makeLogRecord(record.__dict__)
        record.name = self._colorize(record.name, 'NAME')
        record.levelname = self._colorize(record.levelname, record.levelname)
        return logging.Formatter.format(self, record)


class _MaxLevelFilter(logging.Filter):
    """Accept only records strictly below a level."""

    def __init__(self, level):
        logging.Filter.__init__(self)
        self._level = level

    def filter(self, record):
        return record.levelno < self._level


def _setup_output_logger():
    """Display the lines of the 'promisesim.output' logger, as is.

    Returns:
        list of Handler: handlers added to the logger.
    """
    output_logger = logging.getLogger(OUTPUT_LOGGER)
    output_logger.propagate = False
    output_logger.setLevel(logging.INFO)

    stdout_handler = logging.StreamHandler(sys.stdout)
    stdout_handler.addFilter(_MaxLevelFilter(logging.WARNING))
    stderr_handler = logging.StreamHandler(sys.stderr)
    stderr_handler.setLevel(logging.WARNING)

    handlers = [stdout_handler, stderr_handler]
    for handler in handlers:
        handler.setFormatter(logging.Formatter('%(message)s'))
        output_logger.addHandler(handler)
    return handlers


def _excepthook(exctype, value, traceback):
    try:
        logging.getLogger(__name__).critical(
            'Uncaught exception', exc_info=(exctype, value, traceback))
    except Exception:
        pass  # Avoid recursive logging attempt.


class Context(object):
    """Context class used to open and close log handlers."""

    def __init__(self, filename='promisesim.log'):
        """Prepare a new log context.

        Args:
            filename (str): name of the log file. default to 'promisesim.log'
        """
        self._filename = filename
        self._excepthook = None
        self._handlers = []
        self._output_handlers = []

    def __enter__(self):
        """Open the log file and prepare the logging module."""

        logging.captureWarnings(True)
        logging.addLevelName(5, 'HIDEBUG')

        root_logger = logging.getLogger()

        date_format = '%Y-%m-%d %H:%M:%S'
        string_format = '%(asctime)s %(levelname)-7s %(name)s - %(message)s'
        formatter = logging.Formatter(fmt=string_format, datefmt=date_format)

        console_handler = logging.StreamHandler()
        if _support_color_output():
            console_handler.setFormatter(
                ColoredFormatter(fmt=string_format, datefmt=date_format))
        else:
            console_handler.setFormatter(formatter)
        self._handlers.append(console_handler)

        file_handler = _get_file_handler(self._filename)
        if file_handler:
            file_handler.setFormatter(formatter)
            self._handlers.append(file_handler)

        for handler in self._handlers:
            root_logger.addHandler(handler)
        self._output_handlers = _setup_output_logger()

        # Before any configuration, all messages should be displayed.
        set_debug_mode(True)

        # Log all uncaught exceptions
        self._excepthook = sys.excepthook
        sys.excepthook = _excepthook
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        """Release resources (log files, ...)"""
        logging.getLogger(__name__).debug('Stop logger ...')
        sys.excepthook = self._excepthook

        root_logger = logging.getLogger()
        for handler in self._handlers:
            root_logger.removeHandler(handler)
            handler.close()
        output_logger = logging.getLogger(OUTPUT_LOGGER)
        for handler in self._output_handlers:
            output_logger.removeHandler(handler)
            handler.close()
        self._handlers = []
        self._output_handlers = []


def set_logs_level(levels):
    """Configure a fine-grained log levels for the different modules.

    Args:
        levels (dict): A dict associating a module name and a log level. A
            log level can be a number or a str representing one of the
            logging levels (DEBUG, WARNING, ...). The level name will be
            converted to uppercase.
            Invalids values will be ignored.

    Example:

        >>> # Accept DEBUG logs only for the simulator
        >>> set_logs_level({'promisesim': 'info',
        ...                 'promisesim.simulator': 'debug'})
    """
    for (module, level) in levels.items():
        try:
            if isinstance(level, str):
                level = level.upper()
                if level.isdigit():
                    level = int(level)
            logging.getLogger(module).setLevel(level)
        except (TypeError, ValueError):
            logger = logging.getLogger(__name__)
            logger.warning('Invalid log level "%s" for logger "%s". '
                           'Will be ignored.',
                           level, module)


def set_debug_mode(debug):
    """Set, or unset the debug log level.

    Note: modules others than promisesim.* are not set to DEBUG, even in
    DEBUG mode. If needed, their level can be set by ``set_logs_level()``.

    Args:
        debug (boolean): if True, the promisesim log level will be set to
            DEBUG. If False, it will be set to WARNING, so the log entries
            don't get mixed with the lab output.
    """
    if debug:
        logging.getLogger().setLevel(logging.INFO)
        logging.getLogger('promisesim').setLevel(logging.DEBUG)
    else:
        logging.getLogger().setLevel(logging.WARNING)
        logging.getLogger('promisesim').setLevel(logging.WARNING)

