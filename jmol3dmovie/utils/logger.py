"""
Logging setup for the command line programs.

Everything is logged through the root logger. Errors always go to stderr;
the other records go to stdout and to optional log files in a folder.
Every handler passes a given message only once, so a status line repeated
for each retry or frame shows up a single time in each output.
"""

import logging
import os
import sys

LOG_FORMAT = "{asctime} - {levelname:6s} - [{name}] {message}"


class LogOnceFilter(logging.Filter):
    """
    Logging filter passing each message once.

    Messages are compared after %-formatting, without the timestamp, so
    the same text logged twice is dropped the second time.
    """

    def __init__(self):
        super().__init__()
        self.logged_messages = set()

    def filter(self, record):
        message = (record.levelno, record.getMessage())
        if message in self.logged_messages:
            return False
        self.logged_messages.add(message)
        return True


def _add_handler(logger, handler, formatter, level=logging.NOTSET):
    handler.setLevel(level)
    handler.setFormatter(formatter)
    # logger filters never see records propagated from child loggers
    handler.addFilter(LogOnceFilter())
    logger.addHandler(handler)
    return handler


def create_logger(
    debug=True,
    folder=".",
    logfile=None,
    errfile=None,
    stream=True,
):
    """
    Configure the root logger for a command line run.

    Handlers installed by an earlier call are replaced.

    Args:
        debug (bool): Log debug messages too. Defaults to True.
        folder (str): Folder of the log files. Defaults to ".".
        logfile (str, optional): File receiving every record at the
            logging level.
        errfile (str, optional): File receiving warnings and errors.
        stream (bool): Also log to stdout. Errors are written to stderr
            either way. Defaults to True.

    Returns:
        logging.Logger: The root logger.
    """
    level = logging.DEBUG if debug else logging.INFO
    logger = logging.getLogger()
    logger.setLevel(level)
    logger.handlers = []
    logger.filters = []
    formatter = logging.Formatter(LOG_FORMAT, style="{")

    _add_handler(
        logger,
        logging.StreamHandler(stream=sys.stderr),
        formatter,
        level=logging.ERROR,
    )
    if stream:
        _add_handler(
            logger, logging.StreamHandler(stream=sys.stdout), formatter
        )
    if logfile:
        _add_handler(
            logger,
            logging.FileHandler(filename=os.path.join(folder, logfile)),
            formatter,
            level=level,
        )
    if errfile:
        _add_handler(
            logger,
            logging.FileHandler(filename=os.path.join(folder, errfile)),
            formatter,
            level=logging.WARNING,
        )
    return logger
