"""
This module contains internal-use functions for configuring and writing to
debug logs, using Python's internal logging functionality by default.
"""

import inspect
import logging

from qheom.settings import settings

NOTSET = logging.NOTSET
DEBUG = logging.DEBUG
INFO = logging.INFO
WARN = logging.WARN
ERROR = logging.ERROR
CRITICAL = logging.CRITICAL

__all__ = ['get_logger']

metalogger = logging.getLogger(__name__)
metalogger.addHandler(logging.NullHandler())


def get_logger(name=None):
    """
    Returns a Python logging object with handlers configured in accordance
    with ``qheom.settings``. By default, this will do something sensible to
    integrate with IPython when running in that environment, and will print
    to stderr otherwise.

    Note that this function is for internal use only and is not part of the
    qheom API.

    Parameters
    ----------
    name : str
        Name of the logger to be created. If not passed,
        the name will automatically be set to the name of the
        calling module.
    """
    if name is None:
        try:
            calling_frame = inspect.stack()[1][0]
            calling_module = inspect.getmodule(calling_frame)
            name = (calling_module.__name__
                    if calling_module is not None else '<none>')

        except Exception:
            metalogger.warning('Error creating logger.', exc_info=1)
            name = '<unknown>'

    logger = logging.getLogger(name)

    policy = settings.log_handler

    if policy == 'default':
        policy = 'basic' if settings.ipython else 'stream'

    metalogger.debug("Creating logger for {} with policy {}.".format(
        name, policy
    ))

    if policy == 'basic':
        # Leave the handlers to basicConfig so IPython can use its own.
        if settings.debug:
            logging.basicConfig(level=logging.DEBUG)
        else:
            logging.basicConfig()

    elif policy == 'stream':
        if not any(
            getattr(handler, "_qheom_handler", False)
            for handler in logger.handlers
        ):
            formatter = logging.Formatter(
                '[%(asctime)s] %(name)s[%(process)s]: '
                '%(funcName)s: %(levelname)s: %(message)s',
                '%Y-%m-%d %H:%M:%S')
            handler = logging.StreamHandler()
            handler.setFormatter(formatter)
            handler._qheom_handler = True
            logger.addHandler(handler)

        # We're handling things here, so no propagation out.
        logger.propagate = False

    elif policy == 'null':
        # Leaves it to the user to attach their own handlers, e.g. to
        # capture to logfiles.
        logger.addHandler(logging.NullHandler())

    if settings.debug:
        logger.setLevel(logging.DEBUG)
    else:
        logger.setLevel(logging.WARN)

    return logger
