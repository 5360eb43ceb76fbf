"""
Some helper functions and decorators
"""

# encoding: utf-8

import logging
import random
import signal
import time
from functools import wraps

_should_run = True


def register_stop_handlers():
    signal.signal(signal.SIGTERM, _stop_handler)
    signal.signal(signal.SIGINT, _stop_handler)
    _set_should_run(True)


def should_run():
    global _should_run
    return _should_run


def request_stop():
    _set_should_run(False)


def reset_stop():
    _set_should_run(True)


def _stop_handler(*_):
    logging.warning('Stop requested, cancelling pending work.')
    _set_should_run(False)


def _set_should_run(value):
    global _should_run
    _should_run = value


def split_address(address):
    """
    Split "host:port" into host and integer port
    """
    host, sep, port = address.rpartition(':')
    if not sep or not host or not port.isdigit():
        raise ValueError(f'invalid address "{address}", expected <host>:<port>')
    return host, int(port)


def interruptible_sleep(seconds, step=0.1):
    """
    Sleep for given time unless stop is requested
    """
    end = time.time() + seconds
    while should_run():
        left = end - time.time()
        if left <= 0:
            return True
        time.sleep(min(step, left))
    return False


def get_exponentially_retrying(retries, delay, event_name, exceptions, func, log=None):
    """
    This function returns an exponentially retrying decorator.
    `func` is called at most `retries + 1` times, sleeping `delay` seconds
    before the first retry and growing the pause after each attempt.
    The last caught exception is re-raised when attempts are exhausted
    or stop is requested.
    """
    log = log or logging.getLogger('retry')

    @wraps(func)
    def wrapper(*args, **kwargs):
        sleep_time = delay
        attempt = 0
        while True:
            try:
                return func(*args, **kwargs)
            except exceptions as exc:
                if attempt >= retries or not should_run():
                    raise
                attempt += 1
                log.debug(f'{event_name} failed ({exc}), retry {attempt}/{retries} in {sleep_time:.2f}s')
                if sleep_time > 0:
                    if not interruptible_sleep(sleep_time):
                        raise
                    sleep_time = 1.5 * sleep_time + 0.1 * random.random()

    return wrapper
