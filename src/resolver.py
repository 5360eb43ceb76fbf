"""
Reverse lookup of replica addresses into display names
"""
# encoding: utf-8

import logging
import socket
import threading

from . import helpers
from .exceptions import ResolutionError


class HostnameResolver:
    """
    Never raises: any lookup failure falls back to the address itself.
    Results are cached for the resolver lifetime.
    """

    def __init__(self, retries=0, retry_delay=0.2, log=None, lookup=socket.gethostbyaddr):
        self._retries = retries
        self._retry_delay = retry_delay
        self._log = log or logging.getLogger('resolver')
        self._lookup = lookup
        self._cache = {}
        self._lock = threading.Lock()

    def _reverse(self, address):
        try:
            name, aliases, _ = self._lookup(address)
        except (OSError, UnicodeError, ValueError) as exc:
            raise ResolutionError(f'{address}: {exc}') from exc
        candidates = [n for n in [name, *aliases] if n]
        if not candidates:
            raise ResolutionError(f'{address}: empty lookup result')
        return candidates[0]

    def resolve(self, address, on_error=None):
        with self._lock:
            if address in self._cache:
                return self._cache[address]
        reverse = helpers.get_exponentially_retrying(
            self._retries, self._retry_delay, f'lookup of {address}', ResolutionError, self._reverse, log=self._log
        )
        try:
            name = reverse(address)
        except ResolutionError as exc:
            self._log.debug('Lookup error on %s', exc)
            if on_error is not None:
                on_error(exc)
            name = address
        with self._lock:
            self._cache[address] = name
        return name
