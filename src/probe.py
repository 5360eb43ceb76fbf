"""
Redis replication status probe and INFO text parsing
"""
# encoding: utf-8

import logging

import redis
from redis.exceptions import RedisError

from . import helpers
from .exceptions import ProbeError
from .types import ROLE_MASTER, ROLE_SLAVE, ROLE_UNKNOWN

INFO_SECTION = 'replication'


def parse_info(text):
    """
    Parse INFO reply into a mapping.
    Lines without a colon (section headers, blank lines) are ignored,
    the rest are split at the first colon with the value stripped.
    """
    info = {}
    for line in text.split('\n'):
        key, sep, value = line.partition(':')
        if not sep:
            continue
        info[key] = value.strip()
    return info


def get_role(info):
    role = info.get('role')
    if role in (ROLE_MASTER, ROLE_SLAVE):
        return role
    return ROLE_UNKNOWN


class ReplicationProbe:
    """
    Issues INFO replication against one host per call.
    Every call opens its own connection and closes it afterwards.
    """

    def __init__(self, timeout, retries=0, retry_delay=0.5, log=None, connection_factory=redis.Connection):
        self.timeout = float(timeout)
        self._retries = retries
        self._retry_delay = retry_delay
        self._log = log or logging.getLogger('probe')
        self._connection_factory = connection_factory

    def fetch(self, address, timeout):
        """
        Return raw INFO replication text of host, raise ProbeError on failure
        """
        try:
            host, port = helpers.split_address(address)
        except ValueError as exc:
            raise ProbeError(address, str(exc)) from exc
        conn = self._connection_factory(
            host=host,
            port=port,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
            decode_responses=True,
        )
        try:
            conn.send_command('INFO', INFO_SECTION)
            reply = conn.read_response()
        except (RedisError, OSError, UnicodeError) as exc:
            raise ProbeError(address, f'{type(exc).__name__}: {exc}') from exc
        finally:
            conn.disconnect()
        if isinstance(reply, bytes):
            reply = reply.decode('utf-8', errors='replace')
        if not isinstance(reply, str):
            raise ProbeError(address, f'unexpected INFO reply type {type(reply).__name__}')
        return reply

    def probe(self, address, on_error=None):
        """
        Return parsed INFO replication mapping of host.
        Never raises: on failure the error is passed to on_error and
        an empty mapping (role unknown) is returned.
        """
        fetch = helpers.get_exponentially_retrying(
            self._retries,
            self._retry_delay,
            f'probe of {address}',
            ProbeError,
            self.fetch,
            log=self._log,
        )
        try:
            text = fetch(address, self.timeout)
        except ProbeError as exc:
            self._log.warning('Error on host %s', exc)
            if on_error is not None:
                on_error(exc)
            return {}
        info = parse_info(text)
        self._log.debug('%s: %s', address, info)
        return info
