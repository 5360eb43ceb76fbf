# encoding: utf-8
"""
Zookeeper wrapper module. Read-only Zookeeper class defined here.
"""

import logging

from kazoo.client import KazooClient, KazooState
from kazoo.exceptions import KazooException, NoNodeError
from kazoo.handlers.threading import KazooTimeoutError, SequentialThreadingHandler


class ZookeeperException(Exception):
    """Exception for wrapping all zookeeper connector inner exceptions"""


class Zookeeper(object):
    """
    Zookeeper class. Opens one session per run and only reads from it.
    """

    def __init__(self, config, log=None, client=None):
        self._zk_hosts = config.get('global', 'zk_hosts')
        self._timeout = config.getfloat('global', 'zk_timeout')
        self._zk_connect_max_delay = config.getfloat('global', 'zk_connect_max_delay')
        self._log = log or logging.getLogger('zk')
        self._zk = client

    def __enter__(self):
        self.start()
        return self

    def __exit__(self, *_):
        self.stop()

    def _create_kazoo_client(self):
        conn_retry_options = {'max_tries': 3, 'delay': 0.5, 'backoff': 1.5, 'max_delay': self._zk_connect_max_delay}
        command_retry_options = {'max_tries': 0, 'delay': 0, 'backoff': 1, 'max_delay': 5}
        self._zk = KazooClient(
            hosts=self._zk_hosts,
            handler=SequentialThreadingHandler(),
            timeout=self._timeout,
            connection_retry=conn_retry_options,
            command_retry=command_retry_options,
            read_only=True,
        )

    def _listener(self, state):
        if state == KazooState.LOST:
            self._log.error('Connection to ZK lost.')
        elif state == KazooState.SUSPENDED:
            self._log.warning('Being disconnected from ZK.')
        elif state == KazooState.CONNECTED:
            self._log.info('Connected to ZK.')

    def start(self):
        """
        Connect to zk, raise ZookeeperException if it is not possible within timeout
        """
        if self._zk is None:
            self._create_kazoo_client()
        event = self._zk.start_async()
        event.wait(self._timeout)
        if not self._zk.connected:
            self._zk.stop()
            raise ZookeeperException(f'Could not connect to ZK {self._zk_hosts} within {self._timeout}s')
        self._zk.add_listener(self._listener)
        self._log.debug('Connected to ZK %s', self._zk_hosts)

    def stop(self):
        if self._zk is None:
            return
        self._zk.remove_listener(self._listener)
        self._zk.stop()
        self._zk.close()

    def is_alive(self):
        """
        Return True if we are connected to zk
        """
        return self._zk is not None and self._zk.state == KazooState.CONNECTED

    def _wait(self, event):
        event.wait(self._timeout)

    def _get(self, path):
        event = self._zk.get_async(path)
        self._wait(event)
        return event.get_nowait()

    def get(self, path):
        """
        Get node value from zk, None if node does not exist
        """
        try:
            data, _ = self._get(path)
        except NoNodeError:
            self._log.debug('NoNodeError when trying to get %s', path)
            return None
        except (KazooException, KazooTimeoutError) as exception:
            raise ZookeeperException(f'{path}: {exception!r}') from exception
        if data is None:
            return ''
        return data.decode('utf-8')

    def get_children(self, path):
        """
        Get sorted children names of path, None if node does not exist
        """
        try:
            event = self._zk.get_children_async(path)
            self._wait(event)
            children = event.get_nowait()
        except NoNodeError:
            self._log.debug('NoNodeError when trying to list %s', path)
            return None
        except (KazooException, KazooTimeoutError) as exception:
            raise ZookeeperException(f'{path}: {exception!r}') from exception
        return sorted(children)
