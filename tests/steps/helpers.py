#!/usr/bin/env python
# -*- coding: utf-8 -*-

import logging
import posixpath

from kazoo.exceptions import ConnectionLoss, NoNodeError
from kazoo.handlers.threading import KazooTimeoutError
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from redismap.zk import ZookeeperException

LOG = logging.getLogger('helpers')

ERRORS = {
    'connection refused': RedisConnectionError('Error 111 connecting. Connection refused.'),
    'timeout': RedisTimeoutError('Timeout reading from socket'),
    'undecodable': UnicodeDecodeError('utf-8', b'master_replid:\xff\xfe', 14, 15, 'invalid start byte'),
}


def build_tree(nodes):
    """
    Turn {path: value} into {path: (value, children)} including all ancestors
    """
    tree = {'/': ['', set()]}
    for path, value in nodes.items():
        path = '/' + path.strip('/')
        tree.setdefault(path, ['', set()])[0] = '' if value is None else str(value)
        while path != '/':
            parent, name = posixpath.split(path)
            tree.setdefault(parent, ['', set()])[1].add(name)
            path = parent
    return tree


class FakeStore(object):
    """
    Stands in for redismap.zk.Zookeeper
    """

    def __init__(self, nodes, failing=()):
        self.tree = build_tree(nodes)
        self.failing = set(failing)
        self.requests = []

    def _check(self, path):
        self.requests.append(path)
        if path in self.failing:
            raise ZookeeperException(f'{path}: ConnectionLoss()')

    def get_children(self, path):
        self._check(path)
        if path not in self.tree:
            return None
        return sorted(self.tree[path][1])

    def get(self, path):
        self._check(path)
        if path not in self.tree:
            return None
        return self.tree[path][0]


class FakeAsyncResult(object):
    def __init__(self, value=None, exception=None, ready=True):
        self.value = value
        self.exception = exception
        self.ready = ready

    def wait(self, timeout=None):
        return self.ready

    def get_nowait(self):
        if not self.ready:
            raise KazooTimeoutError()
        if self.exception is not None:
            raise self.exception
        return self.value


class FakeKazooClient(object):
    """
    Minimal kazoo client answering from a tree, used to exercise redismap.zk
    """

    def __init__(self, nodes, connects=True, slow=(), broken=()):
        self.tree = build_tree(nodes)
        self.connected = False
        self.connects = connects
        self.slow = set(slow)
        self.broken = set(broken)
        self.listeners = []
        self.stopped = False
        self.closed = False

    @property
    def state(self):
        return 'CONNECTED' if self.connected else 'LOST'

    def start_async(self):
        self.connected = self.connects
        return FakeAsyncResult(ready=self.connects)

    def add_listener(self, listener):
        self.listeners.append(listener)

    def remove_listener(self, listener):
        if listener in self.listeners:
            self.listeners.remove(listener)

    def stop(self):
        self.connected = False
        self.stopped = True

    def close(self):
        self.closed = True

    def _result(self, path, value):
        if path in self.slow:
            return FakeAsyncResult(ready=False)
        if path in self.broken:
            return FakeAsyncResult(exception=ConnectionLoss())
        if path not in self.tree:
            return FakeAsyncResult(exception=NoNodeError())
        return FakeAsyncResult(value=value(self.tree[path]))

    def get_async(self, path):
        return self._result(path, lambda node: (node[0].encode(), None))

    def get_children_async(self, path):
        return self._result(path, lambda node: list(node[1]))


class FakeConnection(object):
    def __init__(self, factory, **kwargs):
        self.factory = factory
        self.kwargs = kwargs
        self.address = '{host}:{port}'.format(**kwargs)
        self.commands = []

    def send_command(self, *args):
        self.commands.append(args)
        self.factory.attempts[self.address] = self.factory.attempts.get(self.address, 0) + 1
        reply = self.factory.replies.get(self.address, ERRORS['connection refused'])
        if isinstance(reply, list):
            reply = reply.pop(0) if len(reply) > 1 else reply[0]
        if isinstance(reply, Exception):
            raise reply
        self._reply = reply

    def read_response(self):
        return self._reply

    def disconnect(self):
        self.factory.disconnects += 1


class FakeConnectionFactory(object):
    """
    Replaces redis.Connection. Replies are keyed by "host:port", a list of
    replies is consumed one per attempt (the last one sticks).
    """

    def __init__(self, replies=None):
        self.replies = dict(replies or {})
        self.connections = []
        self.attempts = {}
        self.disconnects = 0

    def __call__(self, **kwargs):
        conn = FakeConnection(self, **kwargs)
        self.connections.append(conn)
        return conn


class FakeLookup(object):
    """
    Replaces socket.gethostbyaddr
    """

    def __init__(self, names=None, failures=0):
        self.names = dict(names or {})
        self.failures = failures
        self.crash = False
        self.calls = []

    def __call__(self, address):
        self.calls.append(address)
        if self.crash:
            raise RuntimeError('resolver library bug')
        if self.failures > 0:
            self.failures -= 1
            raise OSError(2, 'Host name lookup failure')
        if address not in self.names:
            raise OSError(1, 'Unknown host')
        name = self.names[address]
        if name is None:
            return '', [], [address]
        return name, [], [address]


def info_text(lines):
    """
    Render INFO reply the way redis does (CRLF line endings)
    """
    return '\r\n'.join(lines) + '\r\n'


def is_dict_subset_of(left, right):
    for key, value in left.items():
        if key not in right:
            return False, f'missing "{key}", expected "{value}"'
        if value != right[key]:
            message = f'key "{key}" has value "{right[key]}" expected "{value}"'
            return False, message
    return True, None


def are_dicts_subsets_of(exp_values, actual_values):
    if len(actual_values) != len(exp_values):
        return False, 'expected {exp} values, got {got}'.format(exp=len(exp_values), got=len(actual_values))

    for i, expected in enumerate(exp_values):
        is_subset, err = is_dict_subset_of(expected, actual_values[i])

        # return immediately if values are not equal
        if not is_subset:
            return is_subset, err

    return True, None
