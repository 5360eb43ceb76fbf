"""
Cluster membership discovery from the coordination store.

Layout below the root is `<root>/<cluster_key>/<group>.../<leaf>`. Every
segment between the root and the leaf is a grouping label, labels are
joined with `-` into a hostname. The leaf carries the port, either as its
data or, when data is not a number, as its own name.
"""
# encoding: utf-8

import logging
import posixpath

from .exceptions import DiscoveryError
from .zk import ZookeeperException

LABEL_SEPARATOR = '-'


def path_to_label(segments):
    """
    Join grouping segments into a synthetic hostname
    """
    return LABEL_SEPARATOR.join(segments)


def _relative_segments(root, path):
    rel = posixpath.relpath(path, root)
    return [s for s in rel.split('/') if s]


class TopologyResolver:
    def __init__(self, store, root, log=None):
        self._store = store
        self._root = '/' + root.strip('/')
        self._log = log or logging.getLogger('topology')

    def cluster_path(self, cluster_key):
        return posixpath.join(self._root, cluster_key)

    def resolve_hosts(self, cluster_key):
        """
        Return ordered list of unique "host:port" addresses for cluster key.
        Raises DiscoveryError on any failure against the store.
        """
        path = self.cluster_path(cluster_key)
        try:
            children = self._store.get_children(path)
            if children is None:
                raise DiscoveryError(cluster_key, f'no such node {path}')
            leaves = list(self._walk_leaves(path, children))
        except ZookeeperException as exc:
            raise DiscoveryError(cluster_key, str(exc)) from exc

        hosts = []
        for leaf_path, data in leaves:
            address = self._leaf_to_address(leaf_path, data)
            if address is None:
                continue
            if address in hosts:
                self._log.warning('Duplicate host %s in cluster %s (from %s), ignoring', address, cluster_key, leaf_path)
                continue
            self._log.debug('full host: %s', address)
            hosts.append(address)
        self._log.info('Cluster %s: %d hosts discovered', cluster_key, len(hosts))
        return hosts

    def _walk_leaves(self, path, children):
        if not children:
            data = self._store.get(path)
            if data is None:
                self._log.debug('Node %s vanished during discovery', path)
                return
            yield path, data
            return
        for child in children:
            child_path = posixpath.join(path, child)
            grandchildren = self._store.get_children(child_path)
            if grandchildren is None:
                self._log.debug('Node %s vanished during discovery', child_path)
                continue
            yield from self._walk_leaves(child_path, grandchildren)

    def _leaf_to_address(self, leaf_path, data):
        segments = _relative_segments(self._root, leaf_path)
        labels, leaf = segments[:-1], segments[-1]
        if not labels:
            self._log.warning('Leaf %s has no grouping labels, skipping', leaf_path)
            return None
        port = data.strip()
        if not port.isdigit():
            port = leaf
        if not port.isdigit():
            self._log.warning('Leaf %s has no numeric port in data or name, skipping', leaf_path)
            return None
        return f'{path_to_label(labels)}:{int(port)}'
