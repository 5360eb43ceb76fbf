# coding: utf8
"""
Describes exception classes used in redismap.
"""


class RedismapException(Exception):
    """
    Generic redismap exception.
    """

    pass


class DiscoveryError(RedismapException):
    """
    Coordination store is unreachable or returned something unusable
    while resolving cluster topology.
    """

    def __init__(self, cluster_key, message):
        super().__init__(f'{cluster_key}: {message}')
        self.cluster_key = cluster_key


class ProbeError(RedismapException):
    """
    Connection or protocol failure against a single redis host.
    """

    def __init__(self, host, message):
        super().__init__(f'{host}: {message}')
        self.host = host


class MalformedRecordError(RedismapException):
    """
    Replica entry in INFO replication output lacks required fields.
    """

    def __init__(self, key, message):
        super().__init__(f'{key}: {message}')
        self.key = key


class ResolutionError(RedismapException):
    """
    Reverse lookup of an address failed.
    """

    pass
