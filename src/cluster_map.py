"""
Cluster map assembly: discovery, probing and replica decoding per cluster key
"""
# encoding: utf-8

import logging
import time
from concurrent.futures import FIRST_COMPLETED, ThreadPoolExecutor, wait

from . import helpers
from .exceptions import DiscoveryError, ProbeError
from .probe import get_role
from .types import ROLE_MASTER, ErrorRecord, HostInfo

POLL_INTERVAL = 0.2


def build_host_info(host, info, replica_parser, resolver=None, on_error=None):
    """
    Make HostInfo out of a probed info mapping. Replicas are decoded
    for masters only and named "<hostname>:<port>".
    """
    role = get_role(info)
    host_info = HostInfo(host=host, role=role, info=info)
    if role != ROLE_MASTER:
        return host_info
    records, malformed = replica_parser.parse(info)
    if on_error is not None:
        for exc in malformed:
            on_error(exc)
    for record in records:
        name = record.address
        if resolver is not None:
            name = resolver.resolve(record.address, on_error=on_error)
        record.name = f'{name}:{record.port}'
    host_info.replicas = records
    return host_info


class ClusterMapBuilder:
    """
    Builds {cluster_key: {host: HostInfo}}.
    Probes of one cluster key are fanned out over a bounded thread pool,
    results are merged by the calling thread only.
    """

    def __init__(
        self,
        topology,
        probe,
        replica_parser,
        resolver=None,
        workers=8,
        run_timeout=None,
        should_run=helpers.should_run,
        log=None,
    ):
        self._topology = topology
        self._probe = probe
        self._replica_parser = replica_parser
        self._resolver = resolver
        self._workers = max(1, int(workers))
        self._run_timeout = run_timeout
        self._should_run = should_run
        self._log = log or logging.getLogger('cluster_map')
        self.errors = []

    def _record(self, cluster_key, host, exc):
        self.errors.append(ErrorRecord(cluster_key=cluster_key, host=host, kind=type(exc).__name__, message=str(exc)))

    def inspect_host(self, host):
        """
        Probe one host and decode its replicas. Returns (HostInfo, errors).
        """
        errors = []
        info = self._probe.probe(host, on_error=errors.append)
        host_info = build_host_info(host, info, self._replica_parser, self._resolver, errors.append)
        return host_info, errors

    def _expired(self, deadline):
        return not self._should_run() or (deadline is not None and time.time() >= deadline)

    def _probe_cluster(self, pool, cluster_key, hosts, deadline):
        futures = {pool.submit(self.inspect_host, host): host for host in hosts}
        results = {}
        pending = set(futures)
        while pending and not self._expired(deadline):
            done, pending = wait(pending, timeout=POLL_INTERVAL, return_when=FIRST_COMPLETED)
            for future in done:
                host = futures[future]
                try:
                    host_info, errors = future.result()
                except Exception as exc:
                    self._log.exception('Inspection of %s in cluster %s failed', host, cluster_key)
                    host_info = HostInfo(host=host)
                    errors = [ProbeError(host, f'unexpected {type(exc).__name__}: {exc}')]
                results[host] = host_info
                for exc in errors:
                    self._record(cluster_key, host, exc)
        for future in pending:
            future.cancel()
            host = futures[future]
            self._log.warning('Probe of %s in cluster %s cancelled', host, cluster_key)
            results[host] = HostInfo(host=host)
            self._record(cluster_key, host, ProbeError(host, 'cancelled before completion'))
        return {host: results[host] for host in hosts}

    def build(self, cluster_keys):
        """
        Return report for all cluster keys. A cluster key whose topology
        cannot be resolved is left out of the report and recorded in errors.
        """
        self.errors = []
        report = {}
        deadline = None
        if self._run_timeout:
            deadline = time.time() + float(self._run_timeout)
        pool = ThreadPoolExecutor(max_workers=self._workers, thread_name_prefix='probe')
        try:
            for cluster_key in cluster_keys:
                if self._expired(deadline):
                    self._log.warning('Run stopped, cluster %s skipped', cluster_key)
                    self._record(cluster_key, None, DiscoveryError(cluster_key, 'run stopped before discovery'))
                    continue
                try:
                    hosts = self._topology.resolve_hosts(cluster_key)
                except DiscoveryError as exc:
                    self._log.error('Discovery failed: %s', exc)
                    self._record(cluster_key, None, exc)
                    continue
                self._log.debug('serverlist: %s', hosts)
                report[cluster_key] = self._probe_cluster(pool, cluster_key, hosts, deadline)
        finally:
            pool.shutdown(wait=True, cancel_futures=True)
        return report
