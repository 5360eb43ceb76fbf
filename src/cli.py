# coding: utf-8
"""
redismap command line utility:
    - full replication report
    - discovered hosts of a cluster key
    - single host probe
"""
import argparse
import json
import logging
import sys

import yaml

from . import DEFAULT_CONFIG, get_cluster_keys, init_logging, read_config
from . import helpers
from .cluster_map import ClusterMapBuilder
from .exceptions import DiscoveryError
from .probe import ReplicationProbe
from .replicas import ReplicaRecordParser
from .resolver import HostnameResolver
from .topology import TopologyResolver
from .types import report_to_dict
from .zk import Zookeeper, ZookeeperException

EXIT_OK = 0
EXIT_ERROR = 1
EXIT_DISCOVERY_FAILED = 2


def entry():
    """
    Entry point.
    """
    opts = parse_args()
    conf = read_config(
        filename=opts.config_file,
        options=opts,
    )
    init_logging(conf)
    helpers.register_stop_handlers()
    try:
        code = opts.action(opts, conf)
    except (KeyboardInterrupt, EOFError):
        logging.error('abort')
        sys.exit(EXIT_ERROR)
    except RuntimeError as err:
        logging.error(err)
        sys.exit(EXIT_ERROR)
    except Exception as exc:
        logging.exception(exc)
        sys.exit(EXIT_ERROR)
    sys.exit(code or EXIT_OK)


def render(data, as_yaml=False):
    style = {'sort_keys': True, 'indent': 4}
    if as_yaml:
        return yaml.safe_dump(data, default_flow_style=False, **style)
    return json.dumps(data, **style)


def make_probe(conf, timeout=None):
    if timeout is None:
        timeout = conf.getfloat('probe', 'timeout')
    return ReplicationProbe(
        timeout=timeout,
        retries=conf.getint('probe', 'retries'),
        retry_delay=conf.getfloat('probe', 'retry_delay'),
        log=logging.getLogger('probe'),
    )


def make_resolver(conf):
    if not conf.getboolean('resolver', 'enabled'):
        return None
    return HostnameResolver(
        retries=conf.getint('resolver', 'retries'),
        retry_delay=conf.getfloat('resolver', 'retry_delay'),
        log=logging.getLogger('resolver'),
    )


def make_builder(conf, store, probe=None):
    topology = None
    if store is not None:
        topology = TopologyResolver(store, conf.get('global', 'zk_root'), log=logging.getLogger('topology'))
    return ClusterMapBuilder(
        topology=topology,
        probe=probe or make_probe(conf),
        replica_parser=ReplicaRecordParser(log=logging.getLogger('replicas')),
        resolver=make_resolver(conf),
        workers=conf.getint('probe', 'workers'),
        run_timeout=conf.getfloat('probe', 'run_timeout'),
        log=logging.getLogger('cluster_map'),
    )


def _log_errors(errors):
    for error in errors:
        logging.warning('%s [%s/%s]: %s', error.kind, error.cluster_key, error.host or '-', error.message)
    if errors:
        logging.info('%d errors recorded during the run', len(errors))


def report(opts, conf):
    """
    Print replication report of all requested cluster keys.
    """
    cluster_keys = opts.cluster_keys or get_cluster_keys(conf)
    if not cluster_keys:
        raise RuntimeError('no cluster keys given either in config or in command line')
    try:
        with Zookeeper(config=conf, log=logging.getLogger('zk')) as store:
            builder = make_builder(conf, store)
            cluster_map = builder.build(cluster_keys)
    except ZookeeperException as exc:
        logging.error('Coordination store is not available: %s', exc)
        print(render({}, opts.yaml))
        return EXIT_DISCOVERY_FAILED
    print(render(report_to_dict(cluster_map), opts.yaml))
    _log_errors(builder.errors)
    if not cluster_map:
        return EXIT_DISCOVERY_FAILED
    return EXIT_OK


def hosts(opts, conf):
    """
    Print hosts discovered for cluster key.
    """
    with Zookeeper(config=conf, log=logging.getLogger('zk')) as store:
        topology = TopologyResolver(store, conf.get('global', 'zk_root'), log=logging.getLogger('topology'))
        try:
            addresses = topology.resolve_hosts(opts.cluster_key)
        except DiscoveryError as exc:
            logging.error('Discovery failed: %s', exc)
            return EXIT_DISCOVERY_FAILED
    for address in addresses:
        print(address)
    return EXIT_OK


def probe(opts, conf):
    """
    Print replication info of a single host.
    """
    builder = make_builder(conf, None, probe=make_probe(conf, opts.timeout))
    host_info, errors = builder.inspect_host(opts.address)
    for exc in errors:
        logging.warning('%s: %s', type(exc).__name__, exc)
    print(render({opts.address: host_info.to_dict()}, opts.yaml))
    return EXIT_OK


def _add_format_args(parser):
    group = parser.add_mutually_exclusive_group()
    group.add_argument('-j', '--json', help='show output in json format (default)', action='store_true', default=False)
    group.add_argument('-y', '--yaml', help='show output in yaml format', action='store_true', default=False)


def parse_args(args=None):
    """
    Parse multiple commands.
    """
    arg = argparse.ArgumentParser(
        description="""
        redismap: replication topology of redis clusters registered in zookeeper
        """
    )
    arg.add_argument(
        '-c',
        '--config',
        dest='config_file',
        type=str,
        metavar='<path>',
        default=DEFAULT_CONFIG,
        help='path to redismap config file',
    )
    arg.add_argument(
        '--zk',
        type=str,
        dest='zk_hosts',
        metavar='<fqdn:port>,[<fqdn:port>,...]',
        help='override config zookeeper connection string',
    )
    arg.add_argument(
        '--zk-root',
        metavar='<path>',
        type=str,
        dest='zk_root',
        help='override config zookeeper discovery root',
    )
    arg.add_argument('--log-level', dest='log_level', default=None, help='override config log level')
    arg.set_defaults(action=report, cluster_keys=[], json=False, yaml=False)

    subarg = arg.add_subparsers(
        help='possible actions', title='subcommands', description='for more info, see <subcommand> -h'
    )

    report_arg = subarg.add_parser('report', help='replication report of cluster keys')
    report_arg.add_argument(
        'cluster_keys',
        metavar='<cluster_key>',
        nargs='*',
        default=[],
        help='Space-separated list of cluster keys, config cluster_keys if omitted',
    )
    _add_format_args(report_arg)
    report_arg.set_defaults(action=report)

    hosts_arg = subarg.add_parser('hosts', help='list hosts discovered for cluster key')
    hosts_arg.add_argument('cluster_key', metavar='<cluster_key>')
    hosts_arg.set_defaults(action=hosts)

    probe_arg = subarg.add_parser('probe', help='replication info of a single host')
    probe_arg.add_argument('address', metavar='<host:port>')
    probe_arg.add_argument(
        '-t', '--timeout', help='probe timeout in seconds', type=float, default=None, metavar='<sec>'
    )
    _add_format_args(probe_arg)
    probe_arg.set_defaults(action=probe)

    return arg.parse_args(args)
