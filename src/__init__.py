"""
Replication topology report of redis clusters discovered in ZK
"""
# encoding: utf-8

import logging
import sys

from configparser import RawConfigParser

DEFAULT_CONFIG = '/etc/redismap.conf'


def read_config(filename=None, options=None):
    """
    Merge config with default values and cmd options
    """
    defaults: dict[str, dict] = {
        'global': {
            'zk_hosts': 'localhost:2181',
            'zk_root': '/redis/cluster/site',
            'zk_timeout': 1.0,
            'zk_connect_max_delay': 10,
            'cluster_keys': '',
            'log_file': '',
            'log_level': 'info',
        },
        'probe': {
            'timeout': 2.0,
            'retries': 1,
            'retry_delay': 0.5,
            'workers': 8,
            'run_timeout': 60,
        },
        'resolver': {
            'enabled': 'yes',
            'retries': 1,
            'retry_delay': 0.2,
        },
    }

    config = RawConfigParser()
    if not filename and options is not None:
        filename = options.config_file

    if filename:
        config.read(filename)

    #
    # Appending default config with default values.
    #
    for section in defaults:
        if not config.has_section(section):
            config.add_section(section)
        for key, value in defaults[section].items():
            if not config.has_option(section, key):
                config.set(section, key, str(value))

    #
    # Rewriting global config with parameters from command line.
    #
    if options:
        for key in ('zk_hosts', 'zk_root', 'log_level'):
            value = getattr(options, key, None)
            if value is not None:
                config.set('global', key, value)

    return config


def get_cluster_keys(config):
    return [key.strip() for key in config.get('global', 'cluster_keys').split(',') if key.strip()]


def init_logging(config):
    """
    Set log level and format. Logs go to stderr and optional log file.
    """
    level = getattr(logging, config.get('global', 'log_level').upper())
    logging.getLogger('kazoo').setLevel(logging.WARN)
    handlers = [logging.StreamHandler(sys.stderr)]
    log_file = config.get('global', 'log_file')
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    format = '{asctime} {levelname:<8}: {name}: {message}'
    if config.getboolean('global', 'log_func_name', fallback=False):
        format = '{asctime} {levelname:<8}: {funcName:<30}: {message}'
    logging.basicConfig(level=level, format=format, style='{', handlers=handlers, force=True)
