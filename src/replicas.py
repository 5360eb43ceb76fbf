"""
Replica entries of a master's INFO replication output.

    slave0:ip=192.168.70.183,port=6379,state=online,offset=1317653926184,lag=0
"""
# encoding: utf-8

import logging
import re

from .exceptions import MalformedRecordError
from .types import ROLE_MASTER, ReplicaRecord

REPLICA_KEY_RE = re.compile(r'^slave(\d+)$')
REQUIRED_FIELDS = ('ip', 'port', 'state', 'offset', 'lag')
INTEGER_FIELDS = ('port', 'offset', 'lag')


def parse_fields(value):
    """
    Split "a=1,b=2" into a mapping. Segments without "=" are skipped.
    """
    fields = {}
    for segment in value.split(','):
        name, sep, field_value = segment.partition('=')
        if not sep:
            continue
        fields[name.strip()] = field_value.strip()
    return fields


def has_replicas(info):
    return info.get('role') == ROLE_MASTER and info.get('connected_slaves') != '0'


def replica_keys(info):
    """
    Return replica keys of info ordered by their numeric index
    """
    indexed = []
    for key in info:
        match = REPLICA_KEY_RE.match(key)
        if match:
            indexed.append((int(match.group(1)), key))
    return [key for _, key in sorted(indexed)]


def make_record(key, value):
    fields = parse_fields(value)
    missing = [name for name in REQUIRED_FIELDS if not fields.get(name)]
    if missing:
        raise MalformedRecordError(key, 'missing fields: ' + ', '.join(missing))
    try:
        numbers = {name: int(fields[name]) for name in INTEGER_FIELDS}
    except ValueError as exc:
        raise MalformedRecordError(key, str(exc)) from exc
    return ReplicaRecord(address=fields['ip'], state=fields['state'], **numbers)


class ReplicaRecordParser:
    def __init__(self, log=None):
        self._log = log or logging.getLogger('replicas')

    def parse(self, info):
        """
        Return (records, errors) for a master's info mapping.
        Malformed entries are dropped and returned as errors.
        """
        records, errors = [], []
        if not has_replicas(info):
            return records, errors
        for key in replica_keys(info):
            try:
                records.append(make_record(key, info[key]))
            except MalformedRecordError as exc:
                self._log.warning('Dropping replica entry %s', exc)
                errors.append(exc)
        return records, errors
