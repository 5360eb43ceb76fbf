#!/usr/bin/env python
# -*- coding: utf-8 -*-

import yaml
from behave import given, then, when

import helpers
from redismap.exceptions import DiscoveryError
from redismap.topology import TopologyResolver

DEFAULT_ROOT = '/redis/cluster/site'


def get_root(context):
    return getattr(context, 'zk_root', None) or DEFAULT_ROOT


@given('coordination store with nodes')
def step_store_nodes(context):
    context.zk_root = None
    context.store = helpers.FakeStore(yaml.safe_load(context.text) or {})


@given('coordination store fails on "{path}"')
def step_store_fails(context, path):
    context.store.failing.add(path)


@given('discovery root "{root}"')
def step_discovery_root(context, root):
    context.zk_root = root


@when('we resolve hosts of cluster "{cluster_key}"')
def step_resolve_hosts(context, cluster_key):
    topology = TopologyResolver(context.store, get_root(context))
    context.error = None
    context.result = None
    try:
        context.result = topology.resolve_hosts(cluster_key)
    except DiscoveryError as exc:
        context.error = exc


@then('resolved hosts are')
def step_resolved_hosts(context):
    expected = yaml.safe_load(context.text)
    assert context.error is None, 'unexpected discovery error: {err}'.format(err=context.error)
    assert context.result == expected, 'expected hosts {exp}, got {got}'.format(exp=expected, got=context.result)


@then('discovery fails with "{message}"')
def step_discovery_fails(context, message):
    assert isinstance(context.error, DiscoveryError), 'expected DiscoveryError, got {res}'.format(res=context.result)
    assert message in str(context.error), 'error "{err}" does not mention "{msg}"'.format(
        err=context.error, msg=message
    )
