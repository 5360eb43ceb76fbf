#!/usr/bin/env python
# encoding: utf-8

from setuptools import setup

setup(
    name='redismap',
    version='1.0',
    description="Replication topology report of redis clusters discovered in ZK",
    long_description="Replication topology report of redis master/slave clusters discovered in ZK",
    platforms=["Linux", "BSD", "MacOS"],
    zip_safe=False,
    python_requires='>=3.10',
    packages=['redismap'],
    package_dir={'redismap': 'src'},
    install_requires=[
        'kazoo',
        'redis',
        'PyYAML',
    ],
    extras_require={
        'test': ['behave'],
    },
    entry_points={
        'console_scripts': [
            'redismap = redismap.cli:entry',
        ]
    },
)
