#!/usr/bin/env python
"""
hvstorage - Hyper-V cluster VM storage location report

A command-line tool that walks every node of a Hyper-V failover cluster
and writes the controller type, cluster shared volume and path of each
VM hard disk to a CSV file.
"""

import os
from setuptools import setup, find_packages

# Read the README for long description
here = os.path.abspath(os.path.dirname(__file__))
with open(os.path.join(here, 'README.md'), encoding='utf-8') as f:
    long_description = f.read()

# Version
VERSION = '1.0.0'

setup(
    name='hvstorage',
    version=VERSION,
    description='Hyper-V cluster VM storage location report',
    long_description=long_description,
    long_description_content_type='text/markdown',

    license='MIT',

    classifiers=[
        'Development Status :: 4 - Beta',
        'Environment :: Console',
        'Intended Audience :: System Administrators',
        'Intended Audience :: Information Technology',
        'License :: OSI Approved :: MIT License',
        'Operating System :: Microsoft :: Windows :: Windows Server 2016',
        'Operating System :: OS Independent',
        'Programming Language :: Python :: 3',
        'Programming Language :: Python :: 3.10',
        'Programming Language :: Python :: 3.11',
        'Programming Language :: Python :: 3.12',
        'Topic :: System :: Clustering',
        'Topic :: System :: Systems Administration',
    ],

    keywords='hyper-v failover cluster inventory vhdx csv report',

    packages=find_packages(exclude=['tests', 'tests.*']),

    python_requires='>=3.10',

    install_requires=[
        'paramiko>=3.0',
        'PyYAML>=6.0',
    ],

    extras_require={
        'dev': [
            'pytest>=7.0',
        ],
    },

    # Entry points for CLI commands
    entry_points={
        'console_scripts': [
            'hvstorage=hvstorage.cli.main:main',
        ],
    },
)
