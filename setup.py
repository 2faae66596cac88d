#!/usr/bin/env python3
"""
Setup script for the wikiserver client
"""

from setuptools import setup, find_packages

setup(
    name="wikiclient",
    version="0.1.0",
    description="Client for the wikiserver Unix socket protocol",
    packages=find_packages(include=["wikiclient", "wikiclient.*", "wikiproto", "wikiproto.*"]),
    install_requires=[
        "click==8.1.7",
        "typer==0.12.3",
        "rich==13.9.2",
        "PyYAML==6.0.2",
    ],
    extras_require={
        "test": [
            "pytest==8.4.2",
        ],
    },
    python_requires=">=3.8",
    entry_points={
        'console_scripts': [
            'wikiclient=wikiclient.wiki_cli:main',
        ],
    },
)
