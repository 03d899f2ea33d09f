#!/usr/bin/env python
# -*- coding: utf-8 -*-

from setuptools import find_packages, setup


# Load the __version__ variable
exec(open('promisesim/__version__.py').read())


with open('README.rst') as readme_file:
    long_description = readme_file.read()


setup_kwargs = {
    'name': "promisesim",
    'version': __version__,  # noqa
    'description': "Lab on promises, with simulated asynchronous tasks",
    'long_description': long_description,
    'license': "GPLv3",
    'classifiers': [
        "Development Status :: 3 - Alpha",
        "Intended Audience :: Education",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Education"
    ],
    'keywords': "promise deferred asynchronous simulation lab",
    'packages': find_packages(exclude=['tests', 'tests.*']),
    'python_requires': '>=3.6',
    'install_requires': [
        'appdirs>=1.4'
    ],
    'extras_require': {
        'test': ['pytest>=3.0,<9', 'tox']
    },
    'entry_points': {
        "console_scripts": [
            "promisesim=promisesim:main"
        ]
    },
    'zip_safe': False
}

setup(**setup_kwargs)
