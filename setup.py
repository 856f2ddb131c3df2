#!/usr/bin/env python
# -*- coding: utf-8 -*-

from setuptools import find_packages, setup


# Load the __version__ variable
exec(open('syncpromise/__version__.py').read())


setup_kwargs = {
    'name': "syncpromise",
    'version': __version__,  # noqa
    'description': "Synchronous deferred values with promise-like chaining",
    'long_description': "Deferred values (pending, fulfilled or rejected) "
                        "with chainable continuations, rejection propagation "
                        "and all-of-N aggregation. Continuations are called "
                        "synchronously, without event loop.",
    'license': "GPLv3",
    'classifiers': [
        "Development Status :: 2 - Pre-Alpha",
        "Intended Audience :: Developers",
        "License :: OSI Approved :: GNU General Public License v3 (GPLv3)",
        "Operating System :: OS Independent",
        "Programming Language :: Python :: 3",
        "Topic :: Software Development :: Libraries"
    ],
    'keywords': "promise deferred future thenable",
    'packages': find_packages(exclude=['tests', 'tests.*']),
    'python_requires': '>=3.6',
    'install_requires': [
        'appdirs>=1.4',
    ],
    'extras_require': {
        'test': ['pytest'],
    },
    'zip_safe': False,
}

setup(**setup_kwargs)
