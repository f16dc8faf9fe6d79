# Copyright (C) 2026 Linuxfabrik <info@linuxfabrik.ch>
#
# This program is free software; you can redistribute it and/or modify
# it under the terms of the GNU General Public License as published by
# the Free Software Foundation; either version 2 of the License, or
# (at your option) any later version.
#
# On Debian systems, the complete text of the GNU General Public License
# version 2 can be found in /usr/share/common-licenses/GPL-2.
#
# SPDX-License-Identifier: GPL-2.0-or-later

from setuptools import find_packages, setup

setup(
    name='policyfabrik',
    version='0.1.0',
    description='Bulk section and rule reordering for network security policies',
    author='Linuxfabrik GmbH, Zurich/Switzerland',
    author_email='info@linuxfabrik.ch',
    license='GPL-2.0-or-later',
    python_requires='>=3.11',
    package_dir={'': 'src'},
    packages=find_packages(where='src'),
    install_requires=[
        'SQLAlchemy>=2.0',
        'PyYAML>=6.0',
        'httpx>=0.25',
    ],
    extras_require={
        'test': [
            'pytest>=7.0',
        ],
    },
    entry_points={
        'console_scripts': [
            'pfab=policyfabrik.cli.pfab:main',
        ],
    },
)
