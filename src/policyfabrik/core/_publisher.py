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

"""Commit of staged moves."""

import logging

from ._errors import PublishError

logger = logging.getLogger(__name__)


def publish(catalog, applied=0):
    """Publish the catalog's draft revision.

    There is no rollback: if publishing fails the draft keeps the staged
    order and a later publish picks it up.
    """
    try:
        catalog.publish_revision()
    except Exception as e:
        raise PublishError(
            f'Publishing the policy revision failed, {applied} staged move(s) '
            f'remain in the draft: {e}',
            operation='publish_revision',
        ) from e
    logger.info('Published policy revision (%d move(s))', applied)
