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

"""Start anchor selection, including creation of a default section."""

from __future__ import annotations

import logging

from ._catalog import CatalogSection, PolicyCatalog, SectionPosition, catalog_call
from ._domains import PolicyDomain
from ._errors import TopologyError
from ._resolver import NameIndex
from ._topology import DesiredTopology

logger = logging.getLogger(__name__)


class DefaultSectionBootstrapper:
    """Pick the section the managed chain is linked after.

    An explicit ``start_anchor_id`` always wins. Otherwise the anchor is the
    first section of the policy, unless that section is managed itself, in
    which case the chain starts last in the policy. An empty catalog gets one
    default section first.
    """

    def __init__(self, catalog: PolicyCatalog, domain: PolicyDomain):
        self.catalog = catalog
        self.domain = domain
        self.created: CatalogSection | None = None

    def anchor_for(self, index: NameIndex, topology: DesiredTopology) -> str | None:
        """Return the anchor section id, or None to place the chain last in the policy."""
        managed = {index.section_id(name) for name in topology.section_names}

        if topology.start_anchor_id:
            if topology.start_anchor_id in managed:
                raise TopologyError(
                    f"Section to start after '{topology.start_anchor_id}' is itself "
                    'part of the desired section order'
                )
            return topology.start_anchor_id

        if not index.sections:
            return self._create_default_section(index)

        head = index.sections[0]
        if head.id in managed:
            logger.debug('First catalog section %s is managed, chaining last in policy', head.name)
            return None
        return head.id

    def _create_default_section(self, index: NameIndex) -> str:
        name = self.domain.info.default_section_name
        logger.info(
            "%s policy has no sections, creating default section '%s'",
            self.domain.info.label,
            name,
        )
        section_id = catalog_call(
            'add_section',
            self.catalog.add_section,
            name,
            SectionPosition.LAST_IN_POLICY,
        )
        self.created = CatalogSection(id=section_id, name=name)
        index.sections.append(self.created)
        index.section_ids[name] = section_id
        return section_id
