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

"""Name to id resolution against a fresh catalog snapshot.

The desired topology addresses sections and rules by name while the catalog
mutates by id. Ids may change whenever an entity is recreated outside of
this engine, so the index is rebuilt for every reconciliation and never
cached.
"""

from __future__ import annotations

import dataclasses
import logging

from ._catalog import CatalogRule, CatalogSection, PolicyCatalog, catalog_call
from ._errors import AnchorNotFoundError, UnresolvedNameError
from ._topology import DesiredTopology

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class NameIndex:
    """Snapshot of one catalog: entities in catalog order plus name lookups."""

    sections: list[CatalogSection]
    rules: list[CatalogRule]
    section_ids: dict[str, str] = dataclasses.field(default_factory=dict)
    rule_ids: dict[str, list[CatalogRule]] = dataclasses.field(default_factory=dict)

    def __post_init__(self):
        for section in self.sections:
            if section.name in self.section_ids:
                logger.warning(
                    "Catalog lists section name '%s' more than once, using id %s",
                    section.name,
                    section.id,
                )
            self.section_ids[section.name] = section.id
        for rule in self.rules:
            self.rule_ids.setdefault(rule.name, []).append(rule)
        for name, candidates in self.rule_ids.items():
            if len(candidates) > 1:
                logger.warning(
                    "Catalog lists rule name '%s' %d times", name, len(candidates)
                )

    def section_id(self, name: str) -> str | None:
        return self.section_ids.get(name)

    def rule_id(self, name: str, section_name: str | None = None) -> str | None:
        """Return the id of rule *name*.

        When the catalog has several rules with that name, the one already
        living in *section_name* wins, otherwise the last one listed.
        """
        candidates = self.rule_ids.get(name)
        if not candidates:
            return None
        if section_name is not None:
            for rule in candidates:
                if rule.section_name == section_name:
                    return rule.id
        return candidates[-1].id

    def rule(self, name: str, section_name: str | None = None) -> CatalogRule | None:
        rule_id = self.rule_id(name, section_name)
        return next((r for r in self.rules if r.id == rule_id), None)

    def has_section_id(self, section_id: str) -> bool:
        return any(s.id == section_id for s in self.sections)

    def check_anchor(self, anchor_id: str | None) -> None:
        if anchor_id and not self.has_section_id(anchor_id):
            raise AnchorNotFoundError(anchor_id)

    def validate(self, topology: DesiredTopology) -> None:
        """Fail with one aggregated error unless every desired name resolves."""
        declared = set(topology.section_names)
        missing_sections = [n for n in topology.section_names if n not in self.section_ids]
        missing_rules = [r.name for r in topology.rules if r.name not in self.rule_ids]
        undeclared = sorted({r.section_name for r in topology.rules} - declared)
        if missing_sections or missing_rules or undeclared:
            raise UnresolvedNameError(
                sections=missing_sections,
                rules=missing_rules,
                undeclared_sections=undeclared,
            )


def resolve(catalog: PolicyCatalog) -> NameIndex:
    """Fetch sections and rules from *catalog* and index them by name."""
    sections = catalog_call('list_sections', catalog.list_sections)
    logger.debug('Catalog lists %d section(s)', len(sections))
    rules = catalog_call('list_rules', catalog.list_rules)
    logger.debug('Catalog lists %d rule(s)', len(rules))
    return NameIndex(sections=list(sections), rules=list(rules))
