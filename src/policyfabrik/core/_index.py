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

"""Read path: per-section rule numbering derived from the catalog's linear order.

This is the inverse of the rule sequencer. If a reconciliation committed
rules in the desired order, numbering them here reproduces the
``index_in_section`` values that were fed in.
"""

from __future__ import annotations

import collections

from ._catalog import CatalogRule, CatalogSection
from ._topology import RuleIndexEntry, SectionState


def recompute_rule_indexes(
    rules: list[CatalogRule],
    *,
    skip_system: bool = True,
) -> list[RuleIndexEntry]:
    """Number *rules* 1..n within each section, in catalog order.

    Built-in rules flagged ``SYSTEM`` are neither numbered nor returned
    unless *skip_system* is False.
    """
    counters = collections.Counter()
    entries = []
    for rule in rules:
        if skip_system and rule.is_system:
            continue
        # Key on the section id; names are only unique by convention.
        key = rule.section_id or rule.section_name
        counters[key] += 1
        entries.append(
            RuleIndexEntry(
                id=rule.id,
                name=rule.name,
                index=rule.index,
                index_in_section=counters[key],
                section_id=rule.section_id,
                section_name=rule.section_name,
                description=rule.description,
                enabled=rule.enabled,
                properties=tuple(rule.properties),
            )
        )
    return entries


def recompute_section_indexes(sections: list[CatalogSection]) -> list[SectionState]:
    return [
        SectionState(id=s.id, name=s.name, section_index=i)
        for i, s in enumerate(sections, start=1)
    ]
