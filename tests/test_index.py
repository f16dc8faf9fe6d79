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

"""Per-section index recomputation on the read path."""

from policyfabrik.core import (
    CatalogRule,
    CatalogSection,
    recompute_rule_indexes,
    recompute_section_indexes,
)


def _rule(rule_id, section_id, section_name, *properties, index=0):
    return CatalogRule(
        id=rule_id,
        name=f'rule-{rule_id}',
        section_id=section_id,
        section_name=section_name,
        index=index,
        properties=properties,
    )


def test_counts_restart_per_section():
    rules = [
        _rule('1', 'a', 'A', index=1),
        _rule('2', 'a', 'A', index=2),
        _rule('3', 'b', 'B', index=3),
        _rule('4', 'a', 'A', index=4),
    ]

    entries = recompute_rule_indexes(rules)

    assert [(e.id, e.index, e.index_in_section) for e in entries] == [
        ('1', 1, 1),
        ('2', 2, 2),
        ('3', 3, 1),
        ('4', 4, 3),
    ]


def test_system_rules_are_skipped_and_not_counted():
    rules = [
        _rule('sys', 'a', 'A', 'SYSTEM'),
        _rule('1', 'a', 'A'),
        _rule('2', 'a', 'A', 'OTHER'),
    ]

    entries = recompute_rule_indexes(rules)

    assert [(e.id, e.index_in_section) for e in entries] == [('1', 1), ('2', 2)]
    assert entries[1].properties == ('OTHER',)


def test_system_rules_can_be_included():
    rules = [_rule('sys', 'a', 'A', 'SYSTEM'), _rule('1', 'a', 'A')]

    entries = recompute_rule_indexes(rules, skip_system=False)

    assert [(e.id, e.index_in_section) for e in entries] == [('sys', 1), ('1', 2)]


def test_sections_sharing_a_name_are_counted_apart():
    rules = [_rule('1', 'a', 'Same'), _rule('2', 'b', 'Same')]

    assert [e.index_in_section for e in recompute_rule_indexes(rules)] == [1, 1]


def test_empty_input():
    assert recompute_rule_indexes([]) == []
    assert recompute_section_indexes([]) == []


def test_section_indexes():
    sections = [CatalogSection('x', 'X'), CatalogSection('y', 'Y')]

    assert [(s.name, s.section_index) for s in recompute_section_indexes(sections)] == [
        ('X', 1),
        ('Y', 2),
    ]
