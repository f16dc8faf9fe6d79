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

"""Shared pytest fixtures: an in-memory recording catalog and topology helpers."""

import collections
import textwrap

import pytest

import policyfabrik.catalog
from policyfabrik.core import (
    CatalogRule,
    CatalogSection,
    DesiredRule,
    DesiredSection,
    DesiredTopology,
    RulePosition,
    SectionPosition,
)


class FakeCatalog:
    """PolicyCatalog keeping its order in plain lists.

    Mutating calls are recorded in ``calls`` as tuples. *fail_on* is an
    ``(operation, n)`` pair: the n-th call of that operation raises
    RuntimeError (after being recorded).
    """

    def __init__(self, sections=(), rules=(), fail_on=None):
        self.sections = [CatalogSection(id=i, name=n) for i, n in sections]
        self.members = {s.id: [] for s in self.sections}
        for rule_id, name, section_id, *rest in rules:
            self.members[section_id].append(
                {
                    'id': rule_id,
                    'name': name,
                    'description': f'{name} description',
                    'enabled': True,
                    'properties': tuple(rest[0]) if rest else (),
                }
            )
        self.calls = []
        self.revisions = []
        self.fail_on = fail_on
        self._counts = collections.Counter()
        self._next_id = 900

    def _hit(self, operation):
        self._counts[operation] += 1
        if self.fail_on == (operation, self._counts[operation]):
            raise RuntimeError(f'{operation} rejected by backend')

    def _section(self, section_id):
        for section in self.sections:
            if section.id == section_id:
                return section
        raise KeyError(f'no section {section_id}')

    def _locate(self, rule_id):
        for section_id, members in self.members.items():
            for i, rule in enumerate(members):
                if rule['id'] == rule_id:
                    return section_id, i
        raise KeyError(f'no rule {rule_id}')

    # -- PolicyCatalog --

    def list_sections(self):
        self._hit('list_sections')
        return list(self.sections)

    def list_rules(self):
        self._hit('list_rules')
        rules = []
        for section in self.sections:
            for rule in self.members[section.id]:
                rules.append(
                    CatalogRule(
                        id=rule['id'],
                        name=rule['name'],
                        section_id=section.id,
                        section_name=section.name,
                        description=rule['description'],
                        enabled=rule['enabled'],
                        index=len(rules) + 1,
                        properties=rule['properties'],
                    )
                )
        return rules

    def add_section(self, name, position=SectionPosition.LAST_IN_POLICY, ref=None):
        self.calls.append(('add_section', name, position, ref))
        self._hit('add_section')
        self._next_id += 1
        section = CatalogSection(id=str(self._next_id), name=name)
        self.sections.append(section)
        self.members[section.id] = []
        return section.id

    def move_section(self, section_id, position, ref=None):
        self.calls.append(('move_section', section_id, position, ref))
        self._hit('move_section')
        section = self._section(section_id)
        self.sections.remove(section)
        if position == SectionPosition.LAST_IN_POLICY:
            self.sections.append(section)
        else:
            self.sections.insert(self.sections.index(self._section(ref)) + 1, section)

    def move_rule(self, rule_id, position, ref):
        self.calls.append(('move_rule', rule_id, position, ref))
        self._hit('move_rule')
        section_id, i = self._locate(rule_id)
        rule = self.members[section_id].pop(i)
        if position == RulePosition.FIRST_IN_SECTION:
            self._section(ref)
            self.members[ref].insert(0, rule)
        else:
            target, j = self._locate(ref)
            self.members[target].insert(j + 1, rule)

    def publish_revision(self):
        self.calls.append(('publish_revision',))
        self._hit('publish_revision')
        self.revisions.append(self.order())

    # -- inspection --

    def order(self):
        """Return ``[(section name, [rule names])]`` in current order."""
        return [(s.name, [r['name'] for r in self.members[s.id]]) for s in self.sections]


def make_topology(sections, rules=(), start_anchor_id=None):
    """Build a DesiredTopology from short tuples.

    *sections* are names (indexed by position) or ``(name, index)`` pairs,
    *rules* are ``(name, section, index)`` triples.
    """
    desired_sections = []
    for i, entry in enumerate(sections, start=1):
        if isinstance(entry, str):
            entry = (entry, i)
        desired_sections.append(DesiredSection(name=entry[0], section_index=entry[1]))
    desired_rules = [
        DesiredRule(name=name, section_name=section, index_in_section=index)
        for name, section, index in rules
    ]
    return DesiredTopology(
        sections=desired_sections,
        rules=desired_rules,
        start_anchor_id=start_anchor_id,
    )


EXAMPLE_SECTIONS = [('10', 'Head'), ('11', 'B'), ('12', 'A'), ('13', 'Tail')]
EXAMPLE_RULES = [
    ('100', 'Built-in', '10', ['SYSTEM']),
    ('103', 'r3', '12'),
    ('102', 'r2', '12'),
    ('101', 'r1', '11'),
    ('104', 'other', '13'),
]


@pytest.fixture
def example_catalog():
    """Catalog with an unmanaged head and tail, sections A and B swapped, rules scrambled."""
    return FakeCatalog(sections=EXAMPLE_SECTIONS, rules=EXAMPLE_RULES)


@pytest.fixture
def example_topology():
    return make_topology(
        ['A', 'B'],
        [('r1', 'A', 1), ('r2', 'A', 2), ('r3', 'B', 1)],
    )


CATALOG_YAML = textwrap.dedent(
    """\
    internet_firewall:
      sections:
        - id: s-head
          name: Head
        - id: s-b
          name: B
        - id: s-a
          name: A
      rules:
        - id: r-sys
          name: Built-in
          section: Head
          properties: [SYSTEM]
        - id: r-3
          name: r3
          section: A
        - id: r-2
          name: r2
          section: A
          description: second
          enabled: false
        - id: r-1
          name: r1
          section: B
    wan_firewall:
      sections:
        - name: Default WAN
    """
)


@pytest.fixture
def catalog_file(tmp_path):
    path = tmp_path / 'catalog.yml'
    path.write_text(CATALOG_YAML, encoding='utf-8')
    return path


@pytest.fixture
def store(catalog_file):
    store = policyfabrik.catalog.CatalogStore()
    store.load(catalog_file)
    return store
