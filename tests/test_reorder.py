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

"""Write and read path of the PolicyReorderer against the in-memory catalog."""

import random

import pytest

from policyfabrik.core import (
    AnchorNotFoundError,
    CatalogError,
    DesiredRule,
    DesiredSection,
    DesiredTopology,
    MoveError,
    PolicyDomain,
    PolicyReorderer,
    PublishError,
    TopologyError,
    UnresolvedNameError,
)

from .conftest import EXAMPLE_RULES, EXAMPLE_SECTIONS, FakeCatalog, make_topology


def _reorderer(catalog, domain='internet_firewall'):
    return PolicyReorderer(catalog, domain)


class TestExampleScenario:
    def test_move_sequence(self, example_catalog, example_topology):
        _reorderer(example_catalog).reconcile(example_topology)

        assert example_catalog.calls == [
            ('move_section', '12', 'AFTER_SECTION', '10'),
            ('move_section', '11', 'AFTER_SECTION', '12'),
            ('move_rule', '101', 'FIRST_IN_SECTION', '12'),
            ('move_rule', '102', 'AFTER_RULE', '101'),
            ('move_rule', '103', 'FIRST_IN_SECTION', '11'),
            ('publish_revision',),
        ]

    def test_final_order(self, example_catalog, example_topology):
        _reorderer(example_catalog).reconcile(example_topology)

        assert example_catalog.order() == [
            ('Head', ['Built-in']),
            ('A', ['r1', 'r2']),
            ('B', ['r3']),
            ('Tail', ['other']),
        ]
        assert example_catalog.revisions == [example_catalog.order()]

    def test_read_back(self, example_catalog, example_topology):
        reorderer = _reorderer(example_catalog)
        reorderer.reconcile(example_topology)

        state = reorderer.read(example_topology)

        assert [(s.name, s.section_index) for s in state.sections] == [('A', 1), ('B', 2)]
        assert {r.name: r.index_in_section for r in state.rules} == {
            'r1': 1,
            'r2': 2,
            'r3': 1,
        }

    def test_written_state(self, example_catalog, example_topology):
        state = _reorderer(example_catalog).reconcile(example_topology)

        assert [(s.id, s.name, s.section_index) for s in state.sections] == [
            ('12', 'A', 1),
            ('11', 'B', 2),
        ]
        r1 = state.rule('r1')
        assert (r1.id, r1.section_name, r1.index_in_section) == ('101', 'A', 1)
        assert r1.description == 'r1 description'
        assert r1.enabled is True
        assert state.start_anchor_id is None


class TestConvergence:
    @pytest.mark.parametrize('seed', [1, 2, 3, 4, 5])
    def test_any_initial_order_converges(self, seed, example_topology):
        rng = random.Random(seed)
        sections = list(EXAMPLE_SECTIONS)
        rules = list(EXAMPLE_RULES[1:4])
        rng.shuffle(sections)
        rng.shuffle(rules)
        # scatter the managed rules over arbitrary sections
        section_ids = [s[0] for s in EXAMPLE_SECTIONS]
        rules = [(rid, name, rng.choice(section_ids)) for rid, name, _ in rules]
        catalog = FakeCatalog(sections=sections, rules=rules)

        _reorderer(catalog).reconcile(example_topology)

        managed = [(name, rules) for name, rules in catalog.order() if name in ('A', 'B')]
        assert managed == [('A', ['r1', 'r2']), ('B', ['r3'])]
        names = [name for name, _ in catalog.order()]
        assert names.index('B') == names.index('A') + 1

    def test_idempotent(self, example_catalog, example_topology):
        reorderer = _reorderer(example_catalog)
        first = reorderer.reconcile(example_topology)
        order = example_catalog.order()

        second = reorderer.reconcile(example_topology)

        assert example_catalog.order() == order
        assert second == first
        assert len(example_catalog.revisions) == 2

    def test_inverse_consistency(self):
        catalog = FakeCatalog(
            sections=[('1', 'S1'), ('2', 'S2')],
            rules=[(str(10 + i), f'rule{i}', '1') for i in range(6)],
        )
        topology = make_topology(
            ['S1', 'S2'],
            [
                ('rule3', 'S1', 1),
                ('rule0', 'S2', 1),
                ('rule5', 'S1', 2),
                ('rule1', 'S2', 2),
                ('rule4', 'S2', 3),
                ('rule2', 'S1', 3),
            ],
        )
        reorderer = _reorderer(catalog)
        reorderer.reconcile(topology)

        state = reorderer.read(topology)

        expected = {r.name: (r.section_name, r.index_in_section) for r in topology.rules}
        assert {r.name: (r.section_name, r.index_in_section) for r in state.rules} == expected

    def test_index_values_only_define_order(self):
        catalog = FakeCatalog(
            sections=[('1', 'S')],
            rules=[('a', 'ra', '1'), ('b', 'rb', '1')],
        )
        topology = make_topology([('S', 40)], [('rb', 'S', 7), ('ra', 'S', 90)])

        state = _reorderer(catalog).reconcile(topology)

        assert catalog.order() == [('S', ['rb', 'ra'])]
        assert state.section('S').section_index == 40
        assert [r.index_in_section for r in state.rules] == [7, 90]

    def test_ties_keep_input_order(self):
        catalog = FakeCatalog(
            sections=[('1', 'X'), ('2', 'Y'), ('3', 'Z')],
            rules=[('a', 'ra', '1'), ('b', 'rb', '1'), ('c', 'rc', '1')],
        )
        topology = make_topology(
            [('Z', 1), ('X', 1), ('Y', 0)],
            [('rc', 'X', 1), ('ra', 'X', 1), ('rb', 'X', 0)],
        )

        _reorderer(catalog).reconcile(topology)

        assert catalog.order() == [('Y', []), ('Z', []), ('X', ['rb', 'rc', 'ra'])]

    def test_rule_moves_across_sections(self):
        catalog = FakeCatalog(
            sections=[('1', 'X'), ('2', 'Y')],
            rules=[('a', 'ra', '1'), ('b', 'rb', '1')],
        )
        topology = make_topology(['X', 'Y'], [('ra', 'Y', 1), ('rb', 'X', 1)])

        _reorderer(catalog).reconcile(topology)

        assert catalog.order() == [('X', ['rb']), ('Y', ['ra'])]


class TestAnchor:
    def test_unmanaged_head_stays_first(self, example_catalog, example_topology):
        _reorderer(example_catalog).reconcile(example_topology)

        assert example_catalog.order()[0][0] == 'Head'

    def test_explicit_anchor(self, example_catalog):
        topology = make_topology(
            ['A', 'B'],
            [('r1', 'A', 1), ('r2', 'A', 2), ('r3', 'B', 1)],
            start_anchor_id='13',
        )

        state = _reorderer(example_catalog).reconcile(topology)

        assert example_catalog.calls[0] == ('move_section', '12', 'AFTER_SECTION', '13')
        assert [name for name, _ in example_catalog.order()] == ['Head', 'Tail', 'A', 'B']
        assert state.start_anchor_id == '13'

    def test_managed_head_chains_last_in_policy(self):
        catalog = FakeCatalog(sections=[('1', 'A'), ('2', 'Other'), ('3', 'B')])

        _reorderer(catalog).reconcile(make_topology(['A', 'B']))

        assert catalog.calls[0] == ('move_section', '1', 'LAST_IN_POLICY', None)
        assert [name for name, _ in catalog.order()] == ['Other', 'A', 'B']

    def test_unknown_anchor_fails_before_any_mutation(self, example_catalog, example_topology):
        topology = DesiredTopology(
            sections=example_topology.sections,
            rules=example_topology.rules,
            start_anchor_id='does-not-exist',
        )

        with pytest.raises(AnchorNotFoundError) as excinfo:
            _reorderer(example_catalog).reconcile(topology)

        assert excinfo.value.anchor_id == 'does-not-exist'
        assert "Section to start after 'does-not-exist' not found" in str(excinfo.value)
        assert example_catalog.calls == []

    def test_managed_anchor_is_rejected(self, example_catalog, example_topology):
        topology = DesiredTopology(
            sections=example_topology.sections,
            rules=example_topology.rules,
            start_anchor_id='12',
        )

        with pytest.raises(TopologyError):
            _reorderer(example_catalog).reconcile(topology)
        assert example_catalog.calls == []


class TestBootstrap:
    @pytest.mark.parametrize(
        'domain, expected',
        [
            ('internet_firewall', 'Default Outbound Internet'),
            ('wan_firewall', 'Default WAN'),
            ('wan_network', 'Default WAN Network'),
        ],
    )
    def test_empty_catalog_gets_default_section(self, domain, expected):
        catalog = FakeCatalog()

        state = _reorderer(catalog, domain).reconcile(DesiredTopology())

        assert catalog.calls == [
            ('add_section', expected, 'LAST_IN_POLICY', None),
            ('publish_revision',),
        ]
        assert catalog.order() == [(expected, [])]
        assert state.sections == ()

    def test_existing_sections_skip_bootstrap(self, example_catalog):
        _reorderer(example_catalog).reconcile(DesiredTopology())

        assert example_catalog.calls == [('publish_revision',)]

    def test_unresolvable_topology_on_empty_catalog_creates_nothing(self):
        catalog = FakeCatalog()

        with pytest.raises(UnresolvedNameError):
            _reorderer(catalog).reconcile(make_topology(['A']))
        assert catalog.calls == []

    def test_plan_does_not_create_default_section(self):
        catalog = FakeCatalog()

        assert _reorderer(catalog).plan(DesiredTopology()) == []
        assert catalog.calls == []


class TestFailures:
    def test_unresolved_names_are_aggregated(self, example_catalog):
        topology = make_topology(
            ['A', 'Missing', 'Gone'],
            [('r1', 'A', 1), ('nope', 'A', 2), ('r3', 'Undeclared', 1)],
        )

        with pytest.raises(UnresolvedNameError) as excinfo:
            _reorderer(example_catalog).reconcile(topology)

        error = excinfo.value
        assert error.sections == ['Gone', 'Missing']
        assert error.rules == ['nope']
        assert error.undeclared_sections == ['Undeclared']
        assert 'sections not found: Gone, Missing' in str(error)
        assert example_catalog.calls == []

    def test_partial_chain_stops_at_first_failure(self, example_topology):
        catalog = FakeCatalog(
            sections=EXAMPLE_SECTIONS,
            rules=EXAMPLE_RULES,
            fail_on=('move_rule', 2),
        )

        with pytest.raises(MoveError) as excinfo:
            _reorderer(catalog).reconcile(example_topology)

        error = excinfo.value
        assert error.applied == 3
        assert (error.kind, error.name, error.entity_id) == ('rule', 'r2', '102')
        assert error.operation == 'move_rule'
        assert isinstance(error.__cause__, RuntimeError)
        assert 'move_rule rejected by backend' in str(error)
        assert ('publish_revision',) not in catalog.calls
        assert catalog.calls[-1] == ('move_rule', '102', 'AFTER_RULE', '101')

    def test_rerun_after_partial_failure_converges(self, example_topology):
        catalog = FakeCatalog(
            sections=EXAMPLE_SECTIONS,
            rules=EXAMPLE_RULES,
            fail_on=('move_section', 2),
        )
        reorderer = _reorderer(catalog)
        with pytest.raises(MoveError):
            reorderer.reconcile(example_topology)

        catalog.fail_on = None
        reorderer.reconcile(example_topology)

        assert catalog.order()[1:3] == [('A', ['r1', 'r2']), ('B', ['r3'])]

    def test_publish_failure(self, example_topology):
        catalog = FakeCatalog(
            sections=EXAMPLE_SECTIONS,
            rules=EXAMPLE_RULES,
            fail_on=('publish_revision', 1),
        )

        with pytest.raises(PublishError) as excinfo:
            _reorderer(catalog).reconcile(example_topology)

        assert excinfo.value.operation == 'publish_revision'
        assert '5 staged move(s)' in str(excinfo.value)
        assert isinstance(excinfo.value.__cause__, RuntimeError)
        assert catalog.revisions == []
        assert catalog.order()[1] == ('A', ['r1', 'r2'])

    def test_listing_failure_is_wrapped(self, example_topology):
        catalog = FakeCatalog(
            sections=EXAMPLE_SECTIONS,
            rules=EXAMPLE_RULES,
            fail_on=('list_rules', 1),
        )

        with pytest.raises(CatalogError) as excinfo:
            _reorderer(catalog).reconcile(example_topology)

        assert excinfo.value.operation == 'list_rules'
        assert 'list_rules rejected by backend' in str(excinfo.value)
        assert catalog.calls == []


class TestPlan:
    def test_plan_matches_reconcile_without_mutating(self, example_catalog, example_topology):
        moves = _reorderer(example_catalog).plan(example_topology)

        assert example_catalog.calls == []
        assert [str(m) for m in moves] == [
            'move section A -> AFTER_SECTION Head',
            'move section B -> AFTER_SECTION A',
            'move rule r1 -> FIRST_IN_SECTION A',
            'move rule r2 -> AFTER_RULE r1',
            'move rule r3 -> FIRST_IN_SECTION B',
        ]


class TestRead:
    def test_read_everything(self, example_catalog):
        state = _reorderer(example_catalog).read()

        assert [(s.name, s.section_index) for s in state.sections] == [
            ('Head', 1),
            ('B', 2),
            ('A', 3),
            ('Tail', 4),
        ]
        assert [(r.name, r.section_name, r.index_in_section) for r in state.rules] == [
            ('r1', 'B', 1),
            ('r3', 'A', 1),
            ('r2', 'A', 2),
            ('other', 'Tail', 1),
        ]

    def test_read_with_topology_ranks_managed_sections(self, example_catalog, example_topology):
        state = _reorderer(example_catalog).read(example_topology)

        # catalog order, not input order: B precedes A before reconciliation
        assert [(s.name, s.section_index) for s in state.sections] == [('B', 1), ('A', 2)]
        # r1 and r3 still sit in the wrong section
        assert [r.name for r in state.rules] == ['r2']

    def test_read_matches_rules_by_name_and_section(self):
        catalog = FakeCatalog(
            sections=[('1', 'Head'), ('2', 'A')],
            rules=[('200', 'r1', '1'), ('101', 'r1', '2')],
        )
        topology = make_topology(['A'], [('r1', 'A', 1)])
        reorderer = _reorderer(catalog)
        reorderer.reconcile(topology)

        state = reorderer.read(topology)

        assert [(r.id, r.section_name) for r in state.rules] == [('101', 'A')]
        assert state.rule('r1').id == '101'

    def test_read_drops_missing_entries(self, example_catalog, caplog):
        topology = DesiredTopology(
            sections=[DesiredSection('A', 1), DesiredSection('Removed', 2)],
            rules=[DesiredRule('r2', 'A', 1), DesiredRule('deleted', 'A', 2)],
        )

        with caplog.at_level('WARNING'):
            state = _reorderer(example_catalog).read(topology)

        assert [s.name for s in state.sections] == ['A']
        assert [r.name for r in state.rules] == ['r2']
        assert 'Removed' in caplog.text
        assert 'deleted' in caplog.text

    def test_rules_index_skips_system_rules(self, example_catalog):
        entries = _reorderer(example_catalog).rules_index()

        assert 'Built-in' not in [e.name for e in entries]
        assert [(e.name, e.index, e.index_in_section) for e in entries] == [
            ('r1', 2, 1),
            ('r3', 3, 1),
            ('r2', 4, 2),
            ('other', 5, 1),
        ]

    def test_sections_index(self, example_catalog):
        sections = _reorderer(example_catalog).sections_index()

        assert [(s.id, s.section_index) for s in sections] == [
            ('10', 1),
            ('11', 2),
            ('12', 3),
            ('13', 4),
        ]


def test_written_state_prefers_declared_attributes(example_catalog):
    topology = DesiredTopology(
        sections=[DesiredSection('A', 1)],
        rules=[
            DesiredRule('r1', 'A', 1, description='first rule', enabled=False),
            DesiredRule('r2', 'A', 2),
        ],
    )

    state = _reorderer(example_catalog).reconcile(topology)

    assert (state.rule('r1').description, state.rule('r1').enabled) == ('first rule', False)
    assert (state.rule('r2').description, state.rule('r2').enabled) == ('r2 description', True)


def test_domain_aliases():
    assert _reorderer(FakeCatalog(), 'ifw').domain is PolicyDomain.INTERNET_FIREWALL
    assert _reorderer(FakeCatalog(), 'wan-firewall').domain is PolicyDomain.WAN_FIREWALL
