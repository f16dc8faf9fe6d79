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

"""PolicyReorderer: bulk reordering of sections and rules for one policy domain.

Write path::

    resolve -> validate -> anchor/bootstrap -> section chain -> rule chains -> publish

Read path::

    resolve -> recompute per-section indexes

Every name of the desired topology is resolved and validated before the
first mutating call, so a typo never leaves a half-moved policy behind.
Failures after that point abort immediately; the catalog draft keeps the
moves that were applied and re-running the reconciliation converges.
"""

from __future__ import annotations

import logging

from ._bootstrap import DefaultSectionBootstrapper
from ._catalog import PolicyCatalog
from ._domains import PolicyDomain
from ._index import recompute_rule_indexes, recompute_section_indexes
from ._publisher import publish
from ._resolver import NameIndex, resolve
from ._sequencer import Move, RuleSequencer, SectionSequencer, apply_moves
from ._topology import (
    DesiredTopology,
    PolicyState,
    RuleIndexEntry,
    RuleState,
    SectionState,
)

logger = logging.getLogger(__name__)


class PolicyReorderer:
    def __init__(self, catalog: PolicyCatalog, domain: PolicyDomain | str):
        self.catalog = catalog
        self.domain = PolicyDomain.parse(domain)
        self.section_sequencer = SectionSequencer()
        self.rule_sequencer = RuleSequencer()

    def __repr__(self):
        return f'<PolicyReorderer {self.domain.value}>'

    # -- write path --

    def plan(self, topology: DesiredTopology) -> list[Move]:
        """Validate *topology* and return the moves a reconciliation would issue.

        Nothing is written to the catalog. On an empty catalog the default
        section is not created, the plan then chains last in the policy.
        """
        index = self._resolve_checked(topology)
        anchor = self._anchor(index, topology, dry_run=True)
        return self.section_sequencer.plan(index, topology, anchor) + self.rule_sequencer.plan(
            index, topology
        )

    def reconcile(self, topology: DesiredTopology) -> PolicyState:
        """Converge the catalog to *topology* and publish the result."""
        label = self.domain.info.label
        index = self._resolve_checked(topology)
        anchor = self._anchor(index, topology)

        section_moves = self.section_sequencer.plan(index, topology, anchor)
        rule_moves = self.rule_sequencer.plan(index, topology)
        logger.info(
            '%s: moving %d section(s) and %d rule(s)',
            label,
            len(section_moves),
            len(rule_moves),
        )
        applied = apply_moves(self.catalog, section_moves)
        applied = apply_moves(self.catalog, rule_moves, applied)
        publish(self.catalog, applied)
        return self._written_state(index, topology)

    def _resolve_checked(self, topology):
        index = resolve(self.catalog)
        index.check_anchor(topology.start_anchor_id)
        index.validate(topology)
        return index

    def _anchor(self, index, topology, dry_run=False):
        bootstrapper = DefaultSectionBootstrapper(self.catalog, self.domain)
        if dry_run and not index.sections and not topology.start_anchor_id:
            logger.info(
                "%s policy has no sections, reconcile would create '%s'",
                self.domain.info.label,
                self.domain.info.default_section_name,
            )
            return None
        return bootstrapper.anchor_for(index, topology)

    def _written_state(self, index: NameIndex, topology: DesiredTopology) -> PolicyState:
        sections = tuple(
            SectionState(
                id=index.section_id(s.name),
                name=s.name,
                section_index=s.section_index,
            )
            for s in topology.ordered_sections()
        )
        rules = []
        for section_name, group in topology.ordered_rules().items():
            for desired in group:
                current = index.rule(desired.name, section_name)
                rules.append(
                    RuleState(
                        id=current.id,
                        name=desired.name,
                        section_name=section_name,
                        index_in_section=desired.index_in_section,
                        description=(
                            desired.description
                            if desired.description is not None
                            else current.description
                        ),
                        enabled=(
                            desired.enabled if desired.enabled is not None else current.enabled
                        ),
                    )
                )
        return PolicyState(
            sections=sections,
            rules=tuple(rules),
            start_anchor_id=topology.start_anchor_id,
        )

    # -- read path --

    def read(self, topology: DesiredTopology | None = None) -> PolicyState:
        """Read the current order back from the catalog.

        Without *topology* every section and every non-system rule is
        reported. With a topology only its sections and rules are reported;
        positions are recomputed from the catalog order, entities that no
        longer exist in the catalog are dropped.
        """
        index = resolve(self.catalog)
        entries = recompute_rule_indexes(index.rules)

        if topology is None:
            sections = recompute_section_indexes(index.sections)
            rules = [_rule_state(e) for e in entries]
            return PolicyState(sections=tuple(sections), rules=tuple(rules))

        wanted_sections = set(topology.section_names)
        sections = []
        for section in index.sections:
            if section.name in wanted_sections:
                sections.append(
                    SectionState(
                        id=section.id,
                        name=section.name,
                        section_index=len(sections) + 1,
                    )
                )
        # a rule name is only unique within its section
        wanted_rules = {
            (r.name, r.section_name) for r in topology.rules if r.section_name in wanted_sections
        }
        rules = [_rule_state(e) for e in entries if (e.name, e.section_name) in wanted_rules]

        found_rules = {(r.name, r.section_name) for r in rules}
        missing = (wanted_sections - {s.name for s in sections}) | {
            name for name, section_name in wanted_rules - found_rules
        }
        if missing:
            logger.warning(
                '%s: managed entries missing from the catalog: %s',
                self.domain.info.label,
                ', '.join(sorted(missing)),
            )
        return PolicyState(
            sections=tuple(sections),
            rules=tuple(rules),
            start_anchor_id=topology.start_anchor_id,
        )

    def rules_index(self) -> list[RuleIndexEntry]:
        return recompute_rule_indexes(resolve(self.catalog).rules)

    def sections_index(self) -> list[SectionState]:
        return recompute_section_indexes(resolve(self.catalog).sections)


def _rule_state(entry):
    return RuleState(
        id=entry.id,
        name=entry.name,
        section_name=entry.section_name,
        index_in_section=entry.index_in_section,
        description=entry.description,
        enabled=entry.enabled,
    )
