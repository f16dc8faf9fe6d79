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

"""Desired topology (input) and policy state (output) records."""

from __future__ import annotations

import collections
import dataclasses

from ._errors import TopologyError


@dataclasses.dataclass(frozen=True, slots=True)
class DesiredSection:
    name: str
    section_index: int


@dataclasses.dataclass(frozen=True, slots=True)
class DesiredRule:
    name: str
    section_name: str
    index_in_section: int
    description: str | None = None
    enabled: bool | None = None


@dataclasses.dataclass(frozen=True)
class DesiredTopology:
    """Caller-declared order of sections and of rules within each section.

    ``section_index`` and ``index_in_section`` only define an order, their
    absolute values are never written anywhere. Entries sharing an index
    keep their input order.
    """

    sections: tuple[DesiredSection, ...] = ()
    rules: tuple[DesiredRule, ...] = ()
    start_anchor_id: str | None = None

    def __post_init__(self):
        object.__setattr__(self, 'sections', tuple(self.sections))
        object.__setattr__(self, 'rules', tuple(self.rules))
        if not self.start_anchor_id:
            object.__setattr__(self, 'start_anchor_id', None)
        _check_unique('section', (s.name for s in self.sections))
        _check_unique('rule', (r.name for r in self.rules))

    @property
    def section_names(self) -> list[str]:
        return [s.name for s in self.ordered_sections()]

    def ordered_sections(self) -> list[DesiredSection]:
        # sorted() is stable, ties keep input order
        return sorted(self.sections, key=lambda s: s.section_index)

    def ordered_rules(self) -> dict[str, list[DesiredRule]]:
        """Group rules by section, in section order, each group sorted by index."""
        groups = {name: [] for name in self.section_names}
        for rule in self.rules:
            groups.setdefault(rule.section_name, []).append(rule)
        return {
            name: sorted(rules, key=lambda r: r.index_in_section)
            for name, rules in groups.items()
        }


def _check_unique(kind, names):
    counts = collections.Counter(names)
    if '' in counts:
        raise TopologyError(f'Every {kind} needs a non-empty name')
    duplicates = sorted(name for name, n in counts.items() if n > 1)
    if duplicates:
        raise TopologyError(f'Duplicate {kind} names: {", ".join(duplicates)}')


@dataclasses.dataclass(frozen=True, slots=True)
class SectionState:
    id: str
    name: str
    section_index: int


@dataclasses.dataclass(frozen=True, slots=True)
class RuleState:
    id: str
    name: str
    section_name: str
    index_in_section: int
    description: str = ''
    enabled: bool = True


@dataclasses.dataclass(frozen=True, slots=True)
class RuleIndexEntry:
    """One row of the rules index read from the catalog."""

    id: str
    name: str
    index: int
    index_in_section: int
    section_id: str
    section_name: str
    description: str
    enabled: bool
    properties: tuple[str, ...] = ()


@dataclasses.dataclass(frozen=True)
class PolicyState:
    """Persisted state of one reconciliation, or of a read."""

    sections: tuple[SectionState, ...] = ()
    rules: tuple[RuleState, ...] = ()
    start_anchor_id: str | None = None

    def section(self, name: str) -> SectionState | None:
        return next((s for s in self.sections if s.name == name), None)

    def rule(self, name: str) -> RuleState | None:
        return next((r for r in self.rules if r.name == name), None)

    def as_dict(self) -> dict:
        data = {
            'sections': [dataclasses.asdict(s) for s in self.sections],
            'rules': [dataclasses.asdict(r) for r in self.rules],
        }
        if self.start_anchor_id:
            data['start_anchor_id'] = self.start_anchor_id
        return data
