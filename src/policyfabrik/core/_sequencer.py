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

"""Section and rule sequencers.

Both sequencers relink entities into a single chain of relative moves: the
first entity is placed after the anchor (or first in its section), every
following one after its predecessor. The chain is rebuilt in full on every
run, it is not a minimal diff. Moves depend on the position established by
the previous one, so they are issued strictly one after the other.
"""

from __future__ import annotations

import dataclasses
import logging

from ._catalog import PolicyCatalog, RulePosition, SectionPosition
from ._errors import MoveError
from ._resolver import NameIndex
from ._topology import DesiredTopology

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True, slots=True)
class Move:
    """One relative move request.

    *ref_name* is informational only (for logs, plans and error messages).
    """

    kind: str  # 'section' or 'rule'
    name: str
    entity_id: str
    position: SectionPosition | RulePosition
    ref: str | None = None
    ref_name: str = ''

    def __str__(self):
        target = self.position.value
        if self.ref:
            target += f' {self.ref_name or self.ref}'
        return f'move {self.kind} {self.name} -> {target}'


class SectionSequencer:
    def plan(self, index: NameIndex, topology: DesiredTopology, anchor_id: str | None) -> list[Move]:
        moves = []
        current = anchor_id
        current_name = _section_name(index, anchor_id)
        for name in topology.section_names:
            section_id = index.section_id(name)
            if current is None:
                moves.append(
                    Move('section', name, section_id, SectionPosition.LAST_IN_POLICY)
                )
            else:
                moves.append(
                    Move(
                        'section',
                        name,
                        section_id,
                        SectionPosition.AFTER_SECTION,
                        ref=current,
                        ref_name=current_name,
                    )
                )
            current, current_name = section_id, name
        return moves


class RuleSequencer:
    def plan(self, index: NameIndex, topology: DesiredTopology) -> list[Move]:
        moves = []
        for section_name, rules in topology.ordered_rules().items():
            section_id = index.section_id(section_name)
            previous = None
            for rule in rules:
                rule_id = index.rule_id(rule.name, section_name)
                if previous is None:
                    moves.append(
                        Move(
                            'rule',
                            rule.name,
                            rule_id,
                            RulePosition.FIRST_IN_SECTION,
                            ref=section_id,
                            ref_name=section_name,
                        )
                    )
                else:
                    moves.append(
                        Move(
                            'rule',
                            rule.name,
                            rule_id,
                            RulePosition.AFTER_RULE,
                            ref=previous[1],
                            ref_name=previous[0],
                        )
                    )
                previous = (rule.name, rule_id)
        return moves


def apply_moves(catalog: PolicyCatalog, moves: list[Move], applied: int = 0) -> int:
    """Issue *moves* in order and return the running count of applied moves.

    The first failure aborts the chain; the moves issued so far stay in the
    catalog draft.
    """
    for move in moves:
        logger.debug('%s (ref id %s)', move, move.ref)
        try:
            if move.kind == 'section':
                catalog.move_section(move.entity_id, move.position, move.ref)
            else:
                catalog.move_rule(move.entity_id, move.position, move.ref)
        except Exception as e:
            raise _move_error(move, applied, e) from e
        applied += 1
    return applied


def _move_error(move, applied, exc):
    return MoveError(
        f"Moving {move.kind} '{move.name}' (id {move.entity_id}) to "
        f'{move.position.value} {move.ref_name or move.ref or ""} failed after '
        f'{applied} applied move(s): {exc}',
        operation=f'move_{move.kind}',
        kind=move.kind,
        name=move.name,
        entity_id=move.entity_id,
        applied=applied,
    )


def _section_name(index, section_id):
    if section_id is None:
        return ''
    return next((s.name for s in index.sections if s.id == section_id), section_id)
