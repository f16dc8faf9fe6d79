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

"""Policy catalog capability interface and the records it returns.

A catalog is the remote store holding the sections and rules of one policy
domain. It only knows relative positioning: an entity is placed after
another one, first in a section, or last in the policy. Nothing in the
reorder engine talks to a concrete catalog; the database catalog and the
GraphQL catalog both satisfy :class:`PolicyCatalog`.
"""

from __future__ import annotations

import dataclasses
from enum import StrEnum
from typing import Protocol, runtime_checkable

from ._errors import CatalogError, PolicyFabrikError

SYSTEM_PROPERTY = 'SYSTEM'


class SectionPosition(StrEnum):
    """Relative positions accepted for sections."""

    AFTER_SECTION = 'AFTER_SECTION'
    LAST_IN_POLICY = 'LAST_IN_POLICY'


class RulePosition(StrEnum):
    """Relative positions accepted for rules."""

    FIRST_IN_SECTION = 'FIRST_IN_SECTION'
    AFTER_RULE = 'AFTER_RULE'


@dataclasses.dataclass(frozen=True, slots=True)
class CatalogSection:
    id: str
    name: str


@dataclasses.dataclass(frozen=True, slots=True)
class CatalogRule:
    """A rule as listed by the catalog.

    *index* is the 1-based global position across the whole policy as
    reported by the catalog (0 if the catalog does not report one).
    """

    id: str
    name: str
    section_id: str
    section_name: str
    description: str = ''
    enabled: bool = True
    index: int = 0
    properties: tuple[str, ...] = ()

    @property
    def is_system(self) -> bool:
        return SYSTEM_PROPERTY in self.properties


@runtime_checkable
class PolicyCatalog(Protocol):
    """Blocking RPC surface of one policy domain."""

    def list_sections(self) -> list[CatalogSection]:
        """Return all sections in their current order."""
        ...

    def list_rules(self) -> list[CatalogRule]:
        """Return all rules in their current global order."""
        ...

    def add_section(
        self,
        name: str,
        position: SectionPosition = SectionPosition.LAST_IN_POLICY,
        ref: str | None = None,
    ) -> str:
        """Create a section and return its id."""
        ...

    def move_section(
        self,
        section_id: str,
        position: SectionPosition,
        ref: str | None = None,
    ) -> None: ...

    def move_rule(self, rule_id: str, position: RulePosition, ref: str) -> None: ...

    def publish_revision(self) -> None:
        """Commit all staged changes."""
        ...


def catalog_call(operation, func, *args, **kwargs):
    """Invoke a catalog method, turning foreign exceptions into CatalogError.

    Errors that already belong to the policyfabrik hierarchy pass through
    unchanged; anything else is chained so its message survives verbatim.
    """
    try:
        return func(*args, **kwargs)
    except PolicyFabrikError:
        raise
    except Exception as e:
        raise CatalogError(f'{operation} failed: {e}', operation=operation) from e
