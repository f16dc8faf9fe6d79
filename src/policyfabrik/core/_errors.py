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

"""Exception hierarchy shared by the reorder engine, the catalogs and the CLI."""

from __future__ import annotations


class PolicyFabrikError(Exception):
    """Base class for all errors raised by policyfabrik."""


class TopologyError(PolicyFabrikError):
    """The desired topology is malformed."""


class ConfigError(PolicyFabrikError):
    """The configuration is invalid or incomplete."""


class CatalogError(PolicyFabrikError):
    """A call against the policy catalog failed.

    *operation* names the catalog call (``move_section``, ``list_rules``,
    ...). The underlying transport or API error is chained as
    ``__cause__`` by the raiser.
    """

    def __init__(self, message: str, *, operation: str = '') -> None:
        super().__init__(message)
        self.operation = operation


class MoveError(CatalogError):
    """A relative move in a section or rule chain was rejected.

    *applied* is the number of moves of the whole reconciliation that
    succeeded before this one; the catalog draft keeps them.
    """

    def __init__(
        self,
        message: str,
        *,
        operation: str,
        kind: str,
        name: str,
        entity_id: str,
        applied: int,
    ) -> None:
        super().__init__(message, operation=operation)
        self.kind = kind
        self.name = name
        self.entity_id = entity_id
        self.applied = applied


class PublishError(CatalogError):
    """Publishing the staged revision failed."""


class AnchorNotFoundError(PolicyFabrikError):
    """The explicit start anchor does not exist in the catalog."""

    def __init__(self, anchor_id: str) -> None:
        super().__init__(
            f"Section to start after '{anchor_id}' not found in the catalog, "
            'please check the section ID and try again'
        )
        self.anchor_id = anchor_id


class UnresolvedNameError(PolicyFabrikError):
    """One or more names of the desired topology have no catalog entry.

    All unresolved names are collected so that a single run reports every
    problem at once.
    """

    def __init__(
        self,
        sections: list[str] | None = None,
        rules: list[str] | None = None,
        undeclared_sections: list[str] | None = None,
    ) -> None:
        self.sections = sorted(sections or [])
        self.rules = sorted(rules or [])
        self.undeclared_sections = sorted(undeclared_sections or [])
        parts = []
        if self.sections:
            parts.append('sections not found: ' + ', '.join(self.sections))
        if self.rules:
            parts.append('rules not found: ' + ', '.join(self.rules))
        if self.undeclared_sections:
            parts.append(
                'rules reference sections missing from the section list: '
                + ', '.join(self.undeclared_sections)
            )
        super().__init__('Unresolved names in desired topology; ' + '; '.join(parts))
