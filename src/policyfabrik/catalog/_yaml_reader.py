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

"""YAML reader for catalog files.

A catalog file holds one block per policy domain, sections in policy order
and rules in global policy order::

    internet_firewall:
      sections:
        - id: '1001'
          name: Default Outbound Internet
      rules:
        - name: Block P2P
          section: Default Outbound Internet
          properties: [SYSTEM]

Missing ids are generated on import.
"""

import dataclasses
import logging
import pathlib

import yaml

from policyfabrik.core import CatalogRule, CatalogSection, PolicyDomain, TopologyError

logger = logging.getLogger(__name__)


@dataclasses.dataclass
class CatalogSnapshot:
    sections: list[CatalogSection]
    rules: list[CatalogRule]


def _coerce_bool(value):
    """Coerce quoted ``"true"``/``"false"`` strings, which YAML leaves as strings."""
    if isinstance(value, str) and value.lower() in ('true', 'false'):
        return value.lower() == 'true'
    return bool(value)


class CatalogReader:
    def parse(self, input_path):
        input_path = pathlib.Path(input_path)
        with pathlib.Path.open(input_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
        return self.parse_data(data, source=str(input_path))

    def parse_data(self, data, source='<data>'):
        if not isinstance(data, dict):
            raise TopologyError(f'{source}: catalog must be a mapping of policy domains')
        if 'domain' in data:
            data = {data['domain']: {k: v for k, v in data.items() if k != 'domain'}}
        snapshots = {}
        for key, block in data.items():
            try:
                domain = PolicyDomain.parse(key)
            except ValueError as e:
                raise TopologyError(f'{source}: unknown policy domain {key!r}') from e
            snapshots[domain] = self._parse_domain(block or {}, f'{source}: {key}')
        return snapshots

    def _parse_domain(self, block, context):
        sections = []
        for entry in block.get('sections', []):
            if isinstance(entry, str):
                entry = {'name': entry}
            if not entry.get('name'):
                raise TopologyError(f'{context}: section without name')
            sections.append(
                CatalogSection(id=str(entry.get('id') or ''), name=str(entry['name']))
            )

        known = {s.name for s in sections}
        rules = []
        for entry in block.get('rules', []):
            name = entry.get('name')
            section = entry.get('section') or entry.get('section_name')
            if not name or not section:
                raise TopologyError(f'{context}: every rule needs a name and a section')
            if section not in known:
                raise TopologyError(
                    f"{context}: rule '{name}' references unknown section '{section}'"
                )
            rules.append(
                CatalogRule(
                    id=str(entry.get('id') or ''),
                    name=str(name),
                    section_id='',
                    section_name=str(section),
                    description=str(entry.get('description') or ''),
                    enabled=_coerce_bool(entry.get('enabled', True)),
                    properties=tuple(str(p) for p in entry.get('properties') or ()),
                )
            )
        logger.debug('%s: %d section(s), %d rule(s)', context, len(sections), len(rules))
        return CatalogSnapshot(sections=sections, rules=rules)
