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

"""YAML reader for desired topology files.

Sections and rules may be given as a list of mappings or as a mapping keyed
by name (``section_data`` / ``rule_data`` style)::

    start_anchor_id: '1234'
    sections:
      Office: {section_index: 1}
      Servers: {section_index: 2}
    rules:
      - rule_name: allow-dns
        section_name: Office
        index_in_section: 1
"""

import logging
import pathlib

import yaml

from ._errors import TopologyError
from ._topology import DesiredRule, DesiredSection, DesiredTopology

logger = logging.getLogger(__name__)

_SECTION_KEYS = ('sections', 'section_data')
_RULE_KEYS = ('rules', 'rule_data')


def _coerce_bool(value, context):
    """Accept YAML booleans and the quoted strings ``"true"``/``"false"``."""
    if value is None or isinstance(value, bool):
        return value
    if isinstance(value, str) and value.lower() in ('true', 'false'):
        return value.lower() == 'true'
    raise TopologyError(f'{context}: expected a boolean, got {value!r}')


def _coerce_int(value, context):
    if isinstance(value, bool):
        raise TopologyError(f'{context}: expected an integer, got {value!r}')
    if isinstance(value, int):
        return value
    if isinstance(value, str) and value.strip().lstrip('-').isdigit():
        return int(value)
    raise TopologyError(f'{context}: expected an integer, got {value!r}')


def _entries(data, keys, name_keys):
    """Yield entry mappings from a list or from a mapping keyed by name."""
    raw = None
    for key in keys:
        if key in data:
            raw = data[key]
            break
    if raw is None:
        return
    if isinstance(raw, dict):
        for name, entry in raw.items():
            if entry is None:
                entry = {}
            elif not isinstance(entry, dict):
                raise TopologyError(f'{keys[0]}: {name}: expected a mapping, got {entry!r}')
            entry = dict(entry)
            if not any(entry.get(k) for k in name_keys):
                entry[name_keys[0]] = name
            yield entry
    elif isinstance(raw, list):
        for entry in raw:
            if not isinstance(entry, dict):
                raise TopologyError(f'{keys[0]}: expected a mapping, got {entry!r}')
            yield entry
    else:
        raise TopologyError(f'{keys[0]}: expected a list or a mapping')


def _name(entry, name_keys, context):
    for key in name_keys:
        value = entry.get(key)
        if value:
            return str(value)
    raise TopologyError(f'{context}: missing {name_keys[0]}')


class TopologyReader:
    """Parses a topology YAML file into a DesiredTopology."""

    def parse(self, input_path):
        input_path = pathlib.Path(input_path)
        logger.debug('Reading topology from %s', input_path)
        with pathlib.Path.open(input_path, encoding='utf-8') as f:
            data = yaml.safe_load(f)
        return self.parse_data(data or {})

    def parse_data(self, data):
        if not isinstance(data, dict):
            raise TopologyError('Topology must be a mapping')

        sections = []
        for entry in _entries(data, _SECTION_KEYS, ('section_name', 'name')):
            name = _name(entry, ('section_name', 'name'), 'section')
            sections.append(
                DesiredSection(
                    name=name,
                    section_index=_coerce_int(
                        entry.get('section_index'), f'section {name}: section_index'
                    ),
                )
            )

        rules = []
        for entry in _entries(data, _RULE_KEYS, ('rule_name', 'name')):
            name = _name(entry, ('rule_name', 'name'), 'rule')
            rules.append(
                DesiredRule(
                    name=name,
                    section_name=_name(entry, ('section_name', 'section'), f'rule {name}'),
                    index_in_section=_coerce_int(
                        entry.get('index_in_section'), f'rule {name}: index_in_section'
                    ),
                    description=entry.get('description'),
                    enabled=_coerce_bool(entry.get('enabled'), f'rule {name}: enabled'),
                )
            )

        anchor = data.get('start_anchor_id', data.get('section_to_start_after_id'))
        return DesiredTopology(
            sections=sections,
            rules=rules,
            start_anchor_id=str(anchor) if anchor else None,
        )
