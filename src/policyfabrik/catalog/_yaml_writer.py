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

"""YAML writer for catalog files (the format read by CatalogReader)."""

import logging
import pathlib

from policyfabrik.core import dump

logger = logging.getLogger(__name__)


class CatalogWriter:
    def serialize(self, data):
        """Return the YAML text for ``{domain: (sections, rules)}``."""
        out = {}
        for domain, (sections, rules) in data.items():
            rule_rows = []
            for rule in rules:
                row = {
                    'id': rule.id,
                    'name': rule.name,
                    'section': rule.section_name,
                    'description': rule.description,
                    'enabled': rule.enabled,
                }
                if rule.properties:
                    row['properties'] = list(rule.properties)
                rule_rows.append(row)
            out[str(domain)] = {
                'sections': [{'id': s.id, 'name': s.name} for s in sections],
                'rules': rule_rows,
            }
        return dump(out)

    def write(self, data, output_path):
        output_path = pathlib.Path(output_path)
        output_path.write_text(self.serialize(data), encoding='utf-8')
        logger.debug('Wrote catalog with %d domain(s) to %s', len(data), output_path)
