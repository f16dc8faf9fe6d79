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

"""YAML writer for policy state, rule indexes and move plans."""

import dataclasses
import logging
import pathlib

import yaml

logger = logging.getLogger(__name__)


class _IndentedDumper(yaml.SafeDumper):
    def increase_indent(self, flow=False, indentless=False):
        return super().increase_indent(flow, False)


def dump(data):
    """Serialize plain data (or dataclasses) to a block-style YAML string."""
    return yaml.dump(
        _plain(data),
        Dumper=_IndentedDumper,
        default_flow_style=False,
        sort_keys=False,
        allow_unicode=True,
    )


def _plain(data):
    if dataclasses.is_dataclass(data) and not isinstance(data, type):
        if hasattr(data, 'as_dict'):
            return _plain(data.as_dict())
        return _plain(dataclasses.asdict(data))
    if isinstance(data, dict):
        return {k: _plain(v) for k, v in data.items()}
    if isinstance(data, (list, tuple)):
        return [_plain(v) for v in data]
    if isinstance(data, str):
        # StrEnum members would otherwise be tagged as python objects
        return str(data)
    return data


class StateWriter:
    def write(self, state, output_path):
        output_path = pathlib.Path(output_path)
        logger.debug('Writing state to %s', output_path)
        output_path.write_text(dump(state), encoding='utf-8')
