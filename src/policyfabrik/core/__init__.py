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

from ._bootstrap import DefaultSectionBootstrapper
from ._catalog import (
    SYSTEM_PROPERTY,
    CatalogRule,
    CatalogSection,
    PolicyCatalog,
    RulePosition,
    SectionPosition,
)
from ._config import Settings, load_settings
from ._domains import DOMAIN_INFO, PolicyDomain
from ._errors import (
    AnchorNotFoundError,
    CatalogError,
    ConfigError,
    MoveError,
    PolicyFabrikError,
    PublishError,
    TopologyError,
    UnresolvedNameError,
)
from ._index import recompute_rule_indexes, recompute_section_indexes
from ._reorder import PolicyReorderer
from ._resolver import NameIndex, resolve
from ._sequencer import Move, RuleSequencer, SectionSequencer
from ._topology import (
    DesiredRule,
    DesiredSection,
    DesiredTopology,
    PolicyState,
    RuleIndexEntry,
    RuleState,
    SectionState,
)
from ._yaml_reader import TopologyReader
from ._yaml_writer import StateWriter, dump

__all__ = [
    'DOMAIN_INFO',
    'SYSTEM_PROPERTY',
    'AnchorNotFoundError',
    'CatalogError',
    'CatalogRule',
    'CatalogSection',
    'ConfigError',
    'DefaultSectionBootstrapper',
    'DesiredRule',
    'DesiredSection',
    'DesiredTopology',
    'Move',
    'MoveError',
    'NameIndex',
    'PolicyCatalog',
    'PolicyDomain',
    'PolicyFabrikError',
    'PolicyReorderer',
    'PolicyState',
    'PublishError',
    'RuleIndexEntry',
    'RulePosition',
    'RuleSequencer',
    'RuleState',
    'SectionPosition',
    'SectionSequencer',
    'SectionState',
    'Settings',
    'StateWriter',
    'TopologyError',
    'TopologyReader',
    'UnresolvedNameError',
    'dump',
    'load_settings',
    'recompute_rule_indexes',
    'recompute_section_indexes',
    'resolve',
]
