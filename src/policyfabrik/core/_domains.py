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

"""Policy domains the reorder engine runs against."""

import dataclasses
from enum import StrEnum


class PolicyDomain(StrEnum):
    INTERNET_FIREWALL = 'internet_firewall'
    WAN_FIREWALL = 'wan_firewall'
    WAN_NETWORK = 'wan_network'

    @property
    def info(self):
        return DOMAIN_INFO[self]

    @classmethod
    def parse(cls, value):
        """Accept the canonical value or one of the short aliases (``ifw``, ``wf``, ``wnw``)."""
        key = str(value).strip().lower().replace('-', '_')
        if key in _ALIASES:
            return _ALIASES[key]
        return cls(key)


@dataclasses.dataclass(frozen=True, slots=True)
class DomainInfo:
    label: str
    default_section_name: str
    graphql_field: str


DOMAIN_INFO = {
    PolicyDomain.INTERNET_FIREWALL: DomainInfo(
        label='Internet Firewall',
        default_section_name='Default Outbound Internet',
        graphql_field='internetFirewall',
    ),
    PolicyDomain.WAN_FIREWALL: DomainInfo(
        label='WAN Firewall',
        default_section_name='Default WAN',
        graphql_field='wanFirewall',
    ),
    PolicyDomain.WAN_NETWORK: DomainInfo(
        label='WAN Network',
        default_section_name='Default WAN Network',
        graphql_field='wanNetwork',
    ),
}

_ALIASES = {
    'ifw': PolicyDomain.INTERNET_FIREWALL,
    'if': PolicyDomain.INTERNET_FIREWALL,
    'wf': PolicyDomain.WAN_FIREWALL,
    'wan': PolicyDomain.WAN_FIREWALL,
    'wnw': PolicyDomain.WAN_NETWORK,
}
