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

"""PolicyCatalog talking to the remote policy GraphQL API over httpx.

Every call is a single blocking POST. There is no retry: a failed request,
a non-2xx status, a GraphQL ``errors`` list or a mutation payload reporting
errors all raise :class:`CatalogError`.
"""

import logging

import httpx

from policyfabrik.core import (
    CatalogError,
    CatalogRule,
    CatalogSection,
    PolicyDomain,
    RulePosition,
    SectionPosition,
)

logger = logging.getLogger(__name__)

USER_AGENT = 'policyfabrik'

_POLICY_QUERY = """
query policy($accountId: ID!) {
  policy(accountId: $accountId) {
    %(field)s {
      policy {
        sections { section { id name } }
        rules {
          properties
          rule { id name description enabled index section { id name } }
        }
      }
    }
  }
}
"""

_MUTATION = """
mutation %(operation)s($accountId: ID!, $input: %(input_type)s!) {
  policy(accountId: $accountId) {
    %(field)s {
      %(operation)s(input: $input) {
        status
        errors { errorCode errorMessage }
        %(selection)s
      }
    }
  }
}
"""

_PUBLISH = """
mutation publishPolicyRevision($accountId: ID!) {
  policy(accountId: $accountId) {
    %(field)s {
      publishPolicyRevision {
        status
        errors { errorCode errorMessage }
      }
    }
  }
}
"""

_INPUT_TYPES = {
    'addSection': 'PolicyAddSectionInput',
    'moveSection': 'PolicyMoveSectionInput',
    'moveRule': 'PolicyMoveRuleInput',
}


class GraphQLCatalog:
    """Catalog of one policy domain of one remote account."""

    def __init__(self, domain, settings, client=None):
        settings.require_api()
        self.domain = PolicyDomain.parse(domain)
        self.settings = settings
        self._client = client or httpx.Client(
            timeout=httpx.Timeout(timeout=settings.timeout),
            headers={'User-Agent': USER_AGENT},
        )

    def __repr__(self):
        return f'<GraphQLCatalog {self.domain.value} account={self.settings.account_id}>'

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()

    def close(self):
        self._client.close()

    # -- transport --

    def _execute(self, operation, query, variables):
        variables = {'accountId': self.settings.account_id, **variables}
        logger.debug('%s %s request: %s', self.domain.value, operation, variables)
        try:
            response = self._client.post(
                self.settings.api_url,
                json={'query': query, 'variables': variables},
                headers={'x-api-key': self.settings.api_key},
            )
        except httpx.RequestError as e:
            raise CatalogError(f'{operation} failed: {e}', operation=operation) from e

        if response.status_code < 200 or response.status_code >= 300:
            raise CatalogError(
                f'{operation} failed: HTTP {response.status_code} {response.text[:200]}',
                operation=operation,
            )
        try:
            body = response.json()
        except ValueError as e:
            raise CatalogError(
                f'{operation} failed: response is not JSON', operation=operation
            ) from e

        errors = body.get('errors')
        if errors:
            messages = '; '.join(str(err.get('message', err)) for err in errors)
            raise CatalogError(f'{operation} failed: {messages}', operation=operation)
        logger.debug('%s %s response: %s', self.domain.value, operation, body)
        try:
            return body['data']['policy'][self.domain.info.graphql_field]
        except (KeyError, TypeError) as e:
            raise CatalogError(
                f'{operation} failed: unexpected response shape', operation=operation
            ) from e

    def _mutate(self, operation, payload_input, selection=''):
        query = _MUTATION % {
            'operation': operation,
            'input_type': _INPUT_TYPES[operation],
            'field': self.domain.info.graphql_field,
            'selection': selection,
        }
        data = self._execute(operation, query, {'input': payload_input})
        payload = data.get(operation) or {}
        self._check_payload(operation, payload)
        return payload

    @staticmethod
    def _check_payload(operation, payload):
        errors = payload.get('errors') or []
        if errors or payload.get('status', 'SUCCESS') != 'SUCCESS':
            details = '; '.join(
                f'{e.get("errorCode")} : {e.get("errorMessage")}' for e in errors
            ) or f'status {payload.get("status")}'
            raise CatalogError(f'{operation} failed: {details}', operation=operation)

    # -- queries --

    def _policy(self):
        query = _POLICY_QUERY % {'field': self.domain.info.graphql_field}
        data = self._execute('policy', query, {})
        return data.get('policy') or {}

    def list_sections(self):
        return [
            CatalogSection(id=item['section']['id'], name=item['section']['name'])
            for item in self._policy().get('sections') or []
        ]

    def list_rules(self):
        rules = []
        for item in self._policy().get('rules') or []:
            rule = item['rule']
            section = rule.get('section') or {}
            rules.append(
                CatalogRule(
                    id=rule['id'],
                    name=rule['name'],
                    section_id=section.get('id', ''),
                    section_name=section.get('name', ''),
                    description=rule.get('description') or '',
                    enabled=bool(rule.get('enabled', True)),
                    index=int(rule.get('index') or 0),
                    properties=tuple(item.get('properties') or ()),
                )
            )
        return rules

    # -- mutations --

    def add_section(self, name, position=SectionPosition.LAST_IN_POLICY, ref=None):
        at = {'position': str(SectionPosition(position))}
        if ref:
            at['ref'] = ref
        payload = self._mutate(
            'addSection',
            {'section': {'name': name}, 'at': at},
            selection='section { section { id name } }',
        )
        try:
            return payload['section']['section']['id']
        except (KeyError, TypeError) as e:
            raise CatalogError(
                'addSection failed: no section id in response', operation='addSection'
            ) from e

    def move_section(self, section_id, position, ref=None):
        to = {'position': str(SectionPosition(position))}
        if ref:
            to['ref'] = ref
        self._mutate('moveSection', {'id': section_id, 'to': to})

    def move_rule(self, rule_id, position, ref):
        self._mutate(
            'moveRule',
            {'id': rule_id, 'to': {'position': str(RulePosition(position)), 'ref': ref}},
        )

    def publish_revision(self):
        query = _PUBLISH % {'field': self.domain.info.graphql_field}
        data = self._execute('publishPolicyRevision', query, {})
        self._check_payload('publishPolicyRevision', data.get('publishPolicyRevision') or {})
