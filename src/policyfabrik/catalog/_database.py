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

"""Local policy catalog backed by SQLAlchemy.

:class:`CatalogStore` owns the engine and the sessions and loads/saves
catalog files; :class:`DatabaseCatalog` is the :class:`PolicyCatalog` of one
policy domain inside a store. Moves only change the draft; publishing copies
the draft positions to the published ones and records a revision.
"""

import contextlib
import logging
import pathlib
import time
import uuid

import sqlalchemy
import sqlalchemy.exc
import sqlalchemy.orm

from policyfabrik.core import (
    CatalogError,
    CatalogRule,
    CatalogSection,
    PolicyDomain,
    RulePosition,
    SectionPosition,
)

from . import objects
from ._yaml_reader import CatalogReader
from ._yaml_writer import CatalogWriter

logger = logging.getLogger(__name__)


def new_id():
    return str(uuid.uuid4())


class CatalogStore:
    def __init__(self, connection_string='sqlite:///:memory:'):
        self.engine = sqlalchemy.create_engine(connection_string, echo=False)
        self._session_factory = sqlalchemy.orm.sessionmaker(self.engine)
        objects.enable_sqlite_fks(self.engine)
        logger.debug('Creating catalog schema')
        objects.Base.metadata.create_all(self.engine)

    @contextlib.contextmanager
    def session(self):
        """Create a new database session that commits when the contextmanager exits."""
        session = self._session_factory()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def catalog(self, domain):
        return DatabaseCatalog(self, domain)

    def domains(self):
        with self.session() as session:
            found = set(
                session.scalars(sqlalchemy.select(objects.PolicySection.domain).distinct())
            )
        return [d for d in PolicyDomain if d.value in found]

    def load(self, path):
        """Import a catalog file; its content is treated as published."""
        path = pathlib.Path(path)
        logger.debug('Loading catalog from %s', path)
        snapshots = CatalogReader().parse(path)
        for domain, snapshot in snapshots.items():
            catalog = self.catalog(domain)
            for section in snapshot.sections:
                catalog.add_section(section.name, section_id=section.id or None)
            for rule in snapshot.rules:
                catalog.add_rule(
                    rule.name,
                    rule.section_name,
                    description=rule.description,
                    enabled=rule.enabled,
                    properties=rule.properties,
                    rule_id=rule.id or None,
                )
            catalog.publish_revision(description=f'Load {path.name}')
        return path

    def save(self, path):
        path = pathlib.Path(path)
        logger.debug('Saving catalog to %s', path)
        data = {}
        for domain in self.domains():
            catalog = self.catalog(domain)
            data[domain] = (catalog.list_sections(), catalog.list_rules())
        CatalogWriter().write(data, path)


class DatabaseCatalog:
    """PolicyCatalog of one domain stored in a :class:`CatalogStore`."""

    def __init__(self, store, domain):
        self.store = store
        self.domain = PolicyDomain.parse(domain)

    def __repr__(self):
        return f'<DatabaseCatalog {self.domain.value}>'

    # -- queries --

    def _ordered_sections(self, session):
        return list(
            session.scalars(
                sqlalchemy.select(objects.PolicySection)
                .where(objects.PolicySection.domain == self.domain.value)
                .order_by(objects.PolicySection.position, objects.PolicySection.id),
            )
        )

    def _ordered_rules(self, session, section_id):
        return list(
            session.scalars(
                sqlalchemy.select(objects.PolicyRule)
                .where(objects.PolicyRule.section_id == section_id)
                .order_by(objects.PolicyRule.position, objects.PolicyRule.id),
            )
        )

    def _get_section(self, session, section_id, operation):
        section = session.get(objects.PolicySection, section_id) if section_id else None
        if section is None or section.domain != self.domain.value:
            raise CatalogError(
                f"Section '{section_id}' not found in {self.domain.info.label} policy",
                operation=operation,
            )
        return section

    def _get_rule(self, session, rule_id, operation):
        rule = session.get(objects.PolicyRule, rule_id) if rule_id else None
        if rule is None or rule.domain != self.domain.value:
            raise CatalogError(
                f"Rule '{rule_id}' not found in {self.domain.info.label} policy",
                operation=operation,
            )
        return rule

    def list_sections(self, published=False):
        with self.store.session() as session:
            sections = self._ordered_sections(session)
            if published:
                sections = sorted(
                    (s for s in sections if s.published_position is not None),
                    key=lambda s: s.published_position,
                )
            return [CatalogSection(id=s.id, name=s.name) for s in sections]

    def list_rules(self, published=False):
        with self.store.session() as session:
            sections = self._ordered_sections(session)
            if published:
                sections = sorted(
                    (s for s in sections if s.published_position is not None),
                    key=lambda s: s.published_position,
                )
            rows = []
            for section in sections:
                if published:
                    members = sorted(
                        session.scalars(
                            sqlalchemy.select(objects.PolicyRule).where(
                                objects.PolicyRule.published_section_id == section.id,
                            )
                        ),
                        key=lambda r: r.published_position,
                    )
                else:
                    members = self._ordered_rules(session, section.id)
                rows.extend((section, rule) for rule in members)
            return [
                CatalogRule(
                    id=rule.id,
                    name=rule.name,
                    section_id=section.id,
                    section_name=section.name,
                    description=rule.description or '',
                    enabled=bool(rule.enabled),
                    index=i,
                    properties=tuple(rule.properties or ()),
                )
                for i, (section, rule) in enumerate(rows, start=1)
            ]

    # -- mutations --

    def add_section(
        self,
        name,
        position=SectionPosition.LAST_IN_POLICY,
        ref=None,
        *,
        section_id=None,
    ):
        position = SectionPosition(position)
        section_id = section_id or new_id()
        try:
            with self.store.session() as session:
                ordered = self._ordered_sections(session)
                if any(s.name == name for s in ordered):
                    raise CatalogError(
                        f"Section '{name}' already exists in {self.domain.info.label} policy",
                        operation='add_section',
                    )
                section = objects.PolicySection(
                    id=section_id,
                    domain=self.domain.value,
                    name=name,
                )
                session.add(section)
                self._place(session, ordered, section, position, ref, 'add_section')
        except sqlalchemy.exc.IntegrityError as e:
            raise CatalogError(
                f"Cannot add section '{name}': {e.orig}", operation='add_section'
            ) from e
        logger.debug("Added section '%s' (id %s) %s", name, section_id, position.value)
        return section_id

    def move_section(self, section_id, position, ref=None):
        position = SectionPosition(position)
        with self.store.session() as session:
            section = self._get_section(session, section_id, 'move_section')
            ordered = self._ordered_sections(session)
            ordered.remove(section)
            self._place(session, ordered, section, position, ref, 'move_section')

    def _place(self, session, ordered, section, position, ref, operation):
        if position == SectionPosition.LAST_IN_POLICY:
            ordered.append(section)
        else:
            if ref == section.id:
                raise CatalogError(
                    f"Section '{section.name}' cannot be placed after itself",
                    operation=operation,
                )
            anchor = self._get_section(session, ref, operation)
            ordered.insert(ordered.index(anchor) + 1, section)
        # positions stay 0..n-1
        for i, s in enumerate(ordered):
            s.position = i

    def add_rule(
        self,
        name,
        section,
        *,
        description='',
        enabled=True,
        properties=(),
        rule_id=None,
    ):
        """Append a rule to *section* (a section name or id) and return its id."""
        rule_id = rule_id or new_id()
        with self.store.session() as session:
            target = next(
                (s for s in self._ordered_sections(session) if section in (s.id, s.name)),
                None,
            )
            if target is None:
                raise CatalogError(
                    f"Section '{section}' not found in {self.domain.info.label} policy",
                    operation='add_rule',
                )
            members = self._ordered_rules(session, target.id)
            session.add(
                objects.PolicyRule(
                    id=rule_id,
                    domain=self.domain.value,
                    section_id=target.id,
                    name=name,
                    description=description or '',
                    enabled=enabled,
                    properties=list(properties),
                    position=len(members),
                )
            )
        return rule_id

    def move_rule(self, rule_id, position, ref):
        position = RulePosition(position)
        with self.store.session() as session:
            rule = self._get_rule(session, rule_id, 'move_rule')
            if position == RulePosition.FIRST_IN_SECTION:
                target = self._get_section(session, ref, 'move_rule')
                anchor = None
            else:
                if ref == rule_id:
                    raise CatalogError(
                        f"Rule '{rule.name}' cannot be placed after itself",
                        operation='move_rule',
                    )
                anchor = self._get_rule(session, ref, 'move_rule')
                target = anchor.section

            source = self._ordered_rules(session, rule.section_id)
            source.remove(rule)
            if target.id == rule.section_id:
                dest = source
            else:
                for i, r in enumerate(source):
                    r.position = i
                dest = self._ordered_rules(session, target.id)
                rule.section = target
            dest.insert(0 if anchor is None else dest.index(anchor) + 1, rule)
            for i, r in enumerate(dest):
                r.position = i

    def publish_revision(self, description=''):
        with self.store.session() as session:
            for section in self._ordered_sections(session):
                section.published_position = section.position
                for rule in self._ordered_rules(session, section.id):
                    rule.published_section_id = rule.section_id
                    rule.published_position = rule.position
            revision = objects.PolicyRevision(
                domain=self.domain.value,
                published_at=time.time(),
                description=description,
            )
            session.add(revision)
            session.flush()
            revision_id = revision.id
        logger.debug('Published %s revision %d', self.domain.value, revision_id)
        return revision_id

    # -- inspection --

    def revision_count(self):
        with self.store.session() as session:
            return session.scalar(
                sqlalchemy.select(sqlalchemy.func.count(objects.PolicyRevision.id)).where(
                    objects.PolicyRevision.domain == self.domain.value
                )
            )

    def has_unpublished_changes(self):
        return self.list_sections() != self.list_sections(published=True) or [
            (r.id, r.section_id) for r in self.list_rules()
        ] != [(r.id, r.section_id) for r in self.list_rules(published=True)]
