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

"""PolicySection, PolicyRule and PolicyRevision models.

Every section and rule carries two positions: the draft one, changed by
moves, and the published one, copied from the draft when a revision is
published. Positions are 0-based and kept sequential per domain (sections)
or per section (rules).
"""

from __future__ import (
    annotations,  # This is needed since SQLAlchemy does not support forward references yet
)

import sqlalchemy
import sqlalchemy.orm

from ._base import Base


class PolicySection(Base):
    """Named, ordered grouping of rules within one policy domain."""

    __tablename__ = 'policy_sections'

    id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        primary_key=True,
    )
    domain: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(50),
        nullable=False,
    )
    name: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        nullable=False,
    )
    position: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        default=0,
    )
    published_position: sqlalchemy.orm.Mapped[int | None] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        nullable=True,
        default=None,
    )

    rules: sqlalchemy.orm.Mapped[list[PolicyRule]] = sqlalchemy.orm.relationship(
        'PolicyRule',
        back_populates='section',
        order_by='PolicyRule.position',
    )

    __table_args__ = (
        sqlalchemy.UniqueConstraint('domain', 'name'),
    )


class PolicyRule(Base):
    """A named policy entry belonging to exactly one section."""

    __tablename__ = 'policy_rules'

    id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        primary_key=True,
    )
    domain: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(50),
        nullable=False,
    )
    section_id: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        sqlalchemy.ForeignKey('policy_sections.id'),
        nullable=False,
    )
    name: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        nullable=False,
    )
    description: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Text,
        default='',
    )
    enabled: sqlalchemy.orm.Mapped[bool] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Boolean,
        default=True,
    )
    properties: sqlalchemy.orm.Mapped[list | None] = sqlalchemy.orm.mapped_column(
        sqlalchemy.JSON,
        default=list,
    )
    position: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        default=0,
    )
    published_section_id: sqlalchemy.orm.Mapped[str | None] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String,
        nullable=True,
        default=None,
    )
    published_position: sqlalchemy.orm.Mapped[int | None] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        nullable=True,
        default=None,
    )

    section: sqlalchemy.orm.Mapped[PolicySection] = sqlalchemy.orm.relationship(
        'PolicySection',
        back_populates='rules',
    )


class PolicyRevision(Base):
    """One published revision of a policy domain."""

    __tablename__ = 'policy_revisions'

    id: sqlalchemy.orm.Mapped[int] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Integer,
        primary_key=True,
        autoincrement=True,
    )
    domain: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.String(50),
        nullable=False,
    )
    published_at: sqlalchemy.orm.Mapped[float] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Float,
        default=0.0,
    )
    description: sqlalchemy.orm.Mapped[str] = sqlalchemy.orm.mapped_column(
        sqlalchemy.Text,
        default='',
    )
