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

"""Settings: config file, then ``PFAB_*`` environment variables, then explicit overrides."""

import dataclasses
import logging
import os
import pathlib

import yaml

from ._errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_API_URL = 'https://api.catonetworks.com/api/v1/graphql2'
DEFAULT_TIMEOUT = 30.0

ENV_PREFIX = 'PFAB_'

_LOG_LEVELS = ('CRITICAL', 'ERROR', 'WARNING', 'INFO', 'DEBUG')


@dataclasses.dataclass(frozen=True, slots=True)
class Settings:
    api_url: str = DEFAULT_API_URL
    api_key: str = ''
    account_id: str = ''
    timeout: float = DEFAULT_TIMEOUT
    log_level: str = 'WARNING'
    catalog_file: str = ''

    def require_api(self):
        """Raise unless everything needed to reach the remote API is set."""
        missing = [
            name for name in ('api_url', 'api_key', 'account_id') if not getattr(self, name)
        ]
        if missing:
            raise ConfigError(
                'Missing API settings: '
                + ', '.join(missing)
                + f' (set them in the config file or via {ENV_PREFIX}<NAME>)'
            )

    def __repr__(self):
        key = '***' if self.api_key else ''
        return (
            f'Settings(api_url={self.api_url!r}, api_key={key!r}, '
            f'account_id={self.account_id!r}, timeout={self.timeout!r}, '
            f'log_level={self.log_level!r}, catalog_file={self.catalog_file!r})'
        )


_FIELDS = {f.name for f in dataclasses.fields(Settings)}


def _read_file(path):
    path = pathlib.Path(path)
    try:
        with pathlib.Path.open(path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}
    except OSError as e:
        raise ConfigError(f'Cannot read config file {path}: {e}') from e
    except yaml.YAMLError as e:
        raise ConfigError(f'Invalid YAML in config file {path}: {e}') from e
    if not isinstance(data, dict):
        raise ConfigError(f'Config file {path} must contain a mapping')
    unknown = sorted(set(data) - _FIELDS)
    if unknown:
        raise ConfigError(f'Unknown setting(s) in {path}: {", ".join(unknown)}')
    return data


def _read_env(environ):
    values = {}
    for name in _FIELDS:
        value = environ.get(ENV_PREFIX + name.upper())
        if value:
            values[name] = value
    return values


def load_settings(path=None, environ=None, **overrides):
    """Build Settings from *path*, the environment and *overrides* (in that order).

    Overrides that are None are ignored so argparse defaults can be passed
    through unchanged.
    """
    environ = os.environ if environ is None else environ
    values = {}
    if path:
        logger.debug('Loading settings from %s', path)
        values.update(_read_file(path))
    values.update(_read_env(environ))
    values.update({k: v for k, v in overrides.items() if v is not None})

    unknown = sorted(set(values) - _FIELDS)
    if unknown:
        raise ConfigError(f'Unknown setting(s): {", ".join(unknown)}')

    try:
        timeout = float(values.get('timeout', DEFAULT_TIMEOUT))
    except (TypeError, ValueError) as e:
        raise ConfigError(f'Invalid timeout: {values.get("timeout")!r}') from e
    if timeout <= 0:
        raise ConfigError(f'Invalid timeout: {timeout}')
    values['timeout'] = timeout

    level = str(values.get('log_level', 'WARNING')).upper()
    if level not in _LOG_LEVELS:
        raise ConfigError(f'Invalid log_level: {values.get("log_level")!r}')
    values['log_level'] = level

    for name in ('api_url', 'api_key', 'account_id', 'catalog_file'):
        if name in values:
            values[name] = str(values[name])
    return Settings(**values)
