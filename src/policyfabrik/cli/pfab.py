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

"""CLI entry point for bulk policy reordering."""

import argparse
import logging
import sys
import time

import yaml

import policyfabrik
import policyfabrik.catalog
import policyfabrik.core

__author__ = 'Linuxfabrik GmbH, Zurich/Switzerland'

DESCRIPTION = """PolicyFabrik bulk policy reordering. Converges the section and rule order of a
policy domain to a declared topology, or reads the current order back."""

DOMAIN_HELP = 'policy domain: ' + ', '.join(d.value for d in policyfabrik.core.PolicyDomain)

_VERBOSITY = ('WARNING', 'INFO', 'DEBUG')


def parse_args(argv=None):
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument(
        'domain',
        help=DOMAIN_HELP,
    )
    common.add_argument(
        '--catalog',
        default=None,
        dest='CATALOG',
        help='use a local YAML catalog file instead of the remote API',
    )
    common.add_argument(
        '-o',
        '--output',
        default='',
        dest='OUTPUT',
        help='write the result to this YAML file instead of stdout',
    )

    parser = argparse.ArgumentParser(
        prog='pfab',
        description=DESCRIPTION,
    )

    parser.add_argument(
        '-c',
        '--config',
        default=None,
        dest='CONFIG',
        help='path to a YAML settings file',
    )

    parser.add_argument(
        '--api-url',
        default=None,
        dest='API_URL',
        help='GraphQL endpoint of the policy API (overrides settings file and environment)',
    )

    parser.add_argument(
        '--account-id',
        default=None,
        dest='ACCOUNT_ID',
        help='account whose policy is managed (overrides settings file and environment)',
    )

    parser.add_argument(
        '--timeout',
        type=float,
        default=None,
        dest='TIMEOUT',
        help='API request timeout in seconds (overrides settings file and environment)',
    )

    parser.add_argument(
        '-v',
        '--verbose',
        action='count',
        default=0,
        dest='VERBOSE',
        help='verbose output (repeat for higher verbosity)',
    )

    parser.add_argument(
        '-V',
        '--version',
        action='version',
        version=f'%(prog)s: v{policyfabrik.__version__} by {__author__}',
    )

    commands = parser.add_subparsers(dest='COMMAND', required=True)

    apply_parser = commands.add_parser(
        'apply',
        parents=[common],
        help='reorder the policy to match the topology and publish it',
    )
    apply_parser.add_argument(
        '-t',
        '--topology',
        required=True,
        dest='TOPOLOGY',
        help='path to the topology YAML file',
    )

    plan_parser = commands.add_parser(
        'plan',
        parents=[common],
        help='print the moves apply would issue, without changing anything',
    )
    plan_parser.add_argument(
        '-t',
        '--topology',
        required=True,
        dest='TOPOLOGY',
        help='path to the topology YAML file',
    )

    read_parser = commands.add_parser(
        'read',
        parents=[common],
        help='print the current section and rule order',
    )
    read_parser.add_argument(
        '-t',
        '--topology',
        default=None,
        dest='TOPOLOGY',
        help='only report the sections and rules of this topology',
    )

    commands.add_parser(
        'index',
        parents=[common],
        help='print the per-section index of every rule',
    )

    return parser.parse_args(argv)


def setup_logging(settings, verbose):
    if verbose:
        level = _VERBOSITY[min(verbose, len(_VERBOSITY) - 1)]
    else:
        level = settings.log_level
    logging.basicConfig(
        level=level,
        format='%(levelname)s %(name)s: %(message)s',
        stream=sys.stderr,
        force=True,
    )


def open_catalog(args, settings, domain):
    """Return ``(catalog, store)``; *store* is None for the remote API."""
    catalog_file = args.CATALOG or settings.catalog_file
    if catalog_file:
        print(f'Loading catalog from {catalog_file} ...', file=sys.stderr)
        store = policyfabrik.catalog.CatalogStore()
        store.load(catalog_file)
        return store.catalog(domain), store
    return policyfabrik.catalog.GraphQLCatalog(domain, settings), None


def emit(data, output):
    if output:
        policyfabrik.core.StateWriter().write(data, output)
        print(f'Wrote {output}', file=sys.stderr)
    else:
        sys.stdout.write(policyfabrik.core.dump(data))


def run(args, settings, domain):
    topology = None
    if getattr(args, 'TOPOLOGY', None):
        topology = policyfabrik.core.TopologyReader().parse(args.TOPOLOGY)

    catalog, store = open_catalog(args, settings, domain)
    try:
        reorderer = policyfabrik.core.PolicyReorderer(catalog, domain)
        if args.COMMAND == 'apply':
            state = reorderer.reconcile(topology)
            if store is not None:
                store.save(args.CATALOG or settings.catalog_file)
            emit(state, args.OUTPUT)
        elif args.COMMAND == 'plan':
            moves = reorderer.plan(topology)
            if args.OUTPUT:
                emit(moves, args.OUTPUT)
            else:
                for move in moves:
                    print(move)
                print(f'{len(moves)} move(s)', file=sys.stderr)
        elif args.COMMAND == 'read':
            emit(reorderer.read(topology), args.OUTPUT)
        else:
            emit(reorderer.rules_index(), args.OUTPUT)
    finally:
        if store is None:
            catalog.close()


def main(argv=None):
    args = parse_args(argv)
    t_start = time.monotonic()

    try:
        settings = policyfabrik.core.load_settings(
            args.CONFIG,
            api_url=args.API_URL,
            account_id=args.ACCOUNT_ID,
            timeout=args.TIMEOUT,
        )
    except policyfabrik.core.ConfigError as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1
    setup_logging(settings, args.VERBOSE)

    try:
        domain = policyfabrik.core.PolicyDomain.parse(args.domain)
    except ValueError:
        print(f"Error: unknown policy domain '{args.domain}' ({DOMAIN_HELP})", file=sys.stderr)
        return 2

    try:
        run(args, settings, domain)
    except (OSError, yaml.YAMLError) as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1
    except policyfabrik.core.MoveError as e:
        print(f'Error: {e}', file=sys.stderr)
        print(
            f'{e.applied} move(s) were applied and left unpublished; re-run to converge',
            file=sys.stderr,
        )
        return 1
    except policyfabrik.core.PolicyFabrikError as e:
        print(f'Error: {e}', file=sys.stderr)
        return 1

    elapsed = time.monotonic() - t_start
    logging.getLogger(__name__).info('Done in %.2fs', elapsed)
    return 0


if __name__ == '__main__':
    sys.exit(main())
