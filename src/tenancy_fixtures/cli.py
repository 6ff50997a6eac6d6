"""Operator entry point for provisioning fixtures outside pytest.

Lets CI provision a worker's fixture before a run and remove it afterwards,
or check that a previous teardown left nothing behind. Descriptors are
printed as JSON on stdout; logs go to stderr.

Exit codes:
  0 = success
  1 = residual resources found (``verify``)
  2 = configuration or command failure

Usage:
  tenancy-fixtures names --worker-id 3
  tenancy-fixtures setup --worker-id 3
  tenancy-fixtures teardown --worker-id 3 --time-tag 2024_01_01-10h00m00.000s
  tenancy-fixtures verify --worker-id 3 --time-tag 2024_01_01-10h00m00.000s
"""
from __future__ import annotations

import argparse
import json
import shlex
import sys
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Sequence

from .control.inventory import ControlPlaneInventory
from .control.runner import SubprocessCommandRunner
from .errors import TenancyFixtureError
from .manager import TenancyFixtureManager
from .naming import format_time_tag
from .observability import configure_logging, get_logger
from .settings import FixtureSettings
from .worker import worker_id_from_env

TIME_TAG_FORMAT = '%Y_%m_%d-%Hh%Mm%S.%fs'


def parse_time_tag(tag: str) -> datetime:
    """Inverse of ``format_time_tag``."""
    try:
        return datetime.strptime(tag, TIME_TAG_FORMAT).replace(tzinfo=timezone.utc)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(
            f'invalid time tag {tag!r}, expected e.g. 2024_01_01-10h00m00.000s'
        ) from exc


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog='tenancy-fixtures',
        description='Provision and tear down isolated test tenancy.',
    )
    parser.add_argument('--config', help='Fixture config JSON (default: $CONFIG).')
    parser.add_argument('--cf-cli', default='cf', help='Command used to invoke the cf CLI.')
    parser.add_argument(
        '--log-format',
        choices=('json', 'console'),
        default='json',
    )

    sub = parser.add_subparsers(dest='command', required=True)
    for name, help_text in (
        ('names', 'Print the fixture descriptor without touching the control plane.'),
        ('setup', 'Create the fixture and print its descriptor.'),
        ('teardown', 'Delete the fixture.'),
        ('verify', 'Fail if teardown left resources behind.'),
    ):
        cmd = sub.add_parser(name, help=help_text)
        cmd.add_argument('--worker-id', type=int, default=None)
        cmd.add_argument(
            '--time-tag',
            type=parse_time_tag,
            default=None,
            help='Creation instant of an existing fixture (default: now).',
        )
        cmd.add_argument(
            '--persistent-app',
            action='store_true',
            help='Operate on the persistent application fixture.',
        )
    return parser


def _descriptor_json(manager: TenancyFixtureManager, moment: datetime) -> str:
    d = manager.descriptor
    payload = asdict(d)
    payload.pop('password')
    payload['lifecycle'] = d.lifecycle.value
    payload['short_timeout'] = d.short_timeout.total_seconds()
    payload['long_timeout'] = d.long_timeout.total_seconds()
    payload['time_tag'] = format_time_tag(moment)
    return json.dumps(payload, indent=2)


def main(argv: Sequence[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    worker_id = worker_id_from_env() if args.worker_id is None else args.worker_id
    configure_logging(
        json_output=args.log_format == 'json',
        worker_id=worker_id,
        stream=sys.stderr,
    )
    logger = get_logger(__name__)

    try:
        settings = (
            FixtureSettings.from_file(args.config)
            if args.config
            else FixtureSettings.from_env()
        )
        errors = settings.validate()
        if errors:
            for error in errors:
                print(f'config error: {error}', file=sys.stderr)
            return 2

        moment = args.time_tag or datetime.now(timezone.utc)
        factory = (
            TenancyFixtureManager.persistent_app
            if args.persistent_app
            else TenancyFixtureManager.create
        )

        if args.command == 'names':
            runner = None
        else:
            runner = SubprocessCommandRunner(shlex.split(args.cf_cli))
        manager = factory(settings, runner, worker_id=worker_id, now=moment)

        if args.command == 'names':
            print(_descriptor_json(manager, moment))
        elif args.command == 'setup':
            manager.setup()
            manager.create_space()
            print(_descriptor_json(manager, moment))
        elif args.command == 'teardown':
            manager.teardown()
        elif args.command == 'verify':
            with ControlPlaneInventory.from_runner(
                runner,
                manager.admin_user_context(),
                manager.short_timeout,
            ) as inventory:
                leftovers = inventory.residual_resources(
                    manager.descriptor,
                    delete_user=settings.should_delete_user,
                )
            for item in leftovers:
                print(item)
            return 1 if leftovers else 0
    except TenancyFixtureError as exc:
        logger.error('tenancy_fixture_failed', command=args.command, error=str(exc))
        print(f'error: {exc}', file=sys.stderr)
        return 2
    return 0


if __name__ == '__main__':
    sys.exit(main())
