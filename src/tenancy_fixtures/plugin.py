"""pytest plugin exposing tenancy fixtures.

Each pytest-xdist worker is its own pytest session, so the session-scoped
``tenancy`` fixture gives every worker a private org, space, quota and user
named after its worker number. Nothing is shared between workers in-process.

Options:
    --tenancy-config PATH   Fixture config JSON (defaults to $CONFIG).
    --tenancy-cf-cli CMD    Command used to invoke the cf CLI.

Override ``tenancy_command_runner`` in a conftest to drive a fake control
plane.
"""

from __future__ import annotations

import shlex
from typing import Iterator

import pytest

from .control.runner import CommandRunner, SubprocessCommandRunner
from .errors import SettingsError
from .manager import TenancyFixtureManager
from .settings import FixtureSettings
from .worker import worker_id_from_env


def pytest_addoption(parser: pytest.Parser) -> None:
    group = parser.getgroup('tenancy', 'tenancy fixtures')
    group.addoption(
        '--tenancy-config',
        action='store',
        default=None,
        help='Fixture config JSON file (default: $CONFIG).',
    )
    group.addoption(
        '--tenancy-cf-cli',
        action='store',
        default='cf',
        help='Command used to invoke the cf CLI (default: cf).',
    )


@pytest.fixture(scope='session')
def tenancy_settings(pytestconfig: pytest.Config) -> FixtureSettings:
    path = pytestconfig.getoption('tenancy_config')
    settings = FixtureSettings.from_file(path) if path else FixtureSettings.from_env()
    errors = settings.validate()
    if errors:
        raise SettingsError('invalid fixture config: ' + '; '.join(errors))
    return settings


@pytest.fixture(scope='session')
def tenancy_worker_id() -> int:
    return worker_id_from_env()


@pytest.fixture(scope='session')
def tenancy_command_runner(pytestconfig: pytest.Config) -> CommandRunner:
    return SubprocessCommandRunner(
        shlex.split(pytestconfig.getoption('tenancy_cf_cli'))
    )


def _provisioned(manager: TenancyFixtureManager) -> Iterator[TenancyFixtureManager]:
    # A failed setup is not rolled back; its error aborts the session.
    manager.setup()
    try:
        manager.create_space()
        yield manager
    finally:
        manager.teardown()


@pytest.fixture(scope='session')
def tenancy(
    tenancy_settings: FixtureSettings,
    tenancy_command_runner: CommandRunner,
    tenancy_worker_id: int,
) -> Iterator[TenancyFixtureManager]:
    """This worker's isolated org, space, quota and user."""
    manager = TenancyFixtureManager.create(
        tenancy_settings,
        tenancy_command_runner,
        worker_id=tenancy_worker_id,
    )
    yield from _provisioned(manager)


@pytest.fixture(scope='session')
def tenancy_persistent_app(
    tenancy_settings: FixtureSettings,
    tenancy_command_runner: CommandRunner,
    tenancy_worker_id: int,
) -> Iterator[TenancyFixtureManager]:
    """The long-lived org and space hosting applications across suites."""
    manager = TenancyFixtureManager.persistent_app(
        tenancy_settings,
        tenancy_command_runner,
        worker_id=tenancy_worker_id,
    )
    yield from _provisioned(manager)


@pytest.fixture
def runaway_quota(tenancy: TenancyFixtureManager) -> TenancyFixtureManager:
    """The worker fixture with its quota widened to effectively unlimited."""
    if tenancy.is_persistent_org_and_space:
        pytest.skip('quota is shared with other runs and cannot be widened')
    tenancy.set_runaway_quota()
    return tenancy
