"""Isolated, parallel-safe tenancy fixtures for control-plane test suites.

Each parallel test worker gets its own org, space, quota and user, named from
its worker number and creation time, created at setup and removed at
teardown. Shared (pre-existing) orgs and persistent application orgs are
supported through configuration.

Quick start::

    from tenancy_fixtures import FixtureSettings, SubprocessCommandRunner, TenancyFixtureManager

    settings = FixtureSettings.from_env()
    manager = TenancyFixtureManager.create(settings, SubprocessCommandRunner())
    manager.setup()
    try:
        with manager.as_regular_user():
            ...
    finally:
        manager.teardown()
"""

from .control import (
    CommandResult,
    CommandRunner,
    ControlPlaneInventory,
    Outcome,
    SubprocessCommandRunner,
    UserContext,
    as_user,
)
from .descriptor import (
    FixtureDescriptor,
    build_descriptor,
    build_persistent_app_descriptor,
)
from .errors import (
    CLINotFoundError,
    CommandFailedError,
    CommandTimeoutError,
    InventoryError,
    SettingsError,
    TenancyFixtureError,
)
from .lifecycle import Lifecycle
from .manager import TenancyFixtureManager
from .naming import FixtureNames, NameOverrides, format_time_tag, generate_names, resolve_names
from .quota import QuotaDefinition
from .settings import FixtureSettings
from .worker import worker_id_from_env

__all__ = [
    'CLINotFoundError',
    'CommandFailedError',
    'CommandResult',
    'CommandRunner',
    'CommandTimeoutError',
    'ControlPlaneInventory',
    'FixtureDescriptor',
    'FixtureNames',
    'FixtureSettings',
    'InventoryError',
    'Lifecycle',
    'NameOverrides',
    'Outcome',
    'QuotaDefinition',
    'SettingsError',
    'SubprocessCommandRunner',
    'TenancyFixtureError',
    'TenancyFixtureManager',
    'UserContext',
    'as_user',
    'build_descriptor',
    'build_persistent_app_descriptor',
    'format_time_tag',
    'generate_names',
    'resolve_names',
    'worker_id_from_env',
]
