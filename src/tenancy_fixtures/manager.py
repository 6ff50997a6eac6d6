"""Tenancy fixture manager.

Allocates and retires one worker's isolated org, space, quota and user on a
shared control plane. Workers never coordinate: isolation comes entirely
from the unique names in the FixtureDescriptor, and the control plane is
trusted to serialise conflicting administrative commands itself.

Setup and teardown are sequences of blocking CLI commands run as the admin
user. There is no rollback: if setup fails halfway, the error propagates and
whatever was already created stays until a later teardown removes it.
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from datetime import datetime, timedelta, timezone
from typing import Iterator

from .control.identity import UserContext, as_user
from .control.outcomes import Outcome, execute
from .control.runner import CommandRunner
from .descriptor import (
    FixtureDescriptor,
    build_descriptor,
    build_persistent_app_descriptor,
)
from .errors import SettingsError
from .quota import QuotaDefinition, runaway_update_args
from .settings import FixtureSettings
from .worker import worker_id_from_env

logger = logging.getLogger(__name__)

SPACE_ROLES = ('SpaceManager', 'SpaceDeveloper')


def _require_valid(settings: FixtureSettings) -> None:
    errors = settings.validate()
    if errors:
        raise SettingsError('invalid fixture config: ' + '; '.join(errors))


class TenancyFixtureManager:
    """Setup and teardown of one worker's tenancy fixture.

    Args:
        settings: Fixture configuration.
        descriptor: Names, timeouts and lifecycle for this fixture.
        runner: Command runner used for every CLI call.
    """

    def __init__(
        self,
        settings: FixtureSettings,
        descriptor: FixtureDescriptor,
        runner: CommandRunner,
    ) -> None:
        self._settings = settings
        self._descriptor = descriptor
        self._runner = runner

    @classmethod
    def create(
        cls,
        settings: FixtureSettings,
        runner: CommandRunner,
        *,
        worker_id: int | None = None,
        now: datetime | None = None,
    ) -> TenancyFixtureManager:
        """Manager for a per-worker fixture named from worker id and time.

        Raises:
            SettingsError: ``settings`` do not validate.
        """
        _require_valid(settings)
        descriptor = build_descriptor(
            settings,
            worker_id=worker_id_from_env() if worker_id is None else worker_id,
            now=now or datetime.now(timezone.utc),
        )
        return cls(settings, descriptor, runner)

    @classmethod
    def persistent_app(
        cls,
        settings: FixtureSettings,
        runner: CommandRunner,
        *,
        worker_id: int | None = None,
        now: datetime | None = None,
    ) -> TenancyFixtureManager:
        """Manager for the long-lived org hosting persistent applications."""
        _require_valid(settings)
        descriptor = build_persistent_app_descriptor(
            settings,
            worker_id=worker_id_from_env() if worker_id is None else worker_id,
            now=now or datetime.now(timezone.utc),
        )
        return cls(settings, descriptor, runner)

    # ------ accessors ------

    @property
    def descriptor(self) -> FixtureDescriptor:
        return self._descriptor

    @property
    def short_timeout(self) -> timedelta:
        return self._descriptor.short_timeout

    @property
    def long_timeout(self) -> timedelta:
        return self._descriptor.long_timeout

    @property
    def is_persistent_org_and_space(self) -> bool:
        """True when org, space and quota are pre-existing and shared.

        Calling code uses this to decide whether to run org-scoped setup
        steps itself.
        """
        return self._descriptor.is_persistent_org_and_space

    def admin_user_context(self) -> UserContext:
        return UserContext(
            api_url=self._settings.api,
            username=self._settings.admin_user,
            password=self._settings.admin_password,
            skip_ssl_validation=self._settings.skip_ssl_validation,
        )

    def regular_user_context(self) -> UserContext:
        return UserContext(
            api_url=self._settings.api,
            username=self._descriptor.username,
            password=self._descriptor.password,
            org=self._descriptor.org_name,
            space=self._descriptor.space_name,
            skip_ssl_validation=self._settings.skip_ssl_validation,
        )

    @contextmanager
    def as_admin(self) -> Iterator[UserContext]:
        with as_user(self._runner, self.admin_user_context(), self.short_timeout) as user:
            yield user

    @contextmanager
    def as_regular_user(self) -> Iterator[UserContext]:
        with as_user(self._runner, self.regular_user_context(), self.short_timeout) as user:
            yield user

    # ------ lifecycle ------

    def _cf(self, *args: str, tolerate: tuple[Outcome, ...] = ()) -> Outcome:
        return execute(self._runner, args, self.short_timeout, tolerate=tolerate)

    def setup(self) -> None:
        """Create (or reuse) quota, org and regular user.

        Raises:
            CommandFailedError: Any command failed, except creating a user
                that already exists.
            CommandTimeoutError: Any command timed out.
        """
        d = self._descriptor
        logger.info(
            'Setting up tenancy fixture',
            extra={
                'org': d.org_name,
                'space': d.space_name,
                'quota': d.quota_name,
                'lifecycle': d.lifecycle.value,
            },
        )
        with self.as_admin():
            if d.lifecycle.creates_org_and_quota:
                definition = QuotaDefinition(name=d.quota_name)
                self._cf(*definition.create_args())
                self._cf('create-org', d.org_name)
                self._cf('set-quota', d.org_name, definition.name)

            if not self._settings.use_existing_user:
                outcome = self._cf(
                    'create-user',
                    d.username,
                    d.password,
                    tolerate=(Outcome.ALREADY_EXISTS,),
                )
                if outcome is Outcome.ALREADY_EXISTS:
                    logger.info(
                        'Reusing existing user',
                        extra={'username': d.username},
                    )

    def create_space(self) -> None:
        """Create this fixture's space and grant the regular user its roles."""
        d = self._descriptor
        with self.as_admin():
            self._cf('create-space', d.space_name, '-o', d.org_name)
            for role in SPACE_ROLES:
                self._cf('set-space-role', d.username, d.org_name, d.space_name, role)

    def set_runaway_quota(self) -> None:
        """Widen the fixture quota to effectively unlimited.

        Idempotent. Only a full teardown reverses it.
        """
        with self.as_admin():
            self._cf(*runaway_update_args(self._descriptor.quota_name))

    def teardown(self) -> None:
        """Best-effort forced deletion of what this fixture owns.

        Order matters: the user is removed before the org it belongs to, and
        the org before the quota it is bound to.

        Raises:
            CommandFailedError: A forced delete or login failed.
            CommandTimeoutError: Any command timed out.
        """
        d = self._descriptor
        logger.info(
            'Tearing down tenancy fixture',
            extra={'org': d.org_name, 'lifecycle': d.lifecycle.value},
        )
        with self.as_admin():
            if self._settings.should_delete_user:
                self._cf('delete-user', '-f', d.username)

            if d.lifecycle.deletes_org_and_quota:
                self._cf('delete-org', '-f', d.org_name)
                self._cf('delete-quota', '-f', d.quota_name)

            if d.lifecycle.deletes_own_space_only:
                self._cf('target', '-o', d.org_name)
                self._cf('delete-space', '-f', d.space_name)
