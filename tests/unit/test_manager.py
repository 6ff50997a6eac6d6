"""TenancyFixtureManager setup/teardown sequencing tests."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta

import pytest

from tenancy_fixtures.errors import CommandFailedError, CommandTimeoutError, SettingsError
from tenancy_fixtures.manager import SPACE_ROLES, TenancyFixtureManager
from tenancy_fixtures.settings import FixtureSettings

NOW = datetime(2024, 1, 1, 10, 0, 0, tzinfo=UTC)
TAG = '3-2024_01_01-10h00m00.000s'
ORG = f'CATS-ORG-{TAG}'
SPACE = f'CATS-SPACE-{TAG}'
QUOTA = f'CATS-QUOTA-{TAG}'
USER = f'CATS-USER-{TAG}'
SCIM_CONFLICT = 'Server error, status code: 409, error code: scim_resource_already_exists'


def _manager(settings, runner, **overrides):
    if overrides:
        settings = FixtureSettings(
            api=settings.api,
            admin_user=settings.admin_user,
            admin_password=settings.admin_password,
            **overrides,
        )
    return TenancyFixtureManager.create(settings, runner, worker_id=3, now=NOW)


def _shared(settings, runner, **extra):
    return _manager(
        settings,
        runner,
        use_existing_organization=True,
        existing_organization='shared-org',
        existing_space='shared-space',
        existing_quota='shared-quota',
        **extra,
    )


class TestAccessors:
    def test_descriptor_and_timeouts(self, settings, recording_runner):
        m = _manager(settings, recording_runner)
        assert m.descriptor.org_name == ORG
        assert m.short_timeout == timedelta(minutes=1)
        assert m.long_timeout == timedelta(minutes=5)
        assert not m.is_persistent_org_and_space

    def test_user_contexts(self, settings, recording_runner):
        m = _manager(settings, recording_runner)
        admin = m.admin_user_context()
        assert (admin.username, admin.password) == ('admin', 'admin-secret')
        assert admin.org == ''
        regular = m.regular_user_context()
        assert (regular.username, regular.password) == (USER, 'meow')
        assert (regular.org, regular.space) == (ORG, SPACE)

    def test_as_regular_user_logs_in_and_targets(self, settings, recording_runner):
        m = _manager(settings, recording_runner)
        with m.as_regular_user():
            pass
        assert recording_runner.calls == [
            ('api', 'https://api.example.test'),
            ('auth', USER, 'meow'),
            ('target', '-o', ORG, '-s', SPACE),
            ('logout',),
        ]

    def test_worker_id_defaults_from_environment(self, settings, recording_runner, monkeypatch):
        monkeypatch.delenv('TENANCY_WORKER_ID', raising=False)
        monkeypatch.setenv('PYTEST_XDIST_WORKER', 'gw7')
        m = TenancyFixtureManager.create(settings, recording_runner, now=NOW)
        assert m.descriptor.org_name.startswith('CATS-ORG-7-')


class TestSetup:
    def test_ephemeral_order(self, settings, recording_runner):
        _manager(settings, recording_runner).setup()
        assert recording_runner.commands == [
            ('create-quota', QUOTA, '-m', '10G', '-r', '1000', '-s', '100',
             '--allow-paid-service-plans'),
            ('create-org', ORG),
            ('set-quota', ORG, QUOTA),
            ('create-user', USER, 'meow'),
        ]
        assert recording_runner.calls[0] == ('api', 'https://api.example.test')
        assert recording_runner.calls[1] == ('auth', 'admin', 'admin-secret')
        assert recording_runner.calls[-1] == ('logout',)
        assert set(recording_runner.timeouts) == {timedelta(minutes=1)}

    def test_runs_in_isolated_home(self, settings, recording_runner):
        recording_runner.cf_home = '/ambient'
        _manager(settings, recording_runner).setup()
        assert '/ambient' not in recording_runner.homes
        assert recording_runner.cf_home == '/ambient'

    def test_existing_user_is_not_created(self, settings, recording_runner):
        _manager(
            settings,
            recording_runner,
            use_existing_user=True,
            existing_user='bob',
            existing_user_password='pw1',
        ).setup()
        assert [c[0] for c in recording_runner.commands] == [
            'create-quota', 'create-org', 'set-quota',
        ]

    def test_shared_org_creates_only_user(self, settings, recording_runner):
        _shared(settings, recording_runner).setup()
        assert recording_runner.commands == [('create-user', USER, 'meow')]

    def test_user_conflict_is_tolerated(self, settings, recording_runner):
        recording_runner.respond('create-user', exit_code=1, output=SCIM_CONFLICT)
        _manager(settings, recording_runner).setup()
        assert recording_runner.calls[-1] == ('logout',)

    def test_other_failure_is_fatal_and_stops(self, settings, recording_runner):
        recording_runner.respond('create-org', exit_code=1, output='Server error 500')
        with pytest.raises(CommandFailedError) as excinfo:
            _manager(settings, recording_runner).setup()
        assert excinfo.value.args_redacted[0] == 'create-org'
        commands = [c[0] for c in recording_runner.commands]
        assert commands == ['create-quota', 'create-org']
        assert recording_runner.calls[-1] == ('logout',)

    def test_user_failure_that_is_not_conflict_is_fatal(self, settings, recording_runner):
        recording_runner.respond('create-user', exit_code=1, output='Server error 503')
        with pytest.raises(CommandFailedError):
            _manager(settings, recording_runner).setup()

    def test_timeout_is_fatal(self, settings, recording_runner):
        recording_runner.respond('create-quota', exit_code=124, timed_out=True)
        with pytest.raises(CommandTimeoutError):
            _manager(settings, recording_runner).setup()
        assert [c[0] for c in recording_runner.commands] == ['create-quota']

    def test_persistent_app_creates_idempotently(self, settings, recording_runner):
        m = TenancyFixtureManager.persistent_app(
            settings, recording_runner, worker_id=3, now=NOW
        )
        m.setup()
        assert recording_runner.commands[:3] == [
            ('create-quota', 'CATS-persistent-quota', '-m', '10G', '-r', '1000',
             '-s', '100', '--allow-paid-service-plans'),
            ('create-org', 'CATS-persistent-org'),
            ('set-quota', 'CATS-persistent-org', 'CATS-persistent-quota'),
        ]


class TestCreateSpace:
    def test_creates_space_and_grants_roles(self, settings, recording_runner):
        _manager(settings, recording_runner).create_space()
        assert recording_runner.commands == [
            ('create-space', SPACE, '-o', ORG),
            *[('set-space-role', USER, ORG, SPACE, role) for role in SPACE_ROLES],
        ]


class TestRunawayQuota:
    def test_updates_quota(self, settings, recording_runner):
        _manager(settings, recording_runner).set_runaway_quota()
        assert recording_runner.commands == [
            ('update-quota', QUOTA, '-m', '99999G', '-i=-1', '-s=-1'),
        ]

    def test_repeat_issues_identical_command(self, settings, recording_runner):
        m = _manager(settings, recording_runner)
        m.set_runaway_quota()
        m.set_runaway_quota()
        first, second = recording_runner.commands
        assert first == second


class TestTeardown:
    def test_ephemeral_order(self, settings, recording_runner):
        _manager(settings, recording_runner).teardown()
        assert recording_runner.commands == [
            ('delete-user', '-f', USER),
            ('delete-org', '-f', ORG),
            ('delete-quota', '-f', QUOTA),
        ]

    def test_shared_org_deletes_only_space(self, settings, recording_runner):
        _shared(settings, recording_runner).teardown()
        assert recording_runner.commands == [
            ('delete-user', '-f', USER),
            ('target', '-o', 'shared-org'),
            ('delete-space', '-f', 'shared-space'),
        ]

    def test_persistent_app_keeps_org_and_quota(self, settings, recording_runner):
        m = TenancyFixtureManager.persistent_app(
            settings, recording_runner, worker_id=3, now=NOW
        )
        m.teardown()
        assert recording_runner.commands == [('delete-user', '-f', USER)]

    def test_existing_user_is_kept_by_default(self, settings, recording_runner):
        _manager(
            settings,
            recording_runner,
            use_existing_user=True,
            existing_user='bob',
            existing_user_password='pw1',
        ).teardown()
        assert [c[0] for c in recording_runner.commands] == ['delete-org', 'delete-quota']

    def test_keep_flag_overrides(self, settings, recording_runner):
        _manager(settings, recording_runner, keep_user_at_suite_end=True).teardown()
        assert 'delete-user' not in [c[0] for c in recording_runner.commands]

    def test_failed_delete_raises(self, settings, recording_runner):
        recording_runner.respond('delete-org', exit_code=1, output='org in use')
        with pytest.raises(CommandFailedError):
            _manager(settings, recording_runner).teardown()
        assert recording_runner.calls[-1] == ('logout',)


class TestPersistentAppInSharedGroup:
    @pytest.fixture
    def manager(self, settings, recording_runner):
        shared = FixtureSettings(
            api=settings.api,
            admin_user=settings.admin_user,
            admin_password=settings.admin_password,
            use_existing_organization=True,
            existing_organization='shared-org',
            existing_space='shared-space',
            existing_quota='shared-quota',
        )
        return TenancyFixtureManager.persistent_app(
            shared, recording_runner, worker_id=3, now=NOW
        )

    def test_reports_shared_group(self, manager):
        assert manager.is_persistent_org_and_space
        assert manager.descriptor.is_persistent_app

    def test_setup_creates_only_user(self, manager, recording_runner):
        manager.setup()
        assert recording_runner.commands == [('create-user', USER, 'meow')]

    def test_teardown_keeps_org_and_quota(self, manager, recording_runner):
        manager.teardown()
        commands = [c[0] for c in recording_runner.commands]
        assert 'delete-org' not in commands
        assert 'delete-quota' not in commands
        assert recording_runner.commands == [
            ('delete-user', '-f', USER),
            ('target', '-o', 'CATS-persistent-org'),
            ('delete-space', '-f', 'CATS-persistent-space'),
        ]


class TestFactoryValidation:
    def test_shared_org_without_space_is_rejected(self, settings, recording_runner):
        with pytest.raises(SettingsError, match='existing_space'):
            _manager(
                settings,
                recording_runner,
                use_existing_organization=True,
                existing_organization='shared-org',
                existing_quota='shared-quota',
            )
        assert recording_runner.calls == []

    def test_persistent_app_requires_admin(self, recording_runner):
        with pytest.raises(SettingsError, match='admin_user and admin_password'):
            TenancyFixtureManager.persistent_app(
                FixtureSettings(api='https://api.example.test'),
                recording_runner,
                worker_id=0,
                now=NOW,
            )
