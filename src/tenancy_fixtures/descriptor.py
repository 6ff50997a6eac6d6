"""Immutable record of the names, timeouts and lifecycle of one fixture."""

from __future__ import annotations

from dataclasses import dataclass, replace
from datetime import datetime, timedelta

from .lifecycle import Lifecycle
from .naming import NameOverrides, resolve_names
from .settings import FixtureSettings


@dataclass(frozen=True, slots=True)
class FixtureDescriptor:
    """Decided names and timeouts for one worker's fixture.

    Owned by exactly one TenancyFixtureManager.
    """

    org_name: str
    space_name: str
    quota_name: str
    username: str
    password: str
    short_timeout: timedelta
    long_timeout: timedelta
    lifecycle: Lifecycle = Lifecycle.EPHEMERAL

    @property
    def is_persistent_org_and_space(self) -> bool:
        return self.lifecycle.shares_org_and_space

    @property
    def is_persistent_app(self) -> bool:
        return self.lifecycle.is_persistent_app


def overrides_from_settings(settings: FixtureSettings) -> NameOverrides:
    """Translate reuse flags into name overrides.

    Empty names are not overrides; the generated name is kept.
    """
    username = password = None
    if settings.use_existing_user:
        username = settings.existing_user or None
        password = settings.existing_user_password or None

    org = space = quota = None
    if settings.use_existing_organization:
        org = settings.existing_organization or None
        space = settings.existing_space or None
        quota = settings.existing_quota or None

    return NameOverrides(
        org=org,
        space=space,
        quota=quota,
        username=username,
        password=password,
    )


def build_descriptor(
    settings: FixtureSettings,
    *,
    worker_id: int,
    now: datetime,
) -> FixtureDescriptor:
    names = resolve_names(worker_id, now, overrides_from_settings(settings))
    return FixtureDescriptor(
        org_name=names.org,
        space_name=names.space,
        quota_name=names.quota,
        username=names.username,
        password=names.password,
        short_timeout=settings.short_timeout,
        long_timeout=settings.long_timeout,
        lifecycle=Lifecycle.from_flags(
            org_and_space_persistent=names.shared_org_and_space,
            app_persistent=False,
        ),
    )


def build_persistent_app_descriptor(
    settings: FixtureSettings,
    *,
    worker_id: int,
    now: datetime,
) -> FixtureDescriptor:
    """Descriptor for fixtures hosting applications that outlive the suite."""
    base = build_descriptor(settings, worker_id=worker_id, now=now)
    return replace(
        base,
        org_name=settings.persistent_app_org,
        space_name=settings.persistent_app_space,
        quota_name=settings.persistent_app_quota_name,
        lifecycle=Lifecycle.from_flags(
            org_and_space_persistent=base.is_persistent_org_and_space,
            app_persistent=True,
        ),
    )
